# @role: In-memory store of current quotes for the simulated stock universe
# @used_by: price_simulator.py, trade_engine.py, portfolio_service.py, stock_router.py, main.py
# @filter_type: system
# @tags: quotes, store, prices
import threading
from typing import Callable, Dict, Iterable, List, Optional

from util.portfolio_schema import Quote


class QuoteStore:
    """
    Owns the current price/change for a fixed set of symbols.

    The simulator thread replaces quotes while request threads read them, so
    every access goes through ``_lock`` and readers always receive copies.
    """

    def __init__(self, quotes: Iterable = ()):
        self._lock = threading.RLock()
        self._quotes: Dict[str, Quote] = {}
        for raw in quotes:
            quote = raw if isinstance(raw, Quote) else Quote.model_validate(raw)
            self._quotes[quote.symbol.upper()] = quote

    def __len__(self) -> int:
        with self._lock:
            return len(self._quotes)

    def all(self) -> List[Quote]:
        with self._lock:
            return [q.model_copy() for q in self._quotes.values()]

    def get(self, symbol: str) -> Optional[Quote]:
        if not symbol:
            return None
        with self._lock:
            quote = self._quotes.get(symbol.upper())
            return quote.model_copy() if quote else None

    def price_of(self, symbol: str) -> Optional[float]:
        quote = self.get(symbol)
        return quote.price if quote else None

    def ranked(self, count: int, worst: bool = False) -> List[Quote]:
        """The ``count`` quotes with the highest (or lowest) change percent; ties keep seed order."""
        return sorted(self.all(), key=lambda q: q.change_percent, reverse=not worst)[:count]

    def search_name(self, fragment: str) -> List[Quote]:
        needle = (fragment or "").lower()
        return [q for q in self.all() if needle in q.name.lower()]

    def transform(self, fn: Callable[[Quote], Quote]) -> List[Quote]:
        """Replace every quote with ``fn(quote)`` in one locked pass; returns the new set."""
        with self._lock:
            for symbol, quote in list(self._quotes.items()):
                self._quotes[symbol] = fn(quote)
            return [q.model_copy() for q in self._quotes.values()]

    def as_json(self) -> List[dict]:
        return [q.to_json_dict() for q in self.all()]
