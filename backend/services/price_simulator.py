# @role: Random-walk price simulator for the quote store
# @used_by: scheduler.py, main.py
# @filter_type: system
# @tags: simulator, prices, tick
import logging
import random
from typing import Callable, List, Optional

from services.quote_store import QuoteStore
from util.portfolio_schema import Quote
from util.util import isoformat_z, round_price, utc_now

logger = logging.getLogger("price_simulator")

Subscriber = Callable[[List[Quote]], None]


class PriceSimulator:
    """
    Perturbs every quote by a uniform percentage in
    ``[-max_change_percent, +max_change_percent]`` on each tick and hands the
    updated set to subscribers.

    Args:
        store: QuoteStore to mutate.
        max_change_percent: Bound of the per-tick move, in percent.
        rng: ``random.Random`` instance; pass a seeded one for repeatable ticks.
        clock: Zero-arg callable returning an aware datetime for ``lastUpdated``.
    """

    def __init__(self, store: QuoteStore, max_change_percent: float = 2.0,
                 rng: Optional[random.Random] = None, clock: Optional[Callable] = None):
        if max_change_percent < 0:
            raise ValueError("max_change_percent must be non-negative")
        self.store = store
        self.max_change_percent = max_change_percent
        self._rng = rng or random.Random()
        self._clock = clock or utc_now
        self._subscribers: List[Subscriber] = []
        self.ticks = 0

    def subscribe(self, callback: Subscriber) -> None:
        if callback not in self._subscribers:
            self._subscribers.append(callback)

    def unsubscribe(self, callback: Subscriber) -> None:
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def _perturb(self, quote: Quote, stamp: str) -> Quote:
        pct = self._rng.uniform(-self.max_change_percent, self.max_change_percent)
        new_price = round_price(quote.price * (1 + pct / 100))
        return quote.model_copy(update={
            "price": new_price,
            "change": round_price(new_price - quote.price),
            "change_percent": round(pct, 2),
            "last_updated": stamp,
        })

    def tick(self) -> List[Quote]:
        stamp = isoformat_z(self._clock())
        snapshot = self.store.transform(lambda q: self._perturb(q, stamp))
        self.ticks += 1
        logger.debug("Tick %d applied to %d quotes", self.ticks, len(snapshot))

        for callback in list(self._subscribers):
            try:
                callback(snapshot)
            except Exception:
                logger.exception("Quote subscriber %r failed", callback)
        return snapshot
