# @role: Executes paper BUY/SELL orders against a user's portfolio
# @used_by: portfolio_router.py, main.py
# @filter_type: system
# @tags: trade, executor, portfolio
import logging
import threading
from collections import defaultdict
from typing import Callable, Optional

from config.logging_config import get_loggers
from exceptions.exceptions import (
    InsufficientFundsException,
    InsufficientHoldingsException,
    InvalidTradeException,
    StockNotFoundException,
    UserNotFoundException,
)
from services.quote_store import QuoteStore
from services.user_store import UserStore
from util.portfolio_schema import Holding, Portfolio, Transaction
from util.util import generate_id, isoformat_z, round_price, utc_now

logger = logging.getLogger("trade_engine")
logger.setLevel(logging.INFO)

SIDES = ("BUY", "SELL")


class TradeEngine:
    """
    Validates and applies market orders at the current quote price.

    Mutations for one user are serialized through a per-user lock, so the
    read-check-mutate-persist sequence of two concurrent trades on the same
    portfolio can never interleave. Trades for different users run in parallel.
    """

    def __init__(self, quotes: QuoteStore, users: UserStore, clock: Optional[Callable] = None):
        self.quotes = quotes
        self.users = users
        self._clock = clock or utc_now
        self._locks = defaultdict(threading.Lock)
        self._locks_guard = threading.Lock()
        _, self._trade_logger = get_loggers()

    def _user_lock(self, user_id: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks[user_id]

    @staticmethod
    def validate(side, quantity) -> str:
        if not isinstance(side, str) or side.upper() not in SIDES:
            raise InvalidTradeException(f"Trade type must be BUY or SELL, got {side!r}")
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise InvalidTradeException(f"Quantity must be a positive integer, got {quantity!r}")
        return side.upper()

    def execute_trade(self, user_id: str, symbol: str, side: str, quantity: int) -> Transaction:
        side = self.validate(side, quantity)
        symbol = (symbol or "").upper()
        logger.info("Executing trade: user=%s, symbol=%s, qty=%d, side=%s", user_id, symbol, quantity, side)

        with self._user_lock(user_id):
            quote = self.quotes.get(symbol)
            if quote is None:
                raise StockNotFoundException(symbol)
            user = self.users.get(user_id)
            if user is None:
                raise UserNotFoundException(user_id)

            portfolio = user.portfolio
            if side == "BUY":
                self._apply_buy(portfolio, quote, quantity)
            else:
                self._apply_sell(portfolio, quote, quantity)

            transaction = Transaction(
                id=generate_id("txn"),
                type=side,
                symbol=quote.symbol,
                name=quote.name,
                quantity=quantity,
                price=quote.price,
                amount=round_price(quote.price * quantity),
                timestamp=isoformat_z(self._clock()),
            )
            portfolio.transactions.append(transaction)
            self.users.save_portfolio(user_id, portfolio)

        self._trade_logger.info(
            "%s %s x %d @ ₹%.2f = ₹%.2f | user=%s | cash=₹%.2f",
            side, transaction.symbol, quantity, transaction.price, transaction.amount, user_id, portfolio.cash,
        )
        return transaction

    @staticmethod
    def _apply_buy(portfolio: Portfolio, quote, quantity: int) -> None:
        cost = quote.price * quantity
        if portfolio.cash < cost:
            raise InsufficientFundsException(
                f"Need ₹{cost:.2f} for {quantity} {quote.symbol}, have ₹{portfolio.cash:.2f}"
            )
        portfolio.cash = round_price(portfolio.cash - cost)

        holding = portfolio.find_holding(quote.symbol)
        if holding:
            total_quantity = holding.quantity + quantity
            holding.avg_price = (holding.avg_price * holding.quantity + cost) / total_quantity
            holding.quantity = total_quantity
            holding.current_price = quote.price
        else:
            portfolio.stocks.append(Holding(
                symbol=quote.symbol,
                name=quote.name,
                quantity=quantity,
                avg_price=quote.price,
                current_price=quote.price,
            ))

    @staticmethod
    def _apply_sell(portfolio: Portfolio, quote, quantity: int) -> None:
        holding = portfolio.find_holding(quote.symbol)
        if holding is None or holding.quantity < quantity:
            held = holding.quantity if holding else 0
            raise InsufficientHoldingsException(
                f"Cannot sell {quantity} {quote.symbol}, holding {held}"
            )
        portfolio.cash = round_price(portfolio.cash + quote.price * quantity)
        holding.quantity -= quantity
        holding.current_price = quote.price
        if holding.quantity == 0:
            portfolio.stocks = [h for h in portfolio.stocks if h.symbol != quote.symbol]
