# @role: Read path for portfolios: live valuation, summary, holdings, transaction history
# @used_by: portfolio_router.py, main.py
# @filter_type: system
# @tags: portfolio, pnl, summary
import math
from typing import List, Optional, Tuple

from exceptions.exceptions import UserNotFoundException
from services.quote_store import QuoteStore
from services.user_store import UserStore
from util.portfolio_schema import Portfolio

DEFAULT_PAGE_SIZE = 50


class PortfolioService:
    def __init__(self, quotes: QuoteStore, users: UserStore, seed_cash: float = 500000):
        self.quotes = quotes
        self.users = users
        self.seed_cash = seed_cash

    def _load(self, user_id: str) -> Portfolio:
        user = self.users.get(user_id)
        if user is None:
            raise UserNotFoundException(user_id)
        return user.portfolio

    def refresh_prices(self, portfolio: Portfolio) -> Portfolio:
        """Set every holding's current price from the live quote store."""
        for holding in portfolio.stocks:
            price = self.quotes.price_of(holding.symbol)
            if price is not None:
                holding.current_price = price
        return portfolio

    @staticmethod
    def holding_rows(portfolio: Portfolio) -> List[dict]:
        rows = []
        for holding in portfolio.stocks:
            row = holding.to_json_dict()
            value = holding.quantity * holding.current_price
            cost = holding.quantity * holding.avg_price
            gain = value - cost
            row["value"] = round(value, 2)
            row["gainLoss"] = round(gain, 2)
            row["gainLossPercent"] = round(gain / cost * 100, 2) if cost else 0.0
            rows.append(row)
        return rows

    def summarize(self, portfolio: Portfolio) -> dict:
        stock_value = sum(h.quantity * h.current_price for h in portfolio.stocks)
        invested = sum(h.quantity * h.avg_price for h in portfolio.stocks)
        total_value = portfolio.cash + stock_value
        total_pnl = total_value - self.seed_cash
        return {
            "cash": round(portfolio.cash, 2),
            "stockValue": round(stock_value, 2),
            "totalValue": round(total_value, 2),
            "totalPnL": round(total_pnl, 2),
            "totalPnLPercent": round(total_pnl / self.seed_cash * 100, 2) if self.seed_cash else 0.0,
            "totalInvested": round(invested, 2),
            "stocksCount": len(portfolio.stocks),
            "transactionsCount": len(portfolio.transactions),
        }

    def get_portfolio(self, user_id: str) -> Tuple[dict, dict]:
        portfolio = self.refresh_prices(self._load(user_id))
        body = portfolio.to_json_dict()
        body["stocks"] = self.holding_rows(portfolio)
        return body, self.summarize(portfolio)

    def get_summary(self, user_id: str) -> dict:
        return self.summarize(self.refresh_prices(self._load(user_id)))

    def get_holdings(self, user_id: str) -> List[dict]:
        return self.holding_rows(self.refresh_prices(self._load(user_id)))

    def get_performance(self, user_id: str) -> dict:
        """Summary figures plus the best and worst holding by gain/loss percent (None when flat)."""
        portfolio = self.refresh_prices(self._load(user_id))
        summary = self.summarize(portfolio)
        rows = self.holding_rows(portfolio)
        return {
            "totalValue": summary["totalValue"],
            "totalInvested": summary["totalInvested"],
            "cash": summary["cash"],
            "totalGainLoss": summary["totalPnL"],
            "totalGainLossPercent": summary["totalPnLPercent"],
            "stocksValue": summary["stockValue"],
            "stocksCount": summary["stocksCount"],
            "transactionsCount": summary["transactionsCount"],
            "topPerformer": max(rows, key=lambda r: r["gainLossPercent"]) if rows else None,
            "worstPerformer": min(rows, key=lambda r: r["gainLossPercent"]) if rows else None,
        }

    def get_transactions(self, user_id: str, page: int = 1, limit: int = DEFAULT_PAGE_SIZE,
                         symbol: Optional[str] = None, side: Optional[str] = None) -> Tuple[List[dict], dict]:
        """
        Newest-first transaction history.

        ``symbol`` matches as a case-insensitive substring; ``side`` is applied
        only when it is BUY or SELL. Non-positive ``page``/``limit`` fall back
        to the defaults.
        """
        page = page if page and page > 0 else 1
        limit = limit if limit and limit > 0 else DEFAULT_PAGE_SIZE

        # reversed first so same-millisecond fills still come out newest first
        transactions = list(reversed(self._load(user_id).transactions))
        if symbol:
            needle = symbol.lower()
            transactions = [t for t in transactions if needle in t.symbol.lower()]
        if side and side.upper() in ("BUY", "SELL"):
            transactions = [t for t in transactions if t.type == side.upper()]

        transactions.sort(key=lambda t: t.timestamp, reverse=True)
        start = (page - 1) * limit
        window = transactions[start:start + limit]
        pagination = {
            "current": page,
            "limit": limit,
            "total": len(transactions),
            "pages": math.ceil(len(transactions) / limit),
        }
        return [t.to_json_dict() for t in window], pagination
