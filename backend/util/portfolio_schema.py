# @role: Pydantic models for quotes, users, portfolios and API request bodies
# @used_by: quote_store.py, user_store.py, trade_engine.py, portfolio_service.py, auth_router.py, portfolio_router.py
# @filter_type: utility
# @tags: schema, pydantic, portfolio
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Any, List, Literal, Optional


class CamelModel(BaseModel):
    """Snake_case attributes, camelCase on disk and on the wire."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict:
        return self.model_dump(by_alias=True)


class Quote(CamelModel):
    symbol: str
    name: str
    price: float
    change: float = 0.0
    change_percent: float = 0.0
    last_updated: Optional[str] = None


class Holding(CamelModel):
    symbol: str
    name: str
    quantity: int
    avg_price: float
    current_price: float


class Transaction(CamelModel):
    id: str
    type: Literal["BUY", "SELL"]
    symbol: str
    name: str
    quantity: int
    price: float
    amount: float
    timestamp: str


class Portfolio(CamelModel):
    cash: float
    stocks: List[Holding] = Field(default_factory=list)
    transactions: List[Transaction] = Field(default_factory=list)

    def find_holding(self, symbol: str) -> Optional[Holding]:
        return next((h for h in self.stocks if h.symbol == symbol), None)


class User(CamelModel):
    id: str
    email: str
    password: str
    name: str
    created_at: str
    portfolio: Portfolio

    def public_view(self) -> dict:
        return self.model_dump(by_alias=True, exclude={"password"})


# Request bodies: every field optional so routes can answer with their own 400 messages

class RegisterRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None
    name: Optional[str] = None


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class TradeRequest(BaseModel):
    symbol: Optional[str] = None
    type: Optional[str] = None
    quantity: Optional[Any] = None  # raw JSON value, checked by TradeEngine.validate
