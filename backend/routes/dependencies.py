# @role: FastAPI dependencies resolving services from app.state and the bearer token
# @used_by: auth_router.py, portfolio_router.py, stock_router.py
# @filter_type: utility
# @tags: dependencies, auth, injection
import logging
from fastapi import Depends, HTTPException, Request

from exceptions.exceptions import InvalidTokenException
from services.portfolio_service import PortfolioService
from services.quote_store import QuoteStore
from services.session_registry import SessionRegistry
from services.trade_engine import TradeEngine
from services.user_store import UserStore

logger = logging.getLogger("auth")

BEARER_PREFIX = "Bearer "


def get_quote_store(request: Request) -> QuoteStore:
    return request.app.state.quote_store


def get_user_store(request: Request) -> UserStore:
    return request.app.state.user_store


def get_sessions(request: Request) -> SessionRegistry:
    return request.app.state.sessions


def get_trade_engine(request: Request) -> TradeEngine:
    return request.app.state.trade_engine


def get_portfolio_service(request: Request) -> PortfolioService:
    return request.app.state.portfolio_service


def get_current_user_id(request: Request, sessions: SessionRegistry = Depends(get_sessions)) -> str:
    auth_header = request.headers.get("authorization") or ""
    if not auth_header.startswith(BEARER_PREFIX):
        raise HTTPException(status_code=401, detail="No token provided")

    token = auth_header[len(BEARER_PREFIX):].strip()
    try:
        return sessions.resolve(token)
    except InvalidTokenException as e:
        logger.warning("Rejected bearer token: %s", e)
        raise HTTPException(status_code=401, detail="Invalid token")
