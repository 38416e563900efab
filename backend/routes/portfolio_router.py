# @role: Portfolio read endpoints and the trade endpoint
# @used_by: main.py
# @filter_type: system
# @tags: portfolio, trade, router
import logging
from fastapi import APIRouter, Depends, HTTPException
from typing import Optional

from exceptions.exceptions import (
    InsufficientFundsException,
    InsufficientHoldingsException,
    InvalidTradeException,
    PersistenceException,
    StockNotFoundException,
    UserNotFoundException,
)
from routes.dependencies import get_current_user_id, get_portfolio_service, get_trade_engine
from services.portfolio_service import DEFAULT_PAGE_SIZE, PortfolioService
from services.trade_engine import TradeEngine
from util.portfolio_schema import TradeRequest

logger = logging.getLogger("portfolio")
logger.setLevel(logging.INFO)

router = APIRouter(prefix="/portfolio")


@router.get("")
def get_portfolio(user_id: str = Depends(get_current_user_id),
                  service: PortfolioService = Depends(get_portfolio_service)):
    logger.debug("Fetching portfolio for %s", user_id)
    try:
        portfolio, summary = service.get_portfolio(user_id)
        logger.info("Returned portfolio for %s with %d holdings", user_id, len(portfolio["stocks"]))
        return {"success": True, "portfolio": portfolio, "summary": summary}
    except UserNotFoundException:
        logger.warning("Portfolio requested for unknown user %s", user_id)
        raise HTTPException(status_code=404, detail="User not found")
    except Exception:
        logger.exception("Failed to fetch portfolio for %s", user_id)
        raise HTTPException(status_code=500, detail="Failed to get portfolio")


@router.get("/summary")
def get_summary(user_id: str = Depends(get_current_user_id),
                service: PortfolioService = Depends(get_portfolio_service)):
    try:
        return {"success": True, "summary": service.get_summary(user_id)}
    except UserNotFoundException:
        raise HTTPException(status_code=404, detail="User not found")
    except Exception:
        logger.exception("Failed to build summary for %s", user_id)
        raise HTTPException(status_code=500, detail="Failed to get portfolio summary")


@router.get("/holdings")
def get_holdings(user_id: str = Depends(get_current_user_id),
                 service: PortfolioService = Depends(get_portfolio_service)):
    try:
        return {"success": True, "holdings": service.get_holdings(user_id)}
    except UserNotFoundException:
        raise HTTPException(status_code=404, detail="User not found")
    except Exception:
        logger.exception("Failed to fetch holdings for %s", user_id)
        raise HTTPException(status_code=500, detail="Failed to get holdings")


@router.get("/transactions")
def get_transactions(page: int = 1,
                     limit: int = DEFAULT_PAGE_SIZE,
                     symbol: Optional[str] = None,
                     type: Optional[str] = None,
                     user_id: str = Depends(get_current_user_id),
                     service: PortfolioService = Depends(get_portfolio_service)):
    try:
        transactions, pagination = service.get_transactions(user_id, page=page, limit=limit, symbol=symbol, side=type)
        return {"success": True, "transactions": transactions, "pagination": pagination}
    except UserNotFoundException:
        raise HTTPException(status_code=404, detail="User not found")
    except Exception:
        logger.exception("Failed to fetch transactions for %s", user_id)
        raise HTTPException(status_code=500, detail="Failed to get transactions")


@router.get("/performance")
def get_performance(user_id: str = Depends(get_current_user_id),
                    service: PortfolioService = Depends(get_portfolio_service)):
    try:
        return {"success": True, "performance": service.get_performance(user_id)}
    except UserNotFoundException:
        raise HTTPException(status_code=404, detail="User not found")
    except Exception:
        logger.exception("Failed to build performance for %s", user_id)
        raise HTTPException(status_code=500, detail="Failed to get performance metrics")


@router.post("/trade")
def trade(body: TradeRequest,
          user_id: str = Depends(get_current_user_id),
          engine: TradeEngine = Depends(get_trade_engine)):
    if not body.symbol or not body.type or body.quantity is None:
        logger.warning("Trade rejected for %s: invalid parameters %s", user_id, body)
        raise HTTPException(status_code=400, detail="Invalid trade parameters")

    try:
        transaction = engine.execute_trade(user_id, body.symbol, body.type, body.quantity)
        return {
            "success": True,
            "message": f"{transaction.type} order executed successfully",
            "transaction": transaction.to_json_dict(),
        }
    except InvalidTradeException as e:
        logger.warning("Trade rejected for %s: %s", user_id, e)
        raise HTTPException(status_code=400, detail="Invalid trade parameters")
    except InsufficientFundsException as e:
        logger.warning("Trade rejected for %s: %s", user_id, e)
        raise HTTPException(status_code=400, detail="Insufficient cash")
    except InsufficientHoldingsException as e:
        logger.warning("Trade rejected for %s: %s", user_id, e)
        raise HTTPException(status_code=400, detail="Insufficient stock quantity")
    except (StockNotFoundException, UserNotFoundException):
        raise HTTPException(status_code=404, detail="User or stock not found")
    except PersistenceException:
        raise HTTPException(status_code=500, detail="Failed to persist trade")
    except HTTPException:
        raise
    except Exception:
        logger.exception("Unexpected error executing trade for %s", user_id)
        raise HTTPException(status_code=500, detail="Trade execution failed")
