# @role: Quote listing, lookup, ranking and name search endpoints
# @used_by: main.py
# @filter_type: system
# @tags: stocks, quotes, router
import logging
from fastapi import APIRouter, Depends, HTTPException

from routes.dependencies import get_quote_store
from services.quote_store import QuoteStore

logger = logging.getLogger("stocks")

router = APIRouter(prefix="/stocks")

DEFAULT_RANK_COUNT = 10


def _parse_count(raw: str) -> int:
    try:
        count = int(raw)
    except ValueError:
        return DEFAULT_RANK_COUNT
    return count if count > 0 else DEFAULT_RANK_COUNT


@router.get("")
def list_stocks(quotes: QuoteStore = Depends(get_quote_store)):
    try:
        data = quotes.as_json()
        return {"success": True, "data": data, "message": f"{len(data)} stocks retrieved successfully"}
    except Exception:
        logger.exception("Failed to read quotes")
        raise HTTPException(status_code=500, detail="Error retrieving stocks")


@router.get("/sector/{sector}")
def stocks_by_sector(sector: str, quotes: QuoteStore = Depends(get_quote_store)):
    # no sector field on quotes; matches against the company name
    data = [q.to_json_dict() for q in quotes.search_name(sector)]
    return {"success": True, "data": data, "message": f"{len(data)} stocks found for sector: {sector}"}


@router.get("/performance/top/{count}")
def top_performers(count: str, quotes: QuoteStore = Depends(get_quote_store)):
    n = _parse_count(count)
    data = [q.to_json_dict() for q in quotes.ranked(n)]
    return {"success": True, "data": data, "message": f"Top {n} performing stocks"}


@router.get("/performance/worst/{count}")
def worst_performers(count: str, quotes: QuoteStore = Depends(get_quote_store)):
    n = _parse_count(count)
    data = [q.to_json_dict() for q in quotes.ranked(n, worst=True)]
    return {"success": True, "data": data, "message": f"Worst {n} performing stocks"}


@router.get("/{symbol}")
def get_stock(symbol: str, quotes: QuoteStore = Depends(get_quote_store)):
    quote = quotes.get(symbol)
    if quote is None:
        raise HTTPException(status_code=404, detail=f"Stock {symbol.upper()} not found in current list")
    return {"success": True, "data": quote.to_json_dict()}
