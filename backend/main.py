# @role: FastAPI app entrypoint with route mounting, presenter middleware and lifecycle hooks
# @used_by: NA
# @filter_type: utility
# @tags: main, entrypoint, fastapi
import asyncio
import json
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, WebSocket, WebSocketDisconnect
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from config.env_setup import EnvConfig
from config.logging_config import get_loggers
from config.settings import load_stock_universe
from db.tinydb.client import close_database, get_database
from routes.auth_router import router as auth_router
from routes.portfolio_router import router as portfolio_router
from routes.stock_router import router as stock_router
from schedulers.scheduler import build_scheduler, start, shutdown
from services.portfolio_service import PortfolioService
from services.price_simulator import PriceSimulator
from services.quote_store import QuoteStore
from services.session_registry import SessionRegistry
from services.stream_hub import StreamHub, stock_update_message
from services.trade_engine import TradeEngine
from services.user_store import UserStore
from util.presenter import present, wants_pretty, wants_table
from util.util import isoformat_z, utc_now

# Set up logging first
logger, trade_logger = get_loggers()


def create_app(settings: EnvConfig = None) -> FastAPI:
    """
    Build the application with its own quote store, user store, session
    registry and simulator. Everything lives on ``app.state``; routes reach it
    through the dependencies in ``routes/dependencies.py``.
    """
    settings = settings or EnvConfig()

    quote_store = QuoteStore(load_stock_universe())
    user_store = UserStore(get_database(settings.USERS_FILE), seed_cash=settings.SEED_CASH)
    sessions = SessionRegistry(ttl_seconds=settings.SESSION_TTL_SECONDS)
    simulator = PriceSimulator(quote_store, max_change_percent=settings.MAX_CHANGE_PERCENT)
    stream_hub = StreamHub()
    simulator.subscribe(stream_hub.publish)
    scheduler = build_scheduler(simulator, interval_seconds=settings.TICK_INTERVAL_SECONDS)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        stream_hub.bind_loop(asyncio.get_running_loop())
        if settings.SIMULATOR_ENABLED:
            logger.info("🔁 Starting price simulator (every %ss)...", settings.TICK_INTERVAL_SECONDS)
            start(scheduler)
        yield
        logger.info("🛑 Shutting down price simulator and user store...")
        shutdown(scheduler)
        stream_hub.bind_loop(None)
        close_database(settings.USERS_FILE)

    # App setup
    app = FastAPI(title="Paper Trading Simulator", version="1.0", lifespan=lifespan)

    app.state.settings = settings
    app.state.quote_store = quote_store
    app.state.user_store = user_store
    app.state.sessions = sessions
    app.state.simulator = simulator
    app.state.stream_hub = stream_hub
    app.state.scheduler = scheduler
    app.state.trade_engine = TradeEngine(quote_store, user_store)
    app.state.portfolio_service = PortfolioService(quote_store, user_store, seed_cash=settings.SEED_CASH)

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def format_response(request: Request, call_next):
        """Re-render JSON bodies as text tables or indented JSON when the client asks for it."""
        response = await call_next(request)
        table = wants_table(request.query_params, request.headers)
        if not (table or wants_pretty(request.query_params, request.headers)):
            return response
        if not response.headers.get("content-type", "").startswith("application/json"):
            return response

        raw = b"".join([chunk async for chunk in response.body_iterator])
        headers = {k: v for k, v in response.headers.items() if k.lower() not in ("content-length", "content-type")}
        try:
            text = present(json.loads(raw), request.url.path, table)
        except Exception:
            logger.exception("Failed to format response for %s; sending raw JSON", request.url.path)
            return Response(content=raw, status_code=response.status_code, headers=headers, media_type="application/json")

        media_type = "text/plain; charset=utf-8" if table else "application/json; charset=utf-8"
        return Response(content=text, status_code=response.status_code, headers=headers, media_type=media_type)

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "error": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        logger.warning("Invalid request body on %s: %s", request.url.path, exc.errors())
        return JSONResponse(status_code=400, content={"success": False, "error": "Invalid request body"})

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception):
        """Catch all errors so the server never crashes."""
        logger.exception("Unhandled error on %s", request.url.path)
        return JSONResponse(status_code=500, content={"success": False, "error": "Internal server error"})

    # Routers
    app.include_router(stock_router, prefix="/api")
    app.include_router(auth_router, prefix="/api")
    app.include_router(portfolio_router, prefix="/api")

    @app.get("/health")
    def health(request: Request):
        state = request.app.state
        return {
            "status": "ok",
            "timestamp": isoformat_z(utc_now()),
            "users": state.user_store.count(),
            "stocks": len(state.quote_store),
        }

    @app.websocket("/ws")
    async def stock_stream(websocket: WebSocket):
        hub = websocket.app.state.stream_hub
        await hub.connect(websocket)
        try:
            # Send current quotes immediately
            await websocket.send_json(stock_update_message(websocket.app.state.quote_store.all()))
            while True:
                text = await websocket.receive_text()
                if text.strip().lower() == "ping":
                    await websocket.send_text("pong")
        except WebSocketDisconnect as e:
            logger.info("[WS] Client closed connection (code %s)", e.code)
        finally:
            hub.disconnect(websocket)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host=app.state.settings.HOST, port=app.state.settings.PORT)
