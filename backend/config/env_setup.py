# @role: Environment loader for backend settings
# @used_by: main.py, logging_config.py, conftest.py
# @filter_type: utility
# @tags: env, config, bootstrap
# config/env_setup.py

import os
from pathlib import Path
from dotenv import load_dotenv

# ─── Determine project root & ENV ────────────────────────────────────────────
ROOT = Path(__file__).resolve().parent.parent
ENV  = os.getenv("ENV", "development").lower()

# ─── Load the right .env file (optional; plain env vars work without it) ─────
env_path = ROOT / f".env.{ENV}"
if env_path.exists():
    load_dotenv(env_path)


def _as_bool(value, default=False):
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _as_optional_float(value):
    if value is None or value.strip() in ("", "0"):
        return None
    return float(value)


# ─── Expose your environment settings ────────────────────────────────────────
class EnvConfig:
    """
    Snapshot of the process environment. Values are read when the object is
    created so tests can set variables first and build a fresh config.
    """

    def __init__(self, **overrides):
        self.ENV                   = os.getenv("ENV", ENV).lower()
        self.HOST                  = os.getenv("HOST", "0.0.0.0")
        self.PORT                  = int(os.getenv("PORT", "5000"))
        self.FRONTEND_URL          = os.getenv("FRONTEND_URL", "http://localhost:3000")
        self.CORS_ORIGIN           = os.getenv("CORS_ORIGIN", "*")
        self.DATA_DIR              = Path(os.getenv("DATA_DIR", str(ROOT / "data")))
        self.USERS_FILE            = Path(os.getenv("USERS_FILE", str(self.DATA_DIR / "users.json")))
        self.SEED_CASH             = float(os.getenv("SEED_CASH", "500000"))
        self.TICK_INTERVAL_SECONDS = float(os.getenv("TICK_INTERVAL_SECONDS", "5"))
        self.MAX_CHANGE_PERCENT    = float(os.getenv("MAX_CHANGE_PERCENT", "2.0"))
        self.SESSION_TTL_SECONDS   = _as_optional_float(os.getenv("SESSION_TTL_SECONDS"))
        self.SIMULATOR_ENABLED     = _as_bool(os.getenv("SIMULATOR_ENABLED"), default=True)
        self.LOG_LEVEL             = os.getenv("LOG_LEVEL", "INFO").upper()
        self.LOG_DIR               = Path(os.getenv("LOG_DIR", str(ROOT / "logs")))

        for key, value in overrides.items():
            if not hasattr(self, key):
                raise KeyError(f"Unknown setting: {key}")
            setattr(self, key, value)

    @property
    def cors_origins(self):
        origins = [origin.strip() for origin in self.CORS_ORIGIN.split(",") if origin.strip()]
        if "*" in origins:
            return ["*"]
        if self.FRONTEND_URL and self.FRONTEND_URL not in origins:
            origins.append(self.FRONTEND_URL)
        return origins
