# logging_config.py — Singleton logger factory

import logging
from pathlib import Path
from datetime import datetime
import os
from pytz import timezone
from config.env_setup import EnvConfig
india_tz = timezone("Asia/Kolkata")

_agent_logger = None
_trade_logger = None

def get_loggers():
    """
    Return the (agent, trade) logger pair, creating the per-run log directory
    on first use. The agent log gets service activity; the trade log gets one
    line per executed order.
    """
    global _agent_logger, _trade_logger

    if _agent_logger and _trade_logger:
        return _agent_logger, _trade_logger

    settings = EnvConfig()
    run_id = datetime.now(india_tz).strftime("%Y%m%d_%H%M%S")
    log_dir = Path(settings.LOG_DIR) / run_id
    os.makedirs(log_dir, exist_ok=True)

    level = getattr(logging, settings.LOG_LEVEL, logging.INFO)
    formatter = logging.Formatter('%(asctime)s — %(levelname)s — %(name)s — %(message)s')

    # Agent Logger
    _agent_logger = logging.getLogger("agent")
    if not _agent_logger.hasHandlers():
        _agent_logger.setLevel(level)
        agent_file = logging.FileHandler(log_dir / "agent.log",  encoding="utf-8")
        agent_file.setFormatter(formatter)
        _agent_logger.addHandler(agent_file)

    # Trade Logger
    _trade_logger = logging.getLogger("trade")
    if not _trade_logger.hasHandlers():
        _trade_logger.setLevel(logging.INFO)
        trade_file = logging.FileHandler(log_dir / "trade_logs.log",  encoding="utf-8")
        trade_file.setFormatter(formatter)
        _trade_logger.addHandler(trade_file)

    return _agent_logger, _trade_logger
