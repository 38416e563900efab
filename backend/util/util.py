# @role: Helper utilities like id generation, timestamps and price rounding
# @used_by: user_store.py, session_registry.py, trade_engine.py, price_simulator.py, main.py
# @filter_type: utility
# @tags: utility, helpers, tools
import secrets
import string
import time
from datetime import datetime
from pytz import utc

_BASE36 = string.digits + string.ascii_lowercase


def to_base36(number: int) -> str:
    if number < 0:
        raise ValueError("base36 encoding needs a non-negative integer")
    if number == 0:
        return "0"
    digits = []
    while number:
        number, rem = divmod(number, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def random_fragment(length: int = 11) -> str:
    """Random base-36 string of the given length."""
    return "".join(secrets.choice(_BASE36) for _ in range(length))


def now_millis() -> int:
    return int(time.time() * 1000)


def generate_id(prefix: str) -> str:
    """Ids look like ``user_1718000000000_k3j9x0a1b2c``."""
    return f"{prefix}_{now_millis()}_{random_fragment()}"


def generate_token() -> str:
    return random_fragment() + to_base36(now_millis())


def utc_now() -> datetime:
    return datetime.now(utc)


def isoformat_z(moment: datetime) -> str:
    """ISO-8601 with millisecond precision and a trailing Z."""
    return moment.astimezone(utc).strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def round_price(value: float) -> float:
    return round(value, 2)
