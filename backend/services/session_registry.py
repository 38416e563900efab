# @role: In-memory bearer token registry
# @used_by: auth_router.py, dependencies.py, main.py
# @filter_type: system
# @tags: auth, session, token
import threading
import time
from typing import Callable, Dict, Optional, Tuple

from exceptions.exceptions import InvalidTokenException
from util.util import generate_token


class SessionRegistry:
    """
    Maps opaque tokens to user ids. Nothing is persisted, so every token is
    forgotten on restart. Tokens never expire unless ``ttl_seconds`` is set.
    """

    def __init__(self, ttl_seconds: Optional[float] = None, clock: Optional[Callable[[], float]] = None):
        self.ttl_seconds = ttl_seconds
        self._clock = clock or time.monotonic
        self._tokens: Dict[str, Tuple[str, float]] = {}
        self._lock = threading.Lock()

    def __len__(self):
        with self._lock:
            return len(self._tokens)

    def issue_token(self, user_id: str) -> str:
        token = generate_token()
        with self._lock:
            while token in self._tokens:
                token = generate_token()
            self._tokens[token] = (user_id, self._clock())
        return token

    def resolve(self, token: str) -> str:
        if not token:
            raise InvalidTokenException("No token provided")
        with self._lock:
            entry = self._tokens.get(token)
            if entry is None:
                raise InvalidTokenException("Invalid token")
            user_id, issued_at = entry
            if self.ttl_seconds is not None and self._clock() - issued_at > self.ttl_seconds:
                del self._tokens[token]
                raise InvalidTokenException("Token expired")
        return user_id
