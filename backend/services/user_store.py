# @role: TinyDB-backed user records with embedded portfolios
# @used_by: trade_engine.py, portfolio_service.py, auth_router.py, main.py
# @filter_type: system
# @tags: users, tinydb, persistence
import copy
import logging
import threading
from typing import Optional

from tinydb import Query, TinyDB

from exceptions.exceptions import (
    DuplicateUserException,
    InvalidCredentialsException,
    PersistenceException,
    UserNotFoundException,
)
from util.portfolio_schema import Portfolio, User
from util.util import generate_id, isoformat_z, utc_now

logger = logging.getLogger("user_store")

UserQuery = Query()


class UserStore:
    """
    User records live in the ``users`` table of a TinyDB document. TinyDB is
    not thread-safe, so every table access holds ``_lock``; the query cache is
    disabled and callers get deep copies they are free to mutate.
    """

    def __init__(self, db: TinyDB, seed_cash: float = 500000):
        self._db = db
        self._table = db.table("users", cache_size=0)
        self._lock = threading.RLock()
        self.seed_cash = seed_cash
        logger.info("Loaded %d users", self.count())

    def count(self) -> int:
        with self._lock:
            return len(self._table)

    def _find(self, cond) -> Optional[dict]:
        with self._lock:
            doc = self._table.get(cond)
            return copy.deepcopy(dict(doc)) if doc is not None else None

    def get(self, user_id: str) -> Optional[User]:
        if not user_id:
            return None
        doc = self._find(UserQuery.id == user_id)
        return User.model_validate(doc) if doc else None

    def find_by_email(self, email: str) -> Optional[User]:
        if not email:
            return None
        doc = self._find(UserQuery.email == email)
        return User.model_validate(doc) if doc else None

    def authenticate(self, email: str, password: str) -> User:
        user = self.find_by_email(email)
        if user is None or user.password != password:
            raise InvalidCredentialsException(email)
        return user

    def create(self, email: str, password: str, name: str) -> User:
        """Insert a new user seeded with ``seed_cash``; email must be unused."""
        user = User(
            id=generate_id("user"),
            email=email,
            password=password,
            name=name,
            created_at=isoformat_z(utc_now()),
            portfolio=Portfolio(cash=self.seed_cash),
        )
        with self._lock:
            if self._table.contains(UserQuery.email == email):
                raise DuplicateUserException(email)
            try:
                self._table.insert(user.to_json_dict())
            except (OSError, TypeError, ValueError) as e:
                logger.exception("Failed to persist new user %s", email)
                raise PersistenceException(f"Could not save user {email}") from e
        logger.info("Registered user %s (%s)", user.id, email)
        return user

    def save_portfolio(self, user_id: str, portfolio: Portfolio) -> None:
        """
        Overwrite the stored portfolio of ``user_id``. The document is only
        replaced once the file write succeeded, so on failure the previous
        portfolio stays in place.
        """
        with self._lock:
            if not self._table.contains(UserQuery.id == user_id):
                raise UserNotFoundException(user_id)
            try:
                self._table.update({"portfolio": portfolio.to_json_dict()}, UserQuery.id == user_id)
            except (OSError, TypeError, ValueError) as e:
                logger.exception("Failed to persist portfolio for %s", user_id)
                raise PersistenceException(f"Could not save portfolio for {user_id}") from e
