# @role: Custom exception classes for backend services
# @used_by: trade_engine.py, user_store.py, session_registry.py, portfolio_service.py, auth_router.py, portfolio_router.py, stock_router.py
# @filter_type: utility
# @tags: exceptions, error, base
class InvalidTokenException(Exception):
    """Raised when a bearer token is unknown or has expired."""
    pass

class InvalidTradeException(Exception):
    """Raised when trade parameters (side, quantity) are malformed."""
    pass

class StockNotFoundException(Exception):
    """Raised when a symbol does not resolve to a known quote."""
    pass

class UserNotFoundException(Exception):
    """Raised when a user id has no stored record."""
    pass

class DuplicateUserException(Exception):
    """Raised when registering an email that is already taken."""
    pass

class InvalidCredentialsException(Exception):
    """Raised when an email/password pair does not match any user."""
    pass

class InsufficientFundsException(Exception):
    """Raised when a BUY costs more than the available cash."""
    pass

class InsufficientHoldingsException(Exception):
    """Raised when a SELL asks for more shares than are held."""
    pass

class PersistenceException(Exception):
    """Raised when the user store cannot be written to disk."""
    pass
