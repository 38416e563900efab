# @role: Registration, login, profile and token verification endpoints
# @used_by: main.py
# @filter_type: system
# @tags: auth, router, session
import logging
from fastapi import APIRouter, Depends, HTTPException

from exceptions.exceptions import DuplicateUserException, InvalidCredentialsException, PersistenceException
from routes.dependencies import get_current_user_id, get_sessions, get_user_store
from services.session_registry import SessionRegistry
from services.user_store import UserStore
from util.portfolio_schema import LoginRequest, RegisterRequest
from util.util import isoformat_z, utc_now

logger = logging.getLogger("auth")
logger.setLevel(logging.INFO)

router = APIRouter(prefix="/auth")


@router.post("/register")
def register(body: RegisterRequest,
             users: UserStore = Depends(get_user_store),
             sessions: SessionRegistry = Depends(get_sessions)):
    if not body.email or not body.password or not body.name:
        logger.warning("Registration rejected: missing fields")
        raise HTTPException(status_code=400, detail="Missing required fields")

    try:
        user = users.create(body.email, body.password, body.name)
        token = sessions.issue_token(user.id)
        return {
            "success": True,
            "message": "User registered successfully",
            "token": token,
            "user": user.public_view(),
        }
    except DuplicateUserException:
        logger.warning("Registration rejected: %s already exists", body.email)
        raise HTTPException(status_code=400, detail="User already exists")
    except PersistenceException:
        raise HTTPException(status_code=500, detail="Failed to save user")
    except HTTPException:
        raise
    except Exception:
        logger.exception("Unexpected error registering %s", body.email)
        raise HTTPException(status_code=500, detail="Registration failed")


@router.post("/login")
def login(body: LoginRequest,
          users: UserStore = Depends(get_user_store),
          sessions: SessionRegistry = Depends(get_sessions)):
    if not body.email or not body.password:
        raise HTTPException(status_code=400, detail="Missing email or password")

    try:
        user = users.authenticate(body.email, body.password)
        token = sessions.issue_token(user.id)
        logger.info("User %s logged in", user.id)
        return {"success": True, "token": token, "user": user.public_view()}

    except InvalidCredentialsException:
        logger.warning("Login failed for %s", body.email)
        raise HTTPException(status_code=401, detail="Invalid credentials")
    except HTTPException:
        raise
    except Exception:
        logger.exception("Unexpected error logging in %s", body.email)
        raise HTTPException(status_code=500, detail="Login failed")


@router.get("/profile")
def profile(user_id: str = Depends(get_current_user_id),
            users: UserStore = Depends(get_user_store)):
    user = users.get(user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return {"success": True, "user": user.public_view()}


@router.post("/verify")
def verify(user_id: str = Depends(get_current_user_id),
           users: UserStore = Depends(get_user_store)):
    user = users.get(user_id)
    if user is None:
        raise HTTPException(status_code=401, detail="Invalid token")
    return {"success": True, "message": "Token is valid", "user": {"userId": user.id, "email": user.email}}


@router.get("/stats")
def stats(users: UserStore = Depends(get_user_store)):
    return {"success": True, "stats": {"totalUsers": users.count(), "timestamp": isoformat_z(utc_now())}}
