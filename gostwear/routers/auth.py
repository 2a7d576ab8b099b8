from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, Request
from fastapi.responses import JSONResponse

from gostwear.repositories.json_storage import StoreError
from gostwear.services.auth_service import (
    AccountExistsError,
    AuthService,
    InvalidCredentialsError,
    NoUsersError,
    RegistrationError,
)

router = APIRouter(prefix="/api", tags=["auth"])
logger = logging.getLogger(__name__)


def _get_auth_service(request: Request) -> AuthService:
    svc = getattr(getattr(request.app, "state", None), "auth_service", None)
    if not svc:
        raise RuntimeError("AuthService not configured")
    return svc


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


@router.post("/register")
def register(request: Request, payload: Any = Body(None)):
    data = payload if isinstance(payload, dict) else {}
    svc = _get_auth_service(request)
    try:
        svc.register(data.get("name"), data.get("email"), data.get("password"))
    except RegistrationError as exc:
        return _error(exc.message, 400)
    except AccountExistsError:
        return _error("User already exists", 400)
    except StoreError:
        logger.exception("Registration failed")
        return _error("Registration failed", 500)
    return {"message": "Registration successful"}


@router.post("/login")
def login(request: Request, payload: Any = Body(None)):
    data = payload if isinstance(payload, dict) else {}
    svc = _get_auth_service(request)
    try:
        result = svc.login(data.get("email"), data.get("password"))
    except RegistrationError as exc:
        return _error(exc.message, 400)
    except NoUsersError:
        return _error("No users found", 400)
    except InvalidCredentialsError:
        return _error("Invalid credentials", 401)
    except StoreError:
        logger.exception("Login failed")
        return _error("Login failed", 500)
    return {"message": "Login successful", "user": result.user}
