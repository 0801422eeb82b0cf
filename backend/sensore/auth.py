"""
Auth module: session cookie issuance/validation and the current-user FastAPI dependencies.

A session is an HS256 JWT kept in an HttpOnly cookie. It is valid for a fixed
window (session_lifetime_hours) and slides: once less than half of the window
is left, any authenticated request re-issues the cookie with a fresh window.

Nothing here reads ambient request state. The request and response are always
passed in explicitly, either by the caller or by FastAPI's dependency injection.
"""

import logging
import time
from dataclasses import dataclass
from typing import Optional
from jose import jwt, JWTError
from fastapi import Depends, HTTPException, Request, Response
from sensore.config import Settings, get_settings

ALGORITHM = "HS256"

log = logging.getLogger(__name__)


@dataclass
class SessionPrincipal:
    """Identity carried by a valid session cookie."""
    user_id: str
    username: str
    email: str
    account_type: str             # "admin" | "clinician" | "patient"
    first_name: str = ""
    last_name: str = ""
    issued_at: int = 0
    expires_at: int = 0

    @property
    def role(self) -> str:
        return self.account_type

    @property
    def is_admin(self) -> bool:
        return self.account_type == "admin"

    @property
    def is_clinician(self) -> bool:
        return self.account_type == "clinician"

    @property
    def is_patient(self) -> bool:
        return self.account_type == "patient"

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip() or self.username


class SessionIssuer:
    def __init__(self, settings: Settings):
        self.secret_key = settings.session_secret_key
        self.cookie_name = settings.session_cookie_name
        self.lifetime_seconds = settings.session_lifetime_hours * 3600
        self.secure = not settings.is_development

    def issue(self, response: Response, user) -> str:
        """Sign a token for the given User model instance and set it as the session cookie."""
        claims = {
            "sub": str(user.user_id),
            "name": user.username,
            "email": user.email,
            "role": user.user_type,
            "account_type": user.user_type,
            "first_name": user.first_name,
            "last_name": user.last_name,
        }
        return self._set_cookie(response, claims)

    def read(self, request: Request) -> Optional[SessionPrincipal]:
        """Decode the session cookie. Returns None if absent, tampered with or expired."""
        token = request.cookies.get(self.cookie_name)
        if not token:
            return None
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[ALGORITHM])
        except JWTError:
            return None
        try:
            return SessionPrincipal(
                user_id=payload["sub"],
                username=payload["name"],
                email=payload["email"],
                account_type=payload.get("account_type", payload.get("role", "")),
                first_name=payload.get("first_name", ""),
                last_name=payload.get("last_name", ""),
                issued_at=int(payload.get("iat", 0)),
                expires_at=int(payload["exp"]),
            )
        except (KeyError, TypeError, ValueError):
            return None

    def renew_if_needed(self, response: Response, principal: SessionPrincipal) -> bool:
        """Sliding expiration: re-issue once less than half of the window remains."""
        remaining = principal.expires_at - int(time.time())
        if remaining >= self.lifetime_seconds / 2:
            return False
        claims = {
            "sub": principal.user_id,
            "name": principal.username,
            "email": principal.email,
            "role": principal.account_type,
            "account_type": principal.account_type,
            "first_name": principal.first_name,
            "last_name": principal.last_name,
        }
        self._set_cookie(response, claims)
        log.debug("Session renewed for %s", principal.username)
        return True

    def clear(self, response: Response) -> None:
        response.delete_cookie(
            self.cookie_name,
            path="/",
            secure=self.secure,
            httponly=True,
            samesite="lax",
        )

    def _set_cookie(self, response: Response, claims: dict) -> str:
        now = int(time.time())
        payload = dict(claims, iat=now, exp=now + self.lifetime_seconds)
        token = jwt.encode(payload, self.secret_key, algorithm=ALGORITHM)
        response.set_cookie(
            self.cookie_name,
            token,
            max_age=self.lifetime_seconds,
            path="/",
            secure=self.secure,
            httponly=True,
            samesite="lax",
        )
        return token


def get_session_issuer() -> SessionIssuer:
    return SessionIssuer(get_settings())


async def get_optional_user(
    request: Request,
    response: Response,
    issuer: SessionIssuer = Depends(get_session_issuer),
) -> Optional[SessionPrincipal]:
    """FastAPI dependency. Returns the signed-in principal or None, renewing the cookie when due."""
    principal = issuer.read(request)
    if principal is not None:
        issuer.renew_if_needed(response, principal)
    return principal


async def get_current_user(
    principal: Optional[SessionPrincipal] = Depends(get_optional_user),
) -> SessionPrincipal:
    """FastAPI dependency. Raises 401 when there is no valid session."""
    if principal is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return principal


def require_account_type(*account_types: str):
    """Build a dependency that only lets the given account types through."""

    async def dependency(user: SessionPrincipal = Depends(get_current_user)) -> SessionPrincipal:
        if user.account_type not in account_types:
            raise HTTPException(
                status_code=403,
                detail=f"Access denied: {user.account_type} accounts cannot use this endpoint",
            )
        return user

    return dependency
