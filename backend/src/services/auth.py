"""Authentication helpers (bearer tokens, JWT and per-user API tokens)."""

from __future__ import annotations

import abc
import secrets
import time
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import jwt
from fastapi import status

from ..models.auth import JWTPayload
from .config import AppConfig, get_config
from .database import DatabaseService

LOCAL_USER_ID = "local-dev"
API_TOKEN_PREFIX = "eden_"


class AuthError(Exception):
    """Domain-specific authentication error."""

    def __init__(
        self,
        error: str,
        message: str,
        *,
        status_code: int = status.HTTP_401_UNAUTHORIZED,
        detail: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.error = error
        self.message = message
        self.status_code = status_code
        self.detail = detail or {}


class TokenValidator(abc.ABC):
    """Abstract base class for token validation strategies."""

    @abc.abstractmethod
    def validate(self, token: str) -> Optional[JWTPayload]:
        """
        Return a payload if the token is valid, or None if this validator
        does not recognize it. Raises AuthError if recognized but invalid.
        """


class StaticTokenValidator(TokenValidator):
    """Validates against a configured static token (local dev)."""

    def __init__(self, static_token: Optional[str], user_id: str):
        self.static_token = static_token
        self.user_id = user_id

    def validate(self, token: str) -> Optional[JWTPayload]:
        if not self.static_token:
            return None
        if secrets.compare_digest(token.encode(), self.static_token.encode()):
            now = datetime.now(timezone.utc)
            return JWTPayload(
                sub=self.user_id,
                iat=int(now.timestamp()),
                exp=int((now + timedelta(days=365)).timestamp()),
            )
        return None


class JWTValidator(TokenValidator):
    """Validates JWTs signed by the application secret."""

    def __init__(self, config: AppConfig, algorithm: str = "HS256"):
        self.config = config
        self.algorithm = algorithm

    def validate(self, token: str) -> Optional[JWTPayload]:
        if not self.config.jwt_secret_key:
            return None
        try:
            decoded = jwt.decode(token, self.config.jwt_secret_key, algorithms=[self.algorithm])
            return JWTPayload(**decoded)
        except jwt.ExpiredSignatureError as exc:
            raise AuthError("token_expired", "Token expired") from exc
        except jwt.DecodeError:
            # Not a JWT at all; let the chain report generic invalid credentials
            return None
        except jwt.InvalidTokenError as exc:
            raise AuthError("invalid_token", f"Invalid token: {exc}") from exc


class AuthService:
    """Issue and validate bearer tokens using configured strategies."""

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        algorithm: str = "HS256",
        token_ttl_days: int = 90,
    ) -> None:
        self.config = config or get_config()
        self.algorithm = algorithm
        self.token_ttl_days = token_ttl_days

        self.validators: List[TokenValidator] = []
        if self.config.enable_local_mode:
            self.validators.append(
                StaticTokenValidator(self.config.local_dev_token, LOCAL_USER_ID)
            )
        self.validators.append(JWTValidator(self.config, algorithm))

    def validate_jwt(self, token: str) -> JWTPayload:
        """
        Validate a token against all registered strategies.

        Returns the first successful payload. Raises AuthError if no validator
        accepts it or one explicitly rejects it.
        """
        for validator in self.validators:
            payload = validator.validate(token)
            if payload:
                return payload
        raise AuthError("invalid_token", "Invalid authentication credentials")

    def _require_secret(self) -> str:
        secret = self.config.jwt_secret_key
        if not secret:
            raise AuthError(
                "missing_jwt_secret",
                "JWT secret not configured",
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )
        return secret

    def _build_payload(
        self, user_id: str, expires_in: Optional[timedelta] = None
    ) -> JWTPayload:
        now = datetime.now(timezone.utc)
        lifetime = expires_in or timedelta(days=self.token_ttl_days)
        return JWTPayload(
            sub=user_id,
            iat=int(now.timestamp()),
            exp=int((now + lifetime).timestamp()),
        )

    def create_jwt(
        self, user_id: str, *, expires_in: Optional[timedelta] = None
    ) -> str:
        """Create a signed JWT for the given user."""
        token, _ = self.issue_token_response(user_id, expires_in=expires_in)
        return token

    def issue_token_response(
        self, user_id: str, *, expires_in: Optional[timedelta] = None
    ) -> tuple[str, datetime]:
        """Return token string and expiry timestamp (helper for API routes)."""
        payload = self._build_payload(user_id, expires_in)
        token = jwt.encode(
            payload.model_dump(),
            self._require_secret(),
            algorithm=self.algorithm,
        )
        expires_at = datetime.fromtimestamp(payload.exp, tz=timezone.utc)
        return token, expires_at


class ApiTokenService:
    """Opaque per-user tokens for the bookmarklet, stored in SQLite."""

    def __init__(self, db_service: DatabaseService | None = None):
        self.db_service = db_service or DatabaseService()
        self.db_service.initialize()

    @staticmethod
    def generate_token() -> str:
        return f"{API_TOKEN_PREFIX}{secrets.token_hex(16)}"

    def get_or_create_api_token(self, user_id: str) -> str:
        """Return the user's token, minting one on first use."""
        conn = self.db_service.connect()
        try:
            with conn:
                row = conn.execute(
                    "SELECT token FROM api_tokens WHERE user_id = ?", (user_id,)
                ).fetchone()
                if row:
                    return row["token"]
                token = self.generate_token()
                conn.execute(
                    "INSERT INTO api_tokens (user_id, token, created_at) VALUES (?, ?, ?)",
                    (user_id, token, int(time.time() * 1000)),
                )
                return token
        finally:
            conn.close()

    def get_user_by_api_token(self, token: str) -> Optional[str]:
        if not token or not token.startswith(API_TOKEN_PREFIX):
            return None
        conn = self.db_service.connect()
        try:
            row = conn.execute(
                "SELECT user_id FROM api_tokens WHERE token = ?", (token,)
            ).fetchone()
            return row["user_id"] if row else None
        finally:
            conn.close()


__all__ = [
    "AuthService",
    "AuthError",
    "ApiTokenService",
    "TokenValidator",
    "StaticTokenValidator",
    "JWTValidator",
    "LOCAL_USER_ID",
    "API_TOKEN_PREFIX",
]
