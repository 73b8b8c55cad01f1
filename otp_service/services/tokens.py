from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Literal, Optional

import jwt

from otp_service.config import settings
from otp_service.services.errors import DependencyFailure, SecretUnavailableError
from otp_service.services.signing_secret import SecretCache, secret_cache

LOGGER = logging.getLogger(__name__)

BEARER_SCHEME = "bearer"
POLICY_VERSION = "2012-10-17"
INVOKE_ACTION = "execute-api:Invoke"
ANONYMOUS_PRINCIPAL = "user"


class TokenError(ValueError):
    pass


@dataclass(frozen=True)
class SessionClaims:
    identifier: str
    role: str
    issued_at: int
    expires_at: int

    def to_payload(self) -> dict[str, Any]:
        return {
            "emailOrPhone": self.identifier,
            "role": self.role,
            "iat": self.issued_at,
            "exp": self.expires_at,
        }


@dataclass(frozen=True)
class AuthorizationDecision:
    effect: Literal["Allow", "Deny"]
    resource: str
    principal_id: str = ANONYMOUS_PRINCIPAL

    @property
    def allowed(self) -> bool:
        return self.effect == "Allow"

    def to_policy(self) -> dict[str, Any]:
        return {
            "principalId": self.principal_id,
            "policyDocument": {
                "Version": POLICY_VERSION,
                "Statement": [
                    {
                        "Action": INVOKE_ACTION,
                        "Effect": self.effect,
                        "Resource": self.resource,
                    }
                ],
            },
        }


class TokenIssuer:
    def __init__(
        self,
        cache: SecretCache,
        algorithm: str,
        ttl_seconds: int,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._cache = cache
        self._algorithm = algorithm
        self._ttl_seconds = ttl_seconds
        self._clock = clock

    def issue(self, identifier: str, role: str) -> str:
        now = int(self._clock())
        claims = SessionClaims(
            identifier=identifier,
            role=role,
            issued_at=now,
            expires_at=now + self._ttl_seconds,
        )
        secret = self._cache.get()
        try:
            return jwt.encode(claims.to_payload(), secret, algorithm=self._algorithm)
        except (jwt.PyJWTError, TypeError, ValueError) as exc:
            raise DependencyFailure("Failed to sign session token") from exc


class TokenVerifier:
    def __init__(self, cache: SecretCache, algorithm: str) -> None:
        self._cache = cache
        self._algorithm = algorithm

    def decode(self, token: str) -> SessionClaims:
        if not token:
            raise TokenError("Token is missing")
        try:
            payload = jwt.decode(
                token,
                self._cache.get(),
                algorithms=[self._algorithm],
                options={"require": ["exp", "iat"]},
            )
        except jwt.ExpiredSignatureError as exc:
            raise TokenError("Token has expired") from exc
        except jwt.InvalidTokenError as exc:
            raise TokenError("Invalid token") from exc
        identifier = payload.get("emailOrPhone")
        if not identifier or not isinstance(identifier, str):
            raise TokenError("Token subject is missing")
        return SessionClaims(
            identifier=identifier,
            role=str(payload.get("role", "")),
            issued_at=int(payload["iat"]),
            expires_at=int(payload["exp"]),
        )

    def authorize(self, authorization: Optional[str], resource: str) -> AuthorizationDecision:
        """Return Allow only for a valid bearer token; every other path denies."""
        if not authorization:
            return _deny(resource)
        scheme, _, token = authorization.strip().partition(" ")
        if scheme.lower() != BEARER_SCHEME or not token.strip():
            LOGGER.warning("Denied request with malformed authorization header")
            return _deny(resource)
        try:
            claims = self.decode(token.strip())
        except TokenError as exc:
            LOGGER.warning("Denied request: %s", exc)
            return _deny(resource)
        except SecretUnavailableError:
            LOGGER.exception("Denied request: signing secret unavailable")
            return _deny(resource)
        except Exception:
            LOGGER.exception("Denied request: unexpected verification error")
            return _deny(resource)
        return AuthorizationDecision(
            effect="Allow", resource=resource, principal_id=claims.identifier
        )


def _deny(resource: str) -> AuthorizationDecision:
    return AuthorizationDecision(effect="Deny", resource=resource)


token_issuer = TokenIssuer(
    secret_cache,
    algorithm=settings.jwt_algorithm,
    ttl_seconds=settings.session_token_ttl_seconds,
)
token_verifier = TokenVerifier(secret_cache, algorithm=settings.jwt_algorithm)
