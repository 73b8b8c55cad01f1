from __future__ import annotations

import json
import logging
import threading
import time
from typing import Callable, Optional, Protocol

from botocore.exceptions import BotoCoreError, ClientError

from otp_service.config import settings
from otp_service.services.aws import aws_client
from otp_service.services.errors import SecretUnavailableError

LOGGER = logging.getLogger(__name__)


class SecretStore(Protocol):
    def get_secret(self, secret_id: str) -> str: ...


class EnvSecretStore:
    """Serves the signing secret straight from configuration."""

    def __init__(self, value: str) -> None:
        self._value = value

    def get_secret(self, secret_id: str) -> str:
        if not self._value:
            raise SecretUnavailableError("JWT secret is not configured")
        return self._value


class SecretsManagerStore:
    """Reads a JSON ``SecretString`` from AWS Secrets Manager."""

    def __init__(self, key_field: str, client_factory=None) -> None:
        self._key_field = key_field
        self._client_factory = client_factory or (lambda: aws_client("secretsmanager"))

    def get_secret(self, secret_id: str) -> str:
        try:
            response = self._client_factory().get_secret_value(SecretId=secret_id)
        except (BotoCoreError, ClientError) as exc:
            LOGGER.error("Secrets Manager lookup failed for %s: %s", secret_id, exc)
            raise SecretUnavailableError("Failed to read JWT secret") from exc

        raw_secret = response.get("SecretString")
        if not raw_secret:
            raise SecretUnavailableError("JWT secret not found")
        try:
            value = json.loads(raw_secret).get(self._key_field)
        except (ValueError, AttributeError) as exc:
            raise SecretUnavailableError("JWT secret is not a JSON object") from exc
        if not value:
            raise SecretUnavailableError(
                f"JWT secret is missing the '{self._key_field}' field"
            )
        return value


class SecretCache:
    """Process-wide, lazily populated cache for one secret.

    The first ``get`` fetches from the store; later calls are served from
    memory until ``invalidate`` is called or the optional TTL lapses. Fetches
    are serialized so concurrent cold callers trigger a single round trip.
    """

    def __init__(
        self,
        store: SecretStore,
        secret_id: str,
        ttl_seconds: int = 0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._store = store
        self._secret_id = secret_id
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._value: Optional[str] = None
        self._fetched_at = 0.0

    def get(self) -> str:
        value = self._fresh_value()
        if value is not None:
            return value
        with self._lock:
            value = self._fresh_value()
            if value is not None:
                return value
            value = self._store.get_secret(self._secret_id)
            self._value = value
            self._fetched_at = self._clock()
            LOGGER.info("Loaded signing secret %s", self._secret_id or "<env>")
            return value

    def invalidate(self) -> None:
        with self._lock:
            self._value = None
            self._fetched_at = 0.0

    def _fresh_value(self) -> Optional[str]:
        value = self._value
        if value is None:
            return None
        if self._ttl_seconds > 0 and self._clock() - self._fetched_at >= self._ttl_seconds:
            return None
        return value


def build_secret_store() -> SecretStore:
    if settings.jwt_secret_arn:
        return SecretsManagerStore(settings.jwt_secret_key_field)
    return EnvSecretStore(settings.jwt_secret)


secret_cache = SecretCache(
    build_secret_store(),
    settings.jwt_secret_arn,
    ttl_seconds=settings.secret_cache_ttl_seconds,
)
