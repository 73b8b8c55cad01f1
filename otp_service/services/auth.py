from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError

from otp_service.config import settings
from otp_service.services.delivery import DeliveryDispatcher, dispatcher
from otp_service.services.errors import (
    AuthenticationFailure,
    ClientInputError,
    DependencyFailure,
)
from otp_service.services.otp import (
    OtpRecord,
    OtpStore,
    generate_code,
    hash_code,
    normalize_identifier,
    otp_store,
    verify_code,
)
from otp_service.services.tokens import TokenIssuer, token_issuer

LOGGER = logging.getLogger(__name__)

IDENTIFIER_REQUIRED = "emailOrPhone is required"
IDENTIFIER_AND_OTP_REQUIRED = "emailOrPhone and OTP are required"

CHANNEL_MESSAGES = {
    "email": "OTP has been sent to your email.",
    "sms": "OTP has been sent to your phone.",
}


class OtpAuthService:
    def __init__(
        self,
        store: OtpStore,
        dispatcher: DeliveryDispatcher,
        issuer: TokenIssuer,
        ttl_seconds: int,
        hash_rounds: int,
        session_role: str,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._dispatcher = dispatcher
        self._issuer = issuer
        self._ttl_seconds = ttl_seconds
        self._hash_rounds = hash_rounds
        self._session_role = session_role
        self._clock = clock

    def request_otp(self, identifier: Optional[str]) -> str:
        if not identifier or not identifier.strip():
            raise ClientInputError(IDENTIFIER_REQUIRED)
        identifier = normalize_identifier(identifier)

        code = generate_code()
        now = int(self._clock())
        try:
            hashed = hash_code(code, self._hash_rounds)
        except ValueError as exc:
            LOGGER.exception("Failed to hash OTP")
            raise DependencyFailure("Failed to hash OTP") from exc

        record = OtpRecord(
            identifier=identifier,
            hashed_code=hashed,
            expires_at=now + self._ttl_seconds,
            created_at=now,
        )
        try:
            self._store.put(record, now=now)
        except SQLAlchemyError as exc:
            LOGGER.exception("Failed to store OTP")
            raise DependencyFailure("Failed to store OTP") from exc

        try:
            channel = self._dispatcher.dispatch(identifier, code)
        except DependencyFailure:
            LOGGER.exception("Failed to deliver OTP; stored code left in place")
            raise
        LOGGER.info("Issued OTP via %s", channel)
        return CHANNEL_MESSAGES[channel]

    def verify_otp(self, identifier: Optional[str], otp: Optional[str]) -> str:
        if not identifier or not identifier.strip() or not otp or not otp.strip():
            raise ClientInputError(IDENTIFIER_AND_OTP_REQUIRED)
        identifier = normalize_identifier(identifier)

        try:
            record = self._store.get(identifier, now=int(self._clock()))
        except SQLAlchemyError as exc:
            LOGGER.exception("Failed to read OTP")
            raise DependencyFailure("Failed to read OTP") from exc
        if record is None:
            raise AuthenticationFailure("no active otp")
        if not verify_code(otp.strip(), record.hashed_code):
            raise AuthenticationFailure("otp mismatch")

        # Consume before signing; concurrent attempts are decided by this delete.
        try:
            consumed = self._store.delete(identifier, hashed_code=record.hashed_code)
        except SQLAlchemyError as exc:
            LOGGER.exception("Failed to consume OTP")
            raise DependencyFailure("Failed to consume OTP") from exc
        if not consumed:
            raise AuthenticationFailure("otp already consumed")

        token = self._issuer.issue(identifier, self._session_role)
        LOGGER.info("Verified OTP and issued session token")
        return token


auth_service = OtpAuthService(
    store=otp_store,
    dispatcher=dispatcher,
    issuer=token_issuer,
    ttl_seconds=settings.otp_ttl_seconds,
    hash_rounds=settings.otp_hash_rounds,
    session_role=settings.session_role,
)
