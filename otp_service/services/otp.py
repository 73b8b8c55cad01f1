from dataclasses import dataclass
import re
import secrets
import time
from typing import Optional

import bcrypt
from sqlalchemy import delete, select

from otp_service.database import session_scope
from otp_service.models.otp import OtpEntry

CODE_MIN = 100000
CODE_MAX = 999999

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


@dataclass(frozen=True)
class OtpRecord:
    identifier: str
    hashed_code: str
    expires_at: int
    created_at: int = 0


def epoch_now() -> int:
    return int(time.time())


def is_email(identifier: str) -> bool:
    return bool(EMAIL_PATTERN.match(identifier))


def normalize_identifier(identifier: str) -> str:
    cleaned = identifier.strip()
    if is_email(cleaned):
        return cleaned.lower()
    return cleaned


def generate_code() -> str:
    return str(CODE_MIN + secrets.randbelow(CODE_MAX - CODE_MIN + 1))


def hash_code(code: str, rounds: int) -> str:
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(code.encode("utf-8"), salt).decode("ascii")


def verify_code(code: str, hashed_code: str) -> bool:
    if not code or not hashed_code:
        return False
    try:
        return bcrypt.checkpw(code.encode("utf-8"), hashed_code.encode("ascii"))
    except ValueError:
        # Not a bcrypt hash.
        return False


class OtpStore:
    """One hashed code per identifier, kept in the ``otp_codes`` table."""

    def put(self, record: OtpRecord, now: Optional[int] = None) -> None:
        now = epoch_now() if now is None else now
        with session_scope() as session:
            session.execute(delete(OtpEntry).where(OtpEntry.expires_at < now))
            session.merge(
                OtpEntry(
                    identifier=record.identifier,
                    hashed_code=record.hashed_code,
                    expires_at=record.expires_at,
                    created_at=record.created_at or now,
                )
            )

    def get(self, identifier: str, now: Optional[int] = None) -> Optional[OtpRecord]:
        now = epoch_now() if now is None else now
        with session_scope() as session:
            entry = session.execute(
                select(OtpEntry).where(
                    OtpEntry.identifier == identifier,
                    OtpEntry.expires_at >= now,
                )
            ).scalar_one_or_none()
            if entry is None:
                return None
            return OtpRecord(
                identifier=entry.identifier,
                hashed_code=entry.hashed_code,
                expires_at=entry.expires_at,
                created_at=entry.created_at,
            )

    def delete(self, identifier: str, hashed_code: Optional[str] = None) -> bool:
        conditions = [OtpEntry.identifier == identifier]
        if hashed_code is not None:
            conditions.append(OtpEntry.hashed_code == hashed_code)
        with session_scope() as session:
            result = session.execute(delete(OtpEntry).where(*conditions))
            return result.rowcount > 0

    def purge_expired(self, now: Optional[int] = None) -> int:
        now = epoch_now() if now is None else now
        with session_scope() as session:
            result = session.execute(delete(OtpEntry).where(OtpEntry.expires_at < now))
            return result.rowcount


otp_store = OtpStore()
