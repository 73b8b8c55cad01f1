import os
import tempfile
import time

# Configure the environment before any otp_service import reads settings.
_test_tmp_dir = tempfile.mkdtemp(prefix="otp_service_test_")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_test_tmp_dir, 'otp.db')}"
os.environ["JWT_SECRET"] = "test-signing-secret-for-automation-only-0123456789"
os.environ["JWT_SECRET_ARN"] = ""
os.environ["OTP_HASH_ROUNDS"] = "4"
os.environ.setdefault("FROM_EMAIL_ADDRESS", "noreply@example.com")
os.environ.setdefault("AWS_REGION", "us-east-1")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import delete  # noqa: E402

from otp_service.database import init_db, session_scope  # noqa: E402
from otp_service.models.otp import OtpEntry  # noqa: E402
from otp_service.services.auth import OtpAuthService  # noqa: E402
from otp_service.services.delivery import DeliveryDispatcher  # noqa: E402
from otp_service.services.otp import OtpStore  # noqa: E402
from otp_service.services.signing_secret import EnvSecretStore, SecretCache  # noqa: E402
from otp_service.services.tokens import TokenIssuer, TokenVerifier  # noqa: E402

TEST_SECRET = os.environ["JWT_SECRET"]
SESSION_TTL_SECONDS = 8 * 60 * 60


class FakeClock:
    def __init__(self, now: float) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class Outbox:
    """Records codes handed to the transports instead of sending them."""

    def __init__(self) -> None:
        self.emails: list[tuple[str, str]] = []
        self.sms: list[tuple[str, str]] = []
        self.fail_with: Exception | None = None

    def send_email(self, address: str, code: str) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.emails.append((address, code))

    def send_sms(self, number: str, code: str) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.sms.append((number, code))

    def last_code(self) -> str:
        sent = self.emails + self.sms
        assert sent, "no code was dispatched"
        return sent[-1][1]


@pytest.fixture(autouse=True)
def clean_otp_table():
    init_db()
    with session_scope() as session:
        session.execute(delete(OtpEntry))
    yield


@pytest.fixture
def clock():
    return FakeClock(time.time())


@pytest.fixture
def outbox():
    return Outbox()


@pytest.fixture
def store():
    return OtpStore()


@pytest.fixture
def secret_cache():
    return SecretCache(EnvSecretStore(TEST_SECRET), "")


@pytest.fixture
def issuer(secret_cache):
    return TokenIssuer(secret_cache, algorithm="HS256", ttl_seconds=SESSION_TTL_SECONDS)


@pytest.fixture
def verifier(secret_cache):
    return TokenVerifier(secret_cache, algorithm="HS256")


@pytest.fixture
def service(store, outbox, issuer, clock):
    return OtpAuthService(
        store=store,
        dispatcher=DeliveryDispatcher(
            send_email=outbox.send_email, send_sms=outbox.send_sms
        ),
        issuer=issuer,
        ttl_seconds=300,
        hash_rounds=4,
        session_role="admin",
        clock=clock,
    )


@pytest.fixture
def client(monkeypatch, service, verifier):
    from otp_service.main import app
    from otp_service.routers import auth as auth_router

    monkeypatch.setattr(auth_router, "auth_service", service)
    monkeypatch.setattr(auth_router, "token_verifier", verifier)
    with TestClient(app) as test_client:
        yield test_client
