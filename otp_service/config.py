import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv(override=True)


def _env_bool(name: str, default: bool = False) -> bool:
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_list(name: str, default: str = "") -> tuple[str, ...]:
    raw_value = os.getenv(name, default)
    return tuple(item.strip() for item in raw_value.split(",") if item.strip())


@dataclass(frozen=True)
class Settings:
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./otp_service.db")
    database_echo: bool = _env_bool("DATABASE_ECHO", False)
    jwt_secret: str = os.getenv("JWT_SECRET", "")
    jwt_secret_arn: str = os.getenv("JWT_SECRET_ARN", "")
    jwt_secret_key_field: str = os.getenv("JWT_SECRET_KEY_FIELD", "key")
    jwt_algorithm: str = os.getenv("JWT_ALGORITHM", "HS256")
    session_token_ttl_seconds: int = int(
        os.getenv("SESSION_TOKEN_TTL_SECONDS", str(8 * 60 * 60))
    )
    session_role: str = os.getenv("SESSION_ROLE", "admin")
    secret_cache_ttl_seconds: int = int(os.getenv("SECRET_CACHE_TTL_SECONDS", "0"))
    otp_ttl_seconds: int = int(os.getenv("OTP_TTL_SECONDS", "300"))
    otp_hash_rounds: int = int(os.getenv("OTP_HASH_ROUNDS", "10"))
    otp_email_sender: str = (
        os.getenv("FROM_EMAIL_ADDRESS") or os.getenv("OTP_EMAIL_SENDER", "")
    )
    otp_email_subject: str = os.getenv(
        "OTP_EMAIL_SUBJECT", "Your Admin Portal OTP"
    )
    default_country_code: str = os.getenv("DEFAULT_COUNTRY_CODE", "+1")
    aws_region: str = os.getenv("AWS_REGION", "")
    aws_timeout_seconds: int = int(os.getenv("AWS_TIMEOUT_SECONDS", "10"))
    cors_allow_origins: tuple[str, ...] = field(
        default_factory=lambda: _env_list("CORS_ALLOW_ORIGINS")
    )
    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()


settings = Settings()
