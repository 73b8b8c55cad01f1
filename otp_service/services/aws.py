from functools import lru_cache

import boto3
from botocore.config import Config

from otp_service.config import settings


@lru_cache(maxsize=None)
def aws_client(service_name: str):
    # Failures are reported to the caller, not retried.
    config = Config(
        connect_timeout=settings.aws_timeout_seconds,
        read_timeout=settings.aws_timeout_seconds,
        retries={"total_max_attempts": 1},
    )
    return boto3.client(
        service_name,
        region_name=settings.aws_region or None,
        config=config,
    )
