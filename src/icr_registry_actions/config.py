"""Runtime configuration.

Operation inputs come from the CLI (or the ``INPUT_*`` variables an action
runner sets); everything else is read here from ``ICR_*`` environment
variables or a local ``.env`` file.
"""

from enum import Enum
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .core.region import DEFAULT_REGION
from .core.scan import SCAN_MAX_ATTEMPTS, SCAN_POLL_INTERVAL


class LogFormats(str, Enum):
    JSON = "json"
    CONSOLE = "console"


class Settings(BaseSettings):
    """Central configuration for a single invocation."""

    model_config = SettingsConfigDict(
        env_prefix="ICR_",
        extra="ignore",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    iam_url: str = Field(
        default="https://iam.cloud.ibm.com/identity/token",
        min_length=8,
        description="IAM token endpoint used to exchange the API key.",
    )
    va_url_template: str = Field(
        default="https://{region}.va.cloud.ibm.com",
        description="Vulnerability Advisor base URL; {region} is the VA region.",
    )
    http_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout per registry API request (seconds).",
    )
    scan_interval_seconds: float = Field(
        default=SCAN_POLL_INTERVAL,
        ge=0,
        description="Wait between vulnerability scan status queries (seconds).",
    )
    scan_max_attempts: int = Field(
        default=SCAN_MAX_ATTEMPTS,
        ge=1,
        description="Maximum number of scan status queries.",
    )
    job_timeout_seconds: Optional[float] = Field(
        default=None,
        gt=0,
        description="Overall limit for one invocation; unset means no limit.",
    )
    default_region: Optional[str] = Field(
        default=DEFAULT_REGION,
        description="Region for namespace actions given no 'region' input.",
    )

    log_level: str = "INFO"
    log_format: LogFormats = LogFormats.CONSOLE
