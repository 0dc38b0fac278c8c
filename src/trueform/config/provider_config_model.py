from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from trueform.helpers.logger import LOG_DESTINATIONS, LOG_FORMATS


class ProviderConfig(BaseModel):
    """
    Connection, timing and logging settings for the provider.

    Attributes:
        host (str): Hostname or address of the TrueNAS appliance.
        api_key (str): API key used as a bearer token.
        username (str): User for HTTP basic authentication when no API key is set.
        password (str): Password for HTTP basic authentication.
        verify_ssl (bool): Verify the appliance's TLS certificate.
        connect_timeout_sec (float): Timeout for establishing the connection.
        request_timeout_sec (float): Timeout for reading a single response.
        job_timeout_sec (float): How long to wait for a remote job to finish.
        job_poll_interval_sec (float): Delay between two job status queries.
        log_level (str): Logging level.
        log_destination (str): Where logs go ("stderr", "file" or "both").
        log_format (str): Log entry rendering ("console" or "json").
        log_dir (str): Directory of the log file.
        log_filename (str): Name of the log file.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    host: str
    api_key: Optional[str] = Field(default=None, repr=False)
    username: Optional[str] = None
    password: Optional[str] = Field(default=None, repr=False)
    verify_ssl: bool = True
    connect_timeout_sec: float = Field(default=10.0, gt=0)
    request_timeout_sec: float = Field(default=30.0, gt=0)
    job_timeout_sec: float = Field(default=300.0, gt=0)
    job_poll_interval_sec: float = Field(default=2.0, gt=0)
    log_level: str = "INFO"
    log_destination: str = "stderr"
    log_format: str = "console"
    log_dir: Optional[str] = None
    log_filename: Optional[str] = None

    @field_validator("host")
    @classmethod
    def validate_host(cls, v: str) -> str:
        host = v.strip()
        if not host:
            raise ValueError("host is required")
        if "://" in host:
            raise ValueError("host must not include a scheme, e.g. use 'truenas.local'")
        return host.rstrip("/")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unsupported log level: {v}")
        return level

    @field_validator("log_destination")
    @classmethod
    def validate_log_destination(cls, v: str) -> str:
        if v not in LOG_DESTINATIONS:
            raise ValueError(f"log_destination must be one of {', '.join(LOG_DESTINATIONS)}")
        return v

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        fmt = v.lower()
        if fmt not in LOG_FORMATS:
            raise ValueError(f"log_format must be one of {', '.join(LOG_FORMATS)}")
        return fmt

    @model_validator(mode="after")
    def validate_credentials(self) -> "ProviderConfig":
        if self.api_key:
            return self
        if self.username and self.password:
            return self
        if self.username or self.password:
            raise ValueError("username and password must be set together")
        raise ValueError("either api_key or username and password is required")
