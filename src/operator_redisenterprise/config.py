"""Environment-based configuration for the Redis Enterprise integration."""

import httpx
from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Redis Enterprise integration configuration.

    All settings can be overridden via environment variables with
    REDISENTERPRISE_ prefix. For example:
        REDISENTERPRISE_HOSTNAME=node1.cluster.local
        REDISENTERPRISE_PASSWORD=secret
    """

    # Management API connection
    hostname: str = "localhost"
    port: int = 9443
    username: str = "admin@example.com"
    password: SecretStr = SecretStr("myPass")
    verify_tls: bool = False  # clusters ship self-signed certificates

    # Seconds of history requested for CRDT stats
    event_time: int = Field(default=60, ge=1)

    # Timeouts in seconds
    request_timeout: float = Field(default=10.0, gt=0)
    cycle_timeout: float = Field(default=60.0, gt=0)

    # What to report; neither flag set means both
    metrics: bool = False
    inventory: bool = False

    pretty: bool = False

    model_config = {"env_prefix": "REDISENTERPRISE_"}

    @model_validator(mode="after")
    def _check_base_url(self) -> "Settings":
        try:
            httpx.URL(self.base_url)
        except httpx.InvalidURL as e:
            raise ValueError(f"Invalid hostname {self.hostname!r}: {e}") from e
        return self

    @property
    def base_url(self) -> str:
        return f"https://{self.hostname}:{self.port}"

    @property
    def collect_all(self) -> bool:
        return not (self.metrics or self.inventory)

    @property
    def collect_metrics(self) -> bool:
        return self.collect_all or self.metrics

    @property
    def collect_inventory(self) -> bool:
        return self.collect_all or self.inventory
