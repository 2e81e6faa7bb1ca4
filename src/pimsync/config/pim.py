"""Bluestone PIM connection settings."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Final

from .env import get_env, get_env_flag, get_env_int, require_env_vars
from .http_resilience import OAuthCredentials, RateLimit, ResilienceConfig, RetryPolicy

DEFAULT_API_URL: Final[str] = "https://api.bluestonepim.com"
DEFAULT_AUTH_URL: Final[str] = "https://idp.bluestonepim.com/op/token"

PIM_SERVICE: Final[str] = "pim"
NOTIFICATION_SERVICE: Final[str] = "notification-external"
GLOBAL_SETTINGS_SERVICE: Final[str] = "global-settings"


@dataclass(frozen=True, slots=True)
class PimConfig:
    client_id: str
    client_secret: str = field(repr=False)
    api_url: str = DEFAULT_API_URL
    auth_url: str = DEFAULT_AUTH_URL
    debug: bool = False
    max_retries: int = 0
    ratelimit: RateLimit | None = field(
        default_factory=lambda: RateLimit(max_calls=10, per_seconds=1.0)
    )

    @property
    def credentials(self) -> OAuthCredentials:
        return OAuthCredentials(
            client_id=self.client_id,
            client_secret=self.client_secret,
            token_url=self.auth_url,
        )

    def service_url(self, service: str) -> str:
        return f"{self.api_url.rstrip('/')}/{service}"

    def resilience(self, service: str) -> ResilienceConfig:
        """Return the HTTP client settings for one remote service family."""

        return ResilienceConfig(
            name=service,
            base_url=self.service_url(service),
            retry=RetryPolicy(total=self.max_retries),
            ratelimit=self.ratelimit,
            credentials=self.credentials,
            debug=self.debug,
            default_headers={"Accept": "application/json"},
        )


def get_pim_config() -> PimConfig:
    values = require_env_vars(("BP_CLIENT_ID", "BP_CLIENT_SECRET"))
    return PimConfig(
        client_id=values["BP_CLIENT_ID"],
        client_secret=values["BP_CLIENT_SECRET"],
        api_url=get_env("BP_API_URL", DEFAULT_API_URL),
        auth_url=get_env("BP_AUTH_URL", DEFAULT_AUTH_URL),
        debug=get_env_flag("PIMSYNC_DEBUG"),
        max_retries=get_env_int("PIMSYNC_MAX_RETRIES", default=0),
    )
