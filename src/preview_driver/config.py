"""Driver configuration with environment variable loading.

The two shipped behaviors of the driver are expressed as profiles over the
same set of capability flags:

- ``legacy``: sequential init, cached branch config only, ``isqa=true`` on
  every URL and branch params only when ``SET_PREVIEW_QUERY_PARAMETERS`` is on
  (the older ``SET_WIX_PREVIEW_QUERY_PARAMETERS`` name is read as well).
- ``current``: concurrent idempotent init, stale branch config refreshed,
  branch params always stamped, empty path and ``/`` both open the root, and
  the ``wait_for`` / ``focused`` / ``title`` helpers enabled.
"""

import os
from typing import Any

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from preview_driver.models import BrowserType

# Load environment variables from .env file
load_dotenv()

NAVIGATION_TIMEOUT = 30000
SELECTOR_TIMEOUT = 30000

PROFILE_LEGACY = "legacy"
PROFILE_CURRENT = "current"


def _env_flag(name: str) -> bool:
    return os.getenv(name, "false").lower() == "true"


class DriverConfig(BaseModel):
    """Configuration for an :class:`~preview_driver.driver.E2EDriver`."""

    # Target site
    base_url: str = Field(
        default_factory=lambda: os.getenv("BASE_URL", ""),
        description="Absolute URL that relative paths are resolved against",
    )

    # Environment toggles
    debug: bool = Field(
        default_factory=lambda: _env_flag("DEBUG"),
        description="Headed browser, fresh branch config, no teardown",
    )
    set_preview_query_parameters: bool = Field(
        default_factory=lambda: _env_flag("SET_PREVIEW_QUERY_PARAMETERS")
        or _env_flag("SET_WIX_PREVIEW_QUERY_PARAMETERS"),
        description="Stamp branchId/siteRevision when not stamped unconditionally",
    )

    # Browser
    browser_type: BrowserType = Field(
        default_factory=lambda: BrowserType(os.getenv("E2E_BROWSER", "chromium")),
        description="Playwright engine to launch",
    )
    navigation_timeout: int = Field(
        default_factory=lambda: int(
            os.getenv("E2E_NAVIGATION_TIMEOUT", str(NAVIGATION_TIMEOUT))
        ),
        description="Navigation timeout in milliseconds",
    )
    selector_timeout: int = Field(
        default_factory=lambda: int(
            os.getenv("E2E_SELECTOR_TIMEOUT", str(SELECTOR_TIMEOUT))
        ),
        description="Default selector wait in milliseconds",
    )

    # Capabilities
    add_qa_param: bool = Field(default=True, description="Set isqa=true")
    stamp_branch_params_unconditionally: bool = Field(
        default=True, description="Always set branchId/siteRevision"
    )
    normalize_root_path: bool = Field(
        default=True, description="Treat '' and '/' as the site root"
    )
    refresh_stale_config: bool = Field(
        default=True, description="Refresh incomplete branch config (or on debug)"
    )
    concurrent_init: bool = Field(
        default=True, description="Launch browser and resolve config concurrently"
    )
    extended_helpers: bool = Field(
        default=True, description="Enable wait_for, focused and title"
    )

    @property
    def stamp_branch_params(self) -> bool:
        """Whether built URLs carry branchId and siteRevision."""
        return self.stamp_branch_params_unconditionally or self.set_preview_query_parameters

    @property
    def headless(self) -> bool:
        return not self.debug

    @classmethod
    def legacy(cls, **overrides: Any) -> "DriverConfig":
        """Sequential init, cached branch config, opt-in branch params."""
        values: dict = {
            "stamp_branch_params_unconditionally": False,
            "normalize_root_path": False,
            "refresh_stale_config": False,
            "concurrent_init": False,
            "extended_helpers": False,
        }
        values.update(overrides)
        return cls(**values)

    @classmethod
    def current(cls, **overrides: Any) -> "DriverConfig":
        """Profile with config refresh, idempotent init and extra helpers."""
        return cls(**overrides)

    @classmethod
    def from_env(cls, **overrides: Any) -> "DriverConfig":
        """Build the profile named by ``E2E_PROFILE`` (default ``current``)."""
        profile = os.getenv("E2E_PROFILE", PROFILE_CURRENT).lower()
        if profile == PROFILE_LEGACY:
            return cls.legacy(**overrides)
        if profile == PROFILE_CURRENT:
            return cls.current(**overrides)
        raise ValueError(f"Unknown driver profile: {profile}")
