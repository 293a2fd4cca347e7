"""Preview-aware E2E test driver built on Playwright.

This package provides a small facade for end-to-end tests against preview
builds of a site:
- Browser and page lifecycle with device emulation
- Branch/revision config resolution with a per-driver cache
- Preview URL construction
- ``when`` / ``is_`` / ``get`` helpers for actions, predicates and extraction
"""

from preview_driver.actions import ActionPort
from preview_driver.branch_config import (
    BranchConfigProvider,
    BranchConfigResolver,
    FileBranchConfigProvider,
    StaticBranchConfigProvider,
)
from preview_driver.config import DriverConfig
from preview_driver.driver import E2EDriver
from preview_driver.exceptions import (
    BranchConfigError,
    DriverError,
    NavigationError,
    SessionError,
    SessionNotStartedError,
    UnsupportedOperationError,
)
from preview_driver.extraction import ExtractionPort
from preview_driver.models import (
    IPHONE_SE,
    BranchConfig,
    BrowserType,
    DeviceProfile,
    Viewport,
    WaitState,
)
from preview_driver.queries import QueryPort
from preview_driver.session import DriverSession
from preview_driver.urls import build_url

__all__ = [
    "ActionPort",
    "BranchConfig",
    "BranchConfigError",
    "BranchConfigProvider",
    "BranchConfigResolver",
    "BrowserType",
    "DeviceProfile",
    "DriverConfig",
    "DriverError",
    "DriverSession",
    "E2EDriver",
    "ExtractionPort",
    "FileBranchConfigProvider",
    "IPHONE_SE",
    "NavigationError",
    "QueryPort",
    "SessionError",
    "SessionNotStartedError",
    "StaticBranchConfigProvider",
    "UnsupportedOperationError",
    "Viewport",
    "WaitState",
    "build_url",
]
