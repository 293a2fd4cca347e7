"""Value types shared across the preview driver.

This module defines the pydantic models for branch/revision configuration,
viewport and device emulation, plus the enums used by the session and the
wait helpers.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class BrowserType(str, Enum):
    """Supported Playwright browser engines."""

    CHROMIUM = "chromium"
    FIREFOX = "firefox"
    WEBKIT = "webkit"


class WaitState(str, Enum):
    """Element states accepted by ``wait_for_selector``."""

    ATTACHED = "attached"
    DETACHED = "detached"
    VISIBLE = "visible"
    HIDDEN = "hidden"


class BranchConfig(BaseModel):
    """Identifiers of a preview build targeted by test traffic."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    branch_id: str = Field(default="", alias="branchId", description="Preview branch id")
    site_revision: str = Field(
        default="", alias="siteRevision", description="Published site revision"
    )

    @property
    def is_complete(self) -> bool:
        """Both identifiers are present."""
        return bool(self.branch_id) and bool(self.site_revision)


class Viewport(BaseModel):
    """Browser viewport configuration."""

    model_config = ConfigDict(frozen=True)

    width: int = Field(default=1280, description="Viewport width")
    height: int = Field(default=720, description="Viewport height")
    device_scale_factor: float = Field(default=1.0, description="Device pixel ratio")
    is_mobile: bool = Field(default=False, description="Mobile viewport")
    has_touch: bool = Field(default=False, description="Touch support")


class DeviceProfile(BaseModel):
    """A device to emulate: viewport plus user agent."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Profile name")
    viewport: Viewport = Field(default_factory=Viewport)
    user_agent: str = Field(description="User-Agent header sent by the page")

    def context_options(self) -> dict:
        """Keyword arguments for ``Browser.new_context``."""
        return {
            "viewport": {
                "width": self.viewport.width,
                "height": self.viewport.height,
            },
            "device_scale_factor": self.viewport.device_scale_factor,
            "is_mobile": self.viewport.is_mobile,
            "has_touch": self.viewport.has_touch,
            "user_agent": self.user_agent,
        }


IPHONE_SE_USER_AGENT = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 13_2_3 like Mac OS X) "
    "AppleWebKit/605.1.15 (KHTML, like Gecko) Version/13.0.3 "
    "Mobile/15E148 Safari/604.1"
)

IPHONE_SE = DeviceProfile(
    name="iPhone SE",
    viewport=Viewport(width=375, height=667, is_mobile=True, has_touch=True),
    user_agent=IPHONE_SE_USER_AGENT,
)
