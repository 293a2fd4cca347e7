"""Playwright browser/page lifecycle for one driver.

This module provides the DriverSession class which owns the Playwright
instance, one browser, one browser context and one page. The page is valid
only while the browser is.

CRITICAL: Always call close() to release the browser, unless the session is
deliberately left open for inspection.
"""

import logging
from typing import Any, Dict, Optional

from playwright.async_api import (
    Browser,
    BrowserContext,
    Page,
    Playwright,
    async_playwright,
)

from preview_driver.exceptions import SessionError, SessionNotStartedError
from preview_driver.models import BrowserType, DeviceProfile

logger = logging.getLogger(__name__)


class DriverSession:
    """Own a browser session and its page session.

    Args:
        browser_type: Engine to launch
        headless: Whether to run without a visible window
        **launch_options: Extra keyword arguments for ``launch``
    """

    def __init__(
        self,
        browser_type: BrowserType = BrowserType.CHROMIUM,
        headless: bool = True,
        **launch_options: Any,
    ):
        self.browser_type = browser_type
        self.headless = headless
        self.launch_options = launch_options
        self.playwright: Optional[Playwright] = None
        self.browser: Optional[Browser] = None
        self.context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None
        self.device: Optional[DeviceProfile] = None

    @property
    def started(self) -> bool:
        return self.browser is not None

    @property
    def page(self) -> Page:
        """The live page.

        Raises:
            SessionNotStartedError: If there is no open page
        """
        if self._page is None or self._page.is_closed():
            raise SessionNotStartedError("Page session is not open; call init() first")
        return self._page

    async def start(self) -> None:
        """Start Playwright, launch the browser and open a page.

        Idempotent: a started session is left as is.

        Raises:
            SessionError: If the browser fails to launch
        """
        if self.started:
            logger.debug("Browser session already started")
            return

        try:
            self.playwright = await async_playwright().start()
            launcher = getattr(self.playwright, self.browser_type.value)
            self.browser = await launcher.launch(
                headless=self.headless, **self.launch_options
            )
            logger.info(
                f"Launched {self.browser_type.value} browser (headless={self.headless})"
            )
            await self._open_page()
        except SessionError:
            await self.close()
            raise
        except Exception as e:
            logger.error(f"Failed to launch {self.browser_type.value} browser: {e}")
            await self.close()
            raise SessionError(f"Browser launch failed: {e}") from e

    async def _open_page(self, device: Optional[DeviceProfile] = None) -> None:
        options: Dict[str, Any] = device.context_options() if device else {}
        try:
            self.context = await self.browser.new_context(**options)
            self._page = await self.context.new_page()
        except Exception as e:
            logger.error(f"Failed to create page: {e}")
            raise SessionError(f"Page creation failed: {e}") from e
        self.device = device
        logger.debug(f"Opened page (device={device.name if device else 'default'})")

    async def emulate(self, device: DeviceProfile) -> None:
        """Switch the page session to emulate ``device``.

        Playwright fixes mobile mode and the user agent per context, so the
        page is reopened in a context configured for the device. The
        emulation stays in effect until changed again.

        Raises:
            SessionNotStartedError: If the session was never started
            SessionError: If the new context or page cannot be created
        """
        if not self.started:
            raise SessionNotStartedError("Cannot emulate a device before init()")
        if self.device == device and self._page is not None and not self._page.is_closed():
            return

        if self.context is not None:
            await self.context.close()
        await self._open_page(device)
        logger.info(
            f"Emulating {device.name} ({device.viewport.width}x{device.viewport.height})"
        )

    async def close(self) -> None:
        """Close the page, context and browser, then stop Playwright.

        Closing a session that was never started, or was already closed,
        does nothing.

        Raises:
            SessionError: If any resource failed to close
        """
        errors = []

        if self.context is not None:
            try:
                await self.context.close()
            except Exception as e:
                errors.append(f"Failed to close context: {e}")
        self.context = None
        self._page = None
        self.device = None

        if self.browser is not None:
            try:
                await self.browser.close()
                logger.debug(f"Closed browser: {self.browser_type.value}")
            except Exception as e:
                errors.append(f"Failed to close browser: {e}")
        self.browser = None

        if self.playwright is not None:
            try:
                await self.playwright.stop()
                logger.info("Playwright stopped")
            except Exception as e:
                errors.append(f"Failed to stop Playwright: {e}")
        self.playwright = None

        if errors:
            error_msg = "; ".join(errors)
            logger.warning(f"Cleanup completed with errors: {error_msg}")
            raise SessionError(f"Cleanup errors: {error_msg}")
