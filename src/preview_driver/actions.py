"""Navigation actions (``driver.when``)."""

import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from preview_driver.config import DriverConfig
from preview_driver.exceptions import NavigationError, UnsupportedOperationError
from preview_driver.models import IPHONE_SE, DeviceProfile, WaitState
from preview_driver.session import DriverSession

logger = logging.getLogger(__name__)

UrlBuilder = Callable[[str, Dict[str, Any]], Awaitable[str]]


class ActionPort:
    """Actions that change what the page shows.

    Args:
        session: Page session to drive
        config: Driver configuration
        url_for: Coroutine turning a path and extra query params into a URL
    """

    def __init__(self, session: DriverSession, config: DriverConfig, url_for: UrlBuilder):
        self.session = session
        self.config = config
        self._url_for = url_for

    async def open_desktop_page(self, path: str = "", **params: Any) -> None:
        """Navigate to ``path`` and wait for the DOM to be parsed.

        Raises:
            SessionNotStartedError: If there is no open page
            NavigationError: If the page does not reach ``domcontentloaded``
                within the navigation timeout
        """
        page = self.session.page
        url = await self._url_for(path, params)
        try:
            await page.goto(
                url,
                timeout=self.config.navigation_timeout,
                wait_until="domcontentloaded",
            )
        except Exception as e:
            logger.error(f"Navigation to {url} failed: {e}")
            raise NavigationError(url, str(e)) from e
        logger.debug(f"Navigated to {url}")

    async def open_mobile_page(
        self, path: str = "", device: DeviceProfile = IPHONE_SE, **params: Any
    ) -> None:
        """Emulate a mobile device, then open ``path``."""
        await self.session.emulate(device)
        await self.open_desktop_page(path, **params)

    async def wait_for(
        self,
        selector: str,
        state: WaitState = WaitState.VISIBLE,
        timeout: Optional[int] = None,
    ) -> None:
        """Block until ``selector`` reaches ``state``.

        Raises:
            UnsupportedOperationError: If extended helpers are disabled
            playwright.async_api.TimeoutError: If the state is never reached
        """
        if not self.config.extended_helpers:
            raise UnsupportedOperationError("wait_for requires extended helpers")
        await self.session.page.wait_for_selector(
            selector,
            state=WaitState(state).value,
            timeout=self.config.selector_timeout if timeout is None else timeout,
        )
        logger.debug(f"Element {selector} reached state: {WaitState(state).value}")
