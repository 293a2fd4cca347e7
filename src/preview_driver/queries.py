"""Boolean predicates about the page (``driver.is_``).

``visible`` treats any failure to confirm visibility as "not visible".
``focused`` lets failures propagate. The two policies are kept apart on
purpose; ``SWALLOWING_QUERIES`` names the predicates that never raise.
"""

import logging

from playwright.async_api import Error as PlaywrightError

from preview_driver.config import DriverConfig
from preview_driver.exceptions import UnsupportedOperationError
from preview_driver.models import WaitState
from preview_driver.session import DriverSession

logger = logging.getLogger(__name__)

IS_VISIBLE_JS = "el => getComputedStyle(el).visibility === 'visible'"
IS_FOCUSED_JS = "el => el === document.activeElement"


class QueryPort:
    """State queries that answer with a boolean."""

    SWALLOWING_QUERIES = frozenset({"visible"})

    def __init__(self, session: DriverSession, config: DriverConfig):
        self.session = session
        self.config = config

    async def visible(self, selector: str) -> bool:
        """Wait for ``selector`` to appear and check its computed visibility.

        Returns ``False`` instead of raising when the element never appears
        or cannot be evaluated.
        """
        page = self.session.page
        try:
            await page.wait_for_selector(
                selector,
                state=WaitState.ATTACHED.value,
                timeout=self.config.selector_timeout,
            )
            return bool(await page.eval_on_selector(selector, IS_VISIBLE_JS))
        except PlaywrightError as e:
            logger.debug(f"Treating {selector} as not visible: {e}")
            return False

    async def focused(self, selector: str) -> bool:
        """Whether ``selector`` matches the focused element.

        Raises:
            UnsupportedOperationError: If extended helpers are disabled
            playwright.async_api.Error: If the selector does not resolve
        """
        if not self.config.extended_helpers:
            raise UnsupportedOperationError("focused requires extended helpers")
        return bool(await self.session.page.eval_on_selector(selector, IS_FOCUSED_JS))
