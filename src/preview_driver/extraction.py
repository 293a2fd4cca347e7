"""Content extraction (``driver.get``)."""

from typing import List, Optional

from preview_driver.config import DriverConfig
from preview_driver.exceptions import UnsupportedOperationError
from preview_driver.session import DriverSession

TEXT_CONTENT_JS = "el => el.textContent"
TEXT_CONTENT_ALL_JS = "els => els.map(el => el.textContent ?? '')"
OUTER_HTML_JS = "el => el.outerHTML"
OUTER_HTML_ALL_JS = "els => els.map(el => el.outerHTML ?? '')"
ATTRIBUTE_JS = (
    "([selector, name]) => "
    "document.querySelector(selector)?.getAttribute(name) ?? null"
)
ATTRIBUTE_ALL_JS = (
    "([selector, name]) => "
    "Array.from(document.querySelectorAll(selector)).map(el => el.getAttribute(name))"
)


class ExtractionPort:
    """Read values out of the page. Nothing here retries."""

    def __init__(self, session: DriverSession, config: DriverConfig):
        self.session = session
        self.config = config

    async def title(self) -> str:
        if not self.config.extended_helpers:
            raise UnsupportedOperationError("title requires extended helpers")
        return await self.session.page.title()

    async def text_content(self, selector: str) -> Optional[str]:
        return await self.session.page.eval_on_selector(selector, TEXT_CONTENT_JS)

    async def text_content_all(self, selector: str) -> List[str]:
        """Text of every match in document order, ``''`` where missing."""
        values = await self.session.page.eval_on_selector_all(
            selector, TEXT_CONTENT_ALL_JS
        )
        return [value or "" for value in values]

    async def outer_html(self, selector: str) -> str:
        return await self.session.page.eval_on_selector(selector, OUTER_HTML_JS)

    async def outer_html_all(self, selector: str) -> List[str]:
        values = await self.session.page.eval_on_selector_all(
            selector, OUTER_HTML_ALL_JS
        )
        return [value or "" for value in values]

    async def attribute_for(self, selector: str, name: str) -> Optional[str]:
        """Attribute of the first match; ``None`` if absent or unmatched."""
        return await self.session.page.evaluate(ATTRIBUTE_JS, [selector, name])

    async def attribute_for_all(self, selector: str, name: str) -> List[Optional[str]]:
        return await self.session.page.evaluate(ATTRIBUTE_ALL_JS, [selector, name])
