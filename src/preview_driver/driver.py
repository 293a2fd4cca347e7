"""E2E test driver facade.

This module provides the E2EDriver class which composes a browser session,
a branch config resolver and three small ports:

- ``when``: navigation actions (:class:`~preview_driver.actions.ActionPort`)
- ``is_``: boolean predicates (:class:`~preview_driver.queries.QueryPort`)
- ``get``: content extraction (:class:`~preview_driver.extraction.ExtractionPort`)

Example:
    async with E2EDriver(DriverConfig.current(base_url="https://example.com")) as driver:
        await driver.when.open_mobile_page("/home")
        assert await driver.is_.visible("#header")
"""

import asyncio
import logging
from typing import Any, Dict, Optional

from preview_driver.actions import ActionPort
from preview_driver.branch_config import BranchConfigProvider, BranchConfigResolver
from preview_driver.config import DriverConfig
from preview_driver.exceptions import SessionError
from preview_driver.extraction import ExtractionPort
from preview_driver.models import BranchConfig
from preview_driver.queries import QueryPort
from preview_driver.session import DriverSession
from preview_driver.urls import build_url

logger = logging.getLogger(__name__)


class E2EDriver:
    """Page-object style facade over one Playwright browser session.

    Args:
        config: Driver configuration; read from the environment if omitted
        provider: Source of branch/revision identifiers
        session: Browser session to drive; built from ``config`` if omitted
    """

    def __init__(
        self,
        config: Optional[DriverConfig] = None,
        provider: Optional[BranchConfigProvider] = None,
        session: Optional[DriverSession] = None,
    ):
        self.config = config or DriverConfig.from_env()
        self.base_url = self.config.base_url
        self.session = session or DriverSession(
            browser_type=self.config.browser_type, headless=self.config.headless
        )
        self.branch_configs: Optional[BranchConfigResolver] = None
        if provider is not None:
            self.branch_configs = BranchConfigResolver(
                provider,
                refresh_stale=self.config.refresh_stale_config,
                force_refresh=self.config.debug,
            )

        self.when = ActionPort(self.session, self.config, self.url_for)
        self.is_ = QueryPort(self.session, self.config)
        self.get = ExtractionPort(self.session, self.config)

    async def __aenter__(self):
        await self.init()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.clean()

    @property
    def page(self):
        return self.session.page

    @property
    def branch_config(self) -> Optional[BranchConfig]:
        if self.branch_configs is None:
            return None
        return self.branch_configs.config

    async def init(self, base_url: Optional[str] = None, launch_browser: bool = True) -> None:
        """Open the browser session and resolve the branch config.

        If either step fails, a browser launched by this call is closed
        before the first error is raised.

        Args:
            base_url: Overrides ``config.base_url``
            launch_browser: Skip the browser when false (URL building only)

        Raises:
            SessionError: If the browser fails to launch
            BranchConfigError: If the branch config refresh fails
        """
        if base_url is not None:
            self.base_url = base_url

        if not self.config.concurrent_init:
            if self.branch_configs is not None:
                self.branch_configs.resolve_cached()
            if launch_browser:
                await self.session.start()
            return

        was_started = self.session.started
        tasks = [self._resolve_branch_config()]
        if launch_browser:
            tasks.append(self.session.start())
        results = await asyncio.gather(*tasks, return_exceptions=True)
        errors = [result for result in results if isinstance(result, BaseException)]
        if not errors:
            return

        if launch_browser and not was_started:
            try:
                await self.session.close()
            except SessionError as e:
                logger.error(f"Failed to release browser after init error: {e}")
        raise errors[0]

    async def clean(self) -> None:
        """Close the browser session unless running in debug mode."""
        if self.config.debug:
            logger.warning("not closing browser on debug mode")
            return
        await self.session.close()

    async def _resolve_branch_config(self) -> Optional[BranchConfig]:
        if self.branch_configs is None:
            return None
        if not self.config.refresh_stale_config:
            return self.branch_configs.resolve_cached()
        return await self.branch_configs.resolve()

    async def url_for(self, path: str = "", params: Optional[Dict[str, Any]] = None) -> str:
        """Absolute preview URL for ``path``.

        Resolves the branch config on first use if ``init`` has not.
        """
        branch_config = await self._resolve_branch_config()
        return build_url(
            self.base_url,
            path,
            branch_config,
            add_qa_param=self.config.add_qa_param,
            stamp_branch_params=self.config.stamp_branch_params,
            normalize_root_path=self.config.normalize_root_path,
            extra_params=params,
        )
