"""Branch/revision config providers and the resolver that caches them.

A provider exposes a cheap synchronous view of the last known config and an
asynchronous refresh. The resolver decides which of the two to use and keeps
the result for the lifetime of one driver.
"""

import asyncio
import json
import logging
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Awaitable, Callable, Optional, Union

from pydantic import ValidationError

from preview_driver.exceptions import BranchConfigError
from preview_driver.models import BranchConfig

logger = logging.getLogger(__name__)


class BranchConfigProvider(ABC):
    """Source of the preview build identifiers."""

    @abstractmethod
    def get_cached_config(self) -> BranchConfig:
        """Return the last known config. Fields may be empty."""

    @abstractmethod
    async def refresh_config(self) -> BranchConfig:
        """Fetch a fresh config.

        Raises:
            Exception: Any failure of the underlying source
        """


class StaticBranchConfigProvider(BranchConfigProvider):
    """In-memory provider, mostly for tests and local runs."""

    def __init__(
        self,
        cached: Optional[BranchConfig] = None,
        refreshed: Optional[BranchConfig] = None,
    ):
        self.cached = cached or BranchConfig()
        self.refreshed = refreshed
        self.refresh_count = 0

    def get_cached_config(self) -> BranchConfig:
        return self.cached

    async def refresh_config(self) -> BranchConfig:
        self.refresh_count += 1
        if self.refreshed is None:
            raise LookupError("No refreshed branch config available")
        self.cached = self.refreshed
        return self.refreshed


class FileBranchConfigProvider(BranchConfigProvider):
    """Provider backed by a JSON cache file.

    The file holds ``{"branchId": ..., "siteRevision": ...}``. A missing or
    unreadable file reads as an empty config. ``refresh_config`` awaits the
    injected ``refresher`` and writes its result back to the file so the next
    run can reuse it.
    """

    def __init__(
        self,
        path: Union[str, Path],
        refresher: Callable[[], Awaitable[BranchConfig]],
    ):
        self.path = Path(path)
        self._refresher = refresher

    def get_cached_config(self) -> BranchConfig:
        if not self.path.exists():
            logger.debug(f"No branch config cache at {self.path}")
            return BranchConfig()
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            return BranchConfig.model_validate(data)
        except (OSError, ValueError, ValidationError) as e:
            logger.warning(f"Ignoring unreadable branch config cache {self.path}: {e}")
            return BranchConfig()

    async def refresh_config(self) -> BranchConfig:
        config = await self._refresher()
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._write_cache, config)
        logger.debug(f"Wrote branch config cache {self.path}")
        return config

    def _write_cache(self, config: BranchConfig) -> None:
        """Write the cache to a temp file, then rename it over the cache."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        temp_file = tempfile.NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            dir=self.path.parent,
            prefix=f".{self.path.name}.",
            suffix=".tmp",
            delete=False,
        )
        temp_path = Path(temp_file.name)
        try:
            with temp_file:
                json.dump(config.model_dump(by_alias=True), temp_file, indent=2)
            temp_path.replace(self.path)
        except Exception:
            temp_path.unlink(missing_ok=True)
            raise


class BranchConfigResolver:
    """Resolve and cache a :class:`BranchConfig` for one driver.

    Args:
        provider: Where configs come from
        refresh_stale: Refresh when the cached config is incomplete
        force_refresh: Refresh even when the cached config is complete
            (set in debug mode so debug sessions always see fresh state)
    """

    def __init__(
        self,
        provider: BranchConfigProvider,
        refresh_stale: bool = True,
        force_refresh: bool = False,
    ):
        self.provider = provider
        self.refresh_stale = refresh_stale
        self.force_refresh = force_refresh
        self._config: Optional[BranchConfig] = None

    @property
    def config(self) -> Optional[BranchConfig]:
        """The resolved config, or ``None`` before the first resolve."""
        return self._config

    @property
    def resolved(self) -> bool:
        return self._config is not None

    def resolve_cached(self) -> BranchConfig:
        """Take the provider's cached config as is, without refreshing."""
        if self._config is None:
            self._config = self.provider.get_cached_config()
            logger.debug(f"Using cached branch config: {self._config}")
        return self._config

    def needs_refresh(self, cached: BranchConfig) -> bool:
        if not self.refresh_stale:
            return False
        return self.force_refresh or not cached.is_complete

    async def resolve(self, force: bool = False) -> BranchConfig:
        """Return the branch config, refreshing it when needed.

        Args:
            force: Re-resolve even if a config is already cached

        Returns:
            Resolved branch config

        Raises:
            BranchConfigError: If the refresh fails
        """
        if self._config is not None and not force:
            return self._config

        cached = self.provider.get_cached_config()
        if not (force or self.needs_refresh(cached)):
            self._config = cached
            logger.debug(f"Reusing cached branch config: {cached}")
            return cached

        try:
            refreshed = await self.provider.refresh_config()
        except Exception as e:
            logger.error(f"Failed to refresh branch config: {e}")
            raise BranchConfigError(f"Branch config refresh failed: {e}") from e

        self._config = BranchConfig(
            branch_id=refreshed.branch_id, site_revision=refreshed.site_revision
        )
        logger.info(
            f"Refreshed branch config (branchId={self._config.branch_id}, "
            f"siteRevision={self._config.site_revision})"
        )
        return self._config
