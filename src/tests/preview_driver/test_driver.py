"""Tests for the E2EDriver facade: lifecycle, URLs and navigation."""

import asyncio
import logging
from unittest.mock import AsyncMock, Mock, patch
from urllib.parse import parse_qs, urlsplit

import pytest
from playwright.async_api import Browser, BrowserContext, Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from preview_driver.branch_config import StaticBranchConfigProvider
from preview_driver.config import DriverConfig
from preview_driver.driver import E2EDriver
from preview_driver.exceptions import (
    BranchConfigError,
    NavigationError,
    SessionNotStartedError,
    UnsupportedOperationError,
)
from preview_driver.models import BranchConfig, WaitState

BASE_URL = "https://example.com"


@pytest.fixture
def mock_page():
    """Create a mock Page instance."""
    page = AsyncMock(spec=Page)
    page.is_closed = Mock(return_value=False)
    page.goto = AsyncMock()
    page.wait_for_selector = AsyncMock()
    return page


@pytest.fixture
def mock_context(mock_page):
    context = AsyncMock(spec=BrowserContext)
    context.new_page = AsyncMock(return_value=mock_page)
    return context


@pytest.fixture
def mock_browser(mock_context):
    browser = AsyncMock(spec=Browser)
    browser.new_context = AsyncMock(return_value=mock_context)
    return browser


@pytest.fixture
def mock_playwright(mock_browser):
    playwright = AsyncMock()
    playwright.chromium.launch = AsyncMock(return_value=mock_browser)
    return playwright


@pytest.fixture
def patched_playwright(mock_playwright):
    with patch("preview_driver.session.async_playwright") as mock_async_pw:
        mock_async_pw.return_value.start = AsyncMock(return_value=mock_playwright)
        yield mock_async_pw


@pytest.fixture
def provider():
    return StaticBranchConfigProvider(
        cached=BranchConfig(branch_id="b1", site_revision="r1"),
        refreshed=BranchConfig(branch_id="b2", site_revision="r2"),
    )


@pytest.fixture
def current_config():
    return DriverConfig.current(
        base_url=BASE_URL, debug=False, set_preview_query_parameters=False
    )


@pytest.fixture
def legacy_config():
    return DriverConfig.legacy(
        base_url=BASE_URL, debug=False, set_preview_query_parameters=False
    )


def query_of(url):
    return parse_qs(urlsplit(url).query, keep_blank_values=True)


class TestDriverInit:
    """Tests for init()."""

    @pytest.mark.asyncio
    async def test_init_launches_and_resolves(
        self, patched_playwright, mock_playwright, current_config, provider, mock_page
    ):
        """Test that init launches the browser and resolves the branch config."""
        driver = E2EDriver(current_config, provider)

        await driver.init()

        mock_playwright.chromium.launch.assert_awaited_once_with(headless=True)
        assert driver.page is mock_page
        assert driver.branch_config == BranchConfig(branch_id="b1", site_revision="r1")

    @pytest.mark.asyncio
    async def test_init_twice_launches_once(
        self, patched_playwright, mock_playwright, current_config, provider
    ):
        """Test that init is idempotent on the current profile."""
        driver = E2EDriver(current_config, provider)

        await driver.init()
        await driver.init()

        mock_playwright.chromium.launch.assert_awaited_once()
        assert provider.refresh_count == 0

    @pytest.mark.asyncio
    async def test_init_runs_concurrently(self, current_config, provider):
        """Test that browser launch and config refresh overlap."""
        started = asyncio.Event()
        refreshing = asyncio.Event()

        async def start():
            started.set()
            await asyncio.wait_for(refreshing.wait(), timeout=1)

        async def refresh():
            refreshing.set()
            await asyncio.wait_for(started.wait(), timeout=1)
            return BranchConfig(branch_id="b2", site_revision="r2")

        provider.cached = BranchConfig()
        provider.refresh_config = refresh
        driver = E2EDriver(current_config, provider)
        driver.session.start = start

        await driver.init()

        assert driver.branch_config.branch_id == "b2"

    @pytest.mark.asyncio
    async def test_init_without_browser(self, patched_playwright, current_config, provider):
        """Test init with launch_browser=False and a base URL override."""
        driver = E2EDriver(current_config, provider)

        await driver.init(base_url="https://preview.example.com", launch_browser=False)

        patched_playwright.assert_not_called()
        assert driver.base_url == "https://preview.example.com"
        assert driver.session.started is False

    @pytest.mark.asyncio
    async def test_init_refresh_failure_propagates(
        self, patched_playwright, current_config, caplog
    ):
        """Test that a failed refresh is logged and raised from init."""
        driver = E2EDriver(current_config, StaticBranchConfigProvider())

        with caplog.at_level(logging.ERROR):
            with pytest.raises(BranchConfigError):
                await driver.init()

        assert "Failed to refresh branch config" in caplog.text

    @pytest.mark.asyncio
    async def test_debug_init_headed_and_refreshed(
        self, patched_playwright, mock_playwright, provider
    ):
        """Test that debug mode runs headed and refreshes the config."""
        config = DriverConfig.current(base_url=BASE_URL, debug=True)
        driver = E2EDriver(config, provider)

        await driver.init()

        mock_playwright.chromium.launch.assert_awaited_once_with(headless=False)
        assert provider.refresh_count == 1
        assert driver.branch_config.branch_id == "b2"

    @pytest.mark.asyncio
    async def test_legacy_init_uses_cached_config(
        self, patched_playwright, legacy_config
    ):
        """Test that the legacy profile never refreshes the config."""
        provider = StaticBranchConfigProvider(
            cached=BranchConfig(branch_id="", site_revision="r1"),
            refreshed=BranchConfig(branch_id="b2", site_revision="r2"),
        )
        driver = E2EDriver(legacy_config, provider)

        await driver.init()

        assert provider.refresh_count == 0
        assert driver.branch_config.site_revision == "r1"

    @pytest.mark.asyncio
    async def test_failed_init_releases_browser(
        self, patched_playwright, mock_playwright, mock_browser, current_config
    ):
        """Test that a refresh failure closes the browser launched alongside it."""

        async def slow_launch(**kwargs):
            await asyncio.sleep(0.05)
            return mock_browser

        mock_playwright.chromium.launch = AsyncMock(side_effect=slow_launch)
        driver = E2EDriver(current_config, StaticBranchConfigProvider())

        with pytest.raises(BranchConfigError):
            async with driver:
                pass
        await driver.clean()
        await asyncio.sleep(0.2)

        assert driver.session.browser is None
        mock_browser.close.assert_awaited_once()
        mock_playwright.stop.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_failed_init_keeps_earlier_session(
        self, patched_playwright, mock_browser, current_config
    ):
        """Test that a failing init leaves a browser started earlier open."""
        driver = E2EDriver(current_config, StaticBranchConfigProvider())
        await driver.session.start()

        with pytest.raises(BranchConfigError):
            await driver.init()

        mock_browser.close.assert_not_awaited()
        assert driver.session.started

    @pytest.mark.asyncio
    async def test_async_context_manager(self, patched_playwright, mock_browser, current_config):
        """Test that the async context manager opens and closes the browser."""
        async with E2EDriver(current_config) as driver:
            assert driver.session.started

        mock_browser.close.assert_awaited_once()
        assert driver.session.started is False


class TestDriverClean:
    """Tests for clean()."""

    @pytest.mark.asyncio
    async def test_clean_closes_browser(
        self, patched_playwright, mock_browser, current_config, provider
    ):
        """Test that clean closes the browser outside debug mode."""
        driver = E2EDriver(current_config, provider)
        await driver.init()

        await driver.clean()

        mock_browser.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_clean_on_debug_keeps_browser(
        self, patched_playwright, mock_browser, mock_page, provider, caplog
    ):
        """Test that debug sessions stay open for inspection."""
        driver = E2EDriver(DriverConfig.current(base_url=BASE_URL, debug=True), provider)
        await driver.init()

        with caplog.at_level(logging.WARNING):
            await driver.clean()

        mock_browser.close.assert_not_awaited()
        assert "not closing browser on debug mode" in caplog.text
        assert driver.page is mock_page

    @pytest.mark.asyncio
    async def test_clean_without_init(self, current_config):
        """Test that clean before init is a no-op."""
        await E2EDriver(current_config).clean()


class TestUrlFor:
    """Tests for URL building through the driver."""

    @pytest.mark.asyncio
    async def test_current_profile_always_stamps(self, current_config, provider):
        """Test that the current profile always stamps branch params."""
        driver = E2EDriver(current_config, provider)

        url = await driver.url_for("/home")

        query = query_of(url)
        assert query["branchId"] == ["b1"]
        assert query["siteRevision"] == ["r1"]
        assert query["isqa"] == ["true"]

    @pytest.mark.asyncio
    async def test_legacy_profile_without_toggle(self, legacy_config, provider):
        """Test that the legacy profile omits branch params by default."""
        driver = E2EDriver(legacy_config, provider)
        await driver.init(launch_browser=False)

        url = await driver.url_for("/home")

        assert query_of(url) == {"isqa": ["true"]}

    @pytest.mark.asyncio
    async def test_legacy_profile_with_toggle(self, provider):
        """Test that the legacy profile stamps branch params when toggled on."""
        config = DriverConfig.legacy(base_url=BASE_URL, set_preview_query_parameters=True)
        driver = E2EDriver(config, provider)
        await driver.init(launch_browser=False)

        url = await driver.url_for("/home")

        assert query_of(url)["branchId"] == ["b1"]

    @pytest.mark.asyncio
    async def test_resolves_lazily_once(self, current_config):
        """Test that url_for resolves the config on first use only."""
        provider = StaticBranchConfigProvider(
            refreshed=BranchConfig(branch_id="b2", site_revision="r2")
        )
        driver = E2EDriver(current_config, provider)

        await driver.url_for("/a")
        url = await driver.url_for("/b")

        assert provider.refresh_count == 1
        assert query_of(url)["branchId"] == ["b2"]

    @pytest.mark.asyncio
    async def test_empty_and_slash_same_path(self, current_config, provider):
        """Test that '' and '/' build the same URL."""
        driver = E2EDriver(current_config, provider)

        assert await driver.url_for("") == await driver.url_for("/")


class TestActions:
    """Tests for the when namespace."""

    @pytest.mark.asyncio
    async def test_open_desktop_page(
        self, patched_playwright, mock_page, current_config, provider
    ):
        """Test desktop navigation URL, timeout and readiness condition."""
        driver = E2EDriver(current_config, provider)
        await driver.init()

        await driver.when.open_desktop_page("/about", lang="en")

        url = mock_page.goto.await_args.args[0]
        assert urlsplit(url).path == "/about"
        assert query_of(url)["lang"] == ["en"]
        assert mock_page.goto.await_args.kwargs == {
            "timeout": 30000,
            "wait_until": "domcontentloaded",
        }

    @pytest.mark.asyncio
    async def test_open_mobile_page(
        self, patched_playwright, mock_browser, mock_page, current_config, provider
    ):
        """Test mobile emulation followed by navigation to /home."""
        driver = E2EDriver(current_config, provider)
        await driver.init()

        await driver.when.open_mobile_page("/home")

        options = mock_browser.new_context.await_args.kwargs
        assert options["viewport"] == {"width": 375, "height": 667}
        assert options["is_mobile"] is True
        url = mock_page.goto.await_args.args[0]
        assert urlsplit(url).path == "/home"
        assert query_of(url)["branchId"] == ["b1"]
        assert query_of(url)["siteRevision"] == ["r1"]

    @pytest.mark.asyncio
    async def test_navigation_timeout(
        self, patched_playwright, mock_page, current_config, provider
    ):
        """Test that a navigation timeout is raised as NavigationError."""
        mock_page.goto = AsyncMock(side_effect=PlaywrightTimeoutError("Timeout 30000ms"))
        driver = E2EDriver(current_config, provider)
        await driver.init()

        with pytest.raises(NavigationError) as exc_info:
            await driver.when.open_desktop_page("/slow")

        assert isinstance(exc_info.value.__cause__, PlaywrightTimeoutError)
        assert urlsplit(exc_info.value.url).path == "/slow"

    @pytest.mark.asyncio
    async def test_navigation_without_init(self, current_config, provider):
        """Test that navigating before init fails."""
        driver = E2EDriver(current_config, provider)

        with pytest.raises(SessionNotStartedError):
            await driver.when.open_desktop_page("/")

    @pytest.mark.asyncio
    async def test_wait_for(self, patched_playwright, mock_page, current_config, provider):
        """Test that wait_for passes state and timeout to Playwright."""
        driver = E2EDriver(current_config, provider)
        await driver.init()

        await driver.when.wait_for("#menu", state=WaitState.HIDDEN, timeout=500)

        mock_page.wait_for_selector.assert_awaited_once_with(
            "#menu", state="hidden", timeout=500
        )

    @pytest.mark.asyncio
    async def test_wait_for_timeout_propagates(
        self, patched_playwright, mock_page, current_config, provider
    ):
        """Test that wait_for does not swallow timeouts."""
        mock_page.wait_for_selector = AsyncMock(side_effect=PlaywrightTimeoutError("Timeout"))
        driver = E2EDriver(current_config, provider)
        await driver.init()

        with pytest.raises(PlaywrightTimeoutError):
            await driver.when.wait_for("#never")

    @pytest.mark.asyncio
    async def test_wait_for_disabled_on_legacy(
        self, patched_playwright, legacy_config, provider
    ):
        """Test that wait_for is unavailable on the legacy profile."""
        driver = E2EDriver(legacy_config, provider)
        await driver.init()

        with pytest.raises(UnsupportedOperationError):
            await driver.when.wait_for("#menu")
