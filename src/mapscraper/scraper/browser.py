"""
Browser session for the map-search page.

Defines the ``BrowserSession`` capability the extraction pipeline talks
to, and ``PlaywrightSession``, its Playwright implementation.

The session is a scoped resource: entering the async context launches
Playwright, the browser, a context and a page; leaving it closes all of
them, whether the caller finished normally or raised.

Timeout semantics: waits return ``True``/``False`` instead of raising on
timeout. Every other Playwright error propagates to the caller.

Example:
    >>> async with PlaywrightSession(config.browser) as session:
    ...     await session.navigate(url)
    ...     feed = await session.query_selector("[role='feed']")
"""

from __future__ import annotations

from typing import Any, Optional, Protocol, TYPE_CHECKING

from mapscraper.utils.config import BrowserConfig
from mapscraper.utils.exceptions import NavigationError
from mapscraper.utils.logger import get_logger

if TYPE_CHECKING:
    from playwright.async_api import Browser, BrowserContext, ElementHandle, Page, Playwright

logger = get_logger(__name__)


DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/133.0.0.0 Safari/537.36"
)

HEIGHT_SCRIPT = """
(selector) => {
    const el = document.querySelector(selector);
    return el ? el.scrollHeight : 0;
}
"""


class BrowserSession(Protocol):
    """Capabilities the pipeline needs from one browser page."""

    async def navigate(self, url: str) -> None: ...

    async def query_selector(self, selector: str, root: Any = None) -> Optional[Any]: ...

    async def query_all(self, selector: str, root: Any = None) -> list[Any]: ...

    async def get_text(self, handle: Any) -> Optional[str]: ...

    async def get_attribute(self, handle: Any, name: str) -> Optional[str]: ...

    async def click(self, handle: Any) -> None: ...

    async def wait_for_selector(
        self, selector: str, timeout_ms: int = 5000, state: str = "attached"
    ) -> bool: ...

    async def wait_for_load_state(self, state: str = "load", timeout_ms: int = 5000) -> bool: ...

    async def evaluate(self, script: str, arg: Any = None) -> Any: ...

    async def evaluate_height(self, selector: str) -> float: ...


class PlaywrightSession:
    """
    ``BrowserSession`` backed by a Playwright Chromium page.

    Attributes:
        config: Browser launch and context settings.
    """

    def __init__(self, config: Optional[BrowserConfig] = None):
        """
        Initialize the session (nothing is launched until ``open``).

        Args:
            config: Browser settings. Defaults to BrowserConfig().
        """
        self.config = config or BrowserConfig()

        self._playwright: Optional["Playwright"] = None
        self._browser: Optional["Browser"] = None
        self._context: Optional["BrowserContext"] = None
        self._page: Optional["Page"] = None

    # =========================================
    # Context Manager
    # =========================================

    async def __aenter__(self) -> "PlaywrightSession":
        try:
            await self.open()
        except BaseException:
            await self.close()
            raise
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    # =========================================
    # Lifecycle
    # =========================================

    async def open(self) -> None:
        """
        Launch Playwright, Chromium, a context and a page.

        Raises:
            playwright.async_api.Error: If the browser cannot be launched.
        """
        if self._page is not None:
            logger.warning("Session already open")
            return

        from playwright.async_api import async_playwright

        logger.debug(f"Launching browser (headless={self.config.headless})")

        self._playwright = await async_playwright().start()

        launch_kwargs: dict[str, Any] = {
            "headless": self.config.headless,
            "args": self.config.args,
        }
        if self.config.slow_mo:
            launch_kwargs["slow_mo"] = self.config.slow_mo
        self._browser = await self._playwright.chromium.launch(**launch_kwargs)

        self._context = await self._browser.new_context(
            user_agent=self.config.user_agent or DEFAULT_USER_AGENT,
            viewport={
                "width": self.config.viewport_width,
                "height": self.config.viewport_height,
            },
            locale=self.config.locale,
        )

        # Hide the automation flag from page scripts
        await self._context.add_init_script(
            "Object.defineProperty(navigator, 'webdriver', {get: () => undefined});"
        )

        self._page = await self._context.new_page()
        self._page.set_default_timeout(self.config.timeout * 1000)

        logger.info("Browser session opened")

    async def close(self) -> None:
        """
        Close page, context, browser, and stop Playwright.

        Safe to call more than once.
        """
        if self._playwright is None:
            return

        try:
            if self._page:
                await self._page.close()
            if self._context:
                await self._context.close()
            if self._browser:
                await self._browser.close()
            await self._playwright.stop()
        except Exception as e:
            logger.error(f"Error closing session: {e}")
        finally:
            self._page = None
            self._context = None
            self._browser = None
            self._playwright = None

        logger.info("Browser session closed")

    @property
    def page(self) -> "Page":
        if self._page is None:
            raise RuntimeError(
                "No active session. Use 'async with PlaywrightSession()' "
                "or call open() first."
            )
        return self._page

    # =========================================
    # BrowserSession capability
    # =========================================

    async def navigate(self, url: str) -> None:
        """Open ``url`` and fail on HTTP error statuses."""
        logger.debug(f"Navigating to {url}")
        response = await self.page.goto(
            url,
            timeout=self.config.timeout * 1000,
            wait_until="domcontentloaded",
        )
        if response is not None and response.status >= 400:
            raise NavigationError(
                f"HTTP {response.status} error", url=url, status_code=response.status
            )

    async def query_selector(
        self, selector: str, root: Optional["ElementHandle"] = None
    ) -> Optional["ElementHandle"]:
        scope = root if root is not None else self.page
        return await scope.query_selector(selector)

    async def query_all(
        self, selector: str, root: Optional["ElementHandle"] = None
    ) -> list["ElementHandle"]:
        scope = root if root is not None else self.page
        return await scope.query_selector_all(selector)

    async def get_text(self, handle: "ElementHandle") -> Optional[str]:
        text = await handle.text_content()
        if text is None:
            text = await handle.inner_text()
        return text

    async def get_attribute(self, handle: "ElementHandle", name: str) -> Optional[str]:
        return await handle.get_attribute(name)

    async def click(self, handle: "ElementHandle") -> None:
        await handle.click()

    async def wait_for_selector(
        self, selector: str, timeout_ms: int = 5000, state: str = "attached"
    ) -> bool:
        from playwright.async_api import TimeoutError as PlaywrightTimeoutError

        try:
            await self.page.wait_for_selector(selector, timeout=timeout_ms, state=state)
            return True
        except PlaywrightTimeoutError:
            logger.debug(f"Timed out after {timeout_ms}ms waiting for {selector}")
            return False

    async def wait_for_load_state(self, state: str = "load", timeout_ms: int = 5000) -> bool:
        from playwright.async_api import TimeoutError as PlaywrightTimeoutError

        try:
            await self.page.wait_for_load_state(state, timeout=timeout_ms)
            return True
        except PlaywrightTimeoutError:
            logger.debug(f"Timed out after {timeout_ms}ms waiting for load state {state}")
            return False

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        return await self.page.evaluate(script, arg)

    async def evaluate_height(self, selector: str) -> float:
        return await self.page.evaluate(HEIGHT_SCRIPT, selector)
