"""
Shared browser machinery for the lottery drivers

Owns the Playwright lifecycle and the small helpers every site needs:
tolerant visibility checks, cookie banner dismissal, click fallbacks and
randomized pauses between entries.
"""
import asyncio
import logging
import random
import re
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence, Union

from playwright.async_api import (
    async_playwright,
    Browser,
    BrowserContext,
    Frame,
    Locator,
    Page,
    Playwright,
    Error as PlaywrightError,
)
from playwright_stealth import Stealth

from ..common.config import BrowserConfig, Config, PacingConfig
from ..common.models import LotteryResult, ShowConfig, ShowEntryResult

logger = logging.getLogger(__name__)

Scope = Union[Page, Frame]

COOKIE_BANNER_CONTAINERS = [
    "#cookie-information-template-wrapper",
    "app-cookie-policy",
    "#onetrust-banner-sdk",
    "#CybotCookiebotDialog",
]

COOKIE_ACCEPT_BUTTONS = [
    'button:has-text("ACCEPT")',
    'button:has-text("Accept")',
    '[role="button"]:has-text("ACCEPT")',
    'a:has-text("ACCEPT")',
    "#onetrust-accept-btn-handler",
]

ACCEPT_BUTTON_NAME = re.compile(r"accept|agree|ok|got it", re.I)

FORCE_HIDE_SCRIPT = """
(selectors) => {
    let hidden = 0;
    for (const selector of selectors) {
        for (const el of document.querySelectorAll(selector)) {
            el.style.setProperty('display', 'none', 'important');
            el.style.setProperty('pointer-events', 'none', 'important');
            hidden++;
        }
    }
    return hidden;
}
"""


class EntryError(Exception):
    """A single show's entry could not be completed"""


class BrowserBot:
    """
    Playwright lifecycle plus tolerant DOM helpers.

    Used as an async context manager; the browser is always closed on exit.
    """

    def __init__(self, settings: BrowserConfig, pacing: Optional[PacingConfig] = None):
        self.settings = settings
        self.pacing = pacing or PacingConfig()
        self.playwright: Optional[Playwright] = None
        self.browser: Optional[Browser] = None
        self.context: Optional[BrowserContext] = None
        self.page: Optional[Page] = None

    async def start(self):
        """Start the browser"""
        settings = self.settings
        logger.info(f"Starting browser (headless={settings.headless})...")

        self.playwright = await async_playwright().start()

        self.browser = await self.playwright.chromium.launch(
            headless=settings.headless,
            slow_mo=settings.slow_mo,
            args=settings.launch_args,
        )

        context_options = {
            "viewport": {"width": 1920, "height": 1080},
            "locale": "en-US",
        }
        if settings.user_agent:
            context_options["user_agent"] = settings.user_agent
        self.context = await self.browser.new_context(**context_options)
        self.context.set_default_timeout(settings.timeout_ms)

        if settings.stealth:
            await Stealth().apply_stealth_async(self.context)

        self.page = await self.context.new_page()
        logger.info("Browser started")

    async def stop(self):
        """Stop the browser"""
        try:
            if self.context:
                await self.context.close()
            if self.browser:
                await self.browser.close()
        finally:
            if self.playwright:
                await self.playwright.stop()
            self.context = self.browser = self.page = self.playwright = None
        logger.info("Browser stopped")

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, *args):
        await self.stop()

    # ========================================
    # Waiting
    # ========================================

    async def pause(self, ms: int):
        await asyncio.sleep(ms / 1000)

    async def random_break(self, max_ms: Optional[int] = None):
        """Short random delay so entries are not fired in a burst"""
        max_ms = max_ms or self.pacing.max_break_ms
        await self.pause(random.randint(1, max(1, max_ms)))

    async def hold_open(self):
        """Leave a headed browser up so the result can be inspected"""
        settings = self.settings
        if settings.keep_open:
            logger.info("🔍 Browser will stay open. Press Ctrl+C to close.")
            while True:
                await asyncio.sleep(1)
        elif not settings.ci and not settings.headless:
            logger.info(f"Keeping browser open for {settings.hold_seconds:.0f} seconds...")
            await asyncio.sleep(settings.hold_seconds)

    # ========================================
    # Lookups that never raise
    # ========================================

    async def is_visible(self, locator: Locator, timeout: int = 0) -> bool:
        """Visibility check where any lookup failure means 'not found'"""
        try:
            if timeout:
                await locator.wait_for(state="visible", timeout=timeout)
                return True
            return await locator.is_visible()
        except PlaywrightError:
            return False

    async def first_visible(
        self,
        scope: Scope,
        selectors: Sequence[str],
        timeout: int = 0,
    ) -> Optional[Locator]:
        for selector in selectors:
            locator = scope.locator(selector).first
            if await self.is_visible(locator, timeout):
                return locator
        return None

    async def body_text(self, scope: Scope) -> str:
        """Lower-cased text of the page body, empty on failure"""
        try:
            return ((await scope.text_content("body")) or "").lower()
        except PlaywrightError:
            return ""

    async def text_of(self, locator: Locator) -> str:
        try:
            return ((await locator.text_content()) or "").strip()
        except PlaywrightError:
            return ""

    # ========================================
    # Interaction
    # ========================================

    async def click_with_fallback(self, locator: Locator, timeout: int = 10000):
        """Click, then force-click, then click from JavaScript"""
        try:
            await locator.click(timeout=timeout)
            return
        except PlaywrightError as e:
            logger.debug(f"Click intercepted, forcing: {e}")

        try:
            await locator.click(force=True, timeout=timeout)
            return
        except PlaywrightError as e:
            logger.debug(f"Force click failed, using JavaScript click: {e}")

        await locator.evaluate("el => el.click()")

    async def dismiss_cookie_banner(self, scope: Scope) -> bool:
        """
        Best-effort cookie consent dismissal.

        Tries an accept button inside a known banner, then generic accept
        buttons, then hides known banners with JavaScript.
        """
        for container_selector in COOKIE_BANNER_CONTAINERS:
            container = scope.locator(container_selector).first
            if not await self.is_visible(container):
                continue

            button = container.get_by_role("button", name=ACCEPT_BUTTON_NAME).first
            if not await self.is_visible(button):
                button = container.locator("button").first
            if await self.is_visible(button):
                try:
                    await button.click(force=True, timeout=2000)
                    await container.wait_for(state="hidden", timeout=5000)
                    logger.info("🍪 Cookie banner dismissed")
                    return True
                except PlaywrightError as e:
                    logger.debug(f"Cookie banner button did not close banner: {e}")

        button = await self.first_visible(scope, COOKIE_ACCEPT_BUTTONS)
        if button:
            try:
                await button.click(force=True, timeout=2000)
                await self.pause(500)
                logger.info("🍪 Clicked cookie accept button")
                return True
            except PlaywrightError as e:
                logger.debug(f"Cookie accept click failed: {e}")

        try:
            hidden = await scope.evaluate(FORCE_HIDE_SCRIPT, COOKIE_BANNER_CONTAINERS)
        except PlaywrightError:
            return False
        if hidden:
            logger.info(f"🍪 Force-hid {hidden} cookie banner element(s)")
        return bool(hidden)


class LotteryBot(BrowserBot, ABC):
    """Base for the per-site 'enter all lotteries' drivers"""

    site_name = "lottery"

    def __init__(self, config: Config):
        super().__init__(config.browser, config.pacing)
        self.config = config
        self.user = config.user
        self.results: List[ShowEntryResult] = []

    def record(self, show: str, success: bool, message: str) -> ShowEntryResult:
        result = ShowEntryResult(show=show, success=success, message=message)
        self.results.append(result)
        icon = "✅" if success else "❌"
        logger.info(f"{icon} {show}: {message}")
        return result

    async def run(self, shows: List[ShowConfig]) -> LotteryResult:
        """Enter every enabled show; unexpected failures become reason=error"""
        self.results = []
        try:
            return await self.enter_lotteries(shows)
        except Exception as e:
            logger.exception(f"Error in {self.site_name} lottery: {e}")
            return LotteryResult.error(e)

    @abstractmethod
    async def enter_lotteries(self, shows: List[ShowConfig]) -> LotteryResult:
        ...
