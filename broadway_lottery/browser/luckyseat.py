"""
Lucky Seat lottery driver

Lucky Seat is an Angular app behind a login. Each show's entry page lists
performances as checkbox labels grouped by date, a ticket stepper and a
reCAPTCHA v2 checkbox that is solved through the CAPTCHA service.
"""
import logging
import re
from typing import List, Optional

from playwright.async_api import Error as PlaywrightError

from .base import LotteryBot, EntryError
from .urls import WebPages
from ..common.captcha import CaptchaSolver, CaptchaError
from ..common.heuristics import (
    classify_confirmation_text,
    classify_login_text,
    extract_site_key,
    is_closed_text,
    should_select_performance,
)
from ..common.models import LoginCredentials, LotteryResult, ShowConfig, aggregate_results
from ..common.shows import partition_enabled

logger = logging.getLogger(__name__)

LOGIN_SUBMIT_SELECTORS = [
    "input.c-btn.c-btn--large",
    'button[type="submit"]',
    'input[type="submit"]',
    'button:has-text("Sign In")',
    'button:has-text("Login")',
]

WEEKDAY_PATTERN = re.compile(
    r"^\s*(Monday|Tuesday|Wednesday|Thursday|Friday|Saturday|Sunday),"
)

RECAPTCHA_ANCHOR = 'iframe[src*="recaptcha/api2/anchor"]'

INJECT_TOKEN_SCRIPT = """
(token) => {
    let el = document.getElementById('g-recaptcha-response');
    if (!el) {
        el = document.createElement('textarea');
        el.id = 'g-recaptcha-response';
        el.name = 'g-recaptcha-response';
        el.style.display = 'none';
        document.body.appendChild(el);
    }
    el.value = token;
}
"""


class LuckySeatBot(LotteryBot):
    """Logs in to Lucky Seat and enters the lottery for each configured show"""

    site_name = "Lucky Seat"

    def __init__(self, config, login: Optional[LoginCredentials] = None):
        super().__init__(config)
        self.login_credentials = login or config.require_login("luckyseat")
        self.captcha_solver: Optional[CaptchaSolver] = None

    async def stop(self):
        if self.captcha_solver:
            await self.captcha_solver.close()
            self.captcha_solver = None
        await super().stop()

    async def enter_lotteries(self, shows: List[ShowConfig]) -> LotteryResult:
        logged_in, message = await self.login()
        if not logged_in:
            return LotteryResult.failed(message or "Failed to login to Lucky Seat")

        if not await self.navigate_to_lottery_page():
            return LotteryResult.failed("Could not navigate to lottery page")

        await self.pause(2000)
        if is_closed_text(await self.body_text(self.page)):
            logger.info("ℹ️  Lotteries are currently closed")
            return LotteryResult.closed()

        enabled, disabled = partition_enabled(shows, self.user.number_of_tickets)
        for show in disabled:
            logger.info(f"⊗ Skipping {show.name} (num_tickets: 0)")
        if not enabled:
            logger.info("ℹ️  No shows enabled for entry")
            return LotteryResult.submitted("No shows enabled (all have num_tickets: 0)")

        logger.info(f"🎯 Will attempt to enter {len(enabled)} show(s)")

        for show in enabled:
            logger.info(f"\n🎭 Processing show: {show.name}")
            try:
                page_text = await self.enter_show(show)
                success, message = classify_confirmation_text(page_text)
                self.record(show.name, success, message)
            except EntryError as e:
                self.record(show.name, False, str(e))
            except Exception as e:
                logger.exception(f"Error processing {show.name}")
                self.record(show.name, False, f"Error: {e}")
            await self.random_break()
            await self._return_home()

        return aggregate_results(self.results)

    # ========================================
    # Login and navigation
    # ========================================

    async def login(self):
        """Returns (success, message)"""
        page = self.page
        creds = self.login_credentials
        logger.info("🔐 Logging in to Lucky Seat...")

        try:
            await page.goto(WebPages.luckyseat_login(), wait_until="domcontentloaded", timeout=60000)
            await self.pause(5000)

            try:
                await page.wait_for_selector('input[placeholder="Email"]', timeout=60000)
            except PlaywrightError:
                logger.error(f"❌ Login form did not load in time ({page.url})")
                await self._debug_screenshot("login-timeout-debug.png")
                raise

            await page.locator('input[placeholder="Email"]').first.fill(creds.email)
            await page.locator('input[placeholder="Password"]').first.fill(creds.password)

            button = await self.first_visible(page, LOGIN_SUBMIT_SELECTORS, timeout=2000)
            if button is None:
                return False, "Could not find login button"
            await button.click()
            await self.pause(3000)

            success, message = classify_login_text(await self.body_text(page), page.url)
            if not success:
                logger.error("❌ Login failed - check credentials")
                return False, message

            logger.info(f"✅ Logged in to Lucky Seat ({page.url})")
            return True, None
        except PlaywrightError as e:
            logger.error(f"❌ Error during login: {e}")
            return False, f"Login error: {e}"

    async def _debug_screenshot(self, path: str):
        try:
            await self.page.screenshot(path=path, full_page=True)
            logger.info(f"Screenshot saved to {path}")
        except PlaywrightError as e:
            logger.warning(f"Could not save screenshot: {e}")

    async def navigate_to_lottery_page(self) -> bool:
        """Go to the home listing and filter to New York City + Broadway"""
        page = self.page
        try:
            if "/home" not in page.url:
                await page.goto(WebPages.luckyseat_home(), wait_until="domcontentloaded", timeout=30000)
                await self.pause(3000)

            await self.pause(2000)
            for selector, option, label in (
                ("select#cities", "New York City", "city"),
                ("select#category", "Broadway", "category"),
            ):
                dropdown = page.locator(selector).first
                if await self.is_visible(dropdown, 5000):
                    await dropdown.select_option(option)
                    logger.info(f"✅ Selected '{option}' {label} filter")
                    await self.pause(2000)
                else:
                    logger.warning(f"⚠️  Could not find {label} filter dropdown")
            return True
        except PlaywrightError as e:
            logger.error(f"❌ Error navigating to lottery page: {e}")
            return False

    async def _return_home(self):
        try:
            await self.page.goto(WebPages.luckyseat_home(), wait_until="domcontentloaded")
            await self.pause(2000)
        except PlaywrightError as e:
            logger.warning(f"Could not return to home page: {e}")

    # ========================================
    # Per-show entry
    # ========================================

    async def enter_show(self, show: ShowConfig) -> str:
        """
        Run the entry flow for one show.

        Returns the post-submission page text; raises EntryError when a step
        cannot be completed.
        """
        page = self.page
        card = (
            page.locator("div.showBlockParent")
            .filter(has_text=re.compile(re.escape(show.name), re.I))
            .filter(has_text=re.compile("New York", re.I))
            .first
        )
        if not await self.is_visible(card, 5000):
            raise EntryError("Show not found on lottery page")

        await card.click()
        await self.pause(3000)

        selected = await self.select_performances()
        if selected == 0:
            raise EntryError("No valid performances found")
        logger.info(f"✅ Selected {selected} performance(s)")

        await page.evaluate("() => window.scrollBy(0, 300)")
        await self.set_ticket_count(show.tickets_for(self.user.number_of_tickets))

        await page.evaluate("() => window.scrollBy(0, 300)")
        await self.solve_captcha()

        await self.dismiss_cookie_banner(page)
        await self.submit_entry()
        return await self.body_text(page)

    async def select_performances(self) -> int:
        """Tick every weekend or evening performance; returns how many are selected"""
        page = self.page
        date_elements = await page.locator('div[class*="text-18"]').filter(
            has_text=WEEKDAY_PATTERN
        ).all()
        logger.info(f"   Found {len(date_elements)} date element(s)")

        selected = 0
        for date_element in date_elements:
            date_text = await self.text_of(date_element)
            if not date_text:
                continue

            row = date_element.locator('xpath=ancestor::div[contains(@class, "border-b")]').first
            if not await self.is_visible(row):
                logger.warning("     ⚠️ Could not find date row container")
                continue

            for label in await row.locator("label").all():
                time_text = await self.text_of(label)
                if not time_text:
                    continue
                if not should_select_performance(date_text, time_text):
                    logger.debug(f"     ⊗ Skipping: {date_text} {time_text}")
                    continue

                input_id = await label.get_attribute("for")
                if input_id:
                    checkbox = page.locator(f"[id='{input_id}']")
                    try:
                        already = await checkbox.is_checked()
                    except PlaywrightError:
                        already = False
                    if already:
                        selected += 1
                        continue

                logger.info(f"     ✓ Selecting: {date_text} {time_text}")
                await label.click()
                selected += 1
                await self.pause(300)

        return selected

    async def set_ticket_count(self, target: int):
        """Click the stepper's +/- buttons until the input shows target"""
        page = self.page
        ticket_input = page.locator('.form-number input[type="number"]').first
        try:
            current = int((await ticket_input.input_value()) or "0")
        except (PlaywrightError, ValueError):
            current = 0

        logger.info(f"🎫 Tickets: current {current}, target {target}")
        if current == target:
            return

        button_selector = ".form-number-plus" if current < target else ".form-number-minus"
        button = page.locator(button_selector).first
        for _ in range(abs(target - current)):
            await button.click()
            await self.pause(300)

    async def solve_captcha(self):
        """Solve the reCAPTCHA via the solving service and inject the token"""
        page = self.page
        anchor = page.locator(RECAPTCHA_ANCHOR).first

        try:
            checkbox = page.frame_locator(RECAPTCHA_ANCHOR).first.locator(
                ".recaptcha-checkbox-border"
            ).first
            await checkbox.wait_for(state="visible", timeout=5000)
            await checkbox.click()
            await self.pause(2000)
        except PlaywrightError as e:
            logger.warning(f"   ⚠️ Could not click reCAPTCHA checkbox: {e}")

        try:
            site_key = extract_site_key(await anchor.get_attribute("src", timeout=5000))
        except PlaywrightError:
            site_key = None
        if not site_key:
            raise EntryError("CAPTCHA site-key missing")

        if not self.config.captcha.api_key:
            raise EntryError("CAPTCHA API key missing")

        if self.captcha_solver is None:
            settings = self.config.captcha
            self.captcha_solver = CaptchaSolver(
                settings.api_key,
                api_base=settings.api_base,
                poll_interval=settings.poll_interval,
                timeout=settings.timeout,
            )

        try:
            token = await self.captcha_solver.solve_recaptcha(site_key, page.url)
        except CaptchaError as e:
            raise EntryError(f"CAPTCHA solving failed: {e}") from e

        await page.evaluate(INJECT_TOKEN_SCRIPT, token)
        logger.info("✅ CAPTCHA token obtained and injected")

    async def submit_entry(self):
        page = self.page
        submit = page.locator('button:has-text("Submit Entry")').first
        if not await self.is_visible(submit, 5000):
            raise EntryError("Submit button not found")

        await submit.click(force=True)
        await self.pause(3000)

        confirm = page.locator('a.c-btn:has-text("Confirm")').first
        confirm_visible = await self.is_visible(confirm, 5000)
        if not confirm_visible:
            modal = page.locator('app-entry-review, [role="dialog"]').first
            if await self.is_visible(modal, 2000):
                confirm = modal.locator("a.c-btn").last
                confirm_visible = await self.is_visible(confirm, 1000)

        if confirm_visible:
            logger.info("✅ Confirmation modal found, confirming")
            await confirm.click(force=True)
            await self.pause(3000)
        else:
            logger.info("ℹ️  No confirmation modal found (may have auto-submitted)")
