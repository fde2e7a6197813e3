"""
Broadway Direct lottery driver

Each show has its own lottery page listing one "Enter" link (or an in-page
"Enter Now" trigger) per open drawing. No login is needed; each entry is a
DOB/name/email form guarded by a passive reCAPTCHA.
"""
import asyncio
import logging
import re
import time
from typing import List, Optional
from urllib.parse import urljoin

from playwright.async_api import Page, Error as PlaywrightError

from .base import LotteryBot
from ..common.heuristics import (
    SubmissionSignals,
    SUCCESS_TEXT_PATTERN,
    classify_submission,
    is_closed_text,
    is_confirmation_text,
    is_form_submission,
)
from ..common.models import LotteryReason, LotteryResult, ShowConfig
from ..common.shows import partition_enabled

logger = logging.getLogger(__name__)

ENTER_LINK_NAME = re.compile(r"Enter", re.I)

ENTER_TRIGGER_SELECTORS = ", ".join([
    'button:has-text("Enter Now")',
    'a:has-text("Enter Now")',
    '[role="button"]:has-text("Enter Now")',
])

SUCCESS_SELECTOR = '[class*="success"]:not([class*="error"]), [class*="alert-success"]'
ERROR_SELECTOR = '[class*="error"], [class*="alert-danger"], [role="alert"]'
RECAPTCHA_SELECTOR = 'iframe[src*="recaptcha"], .g-recaptcha'

RECAPTCHA_TOKEN_SCRIPT = """
() => {
    const el = document.querySelector('#g-recaptcha-response');
    return el ? el.value : '';
}
"""

SUBMISSION_WAIT_MS = 30000


class BroadwayDirectBot(LotteryBot):
    """Enters every open drawing on a list of Broadway Direct show pages"""

    site_name = "Broadway Direct"

    async def enter_lotteries(self, shows: List[ShowConfig]) -> LotteryResult:
        outcomes = await self.enter_all(shows)
        if not outcomes:
            return LotteryResult.submitted("No shows enabled for entry")
        return self._summarize(outcomes)

    async def enter_all(self, shows: List[ShowConfig]) -> List[LotteryResult]:
        """One result per enabled show; disabled shows are never visited"""
        enabled, disabled = partition_enabled(shows, self.user.number_of_tickets)
        for show in disabled:
            logger.info(f"⊗ Skipping {show.name} (disabled)")

        outcomes = []
        for show in enabled:
            if not show.url:
                result = LotteryResult.failed("No lottery URL configured")
            else:
                logger.info(f"\n🎭 Starting lottery signup for: {show.name}")
                try:
                    result = await self.enter_show(
                        show.url, show.tickets_for(self.user.number_of_tickets)
                    )
                except Exception as e:
                    logger.warning(f"⚠️  {show.name} failed: {e}")
                    result = LotteryResult.error(e)

            self.record(show.name, result.success, result.message)
            outcomes.append(result)

        return outcomes

    def _summarize(self, outcomes: List[LotteryResult]) -> LotteryResult:
        total = len(outcomes)
        succeeded = sum(1 for r in outcomes if r.success)
        if succeeded:
            return LotteryResult.submitted(f"Entered {succeeded}/{total} show lotteries")

        quiet = (LotteryReason.CLOSED, LotteryReason.NO_ENTRIES)
        if all(r.reason in quiet for r in outcomes):
            return LotteryResult.closed(f"No open drawings for {total} show(s)")
        return LotteryResult.failed(f"Entered 0/{total} show lotteries")

    # ========================================
    # Single show
    # ========================================

    async def enter_show(self, url: str, tickets: Optional[int] = None) -> LotteryResult:
        """
        Enter every open drawing on one show's lottery page.

        Entry failures are downgraded to warnings; the show counts as a
        success if any single entry went through.
        """
        page = self.page
        await page.goto(url, wait_until="networkidle", timeout=self.config.browser.timeout_ms)

        hrefs = await self._collect_entry_links(page)
        trigger_count = 0 if hrefs else await self._count_entry_triggers(page)

        if not hrefs and not trigger_count:
            text = await self.body_text(page)
            if is_closed_text(text):
                logger.info("ℹ️  Lottery is closed")
                return LotteryResult.closed("Lottery is closed - no drawings available")
            logger.info("ℹ️  No entry links found")
            return LotteryResult(
                success=False,
                message="No entry links found on lottery page",
                reason=LotteryReason.NO_ENTRIES,
            )

        entries = [("link", href) for href in hrefs]
        entries += [("trigger", index) for index in range(trigger_count)]
        logger.info(f"Found {len(entries)} entry point(s)")

        outcomes = []
        for number, (kind, target) in enumerate(entries, start=1):
            form_page: Optional[Page] = None
            try:
                if kind == "link":
                    await page.goto(target, wait_until="networkidle", timeout=self.config.browser.timeout_ms)
                    form_page = page
                else:
                    form_page = await self._open_trigger(page, url, target)
                result = await self.submit_entry(form_page, tickets)
            except Exception as e:
                logger.warning(f"⚠️  Entry {number} failed: {e}")
                result = LotteryResult.failed(f"Entry {number} failed: {e}")
            finally:
                if form_page is not None and form_page is not page:
                    await form_page.close()

            outcomes.append(result)
            await self.random_break()

        succeeded = [r for r in outcomes if r.success]
        if succeeded:
            return LotteryResult.submitted(f"Submitted {len(succeeded)}/{len(outcomes)} entries")
        return LotteryResult.failed(outcomes[-1].message)

    async def _collect_entry_links(self, page: Page) -> List[str]:
        """Absolute hrefs of every link labelled 'Enter'"""
        hrefs = []
        try:
            links = await page.get_by_role("link", name=ENTER_LINK_NAME).all()
        except PlaywrightError:
            return hrefs

        for link in links:
            try:
                href = await link.get_attribute("href")
            except PlaywrightError:
                continue
            if not href or href.startswith("#") or href.lower().startswith("javascript"):
                continue
            absolute = urljoin(page.url, href)
            if absolute not in hrefs:
                hrefs.append(absolute)
        return hrefs

    async def _count_entry_triggers(self, page: Page) -> int:
        try:
            return await page.locator(ENTER_TRIGGER_SELECTORS).count()
        except PlaywrightError:
            return 0

    async def _open_trigger(self, page: Page, url: str, index: int) -> Page:
        """
        Click the index-th 'Enter Now' trigger.

        Returns the popup page if one opened, otherwise the same page (the
        form is then a modal or an in-place navigation).
        """
        if page.url != url:
            await page.goto(url, wait_until="networkidle", timeout=self.config.browser.timeout_ms)

        trigger = page.locator(ENTER_TRIGGER_SELECTORS).nth(index)
        popup_task = asyncio.ensure_future(page.wait_for_event("popup", timeout=5000))
        try:
            await self.click_with_fallback(trigger)
        except BaseException:
            popup_task.cancel()
            raise

        try:
            popup = await popup_task
        except PlaywrightError:
            return page

        await popup.wait_for_load_state("domcontentloaded")
        logger.info(f"Entry form opened in popup: {popup.url}")
        return popup

    # ========================================
    # Entry form
    # ========================================

    async def submit_entry(self, page: Page, tickets: Optional[int] = None) -> LotteryResult:
        await self.fill_form(page, tickets)
        await self.dismiss_cookie_banner(page)
        await self.wait_for_recaptcha(page)
        signals = await self.submit_and_watch(page)

        result = classify_submission(signals)
        if result.success:
            logger.info(f"✅ {result.message}")
        else:
            logger.warning(f"⚠️  Form submission may have failed: {result.message}")
        return result

    async def fill_form(self, page: Page, tickets: Optional[int] = None):
        user = self.user
        quantity = str(tickets) if tickets is not None else user.number_of_tickets
        first_name = page.get_by_label("First Name")
        await first_name.wait_for(timeout=30000)
        await first_name.fill(user.first_name)
        await page.get_by_label("Last Name").fill(user.last_name)
        await page.get_by_label("Qty of Tickets Requested").select_option(quantity)
        await page.get_by_label("Email").fill(user.email)

        await page.locator("#dlslot_dob_month").fill(user.date_of_birth.month)
        await page.locator("#dlslot_dob_day").fill(user.date_of_birth.day)
        await page.locator("#dlslot_dob_year").fill(user.date_of_birth.year)

        await page.get_by_label("Zip").fill(user.zip)
        await page.get_by_label("Country of Residence").select_option(
            label=user.country_of_residence
        )

        await page.locator("#dlslot_agree").check(force=True)

    async def wait_for_recaptcha(self, page: Page) -> bool:
        """
        Wait passively for a reCAPTCHA widget to clear.

        Returns False if it was still unresolved when the wait ran out.
        """
        widget = page.locator(RECAPTCHA_SELECTOR).first
        if not await self.is_visible(widget):
            return True

        logger.warning("🤖 reCAPTCHA present - waiting for it to clear")
        deadline = time.monotonic() + self.config.captcha.passive_wait_seconds
        while time.monotonic() < deadline:
            try:
                if await page.evaluate(RECAPTCHA_TOKEN_SCRIPT):
                    return True
            except PlaywrightError:
                pass
            if not await self.is_visible(widget):
                return True
            await self.pause(1000)

        logger.warning("⚠️  reCAPTCHA still unresolved, submitting anyway")
        return False

    async def submit_and_watch(self, page: Page) -> SubmissionSignals:
        """Click Enter and race the response, URL change and success signals"""
        form_url = page.url
        success_locator = page.locator(SUCCESS_SELECTOR).or_(
            page.get_by_text(SUCCESS_TEXT_PATTERN)
        ).first

        # listeners go up before the click so a fast response is not missed
        response_task = asyncio.ensure_future(self._wait_for_submission_response(page))
        url_task = asyncio.ensure_future(self._wait_for_url_change(page, form_url))
        try:
            await self.click_with_fallback(page.get_by_label("Enter"))
        except BaseException:
            response_task.cancel()
            url_task.cancel()
            raise

        # success markup only counts once the click has gone through
        success_task = asyncio.ensure_future(self.is_visible(success_locator, SUBMISSION_WAIT_MS))

        signals = SubmissionSignals()
        pending = {response_task, url_task, success_task}
        while pending:
            done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
            if response_task in done and response_task.result() is not None:
                signals.response_status = response_task.result()
                logger.info(f"📡 Form submission response: HTTP {signals.response_status}")
            if any(task in done and task.result() for task in (url_task, success_task)):
                break
        for task in pending:
            task.cancel()

        try:
            await page.wait_for_load_state("networkidle", timeout=10000)
        except PlaywrightError:
            pass
        await self.pause(2000)

        signals.url_changed = page.url != form_url
        signals.success_visible = (
            (success_task.done() and not success_task.cancelled() and success_task.result())
            or await self.is_visible(success_locator, 3000)
        )
        signals.confirmation_page = is_confirmation_text(await self.body_text(page))

        if not signals.url_changed:
            error_locator = page.locator(ERROR_SELECTOR).first
            if await self.is_visible(error_locator, 2000):
                signals.error_text = await self.text_of(error_locator) or "Unknown error"

        return signals

    async def _wait_for_submission_response(self, page: Page) -> Optional[int]:
        try:
            response = await page.wait_for_event(
                "response",
                predicate=lambda r: is_form_submission(r.request.method, r.status, r.url),
                timeout=SUBMISSION_WAIT_MS,
            )
        except PlaywrightError:
            return None
        return response.status

    async def _wait_for_url_change(self, page: Page, form_url: str) -> bool:
        try:
            await page.wait_for_url(lambda u: u != form_url, timeout=SUBMISSION_WAIT_MS)
            return True
        except PlaywrightError:
            return False
