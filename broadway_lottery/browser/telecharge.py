"""
Telecharge lottery driver

rush.telecharge.com embeds the real lottery app (SocialToaster) in an iframe.
Login, the show listing and entry all happen inside that frame; entry is done
by the page's own enter_event(<id>) JavaScript function.
"""
import logging
from typing import List, Optional, Tuple

from playwright.async_api import Frame, Locator, Error as PlaywrightError

from .base import LotteryBot, EntryError
from .urls import WebPages
from ..common.heuristics import extract_event_id, is_closed_text, titles_match
from ..common.models import LoginCredentials, LotteryResult, ShowConfig, aggregate_results
from ..common.shows import partition_enabled

logger = logging.getLogger(__name__)

IFRAME_SELECTOR = "iframe#st-window"

SIGN_IN_SELECTORS = [
    'a:has-text("Sign In")',
    "a#st_sign_in",
    'a[onclick*="st_campaign_login"]',
    'a:has-text("SIGN IN")',
]

LOGIN_MODAL_SELECTORS = [
    "#st_login_container",
    "#st_campaign_login_email",
    "input#login_email",
]

LOGIN_FAILURE_PHRASES = ("invalid", "incorrect", "error", "try again")
ENTRY_SUCCESS_PHRASES = ("lottery entered", "entry received", "successfully entered")
ENTRY_ERROR_PHRASES = ("error", "sorry")

ENTER_EVENT_SCRIPT = """
({ eventId, numTickets }) => {
    const ticketSelect = document.getElementById(`tickets_${eventId}`);
    if (ticketSelect) {
        ticketSelect.value = numTickets;
    }
    if (typeof window.enter_event === 'function') {
        window.enter_event(eventId);
        return true;
    }
    return false;
}
"""


class TelechargeBot(LotteryBot):
    """Logs in through the Telecharge iframe and enters each configured show"""

    site_name = "Telecharge"

    def __init__(self, config, login: Optional[LoginCredentials] = None):
        super().__init__(config)
        self.login_credentials = login or config.require_login("telecharge")
        self.frame: Optional[Frame] = None

    async def enter_lotteries(self, shows: List[ShowConfig]) -> LotteryResult:
        frame = await self.login()
        if frame is None:
            return LotteryResult.failed("Failed to login to Telecharge")
        self.frame = frame

        await self._settle(frame)
        if not await self.navigate_to_lottery_page(frame):
            return LotteryResult.failed("Could not navigate to lottery selection page")

        try:
            await frame.wait_for_selector(".lottery_show", timeout=30000)
        except PlaywrightError:
            logger.warning("⚠️  No .lottery_show elements appeared")
        await self.pause(2000)

        if is_closed_text(await self.body_text(frame)):
            logger.info("ℹ️  No lotteries available at this time")
            return LotteryResult.closed()

        enabled, disabled = partition_enabled(shows, self.user.number_of_tickets)
        if not enabled:
            logger.info("ℹ️  No shows to enter (all shows have num_tickets: 0)")
            return LotteryResult.submitted("No shows to enter (all disabled)")

        logger.info(
            f"🎯 Entering lotteries for {len(enabled)} show(s) ({len(disabled)} disabled)"
        )

        for show in enabled:
            tickets = str(show.tickets_for(self.user.number_of_tickets))
            try:
                success, message = await self.enter_show(frame, show.name, tickets)
            except EntryError as e:
                success, message = False, str(e)
            except Exception as e:
                logger.exception(f"Error entering lottery for {show.name}")
                success, message = False, f"Error: {e}"
            self.record(show.name, success, message)
            await self.pause(self.pacing.between_shows_ms)
            await self.random_break()

        return aggregate_results(self.results)

    async def _settle(self, frame: Frame):
        try:
            await frame.wait_for_load_state("networkidle", timeout=30000)
        except PlaywrightError:
            await frame.wait_for_load_state("domcontentloaded", timeout=10000)
        await self.pause(2000)

    # ========================================
    # Login
    # ========================================

    async def login(self) -> Optional[Frame]:
        """Sign in inside the embedded app; returns its frame on success"""
        page = self.page
        creds = self.login_credentials
        logger.info("🔐 Logging in to Telecharge...")

        try:
            await page.goto(WebPages.telecharge_home(), wait_until="networkidle", timeout=60000)
            await self.dismiss_cookie_banner(page)

            await page.wait_for_selector(IFRAME_SELECTOR, timeout=30000)
            await self.pause(2000)
            handle = await page.locator(IFRAME_SELECTOR).element_handle()
            frame = await handle.content_frame() if handle else None
            if frame is None:
                logger.warning("⚠️  Could not access iframe content")
                return None

            await self._settle(frame)

            sign_in = await self.first_visible(frame, SIGN_IN_SELECTORS, timeout=5000)
            if sign_in is None:
                logger.warning("⚠️  Could not find Sign In link in iframe")
                return None
            await sign_in.click()
            await self.pause(2000)

            if await self.first_visible(frame, LOGIN_MODAL_SELECTORS, timeout=5000) is None:
                logger.warning("⚠️  Login modal did not appear")
                return None
            await self.pause(1000)

            for selector, value, label in (
                ("input#login_email", creds.email, "email"),
                ("input#password", creds.password, "password"),
            ):
                field = frame.locator(selector).first
                if not await self.is_visible(field, 5000):
                    logger.warning(f"⚠️  Could not find {label} field in login modal")
                    return None
                await field.fill(value)

            submit = frame.locator("#get-started-button").first
            if not await self.is_visible(submit, 5000):
                logger.warning("⚠️  Could not find submit button in login modal")
                return None
            await submit.click()

            await self.pause(3000)
            try:
                await frame.wait_for_load_state("networkidle", timeout=30000)
            except PlaywrightError:
                pass

            text = await self.body_text(frame)
            wrong_password = "password" in text and "wrong" in text
            if wrong_password or any(p in text for p in LOGIN_FAILURE_PHRASES):
                logger.error("❌ Login failed - invalid credentials or error")
                return None

            if await self.is_visible(frame.locator("#st_login_container").first, 2000):
                logger.warning("⚠️  Login modal still open - login may have failed")
                return None

            logger.info("✅ Successfully logged in to Telecharge")
            return frame
        except PlaywrightError as e:
            logger.error(f"❌ Error during login: {e}")
            return None

    async def navigate_to_lottery_page(self, frame: Frame) -> bool:
        if "lottery_select" in frame.url:
            logger.info("✅ Already on lottery selection page")
            return True

        try:
            await frame.goto(
                WebPages.telecharge_lottery_select(),
                wait_until="networkidle",
                timeout=30000,
            )
        except PlaywrightError as e:
            logger.warning(f"⚠️  Error navigating to lottery page: {e}")
            return False

        await self.pause(2000)
        logger.info("✅ Navigated to lottery selection page")
        return True

    # ========================================
    # Per-show entry
    # ========================================

    async def find_show(self, frame: Frame, show_name: str) -> Tuple[str, Locator]:
        """Locate a show's card and its enter_event id"""
        for title in await frame.locator(".lottery_show_title").all():
            if not titles_match(await self.text_of(title), show_name):
                continue

            card = title.locator(
                "xpath=ancestor::div[contains(@class, 'lottery_show')][1]"
            ).first
            try:
                onclick = await card.locator('a[onclick*="enter_event"]').first.get_attribute(
                    "onclick", timeout=2000
                )
            except PlaywrightError:
                onclick = None

            event_id = extract_event_id(onclick)
            if event_id:
                logger.info(f"✅ Found show \"{show_name}\" with event ID: {event_id}")
                return event_id, card

        raise EntryError(f"Could not find lottery entry for show: {show_name}")

    async def enter_show(self, frame: Frame, show_name: str, num_tickets: str) -> Tuple[bool, str]:
        logger.info(f"🎭 Looking for lottery entry for: {show_name}")
        event_id, card = await self.find_show(frame, show_name)

        entered_marker = card.locator(f"[class~='{event_id}-entered']").first
        if await self.is_visible(entered_marker, 1000):
            return True, f"Already entered lottery for: {show_name}"

        ticket_select = card.locator(f"[id='tickets_{event_id}']").first
        if await self.is_visible(ticket_select, 2000):
            await ticket_select.select_option(num_tickets)
            logger.info(f"✅ Set tickets to {num_tickets} for {show_name}")

        enter_button = card.locator('a[onclick*="enter_event"]').first
        if await self.is_visible(enter_button, 2000):
            await enter_button.click()
            logger.info(f"✅ Clicked Enter button for {show_name}")
        else:
            called = await frame.evaluate(
                ENTER_EVENT_SCRIPT, {"eventId": event_id, "numTickets": num_tickets}
            )
            if not called:
                raise EntryError(f"enter_event is not available for: {show_name}")
            logger.info(f"✅ Called enter_event({event_id}) for {show_name}")

        await self.pause(2000)

        entered = await self.is_visible(entered_marker, 3000)
        text = await self.body_text(frame)
        if entered or any(p in text for p in ENTRY_SUCCESS_PHRASES):
            return True, f"Successfully entered lottery for: {show_name}"
        if any(p in text for p in ENTRY_ERROR_PHRASES):
            return False, f"Error entering lottery for: {show_name}"
        return True, f"Lottery entry attempted for: {show_name} (confirmation unclear)"
