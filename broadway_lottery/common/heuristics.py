"""
Text and attribute heuristics shared by the lottery drivers.

None of the lottery sites expose a structured response, so every outcome is
decided by matching fixed phrases against page text. Keeping the phrase lists
here lets them be tested without a browser.
"""
import re
from dataclasses import dataclass
from typing import Optional, Tuple
from urllib.parse import urlparse, parse_qs

from dateutil import parser as date_parser

from .models import LotteryResult


CLOSED_PHRASES = (
    "no drawings available",
    "no lotteries available",
    "lottery closed",
    "check back later",
    "we're sorry! no drawings are available at this time",
    "no drawings are available at this time",
    "please check back at midnight for more drawings",
    "lottery is closed",
    "lottery has closed",
    "no longer accepting entries",
    "entries are closed",
)

CONFIRMATION_PHRASES = (
    "thank you for entering",
    "your entry has been received",
    "you're entered",
    "you are entered",
    "you have been entered",
    "check your email to confirm",
)

SUCCESS_TEXT_PATTERN = re.compile(
    r"you're entered|you are entered|you have been entered"
    r"|thank you for (your )?entr(y|ies|ering)|entry (has been )?(received|submitted)",
    re.I,
)

STATIC_ASSET_PATTERN = re.compile(
    r"\.(css|js|png|jpg|jpeg|gif|svg|woff|woff2|ttf|ico)$", re.I
)
SUBMISSION_METHODS = ("POST", "PUT", "PATCH")

TIME_PATTERN = re.compile(r"(\d{1,2}):(\d{2})\s*(AM|PM)", re.I)
EVENT_ID_PATTERN = re.compile(r"enter_event\((\d+)\)")
EVENING_HOUR = 18


def _contains_any(text: str, phrases) -> bool:
    lower = (text or "").lower()
    return any(phrase in lower for phrase in phrases)


def is_closed_text(text: str) -> bool:
    """True if the page says no drawings are currently open"""
    return _contains_any(text, CLOSED_PHRASES)


def is_confirmation_text(text: str) -> bool:
    """True if the page is a post-submission confirmation interstitial"""
    return _contains_any(text, CONFIRMATION_PHRASES)


def is_static_asset(url: str) -> bool:
    path = urlparse(url).path or url
    return bool(STATIC_ASSET_PATTERN.search(path))


def is_form_submission(method: str, status: int, url: str) -> bool:
    """A write request that came back 2xx/3xx and is not a static asset"""
    return (
        method.upper() in SUBMISSION_METHODS
        and 200 <= status < 400
        and not is_static_asset(url)
    )


@dataclass
class SubmissionSignals:
    """What was observed after clicking a lottery form's submit control"""
    response_status: Optional[int] = None
    url_changed: bool = False
    success_visible: bool = False
    confirmation_page: bool = False
    error_text: Optional[str] = None


def classify_submission(signals: SubmissionSignals) -> LotteryResult:
    """
    Decide whether a Broadway Direct form submission went through.

    A confirmation interstitial or a URL change counts as success. On an
    unchanged page a visible error element is a failure carrying the scraped
    error text, even if a success-looking element is also showing.
    """
    responded = (
        signals.response_status is not None and 200 <= signals.response_status < 400
    )

    if signals.confirmation_page:
        return LotteryResult.submitted("Entry confirmed")
    # an error message on the same page outranks any success-looking element
    if signals.error_text and not signals.url_changed:
        return LotteryResult.failed(signals.error_text.strip())
    if signals.url_changed or signals.success_visible:
        detail = f" (HTTP {signals.response_status})" if responded else ""
        return LotteryResult.submitted(f"Entry submitted{detail}")

    if responded:
        return LotteryResult.failed(
            f"Form posted (HTTP {signals.response_status}) but no success indicator found"
        )
    return LotteryResult.failed("No clear success indicator found after submission")


def classify_confirmation_text(text: str) -> Tuple[bool, str]:
    """Classify Lucky Seat's page after Submit Entry / Confirm"""
    lower = (text or "").lower()
    if any(p in lower for p in ("success", "submitted", "good luck", "entered")):
        return True, "Successfully entered lottery"
    if any(p in lower for p in ("error", "failed", "sorry")):
        return False, "Error occurred during submission"
    return True, "Submission completed (status unclear)"


def classify_login_text(text: str, url: str) -> Tuple[bool, str]:
    """Classify Lucky Seat's page after the login button is clicked"""
    lower = (text or "").lower()
    error_phrases = ("invalid", "incorrect", "error", "wrong password", "wrong email")
    if any(p in lower for p in error_phrases) or "/login" in url:
        return False, "Login failed - invalid credentials or error"
    return True, "Logged in"


def is_evening_show(time_str: str) -> bool:
    """Evening performances start at 6:00 PM or later"""
    match = TIME_PATTERN.search(time_str or "")
    if not match:
        return False

    hour = int(match.group(1))
    period = match.group(3).upper()

    if period == "PM" and hour != 12:
        hour += 12
    elif period == "AM" and hour == 12:
        hour = 0

    return hour >= EVENING_HOUR


def is_weekend(date_str: str) -> bool:
    """Parse strings like 'Saturday, November 29, 2025' and test for Sat/Sun"""
    try:
        parsed = date_parser.parse((date_str or "").strip(), fuzzy=True)
    except (ValueError, OverflowError):
        return False
    return parsed.weekday() >= 5


def should_select_performance(date_str: str, time_str: str) -> bool:
    return is_weekend(date_str) or is_evening_show(time_str)


def extract_site_key(iframe_src: Optional[str]) -> Optional[str]:
    """Pull the reCAPTCHA site key (the k= parameter) out of an anchor iframe URL"""
    if not iframe_src:
        return None
    values = parse_qs(urlparse(iframe_src).query).get("k")
    if values and values[0]:
        return values[0]
    return None


def extract_event_id(onclick: Optional[str]) -> Optional[str]:
    if not onclick:
        return None
    match = EVENT_ID_PATTERN.search(onclick)
    return match.group(1) if match else None


def titles_match(title: str, show_name: str) -> bool:
    title = (title or "").strip().upper()
    name = (show_name or "").strip().upper()
    if not title or not name:
        return False
    return title == name or name in title or title in name
