"""
Show list persistence and filtering

Each lottery site has its own showsToEnter JSON file: a plain array of
ShowConfig objects.
"""
import json
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from bs4 import BeautifulSoup
from pydantic import ValidationError

from .models import ShowConfig

logger = logging.getLogger(__name__)

def load_shows(path: str | Path) -> List[ShowConfig]:
    """Load a show list; a missing or malformed file yields an empty list"""
    path = Path(path)
    if not path.exists():
        return []

    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Error loading shows from {path}: {e}")
        return []

    if not isinstance(data, list):
        logger.error(f"{path} must contain a JSON array")
        return []

    shows = []
    for item in data:
        try:
            shows.append(ShowConfig(**item))
        except (TypeError, ValidationError) as e:
            logger.warning(f"Skipping invalid show entry {item!r}: {e}")
    return shows


def save_shows(path: str | Path, shows: Iterable[ShowConfig]):
    """Write a show list as an indented JSON array"""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = [show.to_json() for show in shows]
    with open(path, "w", encoding="utf-8") as f:
        f.write(json.dumps(payload, indent=2, ensure_ascii=False) + "\n")
    logger.info(f"Saved {len(payload)} show(s) to {path}")


def parse_filter(value: Optional[str]) -> List[str]:
    """Split a comma-separated SHOWS value into lower-case terms"""
    if not value:
        return []
    return [term.strip().lower() for term in value.split(",") if term.strip()]


def _matches(show: ShowConfig, term: str) -> bool:
    url = (show.url or "").lower()
    return term in show.name.lower() or (bool(url) and term in url)


def filter_shows(shows: List[ShowConfig], terms: List[str]) -> List[ShowConfig]:
    """Keep shows whose name or URL matches any term; no terms keeps everything"""
    if not terms:
        return list(shows)
    return [show for show in shows if any(_matches(show, term) for term in terms)]


def partition_enabled(
    shows: List[ShowConfig],
    default_tickets: int | str = 2,
) -> Tuple[List[ShowConfig], List[ShowConfig]]:
    enabled = [s for s in shows if s.is_enabled(default_tickets)]
    disabled = [s for s in shows if not s.is_enabled(default_tickets)]
    return enabled, disabled


def merge_discovered(
    discovered: List[ShowConfig],
    existing: List[ShowConfig],
) -> List[ShowConfig]:
    """Carry over the user's enabled choice for shows already in the list"""
    known: Dict[str, ShowConfig] = {show.name: show for show in existing}
    merged = []
    for show in discovered:
        previous = known.get(show.name)
        enabled = previous.enabled if previous and previous.enabled is not None else True
        merged.append(show.model_copy(update={"enabled": enabled}))
    return merged


def compare_show_names(
    listed: Iterable[str],
    configured: Iterable[str],
) -> Tuple[List[str], List[str]]:
    """Return (listed but not configured, configured but not listed)"""
    listed_set = set(listed)
    configured_set = set(configured)
    return sorted(listed_set - configured_set), sorted(configured_set - listed_set)


def extract_listing_titles(page_html: str) -> List[str]:
    """Pull show titles out of a saved Telecharge lottery_select page"""
    soup = BeautifulSoup(page_html, "html.parser")
    titles = {
        element.get_text(" ", strip=True)
        for element in soup.select(".lottery_show_title")
    }
    return sorted(t for t in titles if t)


def parse_ticket_answer(answer: str, current: int, maximum: int = 2) -> int:
    """Interpret a configure prompt reply; blank or out-of-range keeps current"""
    answer = answer.strip()
    if not answer:
        return current
    try:
        value = int(answer)
    except ValueError:
        return current
    if value < 0 or value > maximum:
        return current
    return value


def parse_enabled_answer(answer: str, current: bool) -> bool:
    """y/yes enables, n/no disables, anything else keeps current"""
    answer = answer.strip().lower()
    if answer in ("y", "yes"):
        return True
    if answer in ("n", "no"):
        return False
    return current
