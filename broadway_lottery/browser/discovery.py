"""
Discovery of Broadway Direct lotteries from bwayrush.com
"""
import logging
from typing import List

from playwright.async_api import Error as PlaywrightError

from .base import BrowserBot
from .urls import WebPages, normalize_broadway_direct_url
from ..common.models import ShowConfig

logger = logging.getLogger(__name__)

BROADWAY_DIRECT_HOST = "lottery.broadwaydirect.com"


class ShowDiscoveryBot(BrowserBot):
    """Scrapes the bwayrush.com listing for shows with a Broadway Direct lottery"""

    async def discover(self) -> List[ShowConfig]:
        page = self.page
        logger.info("🌐 Loading bwayrush.com...")
        await page.goto(WebPages.bwayrush(), wait_until="networkidle", timeout=60000)
        await page.wait_for_selector(".table-row", timeout=30000)
        await self.pause(2000)

        shows: List[ShowConfig] = []
        for row in await page.locator(".table-row.playing").all():
            try:
                show = await self._parse_row(row)
            except PlaywrightError as e:
                logger.debug(f"Skipping row: {e}")
                continue
            if show and all(s.name != show.name for s in shows):
                logger.info(f"✅ Found: {show.name} -> {show.url}")
                shows.append(show)

        return shows

    async def _parse_row(self, row):
        title = row.locator(".show-title a").first
        name = await self.text_of(title)
        if not name or not await title.get_attribute("href"):
            return None

        for link in await row.locator(".column-lottery a").all():
            href = await link.get_attribute("href")
            if href and BROADWAY_DIRECT_HOST in href:
                return ShowConfig(
                    name=name,
                    url=normalize_broadway_direct_url(href),
                    enabled=True,
                )
        return None
