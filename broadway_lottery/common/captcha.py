"""
reCAPTCHA solving through the 2Captcha task API
"""
import asyncio
import logging
import time
from typing import Optional

import httpx

logger = logging.getLogger(__name__)


class CaptchaError(Exception):
    """The solving service rejected the task or never produced a token"""


class CaptchaSolver:
    """
    Thin async client for 2Captcha's createTask/getTaskResult endpoints.

    Submits a RecaptchaV2TaskProxyless task for a site key and page URL, then
    polls until a gRecaptchaResponse token is ready.
    """

    def __init__(
        self,
        api_key: str,
        api_base: str = "https://api.2captcha.com",
        poll_interval: float = 5.0,
        timeout: float = 180.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        if not api_key:
            raise CaptchaError("CAPTCHA API key missing")
        self.api_key = api_key
        self.api_base = api_base.rstrip("/")
        self.poll_interval = poll_interval
        self.timeout = timeout
        self.client = client or httpx.AsyncClient(timeout=30)

    async def close(self):
        await self.client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.close()

    async def _post(self, endpoint: str, payload: dict) -> dict:
        try:
            response = await self.client.post(f"{self.api_base}/{endpoint}", json=payload)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPError as e:
            raise CaptchaError(f"{endpoint} request failed: {e}") from e
        except ValueError as e:
            raise CaptchaError(f"{endpoint} returned invalid JSON") from e

    async def create_task(self, site_key: str, page_url: str) -> str:
        data = await self._post("createTask", {
            "clientKey": self.api_key,
            "task": {
                "type": "RecaptchaV2TaskProxyless",
                "websiteURL": page_url,
                "websiteKey": site_key,
            },
        })
        if data.get("errorId", 0) != 0:
            raise CaptchaError(
                f"createTask error {data.get('errorCode')}: {data.get('errorDescription')}"
            )
        task_id = data.get("taskId")
        if not task_id:
            raise CaptchaError(f"No taskId in response: {data}")
        return str(task_id)

    async def get_result(self, task_id: str) -> Optional[str]:
        """Return the token when ready, None while the task is still processing"""
        data = await self._post("getTaskResult", {
            "clientKey": self.api_key,
            "taskId": task_id,
        })
        if data.get("errorId", 0) != 0:
            raise CaptchaError(
                f"getTaskResult error {data.get('errorCode')}: {data.get('errorDescription')}"
            )
        if data.get("status") != "ready":
            return None

        solution = data.get("solution") or {}
        token = solution.get("gRecaptchaResponse") or solution.get("token")
        if not token:
            raise CaptchaError(f"No token in solution: {data}")
        return token

    async def solve_recaptcha(self, site_key: str, page_url: str) -> str:
        logger.info(f"Submitting reCAPTCHA task (site key {site_key[:12]}...)")
        task_id = await self.create_task(site_key, page_url)
        logger.debug(f"2Captcha task {task_id} created")

        deadline = time.monotonic() + self.timeout
        while time.monotonic() < deadline:
            await asyncio.sleep(self.poll_interval)
            token = await self.get_result(task_id)
            if token:
                logger.info(f"reCAPTCHA solved ({len(token)} chars)")
                return token
            logger.debug(f"Task {task_id} still processing")

        raise CaptchaError(f"Timed out after {self.timeout:.0f}s waiting for task {task_id}")
