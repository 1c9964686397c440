import asyncio
import json
import logging
import time
from typing import Optional

import requests

from config import Settings, load_settings
from errors import ApiError
from sync import ProfileSyncService
from utils import load_users

logger = logging.getLogger(__name__)


class RateLimitedClient:
    """Issues Codeforces API calls one at a time, at least ``min_interval``
    seconds apart measured from the start of each request.

    Callers that arrive early wait for their slot instead of being rejected.
    The lock is held for the full request, so a client never has more than
    one request in flight even when many syncs share it. The lock is
    recreated for each event loop the client is used from; the last-request
    time carries over, so spacing holds across consecutive asyncio.run calls.
    """

    def __init__(self, base_url: str = "https://codeforces.com/api", min_interval: float = 1.0,
                 timeout: float = 15, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.min_interval = min_interval
        self.timeout = timeout
        self.session = session or requests.Session()
        self._lock = None
        self._lock_loop = None
        self._last_request = None

    @classmethod
    def from_settings(cls, settings: Settings, session: Optional[requests.Session] = None) -> "RateLimitedClient":
        return cls(settings.api_base, settings.min_interval, settings.request_timeout, session)

    def _gate(self) -> asyncio.Lock:
        loop = asyncio.get_running_loop()
        if self._lock_loop is not loop:
            self._lock = asyncio.Lock()
            self._lock_loop = loop
        return self._lock

    async def call(self, endpoint: str, params: Optional[dict] = None):
        async with self._gate():
            if self._last_request is not None:
                wait = self.min_interval - (time.monotonic() - self._last_request)
                if wait > 0:
                    await asyncio.sleep(wait)
            self._last_request = time.monotonic()
            return await asyncio.to_thread(self._request, endpoint, params)

    def _request(self, endpoint: str, params: Optional[dict]):
        url = f"{self.base_url}/{endpoint}"
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning("Request to %s failed: %s", endpoint, e)
            raise ApiError(f"Network error: {e}", endpoint) from e

        try:
            data = response.json()
        except ValueError as e:
            logger.warning("Malformed response from %s (HTTP %s)", endpoint, response.status_code)
            raise ApiError("Malformed response body", endpoint) from e

        if not isinstance(data, dict):
            raise ApiError("Malformed response body", endpoint)
        if data.get("status") != "OK":
            logger.warning("API Error from %s: %s", endpoint, data)
            raise ApiError(data.get("comment") or "API request failed", endpoint)
        if "result" not in data:
            raise ApiError("Response has no result", endpoint)
        return data["result"]


class CodeforcesAPI:
    def __init__(self, client: RateLimitedClient, submissions_count: int = 10000):
        self.client = client
        self.submissions_count = submissions_count

    async def user_info(self, handle: str):
        return await self.client.call("user.info", {"handles": handle})

    async def user_status(self, handle: str, from_index: int = 1, count: Optional[int] = None):
        if count is None:
            count = self.submissions_count
        return await self.client.call("user.status", {"handle": handle, "from": from_index, "count": count})

    async def user_rating(self, handle: str):
        return await self.client.call("user.rating", {"handle": handle})

    async def contest_list(self):
        return await self.client.call("contest.list")


async def collect(handles, settings: Settings):
    api = CodeforcesAPI(RateLimitedClient.from_settings(settings), settings.submissions_count)
    service = ProfileSyncService(api, settings)
    results = await service.sync_many(handles)

    profiles = []
    for handle in handles:
        outcome = results[handle]
        if isinstance(outcome, Exception):
            logger.error("Skipping %s: %s", handle, outcome)
            continue
        logger.info("Found %d solved problems and %d rated contests for %s",
                    outcome.solved_count, len(outcome.rating_history), handle)
        profiles.append(outcome.model_dump(mode="json"))
    return profiles


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    settings = load_settings()
    _, handles = load_users(settings.users_file)
    logger.info("Fetching data for %d handles", len(handles))
    profiles = asyncio.run(collect(handles, settings))
    with open(settings.output_file, "w") as f:
        json.dump(profiles, f, indent=4)
    logger.info("Wrote %d profiles to %s", len(profiles), settings.output_file)
