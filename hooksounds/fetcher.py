"""HTTP client used to pull quote audio from its remote source."""

# pylint: disable=line-too-long

import asyncio

from aiohttp import ClientSession, ClientTimeout, client_exceptions

from hooksounds.errors import FetchError
from hooksounds.utils import FETCH_TIMEOUT, dbg, get_random_user_agent


def default_timeout(total: float = FETCH_TIMEOUT) -> ClientTimeout:
    """Finite timeouts so a stalled source never hangs a sync pass."""
    return ClientTimeout(total=total, connect=min(total, 15), sock_read=total)


class SoundClient:
    """Client wrapper that fetches raw audio bytes for a source URL."""

    def __init__(self, session: ClientSession, timeout: ClientTimeout | None = None) -> None:
        self.session = session
        self.timeout = timeout or default_timeout()

    async def fetch(self, url: str) -> bytes:
        """
        Fetch the raw bytes behind `url`.

        Args:
            url (str): Absolute source URL.

        Returns:
            bytes: The response body.

        Raises:
            FetchError: On transport failure, timeout, or a non-2xx status.
        """
        headers = {
            "User-Agent": get_random_user_agent(),
            "Accept": "audio/*,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.7",
        }
        try:
            async with self.session.get(
                url, headers=headers, timeout=self.timeout, allow_redirects=True
            ) as response:
                dbg(f"GET {url} -> {response.status} {response.headers.get('Content-Type', '')}")
                if response.status < 200 or response.status >= 300:
                    raise FetchError(
                        f"Fetch failed with status {response.status}", status=response.status
                    )
                return await response.read()
        except client_exceptions.InvalidURL as e:
            raise FetchError(f"Invalid URL: {e}") from e
        except (asyncio.TimeoutError, client_exceptions.ServerTimeoutError) as e:
            raise FetchError(f"Timeout fetching {url}") from e
        except client_exceptions.ClientError as e:
            raise FetchError(f"Client error: {e}") from e

