"""HTTP transport shared by feed cursors and the media downloader.

One TwitterHTTP wraps one httpx.Client, so it can be shared by any number of
cursors and sessions. The user agent can be overridden with the
TWITTER_FEED_USER_AGENT environment variable or in the config file.

Twitter ignores Accept-Encoding and may answer with a zlib-framed body
labelled "deflate". httpx decodes that transparently; a corrupt stream is
reported as a URLError.
"""

import logging
import os

import httpx

from .errors import URLError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0

DEFAULT_USER_AGENT = os.environ.get(
    "TWITTER_FEED_USER_AGENT",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:67.0) "
    "Gecko/20100101 Firefox/67.0",
)


class TwitterHTTP:
    """Thin wrapper around httpx.Client that maps failures to URLError."""

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        user_agent: str | None = None,
    ):
        self._client = httpx.Client(
            headers={
                "Accept": "text/html,application/xhtml+xml,application/xml,*/*;q=0.8",
                "Accept-Language": "en-US,en;q=0.9",
                "User-Agent": user_agent or DEFAULT_USER_AGENT,
            },
            timeout=timeout,
        )

    def new_request(
        self,
        url: str,
        params: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Request:
        """Build a GET request carrying the default headers."""
        try:
            return self._client.build_request("GET", url, params=params, headers=headers)
        except (httpx.InvalidURL, ValueError) as e:
            raise URLError("Unable to create request object", url, e) from e

    def http_request(self, request: httpx.Request, stream: bool = False) -> httpx.Response:
        """Send a request and return the successful (200) response.

        With ``stream=True`` the body is left unread and the caller must
        close the response.
        """
        url = str(request.url)
        logger.debug("GET %s", url)
        try:
            response = self._client.send(request, stream=True)
        except httpx.DecodingError as e:
            raise URLError("Corrupt ZLIB stream", url, e) from e
        except httpx.RequestError as e:
            raise URLError("Failed to execute HTTP request", url, e) from e

        if response.status_code != httpx.codes.OK:
            response.close()
            raise URLError(
                f"HTTP error {response.status_code} {response.reason_phrase}",
                url,
                status_code=response.status_code,
            )

        if not stream:
            try:
                response.read()
            except httpx.DecodingError as e:
                raise URLError("Corrupt ZLIB stream", url, e) from e
            except httpx.RequestError as e:
                raise URLError("Failed to read HTTP response", url, e) from e
            finally:
                response.close()
        return response

    def json_request(self, request: httpx.Request) -> object:
        """Send a request and decode its body as JSON."""
        response = self.http_request(request)
        try:
            return response.json()
        except ValueError as e:
            raise URLError("Failed to decode JSON response", str(request.url), e) from e

    def close(self) -> None:
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()
