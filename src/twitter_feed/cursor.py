"""Cursors for navigating paginated Twitter feeds.

A cursor knows how to request the page at its current position and how to
move to an older position. Positions are opaque tokens taken from a page's
``min_position``; an empty position means the start (newest end) of the feed.
"""

import enum
import logging
from typing import Protocol
from urllib.parse import quote

from .client import TwitterHTTP
from .models import FeedPage
from .page import extract_page

logger = logging.getLogger(__name__)

TWITTER_URL = "https://twitter.com"
JSON_ACCEPT = "application/json,text/javascript,*/*;q=0.01"


class FeedFilter(enum.Enum):
    REGULAR = "timeline"  # all tweets
    MEDIA = "media_timeline"  # only image/video/card tweets


class FeedCursor(Protocol):
    """Anything TwitterSession can paginate with."""

    position: str

    def retrieve_page(self) -> FeedPage: ...

    def seek(self, position: str) -> bool: ...


def _pagination_params(position: str) -> dict[str, str]:
    params = {"include_available_features": "1", "include_entities": "1"}
    if position:
        params["max_position"] = position
    params["reset_error_state"] = "false"
    return params


def _fetch_page(
    client: TwitterHTTP,
    url: str,
    params: dict[str, str],
    headers: dict[str, str],
) -> FeedPage:
    request = client.new_request(url, params=params, headers=headers)
    page = extract_page(client.json_request(request))
    logger.info(
        "Fetched %s (max_position=%r): %d tweets",
        url,
        params.get("max_position", ""),
        len(page.tweets),
    )
    return page


class GenericFeedCursor:
    """Cursor over a single user's timeline or media timeline.

    Twitter caps how deep these feeds can be paginated. Use SearchFeedCursor
    with a sliding date range when every tweet matters.
    """

    def __init__(
        self,
        username: str,
        feed_filter: FeedFilter = FeedFilter.REGULAR,
        resume_at: str = "",
        client: TwitterHTTP | None = None,
    ):
        self.username = username
        self.feed_filter = feed_filter
        self.position = resume_at
        self._client = client or TwitterHTTP()

    def retrieve_page(self) -> FeedPage:
        """Download the page at the current position. Does not advance."""
        url = f"{TWITTER_URL}/i/profiles/show/{self.username}/{self.feed_filter.value}"
        if self.feed_filter is FeedFilter.MEDIA:
            referer = f"{TWITTER_URL}/{self.username}/media"
        else:
            referer = f"{TWITTER_URL}/{self.username}"
        headers = {
            "Referer": referer,
            "Accept": JSON_ACCEPT,
            "X-Requested-With": "XMLHttpRequest",
        }
        return _fetch_page(self._client, url, _pagination_params(self.position), headers)

    def seek(self, position: str) -> bool:
        """Move to ``position``. An empty position is refused with False."""
        if not position:
            return False
        self.position = position
        return True


class SearchFeedCursor:
    """Cursor over the results of a search query."""

    def __init__(
        self,
        query: str,
        resume_at: str = "",
        client: TwitterHTTP | None = None,
    ):
        self.query = query
        self.position = resume_at
        self._client = client or TwitterHTTP()

    def retrieve_page(self) -> FeedPage:
        """Download the page at the current position. Does not advance."""
        params = {"vertical": "default", "q": self.query}
        params.update(_pagination_params(self.position))
        headers = {
            "Referer": f"{TWITTER_URL}/search?q={quote(self.query)}",
            "Accept": JSON_ACCEPT,
        }
        return _fetch_page(self._client, f"{TWITTER_URL}/i/search/timeline", params, headers)

    def seek(self, position: str) -> bool:
        """Move to ``position``. An empty position is refused with False."""
        if not position:
            return False
        self.position = position
        return True
