"""Scrape Twitter timelines and search feeds as a deduplicated tweet stream."""

from .cursor import FeedFilter, GenericFeedCursor, SearchFeedCursor
from .errors import APICompatError, MediaDownloadError, TwitterFeedError, URLError
from .models import (
    EmbeddedCard,
    EmbeddedGallery,
    EmbeddedQuote,
    EmbeddedVideo,
    FeedIterResult,
    FeedPage,
    Tweet,
)
from .session import TwitterSession

__all__ = [
    "APICompatError",
    "EmbeddedCard",
    "EmbeddedGallery",
    "EmbeddedQuote",
    "EmbeddedVideo",
    "FeedFilter",
    "FeedIterResult",
    "FeedPage",
    "GenericFeedCursor",
    "MediaDownloadError",
    "SearchFeedCursor",
    "Tweet",
    "TwitterFeedError",
    "TwitterSession",
    "URLError",
]
