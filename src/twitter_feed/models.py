"""Data models for scraped feed data."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import ClassVar


@dataclass(frozen=True)
class EmbeddedGallery:
    """One or more images embedded in a tweet."""

    type: ClassVar[str] = "EMBED_TYPE_IMAGE"

    image_urls: tuple[str, ...]


@dataclass(frozen=True)
class EmbeddedVideo:
    """A video embedded in a tweet."""

    type: ClassVar[str] = "EMBED_TYPE_VIDEO"

    video_url: str


@dataclass(frozen=True)
class EmbeddedCard:
    """A link preview card embedded in a tweet."""

    type: ClassVar[str] = "EMBED_TYPE_CARD"

    card_url: str


@dataclass(frozen=True)
class EmbeddedQuote:
    """A quoted tweet embedded in a tweet."""

    type: ClassVar[str] = "EMBED_TYPE_QUOTE"

    quote_url: str  # https://twitter.com/{username}/status/{tweet_id}


Embed = EmbeddedGallery | EmbeddedVideo | EmbeddedCard | EmbeddedQuote


@dataclass(frozen=True)
class Tweet:
    id: int  # unsigned 64-bit, parsed from data-item-id
    timestamp: datetime | None  # UTC, None when the page omits it
    text: str
    embed: Embed | None = None


@dataclass(frozen=True)
class FeedPage:
    """A single page of a paginated feed.

    ``min_position`` identifies the oldest tweet on the page and is used to
    request the next (older) page. An empty string means there are no
    further pages. A page whose position could not be resolved keeps its
    tweets and carries the error in ``position_error`` instead.
    """

    tweets: list[Tweet] = field(default_factory=list)
    min_position: str = ""
    position_error: Exception | None = field(default=None, compare=False, repr=False)

    def next_position(self) -> str:
        """Return ``min_position``, raising the error met while resolving it."""
        if self.position_error is not None:
            raise self.position_error
        return self.min_position


@dataclass(frozen=True)
class FeedIterResult:
    """A single item produced by TwitterSession.feed_iter().

    Exactly one of ``tweet`` and ``error`` is set.
    """

    tweet: Tweet | None = None
    error: Exception | None = None
