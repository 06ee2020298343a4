"""Extract tweets and pagination data from feed page payloads.

A feed page is a JSON object. The interesting keys are:
    items_html   - HTML fragment, one <li data-item-type="tweet"> per tweet
    min_position - ID of the oldest tweet on the page (may be null or absent)

Each tweet node may carry one embedded element. Embeds are classified in a
fixed order (gallery, card, quote, video) and the first match wins.
"""

import logging
import re
from datetime import datetime, timezone

from selectolax.parser import HTMLParser, Node

from .errors import APICompatError
from .models import (
    EmbeddedCard,
    EmbeddedGallery,
    EmbeddedQuote,
    Embed,
    FeedPage,
    Tweet,
)

logger = logging.getLogger(__name__)

TWEET_SELECTOR = 'li[data-item-type="tweet"]'
QUOTE_URL_PREFIX = "https://twitter.com"

MAX_TWEET_ID = 2**64 - 1

_UNSIGNED_RE = re.compile(r"[0-9]+")
_SIGNED_RE = re.compile(r"[+-]?[0-9]+")

# Decoded JSON: dict/list/str/int/float/bool/None
JSONValue = dict[str, "JSONValue"] | list["JSONValue"] | str | int | float | bool | None


def lookup_string(payload: dict[str, JSONValue], name: str) -> str:
    """Return payload[name], failing if the key is missing or not a string."""
    if name not in payload:
        raise APICompatError(f"Key '{name}' does not exist in JSON object")
    value = payload[name]
    if not isinstance(value, str):
        raise APICompatError(
            f"Can't convert '{name}' (type: {type(value).__name__}) to string"
        )
    return value


def extract_page(payload: JSONValue) -> FeedPage:
    """Build a FeedPage from a decoded JSON payload.

    A missing or malformed ``items_html`` raises APICompatError. A malformed
    ``min_position`` does not: the tweets are still returned and the error is
    kept on the page (see FeedPage.next_position()).
    """
    if not isinstance(payload, dict):
        raise APICompatError(
            f"Expected a JSON object for feed page, got {type(payload).__name__}"
        )
    items_html = lookup_string(payload, "items_html")
    tweets = extract_tweets(items_html)
    try:
        min_position = _resolve_min_position(payload, items_html)
    except APICompatError as e:
        # Raised by FeedPage.next_position() once the next page is needed
        logger.debug("Unable to resolve min_position: %s", e)
        return FeedPage(tweets=tweets, position_error=e)
    return FeedPage(tweets=tweets, min_position=min_position)


def _resolve_min_position(payload: dict[str, JSONValue], items_html: str) -> str:
    if "min_position" not in payload:
        logger.debug("No 'min_position' attribute is present, trying to extract manually")
        min_position = extract_min_position(items_html)
        if min_position:
            logger.debug("Successfully extracted 'min_position' (= '%s')", min_position)
        else:
            logger.debug("Couldn't extract min_position")
        return min_position
    if payload["min_position"] is None:
        return ""
    return lookup_string(payload, "min_position")


def extract_min_position(items_html: str) -> str:
    """Return the ID of the last tweet node in the fragment, or ""."""
    nodes = HTMLParser(items_html).css(TWEET_SELECTOR)
    if not nodes:
        return ""
    last = nodes[-1]
    if "data-item-id" not in last.attributes:
        raise APICompatError(
            "Can't extract tweet ID, because HTML attribute data-item-id does not exist"
        )
    return last.attributes["data-item-id"] or ""


def extract_tweets(items_html: str) -> list[Tweet]:
    """Extract tweets from a page fragment in document order.

    Extraction stops at the first malformed tweet node; the tweets found
    before it are returned and the rest of the page is dropped.
    """
    tweets: list[Tweet] = []
    for node in HTMLParser(items_html).css(TWEET_SELECTOR):
        try:
            tweets.append(extract_tweet(node))
        except APICompatError as e:
            logger.debug(
                "Stopping page extraction after %d tweets: %s (tweet %s)",
                len(tweets),
                e,
                e.tweet_id,
            )
            break
    return tweets


def extract_tweet(node: Node) -> Tweet:
    """Extract a tweet from its top-level <li> node."""
    tweet_id = _extract_tweet_id(node)

    timestamp = None
    date_nodes = node.css("[data-time]")
    if len(date_nodes) > 1:
        raise APICompatError(
            f"Expected at most one node with tweet date, got {len(date_nodes)} instead",
            tweet_id,
        )
    if date_nodes:
        timestamp = _parse_unix_time(date_nodes[0].attributes.get("data-time"), tweet_id)

    text_nodes = node.css("p.tweet-text")
    if not text_nodes:
        raise APICompatError("Tweet text not found", tweet_id)
    if len(text_nodes) > 1:
        raise APICompatError(
            f"Expected a single node containing tweet text, got {len(text_nodes)} instead",
            tweet_id,
        )
    text = text_nodes[0].text(deep=True)

    try:
        embed = extract_embed(node)
    except APICompatError as e:
        # Embed extractors don't know which tweet they are looking at
        e.tweet_id = tweet_id
        raise

    return Tweet(id=tweet_id, timestamp=timestamp, text=text, embed=embed)


def _extract_tweet_id(node: Node) -> int:
    if "data-item-id" not in node.attributes:
        raise APICompatError("Tweet ID not found")
    raw = node.attributes["data-item-id"] or ""
    if not _UNSIGNED_RE.fullmatch(raw) or int(raw) > MAX_TWEET_ID:
        raise APICompatError(f"Unable to parse tweet id: {raw!r}")
    return int(raw)


def _parse_unix_time(raw: str | None, tweet_id: int) -> datetime:
    raw = raw or ""
    if not _SIGNED_RE.fullmatch(raw):
        raise APICompatError(f"Unable to parse tweet date: {raw!r}", tweet_id)
    try:
        return datetime.fromtimestamp(int(raw), tz=timezone.utc)
    except (OverflowError, OSError, ValueError) as e:
        raise APICompatError(f"Unable to parse tweet date: {e}", tweet_id) from e


def extract_embed(node: Node) -> Embed | None:
    """Classify the embedded element of a tweet node, if any."""
    gallery = _extract_gallery(node)
    if gallery is not None:
        return gallery
    card = _extract_card(node)
    if card is not None:
        return card
    quote = _extract_quote(node)
    if quote is not None:
        return quote
    _detect_video(node)
    return None


def _extract_gallery(node: Node) -> EmbeddedGallery | None:
    image_urls = tuple(
        img.attributes.get("data-image-url") or ""
        for img in node.css("div[data-image-url]")
    )
    if image_urls:
        return EmbeddedGallery(image_urls=image_urls)
    return None


def _extract_card(node: Node) -> EmbeddedCard | None:
    card_nodes = node.css("[data-card-url]")
    if not card_nodes:
        return None
    if len(card_nodes) > 1:
        raise APICompatError("Found more than a single card embeddable")
    return EmbeddedCard(card_url=card_nodes[0].attributes.get("data-card-url") or "")


def _extract_quote(node: Node) -> EmbeddedQuote | None:
    quote_nodes = node.css("div.QuoteTweet-link")
    if not quote_nodes:
        return None
    if len(quote_nodes) > 1:
        # Twitter's markup has changed if we get here
        raise APICompatError("Found more than a single quote embeddable")
    attributes = quote_nodes[0].attributes
    if "href" not in attributes:
        raise APICompatError("Quote HTML node is missing URL")
    return EmbeddedQuote(quote_url=QUOTE_URL_PREFIX + (attributes["href"] or ""))


def _detect_video(node: Node) -> None:
    # TODO: extract the video URL once the player markup exposes one; until
    # then video tweets carry no embed.
    if node.css("div.PlayableMedia-player"):
        logger.debug("Extracting videos is not implemented yet")
