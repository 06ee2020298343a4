"""Convert Tweet objects to JSON lines or CSV."""

import csv
import io
import json
from typing import TextIO

from .models import (
    EmbeddedCard,
    EmbeddedGallery,
    EmbeddedQuote,
    EmbeddedVideo,
    Embed,
    Tweet,
)

CSV_COLUMNS = [
    "id",
    "timestamp",
    "text",
    "embed_type",
    "embed_urls",
]


def embed_to_dict(embed: Embed) -> dict:
    """Encode an embed with its type discriminant, e.g. EMBED_TYPE_IMAGE."""
    if isinstance(embed, EmbeddedGallery):
        return {"type": embed.type, "imageURLs": list(embed.image_urls)}
    if isinstance(embed, EmbeddedVideo):
        return {"type": embed.type, "videoURL": embed.video_url}
    if isinstance(embed, EmbeddedCard):
        return {"type": embed.type, "cardURL": embed.card_url}
    if isinstance(embed, EmbeddedQuote):
        return {"type": embed.type, "quoteURL": embed.quote_url}
    raise TypeError(f"Unknown embed type: {type(embed).__name__}")


def _embed_urls(embed: Embed | None) -> list[str]:
    if isinstance(embed, EmbeddedGallery):
        return list(embed.image_urls)
    if isinstance(embed, EmbeddedVideo):
        return [embed.video_url]
    if isinstance(embed, EmbeddedCard):
        return [embed.card_url]
    if isinstance(embed, EmbeddedQuote):
        return [embed.quote_url]
    return []


def tweet_to_dict(tweet: Tweet) -> dict:
    # IDs exceed the range JavaScript numbers can hold, so they go out as strings
    return {
        "id": str(tweet.id),
        "timestamp": tweet.timestamp.isoformat() if tweet.timestamp else None,
        "text": tweet.text,
        "embed": embed_to_dict(tweet.embed) if tweet.embed else None,
    }


def tweets_to_jsonl(tweets: list[Tweet], output: TextIO | None = None) -> str:
    """Convert tweets to JSON lines, one object per tweet.

    Args:
        tweets: Tweets to convert.
        output: Optional file-like object to write to.

    Returns:
        The JSON lines as a string (also written to output if provided).
    """
    result = "".join(
        json.dumps(tweet_to_dict(t), ensure_ascii=False) + "\n" for t in tweets
    )
    if output is not None:
        output.write(result)
    return result


def tweets_to_csv(tweets: list[Tweet], output: TextIO | None = None) -> str:
    """Convert tweets to CSV format.

    Args:
        tweets: Tweets to convert.
        output: Optional file-like object to also write the CSV to.

    Returns:
        CSV content as a string (also written to output if provided).
    """
    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=CSV_COLUMNS, quoting=csv.QUOTE_MINIMAL)
    writer.writeheader()

    for t in tweets:
        writer.writerow(
            {
                "id": str(t.id),
                "timestamp": t.timestamp.isoformat() if t.timestamp else "",
                "text": t.text,
                "embed_type": t.embed.type if t.embed else "",
                "embed_urls": "|".join(_embed_urls(t.embed)),
            }
        )

    result = buf.getvalue()
    if output is not None:
        output.write(result)
    return result
