"""Shared test fixtures."""

from pathlib import Path

import pytest

FIXTURES_DIR = Path(__file__).parent / "fixtures"

# Marks a payload without a min_position key at all
MISSING = object()


def build_tweet_html(
    tweet_id: int | str,
    text: str = "Hello world",
    time: int | None = 1433866320,
    embed: str = "",
) -> str:
    date = ""
    if time is not None:
        date = f'<span class="_timestamp js-short-timestamp" data-time="{time}"></span>'
    return (
        f'<li class="js-stream-item stream-item" data-item-id="{tweet_id}" data-item-type="tweet">'
        f'<div class="tweet js-stream-tweet"><div class="content">{date}'
        f'<p class="TweetTextSize js-tweet-text tweet-text">{text}</p>{embed}'
        f"</div></div></li>"
    )


def build_payload(tweet_ids: list[int], min_position=MISSING) -> dict:
    payload: dict = {
        "has_more_items": True,
        "items_html": "\n".join(build_tweet_html(i, text=f"tweet {i}") for i in tweet_ids),
        "new_latent_count": len(tweet_ids),
    }
    if min_position is not MISSING:
        payload["min_position"] = min_position
    return payload


@pytest.fixture
def items_html() -> str:
    """Five tweets covering every embed kind (gallery+card, card, quote, video, none)."""
    return (FIXTURES_DIR / "items.html").read_text(encoding="utf-8")


@pytest.fixture
def make_tweet_html():
    return build_tweet_html


@pytest.fixture
def make_payload():
    return build_payload


@pytest.fixture
def feed_pages() -> list[dict]:
    """Four consecutive timeline pages, newest first.

    The first tweet of page 2 repeats the last tweet of page 1, and page 2
    has no min_position key so it must be recovered from the markup.
    """
    return [
        build_payload(
            [608164787940413449, 608164787940413445, 608164787940413441],
            min_position="608164787940413441",
        ),
        build_payload(
            [608164787940413441, 550000000000000000, 506859703859965952],
        ),
        build_payload(
            [480000000000000000, 420000000000000000, 386615604008194048],
            min_position="386615604008194048",
        ),
        build_payload(
            [300000000000000000, 200000000000000000],
            min_position=None,
        ),
    ]
