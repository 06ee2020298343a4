"""CLI interface for twitter-feed.

Commands:
    setup    - Configure HTTP and output settings
    timeline - Scrape a user's timeline (or media timeline)
    search   - Scrape the results of a search query
"""

import sys
from contextlib import closing
from pathlib import Path

import click

from .config import (
    CONFIG_FILE,
    AppConfig,
    config_exists,
    load_config,
    save_config,
)
from .logging_config import setup_logging


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.option("--config", type=click.Path(), default=None, help="Config file path")
@click.pass_context
def main(ctx, verbose, config):
    """Twitter feed scraper: stream timelines and searches as JSON or CSV."""
    setup_logging(debug=verbose)
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = Path(config) if config else CONFIG_FILE


def _load_app_config(ctx) -> AppConfig:
    config_path = ctx.obj["config_path"]
    if not config_exists(config_path):
        return AppConfig()
    try:
        return load_config(config_path)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@main.command()
@click.pass_context
def setup(ctx):
    """Configure HTTP and output settings."""
    config_path = ctx.obj["config_path"]
    current = _load_app_config(ctx)

    click.echo("Twitter Feed Scraper Setup")
    click.echo("=" * 40)
    click.echo()

    timeout = click.prompt("HTTP timeout (seconds)", default=current.timeout, type=float)
    click.echo("(Optional) User-Agent header. Press Enter to keep the built-in one.")
    user_agent = click.prompt(
        "user_agent", default=current.user_agent or "", show_default=False
    )
    media_dir = click.prompt("Media directory", default=str(current.media_dir))

    config = AppConfig(
        timeout=timeout,
        user_agent=user_agent or None,
        media_dir=Path(media_dir),
    )
    save_config(config, config_path)
    click.echo(f"\nConfig saved to {config_path}")


def _feed_options(func):
    options = [
        click.option("--resume-at", default="", help="Start at this position (a tweet ID)"),
        click.option("--single-page", is_flag=True, help="Fetch only one page"),
        click.option(
            "-n", "--count", type=int, default=None, help="Stop after this many tweets"
        ),
        click.option("-o", "--output", type=click.Path(), default=None, help="Output file"),
        click.option(
            "--format",
            "fmt",
            type=click.Choice(["jsonl", "csv"]),
            default="jsonl",
            show_default=True,
            help="Output format",
        ),
        click.option(
            "--download-media",
            is_flag=True,
            help="Save gallery images to the configured media directory",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@main.command()
@click.argument("username")
@click.option("--media", is_flag=True, help="Scrape the media-only timeline")
@_feed_options
@click.pass_context
def timeline(ctx, username, media, resume_at, single_page, count, output, fmt, download_media):
    """Scrape the timeline of USERNAME."""
    from .client import TwitterHTTP
    from .cursor import FeedFilter, GenericFeedCursor

    config = _load_app_config(ctx)
    feed_filter = FeedFilter.MEDIA if media else FeedFilter.REGULAR
    with TwitterHTTP(timeout=config.timeout, user_agent=config.user_agent) as client:
        cursor = GenericFeedCursor(username, feed_filter, resume_at=resume_at, client=client)
        _scrape(cursor, client, config, single_page, count, output, fmt, download_media)


@main.command()
@click.argument("query")
@_feed_options
@click.pass_context
def search(ctx, query, resume_at, single_page, count, output, fmt, download_media):
    """Scrape the search results for QUERY."""
    from .client import TwitterHTTP
    from .cursor import SearchFeedCursor

    config = _load_app_config(ctx)
    with TwitterHTTP(timeout=config.timeout, user_agent=config.user_agent) as client:
        cursor = SearchFeedCursor(query, resume_at=resume_at, client=client)
        _scrape(cursor, client, config, single_page, count, output, fmt, download_media)


def _scrape(cursor, client, config, single_page, count, output, fmt, download_media):
    from .converter import tweets_to_csv, tweets_to_jsonl
    from .errors import TwitterFeedError
    from .media import save_gallery
    from .session import TwitterSession

    session = TwitterSession(cursor)
    tweets = []
    error = None
    with closing(session.feed_iter(single_page=single_page)) as results:
        for result in results:
            if result.error is not None:
                error = result.error
                break
            tweets.append(result.tweet)
            if count is not None and len(tweets) >= count:
                break

    convert = tweets_to_csv if fmt == "csv" else tweets_to_jsonl
    if output:
        output_path = Path(output)
        with open(output_path, "w", encoding="utf-8", newline="") as f:
            convert(tweets, f)
        click.echo(f"Wrote {len(tweets)} tweets to {output_path}", err=True)
    else:
        click.echo(convert(tweets), nl=False)

    if download_media:
        saved = 0
        for tweet in tweets:
            try:
                saved += len(save_gallery(tweet, config.media_dir, client))
            except TwitterFeedError as e:
                click.echo(f"Error: {e}", err=True)
                sys.exit(1)
        click.echo(f"Saved {saved} images to {config.media_dir}", err=True)

    if error is not None:
        click.echo(f"Error: {error}", err=True)
        sys.exit(1)

    if tweets:
        click.echo(f"Resume with --resume-at {tweets[-1].id}", err=True)
