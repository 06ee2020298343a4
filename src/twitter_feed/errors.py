"""Exceptions raised while scraping feeds."""


class TwitterFeedError(Exception):
    """Base class for every error raised by twitter_feed."""

    def __init__(self, msg: str):
        super().__init__(msg)
        self.msg = msg

    def __str__(self) -> str:
        return self.msg


class APICompatError(TwitterFeedError):
    """Scraped data did not have the expected shape.

    Most likely Twitter changed its internal markup, or the extractor has a
    bug. ``tweet_id`` is set when the failure can be tied to one tweet.
    """

    def __init__(self, msg: str, tweet_id: int | None = None):
        super().__init__(msg)
        self.tweet_id = tweet_id


class URLError(TwitterFeedError):
    """Fetching or decoding a remote resource failed.

    ``status_code`` is only set when the server answered with a non-200
    status, so callers can tell HTTP errors apart from network failures.
    """

    def __init__(
        self,
        msg: str,
        url: str,
        cause: BaseException | None = None,
        status_code: int | None = None,
    ):
        super().__init__(msg)
        self.url = url
        self.cause = cause
        self.status_code = status_code

    def __str__(self) -> str:
        if self.cause is not None:
            return f"{self.msg}: {self.url} ({self.cause})"
        return f"{self.msg}: {self.url}"


class MediaDownloadError(TwitterFeedError):
    """Downloading an image embedded in a tweet failed."""

    def __init__(self, msg: str, url: str, cause: BaseException | None = None):
        super().__init__(msg)
        self.url = url
        self.cause = cause

    def __str__(self) -> str:
        if self.cause is not None:
            return f"{self.msg}: {self.url} ({self.cause})"
        return f"{self.msg}: {self.url}"
