"""Download images embedded in tweets."""

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import urlsplit

import httpx

from .client import TwitterHTTP
from .errors import MediaDownloadError, TwitterFeedError, URLError
from .models import EmbeddedGallery, Tweet

logger = logging.getLogger(__name__)

DEFAULT_FILE_EXT = "png"

# Size variants Twitter appends to image URLs, e.g. ".../abc.jpg:large"
SIZE_SUFFIXES = (":large", ":orig")


@dataclass
class GalleryDownloadResult:
    """One downloaded image, or the error that ended the download.

    ``body`` is the image response; the caller must close it.
    """

    file_ext: str = ""
    body: httpx.Response | None = None
    error: TwitterFeedError | None = None


def extract_file_ext_from_url(url: str) -> str:
    """Return the file extension of the URL's last path segment, or ""."""
    try:
        path = urlsplit(url).path
    except ValueError:
        return ""
    offset = max(path.rfind("/"), path.rfind("."))
    if offset != -1 and path[offset] == "." and offset < len(path) - 1:
        return path[offset + 1 :]
    return ""


def _file_ext(url: str) -> str:
    for suffix in SIZE_SUFFIXES:
        url = url.removesuffix(suffix)
    return extract_file_ext_from_url(url) or DEFAULT_FILE_EXT


def download_gallery(
    gallery: EmbeddedGallery,
    client: TwitterHTTP | None = None,
) -> Iterator[GalleryDownloadResult]:
    """Download every image of a gallery in its original size, one by one.

    Stops after yielding the first error. With a ``client``, bodies are open
    streaming responses. Without one, each body is read in full before it is
    yielded, since the private client is closed when the generator finishes.
    """
    if not gallery.image_urls:
        yield GalleryDownloadResult(
            error=MediaDownloadError("Tweet contains no image URLs", "")
        )
        return

    http = client or TwitterHTTP()
    try:
        for raw_url in gallery.image_urls:
            image_url = raw_url + ":orig"
            try:
                request = http.new_request(image_url)
                response = http.http_request(request, stream=client is not None)
            except URLError as e:
                yield GalleryDownloadResult(
                    error=MediaDownloadError(e.msg, image_url, e)
                )
                return
            yield GalleryDownloadResult(file_ext=_file_ext(raw_url), body=response)
    finally:
        if client is None:
            http.close()


def save_gallery(
    tweet: Tweet,
    directory: Path,
    client: TwitterHTTP | None = None,
) -> list[Path]:
    """Save a tweet's gallery images as <tweet_id>_<n>.<ext> in ``directory``.

    Raises the first MediaDownloadError. Tweets without a gallery are skipped.
    """
    if not isinstance(tweet.embed, EmbeddedGallery):
        return []

    directory.mkdir(parents=True, exist_ok=True)
    saved: list[Path] = []
    for n, result in enumerate(download_gallery(tweet.embed, client), start=1):
        if result.error is not None:
            raise result.error
        path = directory / f"{tweet.id}_{n}.{result.file_ext}"
        try:
            with open(path, "wb") as f:
                for chunk in result.body.iter_bytes():
                    f.write(chunk)
        except httpx.HTTPError as e:
            raise MediaDownloadError(
                "Failed to read image body", str(result.body.request.url), e
            ) from e
        finally:
            result.body.close()
        logger.info("Saved %s", path)
        saved.append(path)
    return saved
