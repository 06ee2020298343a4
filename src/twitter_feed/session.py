"""Stream deduplicated tweets from a feed cursor.

feed_iter() runs two background threads per call:

    fetch thread --page queue (1)--> dedup thread --tweet queue (5)--> consumer

The fetch thread owns the cursor, the dedup thread owns the set of seen tweet
IDs. Every blocking hand-off also watches a shutdown event, so when the
consumer stops iterating the dedup thread exits, and that in turn stops the
fetch thread before it requests another page.
"""

import logging
import queue
import threading
from collections.abc import Iterator

from .cursor import FeedCursor
from .models import FeedIterResult, FeedPage

logger = logging.getLogger(__name__)

PAGE_QUEUE_SIZE = 1
TWEET_QUEUE_SIZE = 5

# How often blocked hand-offs re-check their shutdown event, in seconds.
# queue.Queue can't wait on an Event at the same time, so _put and _get poll.
POLL_INTERVAL = 0.05

_END = object()


def _put(q: queue.Queue, item: object, stop: threading.Event) -> bool:
    """Put ``item`` on ``q`` unless ``stop`` is set first."""
    while not stop.is_set():
        try:
            q.put(item, timeout=POLL_INTERVAL)
            return True
        except queue.Full:
            continue
    return False


def _get(q: queue.Queue, stop: threading.Event) -> object:
    """Take the next item from ``q``, or _END once ``stop`` is set."""
    while not stop.is_set():
        try:
            return q.get(timeout=POLL_INTERVAL)
        except queue.Empty:
            continue
    return _END


class TwitterSession:
    """A single scraping session over one cursor.

    Tweets are never yielded twice from the same session, even across
    several feed_iter() calls.
    """

    def __init__(self, cursor: FeedCursor):
        self.cursor = cursor
        self._seen_tweets: set[int] = set()
        self._workers: list[threading.Thread] = []

    def feed_iter(self, single_page: bool = False) -> Iterator[FeedIterResult]:
        """Yield every tweet reachable from the cursor's position.

        Each result carries either a tweet or an error. After an error the
        iterator ends. The iterator also ends when the feed runs out of
        pages, when a page has no tweets, or after one page if
        ``single_page`` is set.

        Closing the iterator early (close(), or dropping the last reference
        to it) stops the background fetching. Depending on the cursor, not
        every tweet in the feed may be reachable: Twitter limits how far
        user timelines can be paginated.
        """
        page_queue: queue.Queue = queue.Queue(maxsize=PAGE_QUEUE_SIZE)
        tweet_queue: queue.Queue = queue.Queue(maxsize=TWEET_QUEUE_SIZE)
        dedup_done = threading.Event()
        consumer_gone = threading.Event()

        self._workers = [
            threading.Thread(
                target=self._fetch_pages,
                args=(page_queue, dedup_done, single_page),
                name="feed-fetch",
                daemon=True,
            ),
            threading.Thread(
                target=self._emit_tweets,
                args=(page_queue, tweet_queue, dedup_done, consumer_gone),
                name="feed-dedup",
                daemon=True,
            ),
        ]
        for worker in self._workers:
            worker.start()

        try:
            while True:
                result = tweet_queue.get()
                if result is _END:
                    return
                yield result
        finally:
            consumer_gone.set()

    def join(self, timeout: float | None = None) -> bool:
        """Wait for the threads of the last feed_iter() call to finish.

        Returns False if any of them is still running after ``timeout``.
        """
        for worker in self._workers:
            worker.join(timeout)
        return not any(worker.is_alive() for worker in self._workers)

    def _fetch_pages(
        self,
        page_queue: queue.Queue,
        dedup_done: threading.Event,
        single_page: bool,
    ) -> None:
        try:
            while not dedup_done.is_set():
                try:
                    page = self.cursor.retrieve_page()
                    if not _put(page_queue, page, dedup_done) or single_page:
                        return
                    # The page is already handed off, so its tweets come before this error
                    has_next = self.cursor.seek(page.next_position())
                except Exception as e:
                    # Handed to the consumer as the stream's only error
                    _put(page_queue, e, dedup_done)
                    return
                if not has_next:
                    logger.debug("No further pages after position %r", self.cursor.position)
                    return
        finally:
            _put(page_queue, _END, dedup_done)

    def _emit_tweets(
        self,
        page_queue: queue.Queue,
        tweet_queue: queue.Queue,
        dedup_done: threading.Event,
        consumer_gone: threading.Event,
    ) -> None:
        emitted = 0
        try:
            while True:
                item = _get(page_queue, consumer_gone)
                if item is _END:
                    return
                if isinstance(item, Exception):
                    _put(tweet_queue, FeedIterResult(error=item), consumer_gone)
                    return
                page: FeedPage = item
                if not page.tweets:
                    logger.debug("Page has no tweets, treating it as the end of the feed")
                    return
                for tweet in page.tweets:
                    if tweet.id in self._seen_tweets:
                        logger.debug("Duplicate tweet %d (%s)", tweet.id, tweet.timestamp)
                        continue
                    self._seen_tweets.add(tweet.id)
                    if not _put(tweet_queue, FeedIterResult(tweet=tweet), consumer_gone):
                        return
                    emitted += 1
        finally:
            dedup_done.set()
            _put(tweet_queue, _END, consumer_gone)
            logger.info("Feed iteration finished after %d tweets", emitted)
