"""Tests for the streaming feed pipeline."""

from contextlib import closing

import httpx
import pytest
import respx

from twitter_feed.client import TwitterHTTP
from twitter_feed.cursor import FeedFilter, GenericFeedCursor
from twitter_feed.errors import APICompatError, URLError
from twitter_feed.models import FeedPage, Tweet
from twitter_feed.session import TwitterSession

MEDIA_TIMELINE_URL = "https://twitter.com/i/profiles/show/test/media_timeline"


@pytest.fixture
def http():
    with TwitterHTTP() as client:
        yield client


@pytest.fixture
def session(http):
    return TwitterSession(GenericFeedCursor("test", FeedFilter.MEDIA, client=http))


def _collect(session, **kwargs) -> list:
    results = list(session.feed_iter(**kwargs))
    assert session.join(timeout=5)
    return results


class FakeCursor:
    """In-memory cursor serving a fixed list of pages (or exceptions)."""

    def __init__(self, pages):
        self.pages = list(pages)
        self.position = ""
        self.retrieved = 0

    def retrieve_page(self) -> FeedPage:
        if self.retrieved >= len(self.pages):
            return FeedPage(tweets=[], min_position="")
        item = self.pages[self.retrieved]
        self.retrieved += 1
        if isinstance(item, Exception):
            raise item
        return item

    def seek(self, position: str) -> bool:
        if not position:
            return False
        self.position = position
        return True


def _page(ids, min_position="next") -> FeedPage:
    return FeedPage(
        tweets=[Tweet(id=i, timestamp=None, text=f"tweet {i}") for i in ids],
        min_position=min_position,
    )


class TestLiveRetrieval:
    @respx.mock
    def test_four_pages(self, session, feed_pages):
        route = respx.get(MEDIA_TIMELINE_URL)
        route.side_effect = [httpx.Response(200, json=page) for page in feed_pages]

        results = _collect(session)

        assert all(r.error is None for r in results)
        ids = [r.tweet.id for r in results]
        assert len(ids) == len(set(ids)) == 10
        assert route.call_count == 4

        positions = [call.request.url.params.get("max_position") for call in route.calls]
        assert positions == [
            None,
            "608164787940413441",
            "506859703859965952",
            "386615604008194048",
        ]

    @respx.mock
    def test_http_error_on_first_request(self, session):
        respx.get(MEDIA_TIMELINE_URL).mock(return_value=httpx.Response(500, text="{}"))

        results = _collect(session)

        assert len(results) == 1
        assert results[0].tweet is None
        assert isinstance(results[0].error, URLError)
        assert results[0].error.status_code == 500

    @respx.mock
    def test_structural_error_ends_stream(self, session, make_payload):
        route = respx.get(MEDIA_TIMELINE_URL)
        route.side_effect = [
            httpx.Response(200, json=make_payload([3, 2, 1], min_position="1")),
            httpx.Response(200, json={"min_position": "0"}),
        ]

        results = _collect(session)

        assert [r.tweet.id for r in results[:3]] == [3, 2, 1]
        assert len(results) == 4
        assert isinstance(results[3].error, APICompatError)
        assert route.call_count == 2

    @respx.mock
    def test_bad_position_single_page_keeps_tweets(self, session, make_payload):
        route = respx.get(MEDIA_TIMELINE_URL).mock(
            return_value=httpx.Response(200, json=make_payload([3, 2, 1], min_position=12345))
        )

        results = _collect(session, single_page=True)

        assert [r.tweet.id for r in results] == [3, 2, 1]
        assert all(r.error is None for r in results)
        assert route.call_count == 1

    @respx.mock
    def test_bad_position_emits_tweets_then_error(self, session, make_payload):
        route = respx.get(MEDIA_TIMELINE_URL).mock(
            return_value=httpx.Response(200, json=make_payload([3, 2, 1], min_position=12345))
        )

        results = _collect(session)

        assert [r.tweet.id for r in results[:3]] == [3, 2, 1]
        assert len(results) == 4
        assert isinstance(results[3].error, APICompatError)
        assert route.call_count == 1


class TestFeedIter:
    def test_preserves_page_and_document_order(self):
        cursor = FakeCursor([_page([9, 8, 7]), _page([6, 5]), _page([4], min_position="")])

        results = _collect(TwitterSession(cursor))

        assert [r.tweet.id for r in results] == [9, 8, 7, 6, 5, 4]

    def test_duplicates_across_pages_are_dropped(self):
        cursor = FakeCursor([_page([9, 8, 7]), _page([7, 6, 9]), _page([5], min_position="")])

        results = _collect(TwitterSession(cursor))

        assert [r.tweet.id for r in results] == [9, 8, 7, 6, 5]

    def test_page_of_only_duplicates_does_not_end_feed(self):
        cursor = FakeCursor([_page([2, 1]), _page([2, 1]), _page([0], min_position="")])

        results = _collect(TwitterSession(cursor))

        assert [r.tweet.id for r in results] == [2, 1, 0]
        assert cursor.retrieved == 3

    def test_dedup_spans_iterations_of_one_session(self):
        session = TwitterSession(FakeCursor([_page([2, 1], ""), _page([3, 2, 1], "")]))

        first = _collect(session)
        second = _collect(session)

        assert [r.tweet.id for r in first] == [2, 1]
        assert [r.tweet.id for r in second] == [3]

    def test_empty_page_ends_feed_without_error(self):
        cursor = FakeCursor([_page([2, 1]), _page([]), _page([0])])

        results = _collect(TwitterSession(cursor))

        assert [r.tweet.id for r in results] == [2, 1]

    def test_no_further_position_ends_feed(self):
        cursor = FakeCursor([_page([2, 1], min_position=""), _page([0])])

        results = _collect(TwitterSession(cursor))

        assert [r.tweet.id for r in results] == [2, 1]
        assert cursor.retrieved == 1

    def test_single_page(self):
        cursor = FakeCursor([_page([2, 1], min_position="1"), _page([0])])

        results = _collect(TwitterSession(cursor), single_page=True)

        assert [r.tweet.id for r in results] == [2, 1]
        assert cursor.retrieved == 1
        assert cursor.position == ""

    def test_cursor_advances_to_min_position(self):
        cursor = FakeCursor([_page([5, 4], "4"), _page([3], "3"), _page([], "")])

        _collect(TwitterSession(cursor))

        assert cursor.position == "3"

    def test_exactly_one_error_then_closed(self):
        error = URLError("HTTP error 503 Service Unavailable", "https://x", status_code=503)
        cursor = FakeCursor([_page([2, 1]), error, _page([0])])

        results = _collect(TwitterSession(cursor))

        assert [r.tweet.id for r in results[:2]] == [2, 1]
        assert [r.error for r in results[2:]] == [error]
        assert cursor.retrieved == 2

    def test_unexpected_exception_is_reported(self):
        cursor = FakeCursor([RuntimeError("boom")])

        results = _collect(TwitterSession(cursor))

        assert len(results) == 1
        assert isinstance(results[0].error, RuntimeError)

    def test_failing_seek_is_reported(self):
        class BrokenSeekCursor(FakeCursor):
            def seek(self, position: str) -> bool:
                raise RuntimeError("seek failed")

        cursor = BrokenSeekCursor([_page([2, 1]), _page([0])])

        results = _collect(TwitterSession(cursor))

        assert [r.tweet.id for r in results[:2]] == [2, 1]
        assert len(results) == 3
        assert isinstance(results[2].error, RuntimeError)
        assert cursor.retrieved == 1

    def test_is_lazy(self):
        cursor = FakeCursor([_page([1], "")])

        results = TwitterSession(cursor).feed_iter()

        assert cursor.retrieved == 0
        assert next(results).tweet.id == 1
        results.close()


class TestCancellation:
    @respx.mock
    def test_early_stop_halts_fetching(self, session, make_payload):
        """An endless feed: stopping after one tweet must stop the requests."""

        def endless_feed(request):
            position = request.url.params.get("max_position")
            start = int(position) - 1 if position else 10_000
            ids = list(range(start, start - 10, -1))
            return httpx.Response(200, json=make_payload(ids, min_position=str(ids[-1])))

        route = respx.get(MEDIA_TIMELINE_URL).mock(side_effect=endless_feed)

        with closing(session.feed_iter()) as results:
            first = next(results)

        assert first.tweet.id == 10_000
        assert session.join(timeout=5)
        # The consumed page, one buffered page and one in-flight fetch at most
        assert route.call_count <= 3

    def test_early_stop_on_fake_cursor(self):
        cursor = FakeCursor([_page(range(100 * n, 100 * n - 20, -1)) for n in range(1, 50)])
        session = TwitterSession(cursor)

        results = session.feed_iter()
        taken = [next(results).tweet.id for _ in range(3)]
        results.close()

        assert taken == [100, 99, 98]
        assert session.join(timeout=5)
        assert cursor.retrieved <= 3

    def test_closing_before_start_is_harmless(self):
        cursor = FakeCursor([_page([1])])
        session = TwitterSession(cursor)

        session.feed_iter().close()

        assert cursor.retrieved == 0
        assert session.join(timeout=1)
