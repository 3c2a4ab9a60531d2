"""
Tests for the cache-backed playlist pipeline.
"""
import unittest
import sys
import os

# Add the parent directory to the path so we can import the application modules
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from exceptions import PlaylistFetchError
from models import PlaylistQuery, ResultKind, SliderDefaults, VideoRecord
from services.cache_keys import derive_key
from services.pipeline import PlaylistPipeline
from utils import TTLCache

PLAYLIST_ID = "PLabcdefghijABCDEFGHIJ0123456789_-"
API_KEY = "AIza" + "x" * 35


def make_item(video_id):
    return {
        "snippet": {
            "title": f"Video {video_id}",
            "description": "A short",
            "resourceId": {"videoId": video_id},
            "thumbnails": {"medium": {"url": f"https://i.ytimg.com/vi/{video_id}/mqdefault.jpg"}},
        }
    }


class FakeFetcher:
    """Stands in for PlaylistFetcher; records calls."""

    def __init__(self, payload=None, error=None):
        self.payload = payload
        self.error = error
        self.calls = []

    async def fetch(self, playlist_id, max_results, api_key):
        self.calls.append((playlist_id, max_results, api_key))
        if self.error is not None:
            raise self.error
        return self.payload

    def get_stats(self):
        return {"api_calls": len(self.calls), "api_failures": 0}


class SpyCache(TTLCache):
    """TTLCache that counts get/put calls."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.gets = 0
        self.puts = []

    async def get(self, key):
        self.gets += 1
        return await super().get(key)

    async def put(self, key, value, ttl_seconds=None):
        self.puts.append((key, ttl_seconds))
        await super().put(key, value, ttl_seconds=ttl_seconds)


FIVE_ITEMS = {"items": [make_item(f"video{i:06d}") for i in range(5)]}


class TestPlaylistPipeline(unittest.IsolatedAsyncioTestCase):
    """Test cases for PlaylistPipeline.get_videos."""

    async def asyncSetUp(self):
        self.cache = SpyCache(maxsize=16)
        self.query = PlaylistQuery(PLAYLIST_ID, max_results=5, thumbnail_quality="medium",
                                   cache_ttl_seconds=3600, api_key=API_KEY)

    async def test_end_to_end_fetch_then_cache_hit(self):
        """A miss fetches and caches; the next call is served without fetching."""
        fetcher = FakeFetcher(FIVE_ITEMS)
        pipeline = PlaylistPipeline(self.cache, fetcher)

        first = await pipeline.get_videos(self.query)

        self.assertEqual(first.kind, ResultKind.SUCCESS)
        self.assertFalse(first.cache_hit)
        self.assertEqual(len(first.videos), 5)
        self.assertEqual(first.cache_key, derive_key(PLAYLIST_ID, 5, 3600))
        self.assertEqual(self.cache.puts, [(first.cache_key, 3600)])
        self.assertEqual(fetcher.calls, [(PLAYLIST_ID, 5, API_KEY)])

        second = await pipeline.get_videos(self.query)

        self.assertTrue(second.ok)
        self.assertTrue(second.cache_hit)
        self.assertEqual(second.videos, first.videos)
        self.assertEqual(len(fetcher.calls), 1)

    async def test_cache_hit_skips_fetch(self):
        key = derive_key(PLAYLIST_ID, 5, 3600)
        cached = (VideoRecord("aaaaaaaaaaa", title="Cached"),)
        await self.cache.put(key, cached, ttl_seconds=3600)
        fetcher = FakeFetcher(FIVE_ITEMS)
        pipeline = PlaylistPipeline(self.cache, fetcher)

        result = await pipeline.get_videos(self.query)

        self.assertTrue(result.cache_hit)
        self.assertEqual(result.videos, cached)
        self.assertEqual(fetcher.calls, [])

    async def test_invalid_query_short_circuits(self):
        """Invalid playlist IDs and keys touch neither cache nor network."""
        fetcher = FakeFetcher(FIVE_ITEMS)
        pipeline = PlaylistPipeline(self.cache, fetcher)

        for query, reason in (
            (PlaylistQuery("", api_key=API_KEY), "missing_playlist_id"),
            (PlaylistQuery("PLnope", api_key=API_KEY), "invalid_playlist_id"),
            (PlaylistQuery(PLAYLIST_ID, api_key=""), "missing_api_key"),
            (PlaylistQuery(PLAYLIST_ID, api_key="short"), "invalid_api_key"),
        ):
            with self.subTest(reason=reason):
                result = await pipeline.get_videos(query)
                self.assertEqual(result.kind, ResultKind.INVALID_CONFIG)
                self.assertEqual(result.reason, reason)
                self.assertIsNone(result.cache_key)

        self.assertEqual(self.cache.gets, 0)
        self.assertEqual(self.cache.puts, [])
        self.assertEqual(fetcher.calls, [])

    async def test_fetch_failure_not_cached(self):
        fetcher = FakeFetcher(error=PlaylistFetchError("http_error", status_code=403))
        pipeline = PlaylistPipeline(self.cache, fetcher)

        result = await pipeline.get_videos(self.query)

        self.assertEqual(result.kind, ResultKind.FETCH_FAILURE)
        self.assertEqual(result.reason, "http_error")
        self.assertEqual(result.detail, "YouTube API returned error code: 403")
        self.assertEqual(self.cache.puts, [])
        self.assertEqual(pipeline.get_stats()["fetch_failures"], 1)

    async def test_empty_result_not_cached(self):
        """A payload whose items all fail validation is reported but never cached."""
        fetcher = FakeFetcher({"items": [make_item("bad"), {"snippet": {}}]})
        pipeline = PlaylistPipeline(self.cache, fetcher)

        result = await pipeline.get_videos(self.query)
        self.assertEqual(result.kind, ResultKind.EMPTY_RESULT)
        self.assertEqual(result.reason, "no_valid_videos")
        self.assertEqual(self.cache.puts, [])

        await pipeline.get_videos(self.query)
        self.assertEqual(len(fetcher.calls), 2)

    async def test_expired_entry_refetched(self):
        now = [0.0]
        cache = TTLCache(maxsize=4, clock=lambda: now[0])
        fetcher = FakeFetcher(FIVE_ITEMS)
        pipeline = PlaylistPipeline(cache, fetcher)

        await pipeline.get_videos(self.query)
        now[0] += 3600
        result = await pipeline.get_videos(self.query)

        self.assertFalse(result.cache_hit)
        self.assertEqual(len(fetcher.calls), 2)

    async def test_different_quality_shares_entry(self):
        """Thumbnail quality is not part of the cache key."""
        fetcher = FakeFetcher(FIVE_ITEMS)
        pipeline = PlaylistPipeline(self.cache, fetcher)

        await pipeline.get_videos(self.query)
        other = PlaylistQuery(PLAYLIST_ID, 5, "maxres", 3600, API_KEY)
        result = await pipeline.get_videos(other)

        self.assertTrue(result.cache_hit)
        self.assertEqual(len(fetcher.calls), 1)

    async def test_out_of_range_query_clamped(self):
        """Queries built directly are clamped before reaching the API or the cache."""
        fetcher = FakeFetcher(FIVE_ITEMS)
        pipeline = PlaylistPipeline(self.cache, fetcher)
        query = PlaylistQuery(PLAYLIST_ID, max_results=999, cache_ttl_seconds=0, api_key=API_KEY)

        result = await pipeline.get_videos(query)

        self.assertEqual(result.kind, ResultKind.SUCCESS)
        self.assertEqual(fetcher.calls, [(PLAYLIST_ID, 50, API_KEY)])
        self.assertEqual(self.cache.puts, [(derive_key(PLAYLIST_ID, 50, 300), 300)])

    async def test_purge_cache(self):
        fetcher = FakeFetcher(FIVE_ITEMS)
        pipeline = PlaylistPipeline(self.cache, fetcher)
        await pipeline.get_videos(self.query)
        await self.cache.put("unrelated", ("x",), ttl_seconds=60)

        self.assertEqual(await pipeline.purge_cache(), 1)
        self.assertEqual(await self.cache.get("unrelated"), ("x",))

        result = await pipeline.get_videos(self.query)
        self.assertFalse(result.cache_hit)
        self.assertEqual(len(fetcher.calls), 2)

    async def test_stats(self):
        fetcher = FakeFetcher(FIVE_ITEMS)
        pipeline = PlaylistPipeline(self.cache, fetcher)
        await pipeline.get_videos(self.query)
        await pipeline.get_videos(self.query)

        stats = pipeline.get_stats()
        self.assertEqual(stats["requests"], 2)
        self.assertEqual(stats["cache_hits"], 1)
        self.assertEqual(stats["cache_misses"], 1)
        self.assertEqual(stats["cache_writes"], 1)
        self.assertEqual(stats["fetcher"]["api_calls"], 1)


class TestPlaylistQuery(unittest.TestCase):
    """Test cases for PlaylistQuery construction."""

    def test_clamps_numbers(self):
        query = PlaylistQuery(PLAYLIST_ID, max_results=0, cache_ttl_seconds=10**9)
        self.assertEqual(query.max_results, 1)
        self.assertEqual(query.cache_ttl_seconds, 604800)

    def test_non_numeric_falls_back(self):
        query = PlaylistQuery(PLAYLIST_ID, max_results="lots", cache_ttl_seconds=float("nan"))
        self.assertEqual(query.max_results, 20)
        self.assertEqual(query.cache_ttl_seconds, 86400)

    def test_unknown_quality_falls_back(self):
        self.assertEqual(PlaylistQuery(PLAYLIST_ID, thumbnail_quality="huge").thumbnail_quality, "medium")
        self.assertEqual(PlaylistQuery(PLAYLIST_ID, thumbnail_quality="maxres").thumbnail_quality, "maxres")


class TestPipelineRender(unittest.IsolatedAsyncioTestCase):
    """Test cases for PlaylistPipeline.render."""

    async def test_render_attaches_presentation(self):
        fetcher = FakeFetcher(FIVE_ITEMS)
        pipeline = PlaylistPipeline(TTLCache(maxsize=4), fetcher)

        result = await pipeline.render({"playlist": PLAYLIST_ID, "max": "5", "play": "popup"},
                                       stored_api_key=API_KEY)

        self.assertTrue(result.ok)
        self.assertEqual(result.play_mode, "popup")
        self.assertEqual(result.layout["cols_desktop"], 6)
        self.assertEqual(fetcher.calls, [(PLAYLIST_ID, 5, API_KEY)])

    async def test_render_clamps_before_fetching(self):
        fetcher = FakeFetcher(FIVE_ITEMS)
        pipeline = PlaylistPipeline(TTLCache(maxsize=4), fetcher)

        await pipeline.render({"playlist": PLAYLIST_ID, "max": "999"},
                              defaults=SliderDefaults(), stored_api_key=API_KEY)

        self.assertEqual(fetcher.calls[0][1], 50)

    async def test_render_invalid(self):
        fetcher = FakeFetcher(FIVE_ITEMS)
        pipeline = PlaylistPipeline(TTLCache(maxsize=4), fetcher)

        result = await pipeline.render({"playlist": "bogus", "play": "redirect"}, stored_api_key=API_KEY)

        self.assertEqual(result.kind, ResultKind.INVALID_CONFIG)
        self.assertEqual(result.play_mode, "redirect")
        self.assertEqual(result.user_message(privileged=False), "Content temporarily unavailable.")
        self.assertEqual(result.user_message(privileged=True), "Invalid playlist ID format.")
        self.assertEqual(fetcher.calls, [])


if __name__ == '__main__':
    unittest.main()
