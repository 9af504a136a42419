"""
Tests for prefix inference and the bucket prefix cache.
"""
import os
import threading
import time
from unittest.mock import Mock

from bucket_sync.models.data_models import BucketListing
from bucket_sync.services.prefix_resolver import (
    PrefixCache,
    PrefixResolver,
    get_preview_prefix,
    normalize_path_parts
)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def listing_client(prefixes=None, keys=None):
    client = Mock()
    client.list_objects_shallow.return_value = BucketListing(
        common_prefixes=prefixes or [],
        object_keys=keys or []
    )
    return client


class TestNormalizePathParts:
    """Test cases for path segment normalization."""

    def test_drops_home_and_account(self):
        assert normalize_path_parts("/home/u/site") == ["site"]

    def test_windows_path(self):
        parts = normalize_path_parts("C:\\Users\\alice\\Documents\\projects\\web")

        assert parts == ["projects", "web"]

    def test_generic_segments_are_case_insensitive(self):
        assert normalize_path_parts("/data/Desktop/TEMP/photos") == ["data", "photos"]

    def test_plain_path_is_kept(self):
        assert normalize_path_parts("/data/projects/app-assets") == ["data", "projects", "app-assets"]


class TestPreviewPrefix:
    """Test cases for the offline prefix preview."""

    def test_takes_last_three_segments(self):
        assert get_preview_prefix("/srv/www/clients/acme/site") == "clients/acme/site"

    def test_fewer_segments(self):
        assert get_preview_prefix("/home/u/site") == "site"
        assert get_preview_prefix("/data/site") == "data/site"

    def test_falls_back_to_name_when_nothing_is_left(self):
        assert get_preview_prefix("/home/Documents") == "Documents"

    def test_relative_segments_are_dropped(self):
        assert get_preview_prefix("../x/y") == "x/y"
        assert get_preview_prefix("./site") == "site"
        assert normalize_path_parts("a/./b/../c") == ["a", "b", "c"]


class TestPrefixCache:
    """Test cases for PrefixCache."""

    def test_lookup_after_refresh_does_not_list_again(self):
        client = listing_client(prefixes=["assets/", "docs/"])
        cache = PrefixCache(ttl=300, clock=FakeClock())

        assert cache.contains(client, "bucket", "assets")
        assert cache.contains(client, "bucket", "docs/")
        assert not cache.contains(client, "bucket", "missing")

        assert client.list_objects_shallow.call_count == 1
        client.list_objects_shallow.assert_called_with("bucket", delimiter="/", max_keys=1000)

    def test_expired_entry_is_refreshed_once(self):
        clock = FakeClock()
        client = listing_client(prefixes=["assets/"])
        cache = PrefixCache(ttl=300, clock=clock)
        cache.contains(client, "bucket", "assets")

        clock.now += 301
        cache.contains(client, "bucket", "assets")
        cache.contains(client, "bucket", "assets")

        assert client.list_objects_shallow.call_count == 2

    def test_entry_at_ttl_is_still_fresh(self):
        clock = FakeClock()
        client = listing_client(prefixes=["assets/"])
        cache = PrefixCache(ttl=300, clock=clock)
        cache.contains(client, "bucket", "assets")

        clock.now += 300
        cache.contains(client, "bucket", "assets")

        assert client.list_objects_shallow.call_count == 1

    def test_object_parents_are_known_prefixes(self):
        client = listing_client(keys=["/top/readme.md", "root.txt"])
        cache = PrefixCache(clock=FakeClock())

        assert cache.get_prefixes(client, "bucket") == {"top"}

    def test_failed_first_listing_yields_empty_set(self):
        client = Mock()
        client.list_objects_shallow.side_effect = Exception("network down")
        cache = PrefixCache(clock=FakeClock())

        assert cache.contains(client, "bucket", "assets") is False
        assert cache.get_entry("bucket") is None

    def test_failed_refresh_keeps_stale_entry(self):
        clock = FakeClock()
        client = listing_client(prefixes=["assets/"])
        cache = PrefixCache(ttl=10, clock=clock)
        cache.contains(client, "bucket", "assets")

        clock.now += 60
        client.list_objects_shallow.side_effect = Exception("network down")

        assert cache.contains(client, "bucket", "assets") is True

    def test_entries_are_per_bucket(self):
        client = Mock()
        client.list_objects_shallow.side_effect = lambda bucket, **kwargs: BucketListing(
            common_prefixes=[f"{bucket}-only/"]
        )
        cache = PrefixCache(clock=FakeClock())

        assert cache.contains(client, "one", "one-only")
        assert not cache.contains(client, "two", "one-only")
        assert client.list_objects_shallow.call_count == 2

    def test_concurrent_lookups_refresh_once(self):
        client = Mock()

        def slow_listing(bucket, **kwargs):
            time.sleep(0.05)
            return BucketListing(common_prefixes=["assets/"])

        client.list_objects_shallow.side_effect = slow_listing
        cache = PrefixCache(ttl=300)

        threads = [threading.Thread(target=cache.contains, args=(client, "bucket", "assets"))
                   for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert client.list_objects_shallow.call_count == 1


class TestPrefixResolver:
    """Test cases for PrefixResolver."""

    def test_existing_single_folder_beats_preview(self, prefix_cache):
        client = listing_client(prefixes=["app-assets/"])
        resolver = PrefixResolver(client, "bucket", cache=prefix_cache)

        assert resolver.resolve("/data/projects/app-assets") == "app-assets"

    def test_most_specific_match_wins(self, prefix_cache):
        client = listing_client(prefixes=["projects/", "web/"],
                                keys=["projects/web/index.html"])
        resolver = PrefixResolver(client, "bucket", cache=prefix_cache)

        assert resolver.resolve("/data/projects/web") == "projects/web"

    def test_preview_when_nothing_matches(self, prefix_cache):
        client = listing_client(prefixes=["other/"])
        resolver = PrefixResolver(client, "bucket", cache=prefix_cache)

        assert resolver.resolve("/home/u/site") == "site"

    def test_unrelated_single_folder_is_rejected(self, prefix_cache):
        client = listing_client(prefixes=["Desktop/"])
        resolver = PrefixResolver(client, "bucket", cache=prefix_cache)

        assert resolver.resolve("/data/projects/Desktop") == "data/projects"

    def test_listing_failure_degrades_to_preview(self, prefix_cache):
        client = Mock()
        client.list_objects_shallow.side_effect = Exception("access denied")
        resolver = PrefixResolver(client, "bucket", cache=prefix_cache)

        assert resolver.resolve("/data/projects/app-assets") == "data/projects/app-assets"

    def test_offline_resolution(self, prefix_cache):
        resolver = PrefixResolver(None, "bucket", cache=prefix_cache)

        assert resolver.resolve("/srv/www/site") == "srv/www/site"

    def test_base_path_is_mirrored(self, prefix_cache, bucket_client):
        resolver = PrefixResolver(bucket_client, "bucket", cache=prefix_cache,
                                  base_path="/srv/www")

        assert resolver.resolve("/srv/www/clients/acme") == "clients/acme"
        assert resolver.resolve("/srv/www") == "www"
        bucket_client.list_objects_shallow.assert_not_called()

    def test_relative_path_is_made_absolute(self, temp_dir, monkeypatch, prefix_cache):
        os.makedirs(os.path.join(temp_dir, "site"))
        monkeypatch.chdir(os.path.join(temp_dir, "site"))
        client = listing_client(prefixes=["site/"])
        resolver = PrefixResolver(client, "bucket", cache=prefix_cache)

        assert resolver.resolve(".") == "site"
        assert resolver.resolve("../site") == "site"

    def test_relative_path_below_base(self, temp_dir, monkeypatch, prefix_cache, bucket_client):
        os.makedirs(os.path.join(temp_dir, "site", "blog"))
        monkeypatch.chdir(temp_dir)
        resolver = PrefixResolver(bucket_client, "bucket", cache=prefix_cache, base_path=temp_dir)

        assert resolver.resolve("./site/blog") == "site/blog"
        assert resolver.resolve(".") == os.path.basename(os.path.realpath(temp_dir))
