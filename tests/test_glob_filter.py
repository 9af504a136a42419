"""
Tests for the glob filter.
"""
import os

from bucket_sync.models.config import FilterConfig
from bucket_sync.services.glob_filter import (
    get_filtering_stats,
    matches_pattern,
    should_include
)
from tests.conftest import write_file


def make_config(exclude=None, include=None, max_size=100 * 1024 * 1024, enabled=True):
    return FilterConfig(
        exclude_patterns=exclude or [],
        include_patterns=include or [],
        max_file_size=max_size,
        enabled=enabled
    )


class TestMatchesPattern:
    """Test cases for single pattern matching."""

    def test_exact_name(self):
        assert matches_pattern("index.html", "index.html", "index.html")

    def test_bare_directory_name_matches_as_substring(self):
        assert matches_pattern("node_modules/package.json", "package.json", "node_modules")

    def test_wildcard_on_file_name(self):
        assert matches_pattern("test.tmp", "test.tmp", "*.tmp")

    def test_wildcard_crosses_directories(self):
        assert matches_pattern("styles/main.css", "main.css", "*.css")

    def test_no_match(self):
        assert not matches_pattern("index.html", "index.html", "*.css")
        assert not matches_pattern("main.js", "main.js", "node_modules")

    def test_wildcard_pattern_is_not_substring_matched(self):
        assert not matches_pattern("a/b.txt", "b.txt", "b*.json")


class TestShouldInclude:
    """Test cases for should_include."""

    def test_disabled_filtering_includes_everything(self, temp_dir):
        config = make_config(exclude=["node_modules", "*.tmp"], max_size=1, enabled=False)
        path = write_file(temp_dir, 'node_modules/package.json', 50)

        assert should_include(path, temp_dir, config) is True

    def test_exclude_patterns(self, temp_dir):
        config = make_config(exclude=["node_modules", "*.tmp"])

        assert not should_include(write_file(temp_dir, 'node_modules/package.json', 10), temp_dir, config)
        assert not should_include(write_file(temp_dir, 'test.tmp', 10), temp_dir, config)
        assert should_include(write_file(temp_dir, 'index.html', 10), temp_dir, config)

    def test_include_patterns(self, temp_dir):
        config = make_config(include=["*.html", "*.css"])

        assert should_include(write_file(temp_dir, 'index.html', 10), temp_dir, config)
        assert should_include(write_file(temp_dir, 'styles.css', 10), temp_dir, config)
        assert not should_include(write_file(temp_dir, 'script.js', 10), temp_dir, config)
        assert not should_include(write_file(temp_dir, 'README.md', 10), temp_dir, config)

    def test_exclude_wins_over_include(self, temp_dir):
        config = make_config(exclude=["vendor"], include=["*.js"])
        path = write_file(temp_dir, 'vendor/lib.js', 10)

        assert should_include(path, temp_dir, config) is False

    def test_size_limit_is_inclusive(self, temp_dir):
        config = make_config(max_size=100)

        assert should_include(write_file(temp_dir, 'exact.bin', 100), temp_dir, config)
        assert not should_include(write_file(temp_dir, 'over.bin', 101), temp_dir, config)

    def test_pattern_is_matched_relative_to_root(self, temp_dir):
        # The root's own name must not trigger an exclude
        root = os.path.join(temp_dir, 'build')
        path = write_file(root, 'app.js', 10)
        config = make_config(exclude=["build"])

        assert should_include(path, root, config) is True

    def test_missing_file_skips_size_check(self, temp_dir):
        config = make_config(exclude=["*.tmp"], max_size=1)
        path = os.path.join(temp_dir, 'gone.txt')

        assert should_include(path, temp_dir, config) is True

    def test_is_deterministic(self, temp_dir):
        config = make_config(exclude=["*.log"], include=["*.txt", "*.log"])
        path = write_file(temp_dir, 'notes.txt', 10)

        results = {should_include(path, temp_dir, config) for _ in range(5)}

        assert results == {True}


class TestFilteringStats:
    """Test cases for filtering statistics."""

    def test_counts_and_sizes(self, temp_dir):
        write_file(temp_dir, 'index.html', 500)
        write_file(temp_dir, 'node_modules/x.js', 200)
        write_file(temp_dir, 'tmp/cache.tmp', 300)
        config = make_config(exclude=["node_modules", "*.tmp"])

        stats = get_filtering_stats(temp_dir, config)

        assert stats.total_files == 3
        assert stats.included_files == 1
        assert stats.excluded_files == 2
        assert stats.total_size == 1000
        assert stats.excluded_size == 500
        assert stats.size_savings() == 0.5

    def test_empty_directory(self, temp_dir):
        stats = get_filtering_stats(temp_dir, make_config())

        assert stats.total_files == 0
        assert stats.exclusion_rate() == 0.0
