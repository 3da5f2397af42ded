"""版本检查与缓存（时钟与网络均注入）。"""

from __future__ import annotations

import json
from pathlib import Path

from pulp_image.core.update_check import (
    CACHE_TTL_SECONDS,
    UpdateCache,
    check_for_update,
    format_update_message,
    is_newer_version,
)


class FakeClock:
    def __init__(self, now: float = 1_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class FakeFetcher:
    def __init__(self, version: str | None) -> None:
        self.version = version
        self.calls = 0

    def __call__(self) -> str | None:
        self.calls += 1
        return self.version


def test_is_newer_version() -> None:
    assert is_newer_version("0.1.8", "0.2.0")
    assert is_newer_version("v1.0.0", "1.0.1")
    assert not is_newer_version("1.2.0", "1.2")
    assert not is_newer_version("2.0.0", "1.9.9")
    assert is_newer_version("1.0", "1.0.1rc1")


def test_fetches_and_writes_cache(tmp_path: Path) -> None:
    clock = FakeClock()
    cache = UpdateCache(tmp_path / "cache.json", clock=clock)
    fetcher = FakeFetcher("0.2.0")

    info = check_for_update("0.1.0", cache, fetch_latest=fetcher)

    assert info.update_available
    assert info.latest_version == "0.2.0"
    assert not info.cached
    stored = json.loads((tmp_path / "cache.json").read_text(encoding="utf-8"))
    assert stored == {
        "updateAvailable": True,
        "currentVersion": "0.1.0",
        "latestVersion": "0.2.0",
        "timestamp": clock.now,
    }


def test_uses_cache_within_ttl(tmp_path: Path) -> None:
    clock = FakeClock()
    cache = UpdateCache(tmp_path / "cache.json", clock=clock)
    fetcher = FakeFetcher("0.2.0")
    check_for_update("0.1.0", cache, fetch_latest=fetcher)

    clock.now += CACHE_TTL_SECONDS - 1
    info = check_for_update("0.1.0", cache, fetch_latest=fetcher)

    assert info.cached
    assert info.update_available
    assert fetcher.calls == 1


def test_expired_cache_refetches(tmp_path: Path) -> None:
    clock = FakeClock()
    cache = UpdateCache(tmp_path / "cache.json", clock=clock)
    fetcher = FakeFetcher("0.2.0")
    check_for_update("0.1.0", cache, fetch_latest=fetcher)

    clock.now += CACHE_TTL_SECONDS
    info = check_for_update("0.1.0", cache, fetch_latest=fetcher)

    assert not info.cached
    assert fetcher.calls == 2


def test_cache_ignored_for_other_version_or_force(tmp_path: Path) -> None:
    cache = UpdateCache(tmp_path / "cache.json", clock=FakeClock())
    fetcher = FakeFetcher("0.2.0")
    check_for_update("0.1.0", cache, fetch_latest=fetcher)

    upgraded = check_for_update("0.2.0", cache, fetch_latest=fetcher)
    forced = check_for_update("0.2.0", cache, fetch_latest=fetcher, force=True)

    assert not upgraded.update_available
    assert not forced.cached
    assert fetcher.calls == 3


def test_network_failure_reports_no_update(tmp_path: Path) -> None:
    cache = UpdateCache(tmp_path / "cache.json", clock=FakeClock())

    info = check_for_update("0.1.0", cache, fetch_latest=FakeFetcher(None))

    assert not info.update_available
    assert info.error
    assert not (tmp_path / "cache.json").exists()


def test_corrupted_cache_is_ignored(tmp_path: Path) -> None:
    cache_file = tmp_path / "cache.json"
    cache_file.write_text("{not json", encoding="utf-8")
    cache = UpdateCache(cache_file, clock=FakeClock())

    assert cache.read() is None


def test_format_update_message(tmp_path: Path) -> None:
    cache = UpdateCache(tmp_path / "cache.json", clock=FakeClock())
    available = check_for_update("0.1.0", cache, fetch_latest=FakeFetcher("0.3.0"), force=True)
    current = check_for_update("0.3.0", cache, fetch_latest=FakeFetcher("0.3.0"), force=True)

    message = format_update_message(available)
    assert message is not None and "0.1.0 → 0.3.0" in message
    assert format_update_message(current) is None
