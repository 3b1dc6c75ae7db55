from brandmonitor.cache import TTLCache


def test_entries_expire_after_ttl(clock):
    cache = TTLCache(default_ttl=10, time_func=clock)
    cache.set("k", [1, 2])

    clock.advance(9)
    assert cache.get("k") == [1, 2]

    clock.advance(1)
    assert cache.get("k") is None
    assert "k" not in cache


def test_non_positive_ttl_never_expires(clock):
    cache = TTLCache(default_ttl=0, time_func=clock)
    cache.set("k", "v")

    clock.advance(10**9)
    assert cache.get("k") == "v"


def test_disk_entries_survive_a_new_instance(tmp_path, clock):
    TTLCache(cache_dir=tmp_path, default_ttl=60, time_func=clock).set("brand:acme", {"q": ["a"]})

    reopened = TTLCache(cache_dir=tmp_path, time_func=clock)
    assert reopened.get("brand:acme") == {"q": ["a"]}

    clock.advance(61)
    assert reopened.get("brand:acme") is None
    assert list(tmp_path.glob("*.json")) == []


def test_clear_removes_everything(tmp_path, clock):
    cache = TTLCache(cache_dir=tmp_path, time_func=clock)
    cache.set("a", 1)
    cache.set("b", 2)

    cache.clear()

    assert cache.get("a") is None
    assert list(tmp_path.glob("*.json")) == []
