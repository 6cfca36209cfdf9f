import threading

from multitool.vault.cache import ViewCache, list_uri, read_uri


def test_uris():
    assert read_uri("notes/a.md") == "obsidian://notes/a.md/read"
    assert list_uri("") == "obsidian:///list"


def test_lru_eviction_order():
    cache = ViewCache(max_entries=2)
    cache.put("a", 1)
    cache.put("b", 2)
    assert cache.get("a") == 1  # a becomes most recent
    cache.put("c", 3)
    assert "b" not in cache
    assert "a" in cache
    assert "c" in cache
    assert len(cache) == 2


def test_zero_capacity_disables_cache():
    cache = ViewCache(max_entries=0)
    cache.put("a", 1)
    assert cache.get("a") is None
    assert len(cache) == 0


def test_invalidate_drops_only_that_key():
    cache = ViewCache()
    cache.put(read_uri("notes/a.md"), "content")
    cache.put(read_uri("notes/b.md"), "other")
    cache.invalidate(read_uri("notes/a.md"))
    assert read_uri("notes/a.md") not in cache
    assert read_uri("notes/b.md") in cache


def test_put_with_stale_generation_is_dropped():
    cache = ViewCache()
    key = read_uri("a.md")
    generation = cache.generation(key)
    cache.invalidate(key)
    assert cache.put(key, "old", generation=generation) is False
    assert key not in cache

    assert cache.put(key, "new", generation=cache.generation(key)) is True
    assert cache.get(key) == "new"


def test_concurrent_puts_respect_capacity():
    cache = ViewCache(max_entries=16)

    def worker(offset):
        for i in range(200):
            cache.put(f"k{offset}-{i}", i)
            cache.get(f"k{offset}-{i // 2}")

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert len(cache) == 16

    cache.clear()
    assert len(cache) == 0
