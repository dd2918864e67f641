from services.cache import NullCache, TTLCache


class Clock:
    def __init__(self):
        self.now = 0

    def __call__(self):
        return self.now


def test_entries_expire_at_ttl():
    clock = Clock()
    cache = TTLCache(100, clock)
    cache.set("a", 1)
    clock.now = 99
    assert cache.get("a") == 1
    clock.now = 100
    assert cache.get("a") is None
    assert len(cache) == 0


def test_set_sweeps_expired_entries():
    clock = Clock()
    cache = TTLCache(100, clock)
    for i in range(1000):
        cache.set(i, i)
    assert len(cache) == 1000
    clock.now = 150
    cache.set("fresh", True)
    assert len(cache) == 1
    assert cache.get("fresh") is True


def test_set_keeps_live_entries():
    clock = Clock()
    cache = TTLCache(100, clock)
    cache.set("old", 1)
    clock.now = 60
    cache.set("new", 2)
    clock.now = 120
    cache.set("newest", 3)
    assert len(cache) == 2
    assert cache.get("old") is None
    assert cache.get("new") == 2


def test_null_cache_stores_nothing():
    cache = NullCache()
    cache.set("a", 1)
    assert cache.get("a") is None
    assert len(cache) == 0
