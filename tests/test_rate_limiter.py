import threading

import pytest

from taxi_pricing.security.rate_limiter import TokenBucketRateLimiter


@pytest.fixture
def limiter(clock):
    return TokenBucketRateLimiter(capacity=30, window_sec=300, clock=clock)


def test_capacity_then_denied(limiter):
    assert all(limiter.acquire("1.2.3.4")[0] for _ in range(30))

    allowed, retry_after = limiter.acquire("1.2.3.4")

    assert allowed is False
    # one token every 10s
    assert retry_after == pytest.approx(10)


def test_denied_check_does_not_consume(limiter, clock):
    for _ in range(30):
        limiter.acquire("k")
    for _ in range(5):
        limiter.acquire("k")

    clock.advance(10)

    assert limiter.acquire("k")[0] is True


def test_full_again_after_window(limiter, clock):
    for _ in range(30):
        limiter.acquire("k")

    clock.advance(300)

    assert limiter.available("k") == pytest.approx(30)
    assert all(limiter.acquire("k")[0] for _ in range(30))
    assert limiter.acquire("k")[0] is False


def test_refill_is_continuous_and_capped(limiter, clock):
    for _ in range(30):
        limiter.acquire("k")

    clock.advance(45)
    assert limiter.available("k") == pytest.approx(4.5)

    clock.advance(10_000)
    assert limiter.available("k") == pytest.approx(30)


def test_clock_going_backwards_never_adds_tokens(limiter, clock):
    for _ in range(30):
        limiter.acquire("k")

    clock.advance(-100)

    assert limiter.available("k") == 0


def test_buckets_are_per_client(limiter):
    for _ in range(30):
        limiter.acquire("a")

    assert limiter.acquire("a")[0] is False
    assert limiter.acquire("b")[0] is True


def test_concurrent_acquire_never_double_grants(limiter):
    granted = []
    lock = threading.Lock()

    def worker():
        for _ in range(20):
            ok, _ = limiter.acquire("shared")
            if ok:
                with lock:
                    granted.append(1)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(granted) == 30


def test_tracked_clients_are_bounded(clock):
    limiter = TokenBucketRateLimiter(capacity=30, window_sec=300, clock=clock, max_keys=1000)

    for i in range(50_000):
        limiter.acquire(f"client-{i}")

    assert limiter.tracked_keys() <= 1000


def test_refilled_buckets_are_swept_before_busy_ones(clock):
    limiter = TokenBucketRateLimiter(capacity=30, window_sec=300, clock=clock, max_keys=3)
    for _ in range(30):
        limiter.acquire("busy")
    limiter.acquire("a")
    limiter.acquire("b")

    clock.advance(20)  # a and b are full again, busy has 2 tokens
    limiter.acquire("c")

    assert limiter.tracked_keys() == 2
    assert limiter.available("busy") == pytest.approx(2.0)


def test_least_recently_used_bucket_evicted_when_none_is_full(clock):
    limiter = TokenBucketRateLimiter(capacity=2, window_sec=300, clock=clock, max_keys=2)
    for key in ("x", "y"):
        limiter.acquire(key)
        limiter.acquire(key)

    limiter.acquire("z")

    assert limiter.acquire("y")[0] is False
    assert limiter.tracked_keys() == 2
