"""Tests for BackoffPolicy."""

from sentinel_probe.backoff import BackoffPolicy


class TestDelay:
    """Tests for delay_ms()."""

    def test_defaults_grow_linearly_and_cap(self):
        policy = BackoffPolicy()
        assert [policy.delay_ms(n) for n in (1, 2, 3, 9, 10, 11, 50)] == [
            1000,
            2000,
            3000,
            9000,
            10000,
            10000,
            10000,
        ]

    def test_attempt_below_one_treated_as_first(self):
        assert BackoffPolicy().delay_ms(0) == 1000

    def test_custom_base_and_cap(self):
        policy = BackoffPolicy(base_delay_ms=250, max_delay_ms=600)
        assert [policy.delay_ms(n) for n in (1, 2, 3)] == [250, 500, 600]


class TestShouldRetry:
    """Tests for should_retry()."""

    def test_unlimited(self):
        assert BackoffPolicy().should_retry(10_000)

    def test_bounded(self):
        policy = BackoffPolicy(max_attempts=3)
        assert policy.should_retry(2)
        assert not policy.should_retry(3)
