import pytest

from src.modules.summarizer.retry import (
    RetryExhaustedError,
    exponential_backoff,
    retry_with_backoff,
)


class Flaky:
    def __init__(self, failures: int, exc_type: type[Exception] = RuntimeError) -> None:
        self.failures = failures
        self.exc_type = exc_type
        self.calls = 0

    async def __call__(self) -> str:
        self.calls += 1
        if self.calls <= self.failures:
            raise self.exc_type(f"failure {self.calls}")
        return "ok"


def test_exponential_backoff_doubles_from_base():
    backoff = exponential_backoff()
    assert [backoff(n) for n in (1, 2, 3)] == [1.0, 2.0, 4.0]
    assert exponential_backoff(0.5)(3) == 2.0


async def test_returns_first_success_without_sleeping(sleep_recorder):
    operation = Flaky(failures=0)

    assert await retry_with_backoff(operation, sleep=sleep_recorder) == "ok"
    assert operation.calls == 1
    assert sleep_recorder.delays == []


async def test_recovers_after_transient_failures(sleep_recorder):
    operation = Flaky(failures=2)

    assert await retry_with_backoff(operation, max_attempts=3, sleep=sleep_recorder) == "ok"
    assert operation.calls == 3
    assert sleep_recorder.delays == [1.0, 2.0]


async def test_raises_after_exhausting_attempts(sleep_recorder):
    operation = Flaky(failures=10)

    with pytest.raises(RetryExhaustedError) as exc_info:
        await retry_with_backoff(operation, max_attempts=3, sleep=sleep_recorder)

    assert operation.calls == 3
    assert sleep_recorder.delays == [1.0, 2.0]
    assert exc_info.value.attempts == 3
    assert str(exc_info.value.last_error) == "failure 3"
    assert isinstance(exc_info.value.__cause__, RuntimeError)
    assert "3 attempts" in str(exc_info.value)


async def test_custom_backoff_is_used(sleep_recorder):
    operation = Flaky(failures=2)

    await retry_with_backoff(operation, backoff=lambda attempt: 0.1 * attempt, sleep=sleep_recorder)

    assert sleep_recorder.delays == pytest.approx([0.1, 0.2])


async def test_unlisted_exceptions_are_not_retried(sleep_recorder):
    operation = Flaky(failures=1, exc_type=KeyError)

    with pytest.raises(KeyError):
        await retry_with_backoff(operation, retry_on=(ValueError,), sleep=sleep_recorder)

    assert operation.calls == 1


async def test_rejects_non_positive_attempts():
    with pytest.raises(ValueError):
        await retry_with_backoff(Flaky(failures=0), max_attempts=0)
