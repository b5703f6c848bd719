import pytest

from server_network.errors import CloudAPIError, CloudTransportError, ErrorCode
from server_network.retry import (
    RetryPolicy,
    exponential_backoff,
    no_backoff,
    retry_on_conflict,
)


def api_error(code: ErrorCode) -> CloudAPIError:
    return CloudAPIError(code, f"simulated {code.value}", 409)


class FlakyOperation:
    """Raises queued errors before returning ``result``."""

    def __init__(self, *errors: Exception, result="done"):
        self.errors = list(errors)
        self.result = result
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return self.result


class TestRetryOnConflict:
    @pytest.mark.asyncio
    async def test_conflict_twice_then_success(self):
        operation = FlakyOperation(api_error(ErrorCode.CONFLICT), api_error(ErrorCode.CONFLICT))

        result = await retry_on_conflict(operation, RetryPolicy(max_attempts=5))

        assert result == "done"
        assert operation.calls == 3  # noqa: PLR2004

    @pytest.mark.asyncio
    async def test_locked_is_retried(self):
        operation = FlakyOperation(api_error(ErrorCode.LOCKED))

        assert await retry_on_conflict(operation, RetryPolicy(max_attempts=2)) == "done"
        assert operation.calls == 2  # noqa: PLR2004

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [
            CloudAPIError(ErrorCode.NOT_FOUND, "not found", 404),
            CloudAPIError(ErrorCode.INVALID_INPUT, "bad ip", 400),
            CloudAPIError(ErrorCode.SERVER_ALREADY_ATTACHED, "already attached", 422),
            CloudTransportError("POST /servers/5/actions/attach_to_network: ReadTimeout()"),
            RuntimeError("boom"),
        ],
    )
    async def test_non_retryable_error_aborts_immediately(self, error):
        operation = FlakyOperation(error)

        with pytest.raises(type(error)) as exc_info:
            await retry_on_conflict(operation, RetryPolicy(max_attempts=5))

        assert exc_info.value is error
        assert operation.calls == 1

    @pytest.mark.asyncio
    async def test_exhausted_retries_raise_last_error(self):
        errors = [api_error(ErrorCode.CONFLICT), api_error(ErrorCode.LOCKED)]
        operation = FlakyOperation(*errors)

        with pytest.raises(CloudAPIError) as exc_info:
            await retry_on_conflict(operation, RetryPolicy(max_attempts=2))

        assert exc_info.value is errors[1]
        assert operation.calls == 2  # noqa: PLR2004

    @pytest.mark.asyncio
    async def test_backoff_called_between_attempts(self, mocker):
        sleep = mocker.patch("server_network.retry.asyncio.sleep")
        delays = []

        def backoff(attempt):
            delays.append(attempt)
            return 0.25 * attempt

        operation = FlakyOperation(api_error(ErrorCode.CONFLICT), api_error(ErrorCode.CONFLICT))

        await retry_on_conflict(operation, RetryPolicy(max_attempts=3, backoff=backoff))

        assert delays == [1, 2]
        assert [call.args[0] for call in sleep.await_args_list] == [0.25, 0.5]


class TestRetryPolicy:
    def test_rejects_zero_attempts(self):
        with pytest.raises(ValueError):
            RetryPolicy(max_attempts=0)

    def test_default_has_no_delay(self):
        assert RetryPolicy().backoff is no_backoff
        assert no_backoff(3) == 0.0

    def test_exponential_backoff_is_capped(self):
        backoff = exponential_backoff(1.0, 5.0)

        assert [backoff(n) for n in range(1, 6)] == [1.0, 2.0, 4.0, 5.0, 5.0]
