from __future__ import annotations

import asyncio
from typing import Any

import pytest

from pytriple.config import StoreConfig
from pytriple.exceptions import UnhandledFailure
from pytriple.models.either import Either, Left, Right
from pytriple.store import Store


def _record(store: Store[Any, Any]) -> list[tuple[str, Any]]:
    seen: list[tuple[str, Any]] = []
    store.observer(
        on_state=lambda s: seen.append(("state", s)),
        on_loading=lambda v: seen.append(("loading", v)),
        on_error=lambda e: seen.append(("error", e)),
    )
    return seen


# ------------------------------------------------------------------
# execute
# ------------------------------------------------------------------


@pytest.mark.asyncio
async def test_execute_success_brackets_loading() -> None:
    store: Store[ValueError, int] = Store(0)
    seen = _record(store)

    async def fetch() -> int:
        return 7

    await store.execute(fetch, delay=0)

    assert seen == [("loading", True), ("state", 7), ("loading", False)]
    assert store.state == 7
    assert store.is_loading is False


@pytest.mark.asyncio
async def test_execute_typed_failure_sets_error_then_clears_loading() -> None:
    store: Store[ValueError, int] = Store(0, error_type=ValueError)
    seen = _record(store)
    err = ValueError("nope")

    async def fetch() -> int:
        raise err

    await store.execute(fetch, delay=0)

    assert seen == [("loading", True), ("error", err), ("loading", False)]
    assert store.error is err
    assert store.state == 0


@pytest.mark.asyncio
async def test_execute_uses_configured_delay() -> None:
    store: Store[ValueError, int] = Store(0, config=StoreConfig(execute_delay=0))

    async def fetch() -> int:
        return 1

    await store.execute(fetch)
    assert store.state == 1


@pytest.mark.asyncio
async def test_execute_debounce_collapses_to_last_call() -> None:
    store: Store[ValueError, int] = Store(0)
    calls: list[str] = []

    async def first() -> int:
        calls.append("first")
        return 1

    async def second() -> int:
        calls.append("second")
        return 2

    await asyncio.gather(
        store.execute(first, delay=0.01),
        store.execute(second, delay=0.01),
    )

    assert calls == ["second"]
    assert store.state == 2
    assert store.is_loading is False


@pytest.mark.asyncio
async def test_execute_cancels_in_flight_producer() -> None:
    store: Store[ValueError, int] = Store(0)
    started = asyncio.Event()
    gate = asyncio.Event()
    outcome: list[str] = []

    async def slow() -> int:
        started.set()
        try:
            await gate.wait()
        except asyncio.CancelledError:
            outcome.append("cancelled")
            raise
        outcome.append("finished")
        return 1

    async def fast() -> int:
        return 2

    first = asyncio.create_task(store.execute(slow, delay=0))
    await started.wait()

    await store.execute(fast, delay=0)
    gate.set()
    await first

    assert outcome == ["cancelled"]
    assert store.state == 2
    assert store.is_loading is False


@pytest.mark.asyncio
async def test_stale_result_of_producer_ignoring_cancellation_is_discarded() -> None:
    store: Store[ValueError, int] = Store(0)
    seen = _record(store)
    started = asyncio.Event()

    async def stubborn() -> int:
        started.set()
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            pass
        return 99

    async def fresh() -> int:
        return 2

    first = asyncio.create_task(store.execute(stubborn, delay=0))
    await started.wait()
    await store.execute(fresh, delay=0)
    await first

    assert ("state", 99) not in seen
    assert store.state == 2


@pytest.mark.asyncio
async def test_cancelled_failure_is_not_applied() -> None:
    store: Store[ValueError, int] = Store(0, error_type=ValueError)
    started = asyncio.Event()

    async def failing() -> int:
        started.set()
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            raise ValueError("late failure") from None
        return 1

    async def fresh() -> int:
        return 2

    first = asyncio.create_task(store.execute(failing, delay=0))
    await started.wait()
    await store.execute(fresh, delay=0)
    await first

    assert store.error is None
    assert store.state == 2


@pytest.mark.asyncio
async def test_mistyped_failure_goes_to_unhandled_channel() -> None:
    failures: list[UnhandledFailure] = []
    store: Store[ValueError, int] = Store(
        0,
        error_type=ValueError,
        on_unhandled=failures.append,
        config=StoreConfig(log_unhandled=False),
    )
    seen = _record(store)

    async def fetch() -> int:
        raise KeyError("missing")

    await store.execute(fetch, delay=0)

    assert len(failures) == 1
    assert isinstance(failures[0].cause, KeyError)
    assert failures[0].generation == 1
    assert store.error is None
    assert store.state == 0
    # Only the admission bracket was observed.
    assert seen == [("loading", True)]


@pytest.mark.asyncio
async def test_mistyped_value_goes_to_unhandled_channel() -> None:
    failures: list[UnhandledFailure] = []
    store: Store[ValueError, int] = Store(0, state_type=int, on_unhandled=failures.append)

    async def fetch() -> Any:
        return "seven"

    await store.execute(fetch, delay=0)

    assert failures[0].value == "seven"
    assert store.state == 0


@pytest.mark.asyncio
async def test_unhandled_failure_is_logged(caplog: pytest.LogCaptureFixture) -> None:
    store: Store[ValueError, int] = Store(0, error_type=ValueError)

    async def fetch() -> int:
        raise KeyError("missing")

    with caplog.at_level("WARNING", logger="pytriple.store"):
        await store.execute(fetch, delay=0)

    assert "Unhandled producer outcome" in caplog.text


@pytest.mark.asyncio
async def test_caller_cancellation_cancels_producer() -> None:
    store: Store[ValueError, int] = Store(0)
    started = asyncio.Event()
    cancelled = asyncio.Event()

    async def slow() -> int:
        started.set()
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            cancelled.set()
            raise
        return 1

    call = asyncio.create_task(store.execute(slow, delay=0))
    await started.wait()
    call.cancel()

    with pytest.raises(asyncio.CancelledError):
        await call
    await asyncio.wait_for(cancelled.wait(), timeout=1.0)
    assert store.state == 0


@pytest.mark.asyncio
async def test_destroy_cancels_in_flight_producer() -> None:
    store: Store[ValueError, int] = Store(0)
    states: list[int] = []
    store.observer(on_state=states.append)
    started = asyncio.Event()

    async def slow() -> int:
        started.set()
        await asyncio.sleep(10)
        return 1

    call = asyncio.create_task(store.execute(slow, delay=0))
    await started.wait()
    await store.destroy()
    await call

    assert states == []
    assert store.state == 0


@pytest.mark.asyncio
async def test_destroy_abandons_debouncing_call() -> None:
    store: Store[ValueError, int] = Store(0)
    calls: list[str] = []

    async def fetch() -> int:
        calls.append("fetch")
        return 1

    call = asyncio.create_task(store.execute(fetch, delay=0.01))
    await asyncio.sleep(0)
    await store.destroy()
    await call

    assert calls == []
    assert store.is_loading is False


@pytest.mark.asyncio
async def test_execute_after_destroy_is_noop() -> None:
    store: Store[ValueError, int] = Store(0)
    await store.destroy()

    async def fetch() -> int:
        return 1

    await store.execute(fetch, delay=0)
    assert store.state == 0
    assert store.is_loading is False


# ------------------------------------------------------------------
# execute_either
# ------------------------------------------------------------------


@pytest.mark.asyncio
async def test_execute_either_left_sets_error() -> None:
    store: Store[ValueError, int] = Store(0)
    seen = _record(store)
    err = ValueError("left")

    async def fetch() -> Either[ValueError, int]:
        return Left(err)

    await store.execute_either(fetch, delay=0)

    assert store.error is err
    assert store.is_loading is False
    assert seen == [("loading", True), ("error", err), ("loading", False)]


@pytest.mark.asyncio
async def test_execute_either_right_updates_state() -> None:
    store: Store[ValueError, int] = Store(0)
    seen = _record(store)

    async def fetch() -> Either[ValueError, int]:
        return Right(4)

    await store.execute_either(fetch, delay=0)

    assert store.state == 4
    assert store.is_loading is False
    assert seen == [("loading", True), ("state", 4), ("loading", False)]


@pytest.mark.asyncio
async def test_execute_either_debounce_collapses_to_last_call() -> None:
    store: Store[ValueError, int] = Store(0)

    async def first() -> Either[ValueError, int]:
        return Right(1)

    async def second() -> Either[ValueError, int]:
        return Left(ValueError("second"))

    await asyncio.gather(
        store.execute_either(first, delay=0.01),
        store.execute_either(second, delay=0.01),
    )

    assert store.state == 0
    assert isinstance(store.error, ValueError)


@pytest.mark.asyncio
async def test_execute_either_non_either_result_is_unhandled() -> None:
    failures: list[UnhandledFailure] = []
    store: Store[ValueError, int] = Store(0, on_unhandled=failures.append)

    async def fetch() -> Any:
        return 5

    await store.execute_either(fetch, delay=0)

    assert failures[0].value == 5
    assert store.state == 0


@pytest.mark.asyncio
async def test_execute_either_raising_producer_is_unhandled() -> None:
    failures: list[UnhandledFailure] = []
    store: Store[ValueError, int] = Store(0, on_unhandled=failures.append)

    async def fetch() -> Either[ValueError, int]:
        raise RuntimeError("contract broken")

    await store.execute_either(fetch, delay=0)

    assert isinstance(failures[0].cause, RuntimeError)
    assert store.error is None
