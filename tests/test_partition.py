"""
Unit tests for the error-partitioning runner.
"""

from __future__ import annotations

import asyncio
import logging

import pytest

from perspective.errors import ConfigurationError, ItemProcessingError, normalize_error
from perspective.parallel.partition import (
    ItemFailure,
    ItemSuccess,
    PartitionResult,
    process_with_errors,
)


async def fail_on_multiples_of_three(x: int) -> int:
    await asyncio.sleep(0)
    if x % 3 == 0:
        raise ValueError(f"bad item {x}")
    return x * 10


class TestContinueOnError:
    """Tests for the default continue_on_error=True mode."""

    @pytest.mark.asyncio
    async def test_every_item_lands_in_exactly_one_group(self) -> None:
        items = list(range(1, 13))

        outcome = await process_with_errors(items, fail_on_multiples_of_three, concurrency_limit=4)

        assert outcome.success_count + outcome.failure_count == len(items)
        succeeded = {entry.item for entry in outcome.successful}
        failed = {entry.item for entry in outcome.failed}
        assert succeeded.isdisjoint(failed)
        assert succeeded | failed == set(items)
        assert failed == {3, 6, 9, 12}
        assert all(entry.result == entry.item * 10 for entry in outcome.successful)

    @pytest.mark.asyncio
    async def test_groups_are_in_completion_order(self) -> None:
        """Test successful entries follow completion order, not input order."""
        delays = {"slow": 0.03, "medium": 0.015, "fast": 0.0}

        async def processor(name: str) -> str:
            await asyncio.sleep(delays[name])
            return name.upper()

        outcome = await process_with_errors(["slow", "medium", "fast"], processor)

        assert [entry.item for entry in outcome.successful] == ["fast", "medium", "slow"]
        assert outcome.results == ["FAST", "MEDIUM", "SLOW"]

    @pytest.mark.asyncio
    async def test_on_error_receives_error_and_item(self) -> None:
        seen: list[tuple[str, int]] = []

        outcome = await process_with_errors(
            [1, 3, 4],
            fail_on_multiples_of_three,
            on_error=lambda err, item: seen.append((str(err), item)),
        )

        assert seen == [("bad item 3", 3)]
        assert outcome.failed_items == [3]
        assert isinstance(outcome.failed[0].error, ValueError)

    @pytest.mark.asyncio
    async def test_failing_on_error_callback_is_suppressed(self, caplog) -> None:
        """Test an exception inside on_error is logged and does not crash the run."""

        def broken_callback(error: Exception, item: int) -> None:
            raise RuntimeError("callback exploded")

        with caplog.at_level(logging.ERROR, logger="perspective.parallel.partition"):
            outcome = await process_with_errors(
                [1, 2, 3, 6], fail_on_multiples_of_three, on_error=broken_callback
            )

        assert outcome.success_count == 2
        assert outcome.failure_count == 2
        assert "on_error callback raised" in caplog.text

    @pytest.mark.asyncio
    async def test_empty_input(self) -> None:
        outcome = await process_with_errors([], fail_on_multiples_of_three)

        assert outcome.total == 0
        assert outcome.successful == []
        assert outcome.failed == []

    @pytest.mark.asyncio
    async def test_invalid_limit_rejected(self) -> None:
        calls: list[int] = []

        async def processor(x: int) -> int:
            calls.append(x)
            return x

        with pytest.raises(ConfigurationError):
            await process_with_errors([1, 2], processor, concurrency_limit=0)
        assert calls == []


class TestAbortOnError:
    """Tests for continue_on_error=False."""

    @pytest.mark.asyncio
    async def test_first_failure_is_raised(self) -> None:
        with pytest.raises(ValueError, match="bad item 3"):
            await process_with_errors(
                [1, 2, 3, 4, 5], fail_on_multiples_of_three, continue_on_error=False
            )

    @pytest.mark.asyncio
    async def test_partition_frozen_after_first_failure(self) -> None:
        """Test nothing is recorded or reported once the run aborts."""
        errors: list[int] = []
        finished: list[int] = []

        async def processor(x: int) -> int:
            if x in (0, 1):
                await asyncio.sleep(0)
                raise ValueError(f"failure {x}")
            await asyncio.sleep(10)
            finished.append(x)
            return x

        with pytest.raises(ValueError, match="failure 0"):
            await process_with_errors(
                [0, 1, 2, 3],
                processor,
                concurrency_limit=4,
                continue_on_error=False,
                on_error=lambda err, item: errors.append(item),
            )

        assert errors == [0]
        assert finished == []


class TestPartitionResult:
    def test_counts_and_accessors(self) -> None:
        outcome = PartitionResult(
            successful=[ItemSuccess(item="a", result=1), ItemSuccess(item="b", result=2)],
            failed=[ItemFailure(item="c", error=KeyError("c"))],
        )

        assert outcome.success_count == 2
        assert outcome.failure_count == 1
        assert outcome.total == 3
        assert outcome.results == [1, 2]
        assert outcome.failed_items == ["c"]

    def test_extend_merges_groups(self) -> None:
        first = PartitionResult(successful=[ItemSuccess(item=1, result=1)])
        second = PartitionResult(failed=[ItemFailure(item=2, error=ValueError("x"))])

        first.extend(second)

        assert first.total == 2
        assert first.failed_items == [2]

    def test_raise_if_failed(self) -> None:
        PartitionResult().raise_if_failed()

        error = ValueError("first")
        outcome = PartitionResult(failed=[ItemFailure(item=1, error=error)])
        with pytest.raises(ValueError) as exc_info:
            outcome.raise_if_failed()
        assert exc_info.value is error


def test_normalize_error_keeps_exceptions():
    error = KeyError("missing")
    assert normalize_error(error) is error


def test_normalize_error_wraps_other_values():
    error = normalize_error("upstream said no")

    assert isinstance(error, ItemProcessingError)
    assert str(error) == "upstream said no"
    assert error.value == "upstream said no"


def test_normalize_error_chains_base_exceptions():
    interrupt = KeyboardInterrupt("stop")
    error = normalize_error(interrupt)

    assert isinstance(error, ItemProcessingError)
    assert error.__cause__ is interrupt
