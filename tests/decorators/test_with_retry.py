# tests/decorators/test_with_retry.py
"""Tests for inkpress/decorators/with_retry.py."""

from unittest.mock import patch

import pytest
from pytest import mark

from inkpress.decorators import with_retry


class TestWithRetry:
    """Tests for the with_retry decorator."""

    @mark.asyncio
    async def test_retries_until_success(self) -> None:
        """Test retries until success."""
        calls: list[int] = []

        @with_retry(max_attempts=3, base_delay=0.001, max_delay=0.002)
        async def flaky() -> str:
            calls.append(1)
            if len(calls) < 3:
                raise ConnectionError("down")
            return "ok"

        assert await flaky() == "ok"
        assert len(calls) == 3

    @mark.asyncio
    async def test_reraises_after_last_attempt(self) -> None:
        """Test reraises after last attempt."""
        calls: list[int] = []

        @with_retry(max_attempts=2, base_delay=0.001, max_delay=0.002)
        async def down() -> None:
            calls.append(1)
            raise TimeoutError("slow")

        with pytest.raises(TimeoutError):
            await down()
        assert len(calls) == 2

    @mark.asyncio
    async def test_other_errors_not_retried(self) -> None:
        """Test other errors not retried."""
        calls: list[int] = []

        @with_retry(max_attempts=3, base_delay=0.001)
        async def broken() -> None:
            calls.append(1)
            raise ValueError("bad input")

        with pytest.raises(ValueError, match="bad input"):
            await broken()
        assert calls == [1]

    @mark.asyncio
    async def test_retry_on_widens_retried_errors(self) -> None:
        """Test retry_on adds exception types and each retry is logged."""
        calls: list[int] = []

        @with_retry(max_attempts=2, base_delay=0.001, retry_on=(KeyError,))
        async def lookup() -> str:
            calls.append(1)
            if len(calls) == 1:
                raise KeyError("missing")
            return "found"

        with patch("inkpress.decorators.with_retry.logger") as logger:
            assert await lookup() == "found"

        assert len(calls) == 2
        logger.warning.assert_called_once()
