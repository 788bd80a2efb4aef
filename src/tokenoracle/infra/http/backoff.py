"""Exponential backoff pacing for calls to rate-limited providers."""

import asyncio
import functools
import logging
from typing import Awaitable, Callable, TypeVar

from tokenoracle.domain.enums import Network
from tokenoracle.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]


class BackoffExecutor:
    """Paces failures of an async operation with exponential delays.

    This is a pacer, not a retrier: a failed operation is delayed by
    ``base_delay * 2 ** (attempts - 1)`` seconds and then re-raised. A success
    resets the consecutive-failure counter. Callers that want retries loop
    around ``execute`` themselves.
    """

    def __init__(
        self,
        base_delay: float = 1.0,
        timeout: float | None = None,
        sleep: Sleep = asyncio.sleep,
        on_settle: Callable[["BackoffExecutor"], None] | None = None,
    ) -> None:
        self._base_delay = base_delay
        self._timeout = timeout
        self._sleep = sleep
        self._on_settle = on_settle
        self._attempts = 0

    @property
    def attempts(self) -> int:
        return self._attempts

    def next_delay(self) -> float:
        """Delay that the next failure would be paced by."""
        return self._base_delay * 2 ** self._attempts

    async def execute(self, operation: Callable[[], Awaitable[T]]) -> T:
        try:
            if self._timeout is not None:
                result = await asyncio.wait_for(operation(), timeout=self._timeout)
            else:
                result = await operation()
        except asyncio.TimeoutError as exc:
            await self._pace(exc)
            raise ExternalServiceError(f"Provider call timed out after {self._timeout}s") from exc
        except Exception as exc:
            await self._pace(exc)
            raise
        self._attempts = 0
        self._settle()
        return result

    def _settle(self) -> None:
        if self._on_settle is not None:
            self._on_settle(self)

    async def _pace(self, exc: BaseException) -> None:
        self._attempts += 1
        self._settle()
        delay = self._base_delay * 2 ** (self._attempts - 1)
        logger.warning(
            "Provider call failed (%s: %s), consecutive failures=%d, pacing %.1fs",
            type(exc).__name__, exc, self._attempts, delay,
        )
        await self._sleep(delay)


class BackoffRegistry:
    """One BackoffExecutor per (token, network), so unrelated tokens never share failure history.

    Only contexts with outstanding failures are retained. An executor leaves
    the registry as soon as a success resets it, and a held executor that
    fails again re-registers itself.
    """

    def __init__(self, base_delay: float = 1.0, timeout: float | None = None, sleep: Sleep = asyncio.sleep) -> None:
        self._base_delay = base_delay
        self._timeout = timeout
        self._sleep = sleep
        self._executors: dict[tuple[str, str], BackoffExecutor] = {}

    def for_context(self, token: str, network: Network | str) -> BackoffExecutor:
        key = (token.lower(), Network(network).value)
        executor = self._executors.get(key)
        if executor is None:
            executor = BackoffExecutor(
                self._base_delay,
                timeout=self._timeout,
                sleep=self._sleep,
                on_settle=functools.partial(self._settle, key),
            )
            self._executors[key] = executor
        return executor

    def _settle(self, key: tuple[str, str], executor: BackoffExecutor) -> None:
        if executor.attempts:
            self._executors.setdefault(key, executor)
        elif self._executors.get(key) is executor:
            del self._executors[key]

    def __len__(self) -> int:
        return len(self._executors)
