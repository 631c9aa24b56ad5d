"""
Retry policy for probes

Applies a per-attempt timeout and bounded retries with backoff (tenacity),
and turns every failure into a Failed outcome. Nothing raised by a probe
escapes execute() except task cancellation.
"""

import asyncio
import logging
import time
from dataclasses import replace
from enum import Enum
from typing import Awaitable, Callable, Optional

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_fixed,
)
from tenacity.wait import wait_base

from .config import config
from .models import Failed, FailureKind, ProbeOutcome
from .probes.base import ProbeTerminalError, ProbeTimeout, ProbeTransientError, RateLimitError

logger = logging.getLogger(__name__)

RETRYABLE = (ProbeTransientError, asyncio.TimeoutError)


class BackoffStrategy(str, Enum):
    FIXED = "fixed"
    EXPONENTIAL = "exponential"


class wait_retry_after(wait_base):
    """Backoff that stretches to a rate limit's Retry-After, capped at max_delay."""

    def __init__(self, backoff: wait_base, max_delay: float):
        self.backoff = backoff
        self.max_delay = max_delay

    def __call__(self, retry_state: RetryCallState) -> float:
        delay = self.backoff(retry_state)
        error = retry_state.outcome.exception() if retry_state.outcome else None
        if isinstance(error, RateLimitError) and error.retry_after is not None:
            delay = max(delay, error.retry_after)
        return min(delay, self.max_delay)


class RetryPolicy:
    """
    Timeout + retry wrapper around a single probe call.

    The retry budget is inclusive: max_retries=2 means up to three attempts,
    and success on the third still counts as success.
    """

    def __init__(
        self,
        max_retries: Optional[int] = None,
        timeout: Optional[float] = None,
        base_delay: Optional[float] = None,
        backoff: Optional[BackoffStrategy] = None,
        max_delay: Optional[float] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """
        Initialize retry policy.

        Args:
            max_retries: Extra attempts after the first (defaults to config)
            timeout: Seconds per attempt (defaults to config)
            base_delay: Seconds between attempts (defaults to config)
            backoff: Fixed or exponential delay growth (defaults to config)
            max_delay: Upper bound on any single delay
            sleep: Sleep coroutine, swappable in tests
        """
        self.max_retries = config.retry.max_retries if max_retries is None else max_retries
        self.timeout = timeout or config.probe.timeout_seconds
        self.base_delay = config.retry.base_delay_seconds if base_delay is None else base_delay
        self.backoff = BackoffStrategy(backoff or config.retry.backoff)
        self.max_delay = config.retry.max_delay_seconds if max_delay is None else max_delay
        self._sleep = sleep

        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")

    def wait_strategy(self) -> wait_base:
        if self.backoff == BackoffStrategy.EXPONENTIAL:
            backoff = wait_exponential(multiplier=self.base_delay, max=self.max_delay)
        else:
            backoff = wait_fixed(self.base_delay)
        return wait_retry_after(backoff, self.max_delay)

    def _retrying(self, max_retries: int) -> AsyncRetrying:
        return AsyncRetrying(
            retry=retry_if_exception_type(RETRYABLE),
            stop=stop_after_attempt(max_retries + 1),
            wait=self.wait_strategy(),
            sleep=self._sleep,
            before_sleep=before_sleep_log(logger, logging.DEBUG),
            reraise=True,
        )

    async def execute(
        self,
        probe: Callable[[], Awaitable[ProbeOutcome]],
        max_retries: Optional[int] = None,
        timeout: Optional[float] = None,
        *,
        method: str = "unknown",
    ) -> ProbeOutcome:
        """
        Run a probe until it answers, fails terminally, or the budget runs out.

        Args:
            probe: Zero-argument coroutine factory, called once per attempt
            max_retries: Override for this call
            timeout: Override for this call (seconds per attempt)
            method: Method identifier recorded on Failed outcomes

        Returns:
            The probe's outcome stamped with elapsed time and attempt count,
            or Failed carrying the last failure's reason
        """
        max_retries = self.max_retries if max_retries is None else max_retries
        timeout = timeout or self.timeout
        if max_retries < 0:
            raise ValueError("max_retries must be >= 0")

        start = time.monotonic()
        attempts = 0

        def failed(reason: str, kind: FailureKind) -> Failed:
            return Failed(
                reason=reason,
                kind=kind,
                method=method,
                elapsed=time.monotonic() - start,
                attempts=attempts,
            )

        try:
            async for attempt in self._retrying(max_retries):
                with attempt:
                    attempts = attempt.retry_state.attempt_number
                    outcome = await asyncio.wait_for(probe(), timeout)
        except asyncio.TimeoutError:
            return failed(f"timeout after {timeout:g}s", FailureKind.TIMEOUT)
        except ProbeTimeout as e:
            return failed(str(e) if "timeout" in str(e).lower() else f"timeout: {e}", FailureKind.TIMEOUT)
        except RateLimitError as e:
            return failed(str(e), FailureKind.RATE_LIMITED)
        except ProbeTransientError as e:
            return failed(str(e) or e.__class__.__name__, FailureKind.TRANSIENT)
        except ProbeTerminalError as e:
            logger.debug(f"Terminal probe failure on attempt {attempts}: {e}")
            return failed(str(e) or e.__class__.__name__, FailureKind.TERMINAL)
        except Exception as e:
            logger.exception(f"Unexpected probe error on attempt {attempts}")
            return failed(f"Unexpected error: {e}", FailureKind.UNEXPECTED)

        return replace(outcome, elapsed=time.monotonic() - start, attempts=attempts)
