# ABOUTME: Generic polling loop for eventually consistent, rate limited remote state
# ABOUTME: Randomized backoff, bounded retries for ambiguous answers, fixed delay on throttling

"""Remote state polling."""

import logging
import random
import time
from collections.abc import Callable
from enum import Enum
from typing import Any, TypeVar

from ..errors import DeployError, RemoteFatalError, RemoteTransientError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Verdict(Enum):
    """How the poller should treat a probe result or error."""

    TERMINAL = "terminal"  # Stop and return the result
    PENDING = "pending"  # Still in progress; back off and probe again
    AMBIGUOUS = "ambiguous"  # Empty or unclear answer; consumes the retry budget
    TRANSIENT = "transient"  # Throttled; wait a fixed delay, budget untouched
    FATAL = "fatal"  # Abort the poll


def default_error_classifier(error: Exception) -> Verdict:
    """Default error classifier: throttling is transient, anything else fatal."""
    if isinstance(error, RemoteTransientError):
        return Verdict.TRANSIENT
    return Verdict.FATAL


class PollExhausted(DeployError):
    """Raised when ambiguous answers used up the retry budget."""

    pass


class Poller:
    """Repeatedly probes remote state until a classifier calls it terminal."""

    def __init__(
        self,
        max_delay: float = 10.0,
        retry_budget: int = 3,
        rate_limit_delay: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
        jitter: Callable[[float, float], float] = random.uniform,
    ):
        self.max_delay = max_delay
        self.retry_budget = retry_budget
        self.rate_limit_delay = rate_limit_delay
        self.sleep = sleep
        self.jitter = jitter

    def backoff(self) -> None:
        self.sleep(self.jitter(0, self.max_delay))

    def poll(
        self,
        probe: Callable[[], T],
        classify: Callable[[T], Verdict],
        classify_error: Callable[[Exception], Verdict] = default_error_classifier,
        backoff_first: bool = False,
    ) -> T:
        """Probe until terminal.

        Args:
            probe: Reads the remote state.
            classify: Maps a probe result to a verdict.
            classify_error: Maps a probe exception to TRANSIENT or FATAL.
            backoff_first: Sleep before the first probe, for state that was
                just changed and is not yet visible.

        Returns:
            The first result classified as terminal.

        Raises:
            PollExhausted: If ambiguous results exhausted the retry budget.
            RemoteFatalError: If the probe raised an error classified as fatal.
        """
        attempts = 0
        if backoff_first:
            self.backoff()

        while True:
            try:
                result = probe()
            except Exception as e:
                verdict = classify_error(e)
                if verdict == Verdict.TRANSIENT:
                    logger.debug(f"Rate limited, retrying in {self.rate_limit_delay}s")
                    self.sleep(self.rate_limit_delay)
                    continue
                if isinstance(e, DeployError):
                    raise
                raise RemoteFatalError(f"Remote error: {e}") from e

            verdict = classify(result)
            if verdict == Verdict.TERMINAL:
                return result
            if verdict == Verdict.FATAL:
                raise RemoteFatalError(f"Remote state reached a fatal condition: {result!r}")
            if verdict == Verdict.AMBIGUOUS:
                attempts += 1
                if attempts >= self.retry_budget:
                    raise PollExhausted(f"No definitive answer after {attempts} attempts")
            self.backoff()

    def call(
        self, operation: Callable[[], Any], classify_error: Callable[[Exception], Verdict] = default_error_classifier
    ) -> Any:
        """Invoke a one-shot remote operation, retrying only while throttled."""
        return self.poll(operation, lambda _: Verdict.TERMINAL, classify_error)
