"""
Timeouts, retries and fallbacks around outbound calls.

Every helper returns a ``Result`` instead of raising for expected failures,
so callers can merge partial results from independent sources.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

from .exceptions import AccountNotFoundError, MalformedResponseError, MoveFlowError, StreamNotFoundError
from .models import ErrorKind, Result

logger = logging.getLogger(__name__)

T = TypeVar('T')

CallFactory = Callable[[], Awaitable[T]]


def classify_error(error: BaseException) -> ErrorKind:
    if isinstance(error, asyncio.TimeoutError):
        return ErrorKind.TIMEOUT
    if isinstance(error, (AccountNotFoundError, StreamNotFoundError)):
        return ErrorKind.NOT_FOUND
    if isinstance(error, MalformedResponseError):
        return ErrorKind.MALFORMED
    if isinstance(error, ValueError):
        return ErrorKind.VALIDATION
    if isinstance(error, MoveFlowError):
        return ErrorKind.NETWORK if error.retryable else ErrorKind.SDK
    return ErrorKind.SDK


async def call_with_retry(factory: CallFactory,
                          label: str,
                          timeout: float,
                          retries: int = 3,
                          backoff: float = 1.0,
                          sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep) -> Result:
    """
    Run ``factory()`` with a per-attempt timeout.

    Timeouts and transport errors are retried up to ``retries`` times,
    waiting ``backoff * attempt`` seconds between attempts. Malformed
    responses, not-found and validation errors fail straight away.
    """
    attempts = retries + 1
    last_error: Optional[BaseException] = None
    for attempt in range(1, attempts + 1):
        try:
            value = await asyncio.wait_for(factory(), timeout=timeout)
            if attempt > 1:
                logger.info(f"{label} succeeded on attempt {attempt}")
            return Result.success(value, attempts=attempt)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            last_error = e
            kind = classify_error(e)
            message = str(e) or f"timed out after {timeout}s"
            if not kind.retryable:
                logger.warning(f"{label} failed ({kind.value}), not retrying: {message}")
                return Result.failure(kind, message, attempts=attempt)
            if attempt < attempts:
                delay = backoff * attempt
                logger.warning(f"{label} attempt {attempt}/{attempts} failed ({kind.value}): {message}. "
                               f"Retrying in {delay:.1f}s")
                await sleep(delay)

    kind = classify_error(last_error) if last_error else ErrorKind.NETWORK
    message = str(last_error) or f"timed out after {timeout}s"
    logger.error(f"{label} failed after {attempts} attempts: {message}")
    return Result.failure(kind, f"{label} failed after {attempts} attempts: {message}", attempts=attempts)


async def gather_results(**calls: Awaitable[Result]) -> Dict[str, Result]:
    """Run independent calls concurrently and wait for all of them.

    A call that raises instead of returning a Result is recorded as a failure.
    """
    names = list(calls.keys())
    outcomes = await asyncio.gather(*calls.values(), return_exceptions=True)
    results: Dict[str, Result] = {}
    for name, outcome in zip(names, outcomes):
        if isinstance(outcome, asyncio.CancelledError):
            raise outcome
        if isinstance(outcome, BaseException):
            logger.warning(f"Source {name} raised: {outcome}")
            results[name] = Result.failure(classify_error(outcome), str(outcome))
        else:
            results[name] = outcome
    return results


async def with_deadline(awaitable: Awaitable[T], seconds: float, label: str) -> Result:
    """Caller-facing deadline around a whole operation; in-flight work is cancelled on expiry"""
    try:
        return Result.success(await asyncio.wait_for(awaitable, timeout=seconds))
    except asyncio.TimeoutError:
        logger.error(f"{label} did not finish within {seconds}s")
        return Result.failure(ErrorKind.TIMEOUT, f"{label} timed out after {seconds:g} seconds")


async def first_successful(*factories: Callable[[], Awaitable[Result]]) -> Result:
    """Try each source in order until one returns a non-empty successful result.

    Falls back to the last failure, or to an empty success when every source
    answered but had nothing.
    """
    failure: Optional[Result] = None
    empty: Result = Result.success([])
    for factory in factories:
        result = await factory()
        if result.ok and result.value:
            return result
        if result.ok:
            empty = result
        else:
            failure = result
    return failure or empty
