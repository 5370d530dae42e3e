import asyncio
import functools
import random
from typing import Callable, Optional
from fastapi import HTTPException , status
from sqlalchemy.exc import DBAPIError,OperationalError,InterfaceError
from gamekeys.common.circuit_breaker import CircuitOpenError, db_circuit
from gamekeys.common.logging_setup import get_logger

logger = get_logger("gamekeys.common")


def is_recoverable_exception(exc: BaseException) -> bool:
    if isinstance(exc, asyncio.CancelledError):
        return False
    if isinstance(exc, (TimeoutError, ConnectionError, OperationalError, InterfaceError)):
        return True
    if isinstance(exc, DBAPIError):
        # connection_invalidated is set when the pool dropped the connection
        if getattr(exc, "connection_invalidated", False):
            return True
        orig = getattr(exc, "orig", None)
        if orig is not None:
            name = type(orig).__name__.lower()
            if any(k in name for k in ("timeout", "connection", "brokenpipe", "connectionrefused", "connectionreset")):
                return True
    return False

async def _sleep_with_jitter(delay: float, jitter: float) -> None:
    jitter_val = random.uniform(-jitter * delay, jitter * delay)
    await asyncio.sleep(max(0.0, delay + jitter_val))


def retry_with_db_circuit(
    *,
    attempts: int = 3,
    base_delay: float = 0.1,
    factor: float = 2.0,
    max_delay: float = 1.0,
    jitter: float = 0.15,
    if_retryable: Optional[Callable[[BaseException], bool]] = None,
    per_attempt_timeout: Optional[float] = None,
    circuit = None,
):
    """Retry an idempotent read on transient db errors, failing fast while the circuit is open.

    Only wrap side-effect free calls; checkout writes never go through here.
    """
    if if_retryable is None:
        if_retryable = is_recoverable_exception

    def deco(fn: Callable):
        @functools.wraps(fn)
        async def wrapper(*args, **kwargs):
            cb = circuit or db_circuit
            last_exc = None
            for attempt in range(1, attempts + 1):

                try:
                    await cb.before_call()
                except CircuitOpenError:
                    raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="service unavailable (db)")

                acquired_probe = False
                if cb.state == "HALF_OPEN":
                    acquired_probe = await cb.acquire_half_open_probe(timeout=0.1)
                    if not acquired_probe:
                        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="service unavailable (db)")

                try:
                    if per_attempt_timeout:
                        result = await asyncio.wait_for(fn(*args,**kwargs), timeout=per_attempt_timeout)
                    else:
                        result = await fn(*args,**kwargs)
                except asyncio.CancelledError:
                    if acquired_probe:
                        cb.release_half_open_probe()
                    raise
                except Exception as exc:
                    last_exc = exc
                    if acquired_probe:
                        cb.release_half_open_probe()

                    retryable = if_retryable(exc)
                    if not retryable:
                        raise

                    await cb.record_failure()
                    if attempt == attempts:
                        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="service unavailable (db)") from exc

                    delay = min(max_delay, base_delay * (factor ** (attempt - 1)))
                    logger.debug("db read attempt %d failed; retrying in %f: %s", attempt, delay, exc)
                    await _sleep_with_jitter(delay, jitter)
                    continue

                if acquired_probe:
                    cb.release_half_open_probe()
                await cb.record_success()
                return result

            raise last_exc
        return wrapper
    return deco
