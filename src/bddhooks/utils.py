import asyncio
import functools
import inspect
import logging
from typing import Any, Callable, Optional

from .exceptions import HookTimeoutError

__all__ = ["call_with_timeout", "settle"]

logger = logging.getLogger(__name__)


async def settle(result: Any) -> Any:
    """Awaits ``result`` if it is awaitable, otherwise returns it as is."""
    if inspect.isawaitable(result):
        return await result
    return result


def _is_async(fn: Callable[..., Any]) -> bool:
    while isinstance(fn, functools.partial):
        fn = fn.func
    return inspect.iscoroutinefunction(fn)


def _log_abandoned(message: str, future: "asyncio.Future") -> None:
    if future.cancelled():
        return
    error = future.exception()
    if error is not None:
        logger.warning("Abandoned call failed after '%s': %r", message, error)


async def call_with_timeout(fn: Callable[[], Any], timeout: Optional[float] = None, message: str = "") -> Any:
    """Calls ``fn`` and waits for it to settle, at most ``timeout`` milliseconds.

    Without a timeout, synchronous callables run inline on the event loop. With a
    timeout they run in the loop's default executor, so the timeout still fires
    when they block. On timeout the pending call is abandoned: it is not cancelled
    and its late outcome is only logged.

    Args:
        fn (Callable[[], Any]): Zero-argument callable, sync or async.
        timeout (Optional[float]): Timeout in milliseconds. ``None`` or ``0`` disables it.
        message (str): Message of the HookTimeoutError.

    Raises:
        HookTimeoutError: If ``fn`` did not settle in time.

    Returns:
        Any: Whatever ``fn`` returned (awaited, if awaitable).
    """
    if not timeout:
        return await settle(fn())

    loop = asyncio.get_running_loop()
    if _is_async(fn):
        future = asyncio.ensure_future(fn())
    else:
        future = loop.run_in_executor(None, fn)

    done, _ = await asyncio.wait({future}, timeout=timeout / 1000)
    if not done:
        future.add_done_callback(functools.partial(_log_abandoned, message))
        raise HookTimeoutError(message, timeout=timeout)

    return await settle(future.result())
