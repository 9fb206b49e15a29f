"""Invocation of mode lifecycle hooks with a bounded timeout."""

import asyncio
import inspect
from typing import Awaitable, Optional

from ..errors import HookFailure
from .types import ModeDefinition


async def invoke_hook(
    mode: ModeDefinition,
    hook_name: str,
    *args: str,
    timeout: Optional[float] = None,
) -> None:
    """
    Call ``mode.hooks.<hook_name>`` and await it if it returns an awaitable.

    A missing hook is a no-op. ``timeout`` of None or 0 waits indefinitely.

    Raises:
        HookFailure: If the hook raises or exceeds the timeout.
    """
    hook = getattr(mode.hooks, hook_name, None) if mode.hooks else None
    if hook is None:
        return

    finished = True
    try:
        result = hook(*args)
        if inspect.isawaitable(result):
            finished = await _wait_bounded(result, timeout)
    except Exception as e:
        raise HookFailure(mode.id, hook_name, str(e) or type(e).__name__) from e

    if not finished:
        raise HookFailure(mode.id, hook_name, f"timed out after {timeout:g}s")


async def _wait_bounded(awaitable: Awaitable, timeout: Optional[float]) -> bool:
    """
    Await ``awaitable``, returning False if ``timeout`` expired first.

    Exceptions raised by the awaitable itself propagate unchanged, so a
    hook raising its own TimeoutError is not mistaken for an expired bound.
    """
    if not timeout:
        await awaitable
        return True

    task = asyncio.ensure_future(awaitable)
    try:
        done, _ = await asyncio.wait({task}, timeout=timeout)
    except asyncio.CancelledError:
        task.cancel()
        raise

    if not done:
        task.cancel()
        return False

    task.result()
    return True
