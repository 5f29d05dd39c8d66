"""Helpers for running async command bodies under click."""

import asyncio
import functools
from typing import Any, Callable, Coroutine


def async_command(f: Callable[..., Coroutine[Any, Any, Any]]) -> Callable[..., Any]:
    """
    Run an async click command to completion.

    Example:
        @click.command()
        @async_command
        async def show() -> None:
            ...
    """

    @functools.wraps(f)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        return asyncio.run(f(*args, **kwargs))

    return wrapper
