"""Latest-wins projection of state into props."""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import AsyncGenerator
from typing import cast

from tealeaf.state import StateCell
from tealeaf.types import View

logger = logging.getLogger("tealeaf.view")


async def _project[S, P](view: View[S, P], state: S, *, offload: bool) -> P:
    if inspect.iscoroutinefunction(view):
        return await view(state)
    if offload:
        loop = asyncio.get_running_loop()
        result = await loop.run_in_executor(None, view, state)
    else:
        result = view(state)
    if inspect.isawaitable(result):
        return await result
    return cast(P, result)


def _discard(task: asyncio.Future[object]) -> None:
    if not task.done():
        task.cancel()
    elif not task.cancelled():
        task.exception()  # marks a failed, abandoned projection as retrieved


async def project_latest[S, P](
    cell: StateCell[S],
    view: View[S, P],
    *,
    offload: bool = False,
) -> AsyncGenerator[P, None]:
    """Yield ``view(state)`` for the states of *cell*, newest first.

    Starts with a projection of the current state. When a new state
    arrives while a projection is still running, that projection is
    abandoned and only the newer one is delivered, so consumers may see
    gaps but never a stale value after a fresher one.

    Parameters
    ----------
    cell : StateCell[S]
        Source of states.
    view : View[S, P]
        Projection; may be a plain function or a coroutine function.
    offload : bool
        Run plain-function views in the loop's default executor.
    """
    with cell.watch(conflate=True) as states:
        next_state: asyncio.Task[S] | None = None
        projecting: asyncio.Task[P] | None = None
        try:
            while True:
                if next_state is None:
                    next_state = asyncio.ensure_future(states.get())
                waiting: set[asyncio.Future[object]] = {next_state}
                if projecting is not None:
                    waiting.add(projecting)

                done, _ = await asyncio.wait(waiting, return_when=asyncio.FIRST_COMPLETED)

                if next_state in done:
                    state = next_state.result()
                    next_state = None
                    if projecting is not None:
                        _discard(projecting)
                        logger.debug("Abandoned stale projection")
                    projecting = asyncio.ensure_future(_project(view, state, offload=offload))
                    continue

                if projecting is not None and projecting in done:
                    props = projecting.result()
                    projecting = None
                    yield props
        finally:
            for pending in (next_state, projecting):
                if pending is not None:
                    _discard(pending)
