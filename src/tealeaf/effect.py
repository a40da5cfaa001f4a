"""Effects: deferred asynchronous work that may emit messages.

An ``Effect`` is a flat tuple of actions. Each action receives a dispatch
callback and may call it any number of times. ``batch`` concatenates
actions, so every action of a batch is scheduled as its own task and runs
independently of its siblings.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TYPE_CHECKING

if TYPE_CHECKING:
    from tealeaf.types import Dispatch


logger = logging.getLogger("tealeaf.effect")

type EffectAction[M] = Callable[[Dispatch[M]], Awaitable[None]]


async def run_guarded[M](
    action: EffectAction[M],
    dispatch: Dispatch[M],
    log: logging.Logger = logger,
) -> None:
    """Run a single action, logging and containing any failure."""
    try:
        await action(dispatch)
    except Exception:
        log.exception("Effect %r failed", getattr(action, "__qualname__", action))


@dataclass(frozen=True)
class Effect[M]:
    """A (possibly empty) set of independent asynchronous actions.

    Parameters
    ----------
    actions : tuple[EffectAction[M], ...]
        Actions to run. Each one is handed a dispatch callback.

    Examples
    --------
    >>> async def ping(dispatch):
    ...     await dispatch("ping")
    >>> eff = effect(ping)
    >>> len(batch(eff, none(), eff).actions)
    2
    """

    actions: tuple[EffectAction[M], ...] = ()

    @property
    def is_none(self) -> bool:
        return not self.actions

    def map[N](self, fn: Callable[[M], N]) -> Effect[N]:
        """Translate every message this effect emits through *fn*.

        Parameters
        ----------
        fn : Callable[[M], N]
            Message translation applied before dispatching.

        Returns
        -------
        Effect[N]
        """

        def translate(action: EffectAction[M]) -> EffectAction[N]:
            async def mapped(dispatch: Dispatch[N]) -> None:
                async def forward(msg: M) -> None:
                    await dispatch(fn(msg))

                await action(forward)

            return mapped

        return Effect(tuple(translate(a) for a in self.actions))

    async def run(self, dispatch: Dispatch[M], *, log: logging.Logger = logger) -> None:
        """Run every action concurrently and wait for all of them.

        Failures are logged and contained per action; cancellation of the
        caller cancels the actions still running.
        """
        match self.actions:
            case ():
                return
            case (action,):
                await run_guarded(action, dispatch, log)
            case actions:
                await asyncio.gather(*(run_guarded(a, dispatch, log) for a in actions))


def effect[M](action: EffectAction[M]) -> Effect[M]:
    """Wrap a single coroutine function as an effect."""
    return Effect((action,))


_NONE: Effect[Any] = Effect()


def none() -> Effect[Any]:
    """The effect that does nothing."""
    return _NONE


def batch[M](*effects: Effect[M]) -> Effect[M]:
    """Combine effects; their actions run independently of each other."""
    return Effect(tuple(action for eff in effects for action in eff.actions))


def dispatch_effect[M](*msgs: M) -> Effect[M]:
    """Effect that emits *msgs* one after another, in order.

    Examples
    --------
    >>> eff = dispatch_effect("a", "b")
    >>> eff.is_none
    False
    """
    if not msgs:
        return none()

    async def emit(dispatch: Dispatch[M]) -> None:
        for msg in msgs:
            await dispatch(msg)

    return Effect((emit,))
