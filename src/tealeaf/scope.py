"""Owning concurrency scope and the effect execution context.

``FeatureScope`` is the lifetime root for features: every loop, render
subscription, effect and binding runs as one of its tasks. A task that
fails with an exception fails the whole scope, cancelling its siblings.
``EffectRunner`` launches effect actions into a scope with their
failures contained.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any, TYPE_CHECKING

from tealeaf.effect import Effect, EffectAction, run_guarded

if TYPE_CHECKING:
    from tealeaf.config import TeaConfig
    from tealeaf.types import Dispatch


class ScopeClosedError(RuntimeError):
    """Raised when launching work into a cancelled or failed scope."""


class FeatureScope:
    """Structured lifetime for a group of features.

    Use as an async context manager; leaving the block cancels every task
    launched into the scope and re-raises the failure that ended it, if
    any.

    Parameters
    ----------
    name : str | None
        Scope name, used for the logger. Defaults to ``config.scope_name``.
    config : TeaConfig | None
        Configuration handed to every feature created in this scope.

    Examples
    --------
    >>> async with FeatureScope("app") as scope:
    ...     task = scope.launch(asyncio.sleep(1))
    """

    def __init__(self, name: str | None = None, *, config: TeaConfig | None = None) -> None:
        if config is None:
            from tealeaf.config import TeaConfig

            config = TeaConfig()
        self._config = config
        self._name = name or config.scope_name
        self._tasks: set[asyncio.Task[Any]] = set()
        self._failure: BaseException | None = None
        self._closed = False
        self._ended: asyncio.Event | None = None
        self._logger = logging.getLogger(f"tealeaf.scope.{self._name}")

    @property
    def name(self) -> str:
        return self._name

    @property
    def config(self) -> TeaConfig:
        return self._config

    @property
    def failure(self) -> BaseException | None:
        """The exception that failed the scope, if one did."""
        return self._failure

    @property
    def active(self) -> bool:
        return not self._closed

    @property
    def task_count(self) -> int:
        return len(self._tasks)

    def _ended_event(self) -> asyncio.Event:
        if self._ended is None:
            self._ended = asyncio.Event()
            if self._closed:
                self._ended.set()
        return self._ended

    def launch[T](self, coro: Coroutine[Any, Any, T], *, name: str | None = None) -> asyncio.Task[T]:
        """Run *coro* as a task owned by this scope.

        Raises
        ------
        ScopeClosedError
            If the scope has already been cancelled or has failed.
        """
        if self._closed:
            coro.close()
            msg = f"Scope '{self._name}' is no longer active"
            raise ScopeClosedError(msg)

        task = asyncio.get_running_loop().create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self._fail(exc, task)

    def _fail(self, exc: BaseException, task: asyncio.Task[Any]) -> None:
        if self._failure is not None or self._closed:
            return
        self._failure = exc
        self._logger.error(
            "Task %s failed, cancelling scope",
            task.get_name(),
            exc_info=(type(exc), exc, exc.__traceback__),
        )
        self._close()

    def _close(self) -> None:
        self._closed = True
        for task in tuple(self._tasks):
            task.cancel()
        if self._ended is not None:
            self._ended.set()

    async def cancel(self) -> None:
        """Cancel every task in the scope and wait for them to finish."""
        if not self._closed:
            self._logger.info("Cancelling (%d tasks)", len(self._tasks))
            self._close()
        pending = tuple(self._tasks)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    async def join(self) -> None:
        """Wait until the scope ends; re-raise the failure that ended it."""
        await self._ended_event().wait()
        if self._failure is not None:
            raise self._failure

    async def __aenter__(self) -> FeatureScope:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.cancel()
        if self._failure is not None and exc[0] is None:
            raise self._failure


class EffectRunner:
    """Execution context for effects.

    Each action of a scheduled effect becomes its own scope task. When
    *max_concurrency* is set, at most that many actions run at once and
    the rest wait their turn.

    Parameters
    ----------
    scope : FeatureScope
        Scope the effect tasks belong to.
    max_concurrency : int | None
        Bound on concurrently running actions. ``None`` for unbounded.
    logger : logging.Logger | None
        Logger for contained failures.
    """

    def __init__(
        self,
        scope: FeatureScope,
        *,
        max_concurrency: int | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        if max_concurrency is not None and max_concurrency < 1:
            msg = f"max_concurrency must be positive, got {max_concurrency}"
            raise ValueError(msg)
        self._scope = scope
        self._max_concurrency = max_concurrency
        self._slots = asyncio.Semaphore(max_concurrency) if max_concurrency else None
        self._logger = logger or logging.getLogger("tealeaf.effect")

    @property
    def max_concurrency(self) -> int | None:
        return self._max_concurrency

    def schedule[M](self, effect: Effect[M], dispatch: Dispatch[M]) -> list[asyncio.Task[None]]:
        """Launch every action of *effect*; do not wait for any of them."""
        return [
            self._scope.launch(self._run(action, dispatch), name=f"effect:{self._logger.name}")
            for action in effect.actions
        ]

    async def _run[M](self, action: EffectAction[M], dispatch: Dispatch[M]) -> None:
        if self._slots is None:
            await run_guarded(action, dispatch, self._logger)
            return
        async with self._slots:
            await run_guarded(action, dispatch, self._logger)
