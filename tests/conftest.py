"""Shared fixtures, models and helpers for tealeaf tests."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from dataclasses import dataclass, replace
from typing import Any

import pytest

from tealeaf import Effect, FeatureScope, StateWatcher, TeaFeature, none


# Counter model


@dataclass(frozen=True)
class Add:
    amount: int


@dataclass(frozen=True)
class Fail:
    reason: str = "Intentional failure"


type CounterMsg = Add | Fail


def counter_update(msg: CounterMsg, state: int) -> tuple[int, Effect[CounterMsg]]:
    match msg:
        case Add(amount):
            return state + amount, none()
        case Fail(reason):
            raise ValueError(reason)


# Log model: keeps every applied message, in order


@dataclass(frozen=True)
class LogModel:
    entries: tuple[Any, ...] = ()


def log_update(msg: Any, state: LogModel) -> tuple[LogModel, Effect[Any]]:
    return replace(state, entries=(*state.entries, msg)), none()


def log_feature(scope: FeatureScope, *, name: str = "log", start: Effect[Any] | None = None) -> TeaFeature[LogModel, Any, int]:
    return TeaFeature(
        init=lambda previous: (previous or LogModel(), start or none()),
        update=log_update,
        view=lambda state: len(state.entries),
        scope=scope,
        name=name,
    )


# Helpers


async def until_running(feature: TeaFeature[Any, Any, Any], subscribers: int = 1) -> None:
    """Wait until *feature*'s channel has at least *subscribers* consumers."""
    for _ in range(100):
        if feature.channel.subscriber_count >= subscribers:
            return
        await asyncio.sleep(0)
    raise AssertionError(f"{feature.name} never reached {subscribers} subscribers")


async def last_within[S](states: StateWatcher[S], expected: S, *, timeout: float = 1.0) -> S:
    """Read *states* until *expected* shows up or *timeout* passes; return the last value."""
    last: list[S] = []

    async def read() -> None:
        async for state in states:
            last[:] = [state]
            if state == expected:
                return

    try:
        await asyncio.wait_for(read(), timeout=timeout)
    except asyncio.TimeoutError:
        pass
    finally:
        states.close()
    assert last, "no state observed"
    return last[0]


# Fixtures


@pytest.fixture
async def scope() -> AsyncIterator[FeatureScope]:
    scope = FeatureScope("test")
    yield scope
    await scope.cancel()


@pytest.fixture
async def counter(scope: FeatureScope) -> TeaFeature[int, CounterMsg, str]:
    feature: TeaFeature[int, CounterMsg, str] = TeaFeature(
        init=lambda previous: (previous or 0, none()),
        update=counter_update,
        view=str,
        scope=scope,
        name="counter",
    )
    await until_running(feature)
    return feature
