"""Contract aliases for the collaborators a feature is built from.

A feature is assembled from an ``init`` (or ``InitWithPrevious``), an
``update`` reducer, a ``view`` projection and an optional ``render`` sink.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tealeaf.effect import Effect


type Dispatch[M] = Callable[[M], Awaitable[None]]
type Update[S, M] = Callable[[M, S], tuple[S, Effect[M]]]
type Init[S, M] = Callable[[], tuple[S, Effect[M]]]
type InitWithPrevious[S, M] = Callable[[S | None], tuple[S, Effect[M]]]
type View[S, P] = Callable[[S], P | Awaitable[P]]
type Render[S] = Callable[[S], Awaitable[None] | None]


def init_with_previous[S, M](init: Init[S, M]) -> InitWithPrevious[S, M]:
    """Adapt a plain ``init`` into one that honours a restored state.

    The restored state, when given, replaces the state produced by *init*.
    The start effect of *init* is kept either way.

    Examples
    --------
    >>> from tealeaf import none
    >>> start = init_with_previous(lambda: (0, none()))
    >>> start(None)[0], start(7)[0]
    (0, 7)
    """

    def restore(previous: S | None) -> tuple[S, Effect[M]]:
        state, start_effect = init()
        return (state if previous is None else previous), start_effect

    return restore
