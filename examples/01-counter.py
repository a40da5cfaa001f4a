"""Counter: The basics of tealeaf.

Demonstrates:
- Frozen dataclass messages with pattern matching
- A pure update function returning (state, effect)
- dispatch() (fire-and-forget) vs sync_dispatch() (wait for hand-off)
- Rendering every state and reading latest-wins props

Run with:
    uv run python examples/01-counter.py
"""

import asyncio
from dataclasses import dataclass

from tealeaf import Effect, FeatureScope, TeaFeature, dispatch_effect, none


@dataclass(frozen=True)
class Increment:
    amount: int = 1


@dataclass(frozen=True)
class Decrement:
    amount: int = 1


@dataclass(frozen=True)
class Reset:
    pass


type CounterMsg = Increment | Decrement | Reset


def update(msg: CounterMsg, count: int) -> tuple[int, Effect[CounterMsg]]:
    match msg:
        case Increment(amount):
            return count + amount, none()
        case Decrement(amount):
            if count - amount < 0:
                return count, dispatch_effect(Reset())
            return count - amount, none()
        case Reset():
            return 0, none()


def view(count: int) -> str:
    return f"Count: {count}"


async def main():
    async with FeatureScope("counter-demo") as scope:
        counter = TeaFeature(
            init=lambda previous: (previous or 0, none()),
            update=update,
            view=view,
            scope=scope,
            on_each_state=lambda count: print(f"state -> {count}"),
            name="counter",
        )
        await asyncio.sleep(0)

        # sync_dispatch() - wait until the loop has taken the message
        await counter.sync_dispatch(Increment(10))
        await counter.sync_dispatch(Decrement(3))

        # dispatch() - fire and forget
        counter.dispatch(Increment(5))
        await asyncio.sleep(0.01)

        print(counter.current_props)

        # Going below zero resets via an effect
        await counter.sync_dispatch(Decrement(100))
        await asyncio.sleep(0.01)
        print(counter.current_props)


if __name__ == "__main__":
    asyncio.run(main())
