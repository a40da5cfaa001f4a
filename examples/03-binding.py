"""Binding: One feature driving another.

Demonstrates:
- bind() translating one feature's messages into another's effects
- Neither feature knowing the other's message type
- Launching the binding in a scope the caller controls

Run with:
    uv run python examples/03-binding.py
"""

import asyncio
from dataclasses import dataclass, replace

from tealeaf import Effect, FeatureScope, TeaFeature, dispatch_effect, none


@dataclass(frozen=True)
class AddToCart:
    sku: str
    quantity: int


@dataclass(frozen=True)
class Track:
    event: str


def cart_update(msg: AddToCart, cart: dict[str, int]) -> tuple[dict[str, int], Effect[AddToCart]]:
    return {**cart, msg.sku: cart.get(msg.sku, 0) + msg.quantity}, none()


@dataclass(frozen=True)
class Analytics:
    events: tuple[str, ...] = ()


def analytics_update(msg: Track, state: Analytics) -> tuple[Analytics, Effect[Track]]:
    return replace(state, events=(*state.events, msg.event)), none()


def to_analytics(msg: AddToCart) -> Effect[Track]:
    return dispatch_effect(Track(f"add:{msg.sku}x{msg.quantity}"))


async def main():
    async with FeatureScope("shop") as scope:
        cart = TeaFeature(
            init=lambda previous: (previous or {}, none()),
            update=cart_update,
            view=lambda c: c,
            scope=scope,
            name="cart",
        )
        analytics = TeaFeature(
            init=lambda previous: (previous or Analytics(), none()),
            update=analytics_update,
            view=lambda a: a.events,
            scope=scope,
            name="analytics",
        )

        binding = scope.launch(cart.bind(analytics, to_analytics))
        await asyncio.sleep(0)

        await cart.sync_dispatch(AddToCart("tea", 2))
        await cart.sync_dispatch(AddToCart("cup", 1))
        await cart.sync_dispatch(AddToCart("tea", 1))
        await asyncio.sleep(0.01)

        print("cart:", cart.current_props)
        print("analytics:", analytics.current_props)

        binding.cancel()


if __name__ == "__main__":
    asyncio.run(main())
