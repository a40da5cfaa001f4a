from __future__ import annotations

import asyncio

from tealeaf import Effect, batch, dispatch_effect, effect, none


async def collect(eff: Effect[object]) -> list[object]:
    sent: list[object] = []

    async def dispatch(msg: object) -> None:
        sent.append(msg)

    await eff.run(dispatch)
    return sent


def test_none_is_empty() -> None:
    assert none().is_none
    assert none().actions == ()


def test_batch_flattens_and_skips_none() -> None:
    async def a(dispatch) -> None:
        await dispatch("a")

    async def b(dispatch) -> None:
        await dispatch("b")

    combined = batch(effect(a), none(), batch(effect(b), none()))
    assert combined.actions == (a, b)


def test_batch_of_nothing_is_none() -> None:
    assert batch().is_none
    assert batch(none(), none()).is_none


async def test_dispatch_effect_emits_in_order() -> None:
    assert await collect(dispatch_effect(1, 2, 3)) == [1, 2, 3]


async def test_dispatch_effect_without_messages_is_none() -> None:
    assert dispatch_effect().is_none


async def test_map_translates_messages() -> None:
    mapped = dispatch_effect(1, 2).map(lambda n: f"child:{n}")
    assert await collect(mapped) == ["child:1", "child:2"]


async def test_batch_actions_run_concurrently() -> None:
    gate = asyncio.Event()

    async def waiter(dispatch) -> None:
        await gate.wait()
        await dispatch("waited")

    async def opener(dispatch) -> None:
        gate.set()
        await dispatch("opened")

    sent = await asyncio.wait_for(collect(batch(effect(waiter), effect(opener))), timeout=1.0)
    assert sorted(sent) == ["opened", "waited"]


async def test_failing_action_does_not_stop_siblings(caplog) -> None:
    async def broken(dispatch) -> None:
        raise RuntimeError("effect exploded")

    async def fine(dispatch) -> None:
        await asyncio.sleep(0.01)
        await dispatch("fine")

    with caplog.at_level("ERROR", logger="tealeaf.effect"):
        sent = await collect(batch(effect(broken), effect(fine)))

    assert sent == ["fine"]
    assert "effect exploded" in caplog.text
