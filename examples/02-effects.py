"""Effects: Asynchronous work that feeds messages back.

Demonstrates:
- A start effect kicking off work as soon as the feature runs
- batch() running independent effects concurrently
- Slow effects never blocking the update loop
- Reporting effect failures back as messages

Run with:
    uv run python examples/02-effects.py
"""

import asyncio
import logging
import random
from dataclasses import dataclass, replace

from tealeaf import Effect, FeatureScope, TeaFeature, batch, effect, none


@dataclass(frozen=True)
class Downloads:
    done: tuple[str, ...] = ()
    failed: tuple[str, ...] = ()


@dataclass(frozen=True)
class Finished:
    name: str


@dataclass(frozen=True)
class Broken:
    name: str


type DownloadMsg = Finished | Broken


def download(name: str) -> Effect[DownloadMsg]:
    async def run(dispatch) -> None:
        await asyncio.sleep(random.uniform(0.05, 0.2))
        if name == "corrupt.bin":
            await dispatch(Broken(name))
            return
        await dispatch(Finished(name))

    return effect(run)


def init(previous: Downloads | None) -> tuple[Downloads, Effect[DownloadMsg]]:
    files = ["a.txt", "b.txt", "corrupt.bin", "c.txt"]
    return previous or Downloads(), batch(*(download(f) for f in files))


def update(msg: DownloadMsg, state: Downloads) -> tuple[Downloads, Effect[DownloadMsg]]:
    match msg:
        case Finished(name):
            return replace(state, done=(*state.done, name)), none()
        case Broken(name):
            return replace(state, failed=(*state.failed, name)), none()


async def main():
    logging.basicConfig(level=logging.INFO)

    async with FeatureScope("downloads") as scope:
        feature = TeaFeature(
            init=init,
            update=update,
            view=lambda s: f"{len(s.done)} done: {', '.join(s.done)}",
            scope=scope,
            name="downloads",
        )

        async def show() -> None:
            async for props in feature.props():
                print(props)

        scope.launch(show())
        await asyncio.sleep(0.5)


if __name__ == "__main__":
    asyncio.run(main())
