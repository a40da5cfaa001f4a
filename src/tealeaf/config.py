"""TOML-based configuration for tealeaf features.

Provides ``load_config`` / ``discover_config`` for loading ``tealeaf.toml``
and frozen dataclasses for feature defaults and per-feature overrides.

Example ``tealeaf.toml``::

    [scope]
    name = "app"

    [defaults]
    effect_concurrency = 32
    offload_view = false
    offload_render = true

    [features."search-.*"]
    effect_concurrency = 4
"""

from __future__ import annotations

import re
import tomllib
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any


__all__ = [
    "FeatureConfig",
    "FeatureOverride",
    "TeaConfig",
    "discover_config",
    "load_config",
]

CONFIG_FILENAME = "tealeaf.toml"


@dataclass(frozen=True)
class FeatureConfig:
    """Runtime settings for a single feature.

    Parameters
    ----------
    effect_concurrency : int | None
        Maximum number of effect actions running at once. ``None`` for
        unbounded.
    offload_view : bool
        Run plain-function views in the event loop's default executor
        instead of inline.
    offload_render : bool
        Call plain-function render sinks in the event loop's default
        executor so a slow sink never holds up the update loop.

    Examples
    --------
    >>> FeatureConfig(effect_concurrency=8)
    FeatureConfig(effect_concurrency=8, offload_view=False, offload_render=False)
    """

    effect_concurrency: int | None = None
    offload_view: bool = False
    offload_render: bool = False


@dataclass(frozen=True)
class FeatureOverride:
    """Per-feature overrides matched by name.

    Parameters
    ----------
    pattern : re.Pattern[str]
        Regex matched against feature names via ``fullmatch``.
    overrides : dict[str, Any]
        Fields to override in ``FeatureConfig``.
    """

    pattern: re.Pattern[str]
    overrides: dict[str, Any]


@dataclass(frozen=True)
class TeaConfig:
    """Top-level configuration.

    Parameters
    ----------
    scope_name : str
        Default name for scopes created with this config.
    defaults : FeatureConfig
        Settings applied to every feature unless overridden.
    features : tuple[FeatureOverride, ...]
        Per-feature overrides; the first matching pattern wins.
    """

    scope_name: str = "tealeaf"
    defaults: FeatureConfig = field(default_factory=FeatureConfig)
    features: tuple[FeatureOverride, ...] = ()

    def resolve_feature(self, name: str) -> FeatureConfig:
        """Resolve the effective configuration for a feature by name.

        Examples
        --------
        >>> TeaConfig().resolve_feature("counter").effect_concurrency is None
        True
        """
        for feature in self.features:
            if feature.pattern.fullmatch(name):
                return replace(self.defaults, **feature.overrides)
        return self.defaults


def discover_config(start: Path | None = None) -> Path | None:
    """Walk up from *start* (default: cwd) looking for ``tealeaf.toml``.

    Parameters
    ----------
    start : Path | None
        Directory to start searching from.

    Returns
    -------
    Path | None
        Path to the discovered config file, or ``None`` if not found.
    """
    current = (start or Path.cwd()).resolve()
    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            return None
        current = parent


def load_config(path: Path | None = None) -> TeaConfig:
    """Load a ``TeaConfig`` from a TOML file.

    If *path* is ``None``, auto-discovers ``tealeaf.toml`` by walking up
    from the current working directory. Returns the default config if no
    file is found.

    Raises
    ------
    FileNotFoundError
        If an explicit *path* is given but does not exist.
    TypeError
        If a section contains unknown keys.
    """
    if path is None:
        discovered = discover_config()
        if discovered is None:
            return TeaConfig()
        path = discovered

    if not path.exists():
        msg = f"Config file not found: {path}"
        raise FileNotFoundError(msg)

    with path.open("rb") as f:
        raw = tomllib.load(f)

    scope_name = raw.get("scope", {}).get("name", "tealeaf")
    defaults = FeatureConfig(**raw.get("defaults", {}))

    features: list[FeatureOverride] = []
    for name, overrides in raw.get("features", {}).items():
        replace(defaults, **overrides)  # rejects unknown keys
        pattern = (
            re.compile(f"^{name}$")
            if re.fullmatch(r"[\w-]+", name)
            else re.compile(name)
        )
        features.append(FeatureOverride(pattern=pattern, overrides=dict(overrides)))

    return TeaConfig(scope_name=scope_name, defaults=defaults, features=tuple(features))
