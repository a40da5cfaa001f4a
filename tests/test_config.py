from __future__ import annotations

import re
from pathlib import Path

import pytest

from tealeaf.config import (
    FeatureConfig,
    FeatureOverride,
    TeaConfig,
    discover_config,
    load_config,
)


# ---------------------------------------------------------------------------
# Config dataclass defaults
# ---------------------------------------------------------------------------


class TestFeatureConfig:
    def test_defaults(self) -> None:
        cfg = FeatureConfig()
        assert cfg.effect_concurrency is None
        assert cfg.offload_view is False
        assert cfg.offload_render is False

    def test_frozen(self) -> None:
        cfg = FeatureConfig()
        with pytest.raises(AttributeError):
            cfg.effect_concurrency = 4  # type: ignore[misc]


class TestTeaConfig:
    def test_defaults(self) -> None:
        cfg = TeaConfig()
        assert cfg.scope_name == "tealeaf"
        assert cfg.defaults == FeatureConfig()
        assert cfg.features == ()

    def test_resolve_without_overrides_returns_defaults(self) -> None:
        cfg = TeaConfig(defaults=FeatureConfig(effect_concurrency=8))
        assert cfg.resolve_feature("anything").effect_concurrency == 8

    def test_first_matching_override_wins(self) -> None:
        cfg = TeaConfig(
            defaults=FeatureConfig(effect_concurrency=8),
            features=(
                FeatureOverride(pattern=re.compile("search-.*"), overrides={"effect_concurrency": 2}),
                FeatureOverride(pattern=re.compile("search-main"), overrides={"offload_view": True}),
            ),
        )
        resolved = cfg.resolve_feature("search-main")
        assert resolved.effect_concurrency == 2
        assert resolved.offload_view is False
        assert cfg.resolve_feature("cart").effect_concurrency == 8


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


class TestLoadConfig:
    def test_full_file(self, tmp_path: Path) -> None:
        path = tmp_path / "tealeaf.toml"
        path.write_text(
            """
[scope]
name = "app"

[defaults]
effect_concurrency = 16
offload_view = true

[features.cart]
effect_concurrency = 1

[features."search-.*"]
offload_view = false
"""
        )
        cfg = load_config(path)

        assert cfg.scope_name == "app"
        assert cfg.defaults == FeatureConfig(effect_concurrency=16, offload_view=True)
        assert cfg.resolve_feature("cart").effect_concurrency == 1
        assert cfg.resolve_feature("cart-extra").effect_concurrency == 16
        assert cfg.resolve_feature("search-1").offload_view is False

    def test_empty_file_gives_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "tealeaf.toml"
        path.write_text("")
        assert load_config(path) == TeaConfig()

    def test_missing_explicit_path_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.toml")

    def test_unknown_key_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "tealeaf.toml"
        path.write_text("[features.cart]\nmailbox = 3\n")
        with pytest.raises(TypeError):
            load_config(path)

    def test_no_file_found_gives_defaults(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr("tealeaf.config.discover_config", lambda start=None: None)
        assert load_config() == TeaConfig()


class TestDiscoverConfig:
    def test_finds_file_in_parent(self, tmp_path: Path) -> None:
        (tmp_path / "tealeaf.toml").write_text("")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        assert discover_config(nested) == (tmp_path / "tealeaf.toml").resolve()

    def test_prefers_closest_file(self, tmp_path: Path) -> None:
        (tmp_path / "tealeaf.toml").write_text("")
        nested = tmp_path / "inner"
        nested.mkdir()
        (nested / "tealeaf.toml").write_text("")
        assert discover_config(nested) == (nested / "tealeaf.toml").resolve()
