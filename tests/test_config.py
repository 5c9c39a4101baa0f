from __future__ import annotations

import json

import pytest

from mandelview.color import ColorMode
from mandelview.config import DEFAULTS, THREADS_ENV, load_config, normalise_config
from mandelview.errors import ConfigError


def test_defaults_match_viewer_bootstrap() -> None:
    settings = normalise_config(load_config(None), env={})
    assert (settings.width, settings.height) == (800, 600)
    assert settings.iter_max == 250
    assert (settings.center_x, settings.center_y) == (-0.75, 0.0)
    assert settings.worker_count == 4
    assert settings.color_mode is ColorMode.GRAYSCALE


def test_load_config_merges_json_over_defaults(tmp_path) -> None:
    path = tmp_path / "view.json"
    path.write_text(json.dumps({"width": 64, "center": [0.25, -0.5], "color_mode": "rgb"}), encoding="utf-8")

    settings = normalise_config(load_config(str(path)), env={})

    assert settings.width == 64
    assert settings.height == DEFAULTS["height"]
    assert (settings.center_x, settings.center_y) == (0.25, -0.5)
    assert settings.color_mode is ColorMode.RGB


def test_load_config_rejects_non_object(tmp_path) -> None:
    path = tmp_path / "view.json"
    path.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(str(path))


def test_load_config_reports_missing_file(tmp_path) -> None:
    with pytest.raises(ConfigError):
        load_config(str(tmp_path / "absent.json"))


def test_threads_env_overrides_worker_count() -> None:
    settings = normalise_config(load_config(None), env={THREADS_ENV: "12"})
    assert settings.worker_count == 12


@pytest.mark.parametrize(
    "patch",
    [
        {"width": 1},
        {"width": 2.9},
        {"iter_max": 7.8},
        {"worker_count": True},
        {"height": "tall"},
        {"iter_max": 0},
        {"worker_count": 0},
        {"zoom": 0},
        {"unit": -1},
        {"center": [1.0]},
        {"color_mode": "sepia"},
    ],
)
def test_invalid_fields_raise_config_error(patch) -> None:
    cfg = load_config(None)
    cfg.update(patch)
    with pytest.raises(ConfigError):
        normalise_config(cfg, env={})


def test_missing_field_is_reported() -> None:
    cfg = load_config(None)
    del cfg["zoom"]
    with pytest.raises(ConfigError, match="zoom"):
        normalise_config(cfg, env={})


def test_build_rasterizer_uses_settings() -> None:
    cfg = load_config(None)
    cfg.update({"width": 12, "height": 9, "iter_max": 40, "worker_count": 3, "color_mode": 1})
    mb = normalise_config(cfg, env={}).build_rasterizer()
    assert (mb.width, mb.height, mb.iter_max, mb.worker_count) == (12, 9, 40, 3)
    assert mb.color_mode is ColorMode.INVERTED_GRAYSCALE
    assert len(mb.compute()) == 12 * 9 * 3


def test_integral_floats_are_accepted() -> None:
    cfg = load_config(None)
    cfg.update({"width": 64.0, "iter_max": 100.0})
    settings = normalise_config(cfg, env={})
    assert (settings.width, settings.iter_max) == (64, 100)


def test_fractional_threads_env_is_rejected() -> None:
    with pytest.raises(ConfigError):
        normalise_config(load_config(None), env={THREADS_ENV: "2.5"})
