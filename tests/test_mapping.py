from __future__ import annotations

import math

import numpy as np
import pytest

from mandelview.errors import ConfigError
from mandelview.mapping import View, derive_mapping, precision_exhausted

L = np.longdouble


def test_default_view_mapping() -> None:
    m = derive_mapping(View(), 800, 600)
    assert m.x_unit == 1
    assert m.y_unit == L(0.75)
    assert m.x_min == L(-1.75)
    assert m.y_min == L(-0.75)
    assert m.x_step == L(2) / L(799)
    assert m.y_step == L(1.5) / L(599)


@pytest.mark.parametrize("zoom", [0.5, 1.0, 2.0, 4.0, 1024.0])
@pytest.mark.parametrize("size", [(800, 600), (3, 1000), (640, 2), (17, 17)])
def test_aspect_ratio_is_preserved(zoom: float, size) -> None:
    width, height = size
    m = derive_mapping(View(0.1, -0.2, zoom, 1.0), width, height)
    assert m.y_unit / m.x_unit == L(height) / L(width)


def test_aspect_ratio_for_arbitrary_scale() -> None:
    m = derive_mapping(View(0.0, 0.0, 3.7, 0.9), 1280, 720)
    assert float(m.y_unit / m.x_unit) == pytest.approx(720 / 1280, rel=1e-15)


def test_zoom_shrinks_the_view() -> None:
    near = derive_mapping(View(zoom=10.0), 100, 100)
    far = derive_mapping(View(zoom=1.0), 100, 100)
    assert float(far.x_step / near.x_step) == pytest.approx(10.0)


def test_sampling_is_biased_one_step_inward() -> None:
    m = derive_mapping(View(), 5, 4)
    c_re, c_im = m.pixel_to_plane(0, 0)
    assert c_re == m.x_min + m.x_step
    assert c_im == m.y_min + m.y_step
    assert m.column_coordinate(4) == m.x_min + 5 * m.x_step
    expected = np.array([m.y_min + L(i) * m.y_step for i in range(1, 5)], dtype=L)
    assert np.array_equal(m.row_coordinates(), expected)


@pytest.mark.parametrize("size", [(1, 10), (10, 1), (0, 0), (-5, 10), (2.5, 10)])
def test_degenerate_sizes_are_rejected(size) -> None:
    with pytest.raises(ConfigError):
        derive_mapping(View(), *size)


@pytest.mark.parametrize(
    "view",
    [
        View(zoom=0.0),
        View(zoom=-1.0),
        View(unit=0.0),
        View(center_x=math.nan),
        View(center_y=math.inf),
        View(zoom=math.inf),
    ],
)
def test_invalid_views_are_rejected(view: View) -> None:
    with pytest.raises(ConfigError):
        derive_mapping(view, 10, 10)


def test_precision_ceiling() -> None:
    assert not precision_exhausted(derive_mapping(View(), 800, 600))
    assert precision_exhausted(derive_mapping(View(zoom=1e30), 800, 600))
