import math

import numpy as np
import pytest
from PIL import Image

from table_recovery.utils import (
    crop_image,
    dedupe_positions,
    image_to_numpy,
    locate,
)


BOUNDS = [0.0, 10.0, 20.0, math.inf]


@pytest.mark.parametrize("coord,expected", [
    (0.0, 0),
    (9.99, 0),
    (10.0, 1),
    (19.0, 1),
    (25.0, 2),
    (1e12, 2),
])
def test_locate_half_open_intervals(coord, expected):
    assert locate(BOUNDS, coord) == expected


def test_locate_clamps_out_of_range():
    bounds = [0.0, 10.0, 20.0]
    assert locate(bounds, -5.0) == 0
    assert locate(bounds, 20.0) == 1
    assert locate(bounds, 500.0) == 1


def test_locate_strict_returns_minus_one():
    bounds = [0.0, 10.0, 20.0]
    assert locate(bounds, -5.0, clamp=False) == -1
    assert locate(bounds, 20.0, clamp=False) == -1
    assert locate(bounds, 15.0, clamp=False) == 1


@pytest.mark.parametrize("coord", [-100.0, 0.0, 3.3, 10.0, 55.5, 1e9])
def test_locate_always_in_range(coord):
    bounds = [0.0, 10.0, 10.0, 40.0]
    assert 0 <= locate(bounds, coord) <= len(bounds) - 2


def test_dedupe_positions():
    assert dedupe_positions([52, 10, 11, 50, 13, 100], 3) == [10, 50, 100]
    assert dedupe_positions([], 3) == []


def test_crop_image_copies_region():
    image = np.arange(100, dtype=np.uint8).reshape(10, 10)
    crop = crop_image(image, (2, 3, 5, 6))
    assert crop.shape == (3, 3)
    assert crop[0, 0] == image[3, 2]
    crop[0, 0] = 255
    assert image[3, 2] != 255


def test_image_conversions():
    rgb = Image.new("RGB", (4, 2), (255, 255, 255))
    array = image_to_numpy(rgb)
    assert array.shape == (2, 4)
    assert array.dtype == np.uint8
