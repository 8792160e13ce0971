"""Rendering of a fractal marker set and collection of its inner corners."""

from __future__ import annotations

import math

import numpy as np

from .fractal_marker import FractalMarker
from .fractal_set import FractalMarkerSet


def inner_corners(marker_set: FractalMarkerSet) -> dict[int, np.ndarray]:
    """Inner corners of every marker that has any, keyed by marker id."""
    corners: dict[int, np.ndarray] = {}
    for marker_id, marker in sorted(marker_set.markers.items()):
        points = marker.inner_corners()
        if len(points):
            corners[marker_id] = points
    return corners


def _paint(
    image: np.ndarray,
    bits: np.ndarray,
    bit_size: np.float32,
    offset_x: np.float32,
    offset_y: np.float32,
) -> None:
    rows, cols = np.nonzero(np.asarray(bits) == 1)
    for y, x in zip(rows.tolist(), cols.tolist()):
        r0 = int(np.float32((1 + y) * bit_size) + offset_y)
        r1 = int(np.float32((2 + y) * bit_size) + offset_y)
        c0 = int(np.float32((1 + x) * bit_size) + offset_x)
        c1 = int(np.float32((2 + x) * bit_size) + offset_x)
        image[max(r0, 0):max(r1, 0), max(c0, 0):max(c1, 0)] = 255


def fractal_marker_image(marker_set: FractalMarkerSet, pix_size: int, border: bool = False) -> np.ndarray:
    """Black and white image of the whole fractal marker.

    ``pix_size`` is the number of pixels of one bit of the smallest marker.
    With ``border`` a white frame one external bit wide is added.
    """
    if not marker_set.markers:
        raise ValueError("There is not any fractal marker loaded")
    if pix_size <= 0:
        raise ValueError("pix_size must be positive")

    smallest: FractalMarker = marker_set.markers[max(marker_set.markers)]
    bit_size = np.float32(
        float(np.float32(smallest.marker_size)) / (pix_size * (math.sqrt(smallest.n_bits) + 2))
    )
    external = marker_set.markers.get(marker_set.external_id)
    if external is None:
        raise ValueError("the external marker is not in the set")

    marker_size = np.float32(np.float32(external.marker_size) / bit_size)
    marker_bit_size = np.float32(float(marker_size) / (math.sqrt(external.n_bits) + 2))
    side = int(marker_size)
    image = np.zeros((side, side), dtype=np.uint8)
    _paint(image, external.bits, marker_bit_size, np.float32(0), np.float32(0))

    origin = external.corners[0]
    for first_id in external.submarkers:
        pending = [first_id]
        while pending:
            sub_id = pending.pop()
            submarker = marker_set.markers.get(sub_id)
            if submarker is None:
                raise ValueError(f"unknown sub-marker {sub_id}")
            coord = submarker.corners[0]
            sub_size = np.float32(np.float32(submarker.marker_size) / bit_size)
            sub_bit_size = np.float32(float(sub_size) / (math.sqrt(submarker.n_bits) + 2))
            offset_x = np.float32(abs(np.float32(coord[0] - origin[0]))) / bit_size
            offset_y = np.float32(abs(np.float32(coord[1] - origin[1]))) / bit_size
            _paint(image, submarker.bits, sub_bit_size, np.float32(offset_x), np.float32(offset_y))
            pending.extend(submarker.submarkers)

    if border:
        width = int(marker_bit_size)
        image = np.pad(image, width, constant_values=255)
    return image