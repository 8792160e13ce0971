"""A single marker of a fractal marker set."""

from __future__ import annotations

import math
from dataclasses import dataclass, field

import numpy as np


def _round_half_away(value: float) -> int:
    return int(math.copysign(math.floor(abs(float(value)) + 0.5), value))


@dataclass(eq=False)
class FractalMarker:
    """Marker with its bit matrix, four 3D corners and nested sub-markers.

    ``mask`` is 1 on bits belonging to this marker and 0 on bits covered by
    sub-markers.
    """

    id: int
    bits: np.ndarray
    corners: np.ndarray
    submarkers: list[int] = field(default_factory=list)
    mask: np.ndarray = field(init=False)

    def __post_init__(self) -> None:
        self.bits = np.asarray(self.bits, dtype=np.uint8)
        if self.bits.ndim != 2 or self.bits.shape[0] != self.bits.shape[1]:
            raise ValueError("marker bits must be a square matrix")
        self.corners = np.asarray(self.corners, dtype=np.float32).reshape(-1, 3)
        self.submarkers = [int(i) for i in self.submarkers]
        self.mask = np.ones_like(self.bits)

    @property
    def n_bits(self) -> int:
        return int(self.bits.size)

    @property
    def marker_size(self) -> float:
        """Length of the side between the first two corners."""
        return float(np.float32(np.linalg.norm(self.corners[0] - self.corners[1])))

    def add_sub_marker(self, submarker: FractalMarker) -> None:
        """Mask out the bits covered by ``submarker``."""
        cols = self.bits.shape[1]
        half = np.float32(cols // 2)
        bit_size = (self.corners[1, 0] - self.corners[0, 0]) / np.float32(cols + 2)
        n_sub = (submarker.corners[1, 0] - submarker.corners[0, 0]) / bit_size
        x_min = _round_half_away(submarker.corners[0, 0] / bit_size + half)
        x_max = int(np.float32(x_min) + n_sub)
        y_min = _round_half_away(-submarker.corners[0, 1] / bit_size + half)
        y_max = int(np.float32(y_min) + n_sub)
        self.mask[max(y_min, 0):max(y_max, 0), max(x_min, 0):max(x_max, 0)] = 0

    def inner_corners(self) -> np.ndarray:
        """Corner points between bits of different colour, as an (N, 3) array."""
        n = int(math.sqrt(self.bits.size))
        bit_size = np.float32(self.marker_size / (n + 2))
        marker = self.bits + (1 - self.mask).astype(np.uint8)
        padded = np.pad(marker, 1, constant_values=0)
        a = padded[:-1, :-1]
        b = padded[:-1, 1:]
        c = padded[1:, :-1]
        d = padded[1:, 1:]
        hit = ((a == d) & ((a != b) | (a != c))) | ((b == c) & ((b != a) | (b != d)))
        ys, xs = np.nonzero(hit)
        half = np.float32(n / 2)
        xs_f = (xs.astype(np.float32) - half) * bit_size
        ys_f = -(ys.astype(np.float32) - half) * bit_size
        return np.stack(
            [xs_f, ys_f, np.zeros_like(xs_f)], axis=1
        ).astype(np.float32).reshape(-1, 3)