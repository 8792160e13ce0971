"""Identification of fractal markers in square, warped marker images."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

import numpy as np

from .fractal_set import FractalMarkerSet, rotate_bits

_FLT_EPSILON = float(np.finfo(np.float32).eps)


@dataclass(frozen=True)
class Detection:
    """Id of the recognised marker and the quarter turns of its code."""

    marker_id: int
    rotations: int


def otsu_threshold(image: np.ndarray) -> int:
    """Otsu threshold of an 8-bit grey image."""
    grey = np.asarray(image, dtype=np.uint8)
    hist = np.bincount(grey.ravel(), minlength=256).astype(np.float64)
    total = grey.size
    if total == 0:
        return 0
    scale = 1.0 / total
    mu = float(np.dot(np.arange(256), hist)) * scale
    mu1 = q1 = 0.0
    max_sigma = 0.0
    max_val = 0
    for i, count in enumerate(hist.tolist()):
        p_i = count * scale
        mu1 *= q1
        q1 += p_i
        q2 = 1.0 - q1
        if min(q1, q2) < _FLT_EPSILON or max(q1, q2) > 1.0 - _FLT_EPSILON:
            continue
        mu1 = (mu1 + i * p_i) / q1
        mu2 = (mu - q1 * mu1) / q2
        sigma = q1 * q2 * (mu1 - mu2) ** 2
        if sigma > max_sigma:
            max_sigma = sigma
            max_val = i
    return max_val


def rotate_code(code: np.ndarray) -> np.ndarray:
    """The code turned a quarter turn clockwise."""
    return rotate_bits(np.asarray(code, dtype=np.uint8))


def inner_codes(binary_image: np.ndarray, total_nbits: int) -> list[np.ndarray]:
    """The inner code and its three rotations, or an empty list.

    The image is divided into (n+2) x (n+2) cells, n being the square root of
    ``total_nbits``; the list is empty when the outer ring of cells is not
    entirely black.
    """
    img = np.asarray(binary_image)
    if img.ndim != 2 or img.size == 0:
        raise ValueError("a non-empty single channel image is required")
    inner = int(math.sqrt(total_nbits))
    cells = inner + 2
    rows, cols = img.shape
    fcells = np.float32(cells)
    my = (fcells * np.arange(rows, dtype=np.float32) / np.float32(rows)).astype(np.int64)
    mx = (fcells * np.arange(cols, dtype=np.float32) / np.float32(cols)).astype(np.int64)
    cell_y = np.repeat(my, cols)
    cell_x = np.tile(mx, rows)
    non_zeros = np.zeros((cells, cells), dtype=np.int64)
    counts = np.zeros((cells, cells), dtype=np.int64)
    np.add.at(counts, (cell_y, cell_x), 1)
    np.add.at(non_zeros, (cell_y, cell_x), (img.ravel() > 125).astype(np.int64))
    binary = (non_zeros > counts // 2).astype(np.uint8)

    ring = binary.copy()
    ring[1:-1, 1:-1] = 0
    if ring.any():
        return []

    code = binary[1:-1, 1:-1].copy()
    codes = []
    for _ in range(4):
        codes.append(code)
        code = rotate_code(code)
    return codes


def _to_grey(image: np.ndarray) -> np.ndarray:
    img = np.asarray(image)
    if img.ndim == 2:
        return np.clip(img, 0, 255).astype(np.uint8)
    if img.ndim == 3 and img.shape[2] >= 3:
        b, g, r = (img[:, :, c].astype(np.float64) for c in range(3))
        return np.clip(np.rint(0.114 * b + 0.587 * g + 0.299 * r), 0, 255).astype(np.uint8)
    raise ValueError("unsupported image layout")


class FractalMarkerLabeler:
    """Recognises the markers of a fractal marker set."""

    def __init__(self, marker_set: FractalMarkerSet):
        self.marker_set = marker_set

    def name(self) -> str:
        return "fractal"

    def detect(self, image: np.ndarray) -> Optional[Detection]:
        """Marker shown in a square image, or None when none is recognised."""
        img = np.asarray(image)
        if img.ndim < 2 or img.shape[0] != img.shape[1]:
            raise ValueError("the marker image must be square")
        grey = _to_grey(img)
        binary = np.where(grey > otsu_threshold(grey), 255, 0).astype(np.uint8)

        found: dict[int, list[np.ndarray]] = {}
        for nbits in sorted(self.marker_set.nbits_ids):
            codes = inner_codes(binary, nbits)
            if codes and int(codes[0].sum()) != 0:
                found[nbits] = codes

        for nbits, codes in sorted(found.items()):
            for rotations, code in enumerate(codes):
                marker_id = self.marker_set.is_fractal_marker(code, nbits)
                if marker_id is not None:
                    return Detection(marker_id, rotations)
        return None