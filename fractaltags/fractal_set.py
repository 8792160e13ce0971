"""A set of nested fractal markers: loading, saving, creating and matching."""

from __future__ import annotations

import copy
import enum
import math
import random
import struct
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

import numpy as np
import yaml

from .fractal_data import ConfigurationType, is_predefined, predefined_bytes
from .fractal_marker import FractalMarker

DEFAULT_MAX_ITER = 1000

_YAML_HEADER = "%YAML:1.0\n---\n"


class InfoType(enum.IntEnum):
    """Units in which the marker corners are expressed."""

    NONE = -1
    PIX = 0
    METERS = 1
    NORM = 2


def _info_type(value: int) -> InfoType:
    try:
        return InfoType(int(value))
    except ValueError:
        raise ValueError(f"invalid info type {value}") from None


def rotate_bits(m: np.ndarray) -> np.ndarray:
    """The bit matrix turned a quarter turn clockwise."""
    return np.rot90(np.asarray(m), -1).copy()


def self_distance(m: np.ndarray) -> int:
    """Smallest number of differing bits between ``m`` and its three rotations."""
    m = np.asarray(m)
    best = int(m.size)
    rotated = m
    for _ in range(3):
        rotated = rotate_bits(rotated)
        best = min(best, int(np.count_nonzero(rotated != m)))
    return best


def marker_distance(m1: np.ndarray, m2: np.ndarray) -> int:
    """Number of bits in which ``m1`` differs from ``m2`` turned a quarter turn clockwise."""
    m1 = np.asarray(m1)
    m2 = np.asarray(m2)
    return min(int(m2.size), int(np.count_nonzero(rotate_bits(m2) != m1)))


class _Reader:
    def __init__(self, data: bytes):
        self._data = bytes(data)
        self._pos = 0

    def take(self, size: int) -> bytes:
        end = self._pos + size
        if size < 0 or end > len(self._data):
            raise ValueError("truncated fractal marker set data")
        chunk = self._data[self._pos:end]
        self._pos = end
        return chunk

    def unpack(self, fmt: str) -> tuple:
        layout = struct.Struct(fmt)
        return layout.unpack(self.take(layout.size))


@dataclass
class FractalMarkerSet:
    """Markers of a fractal marker, keyed by id, the outermost being ``external_id``."""

    info_type: InfoType = InfoType.NONE
    external_id: int = 0
    markers: dict[int, FractalMarker] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.info_type = _info_type(self.info_type)
        self.markers = dict(sorted(self.markers.items()))

    @property
    def n_markers(self) -> int:
        return len(self.markers)

    @property
    def nbits_ids(self) -> dict[int, list[int]]:
        """Marker ids grouped by their number of bits."""
        groups: dict[int, list[int]] = {}
        for marker_id, marker in sorted(self.markers.items()):
            groups.setdefault(marker.n_bits, []).append(marker_id)
        return groups

    @property
    def n_bits(self) -> int:
        """Number of bits of the external marker."""
        return self._external().n_bits

    @property
    def is_expressed_in_pixels(self) -> bool:
        return self.info_type is InfoType.PIX

    @property
    def is_expressed_in_meters(self) -> bool:
        return self.info_type is InfoType.METERS

    @property
    def is_normalized(self) -> bool:
        return self.info_type is InfoType.NORM

    def _external(self) -> FractalMarker:
        try:
            return self.markers[self.external_id]
        except KeyError:
            raise ValueError("the external marker is not in the set") from None

    def fractal_size(self) -> float:
        """Side length of the external marker."""
        return self._external().marker_size

    def _link_submarkers(self) -> None:
        for marker in self.markers.values():
            for sub_id in marker.submarkers:
                if sub_id not in self.markers:
                    raise ValueError(f"marker {marker.id} refers to unknown sub-marker {sub_id}")
                marker.add_sub_marker(self.markers[sub_id])

    def to_bytes(self) -> bytes:
        """Binary form of the set, as used by the predefined configurations."""
        parts = [struct.pack("<iii", int(self.info_type), len(self.markers), self.external_id)]
        for marker_id, marker in sorted(self.markers.items()):
            if marker.corners.shape[0] != 4:
                raise ValueError(f"marker {marker_id} does not have four corners")
            subs = list(marker.submarkers)
            parts.append(struct.pack("<ii", marker_id, marker.n_bits))
            parts.append(marker.corners.astype("<f4").tobytes())
            parts.append(marker.bits.astype(np.uint8).tobytes())
            parts.append(struct.pack(f"<i{len(subs)}i", len(subs), *subs))
        return b"".join(parts)

    def save(self, path: Union[str, Path]) -> None:
        """Write the set to a YAML file."""
        document = {
            "codeid": "fractalmarkers",
            "mInfoType": int(self.info_type),
            "fractal_levels": len(self.markers),
            "fractal_external_id": self.external_id,
            "markers": [
                {
                    "id": int(marker_id),
                    "bits": [0 if v == 2 else int(v) for v in marker.bits.flatten()],
                    "corners": [[float(c) for c in point] for point in marker.corners],
                    "submarkers_id": [int(i) for i in marker.submarkers],
                }
                for marker_id, marker in sorted(self.markers.items())
            ],
        }
        body = yaml.safe_dump(document, sort_keys=False, default_flow_style=None)
        Path(path).write_text(_YAML_HEADER + body)

    def create(
        self,
        regions_config: list[tuple[int, int]],
        pix_size: float = -1.0,
        rng: Optional[random.Random] = None,
    ) -> None:
        """Generate random markers for the given (bits, inner region) levels.

        Without ``pix_size`` the corners are normalized so that the external
        marker spans -1..1; otherwise they are in pixels.
        """
        regions = [(int(n), int(k)) for n, k in regions_config]
        if not regions:
            raise ValueError("at least one region is needed")
        rng = rng or random.Random()
        if pix_size == -1:
            self.info_type = InfoType.NORM
            pix_size = 1.0
        else:
            self.info_type = InfoType.PIX
        self.external_id = 0
        self.markers = {}

        submarkers: list[int] = []
        pix = 0.0
        for level in range(len(regions) - 1, -1, -1):
            n_val, k_val = regions[level]
            bits = self.configure_mat(n_val, k_val, rng=rng)
            pix = (n_val + 2) * pix_size
            half = pix / 2
            corners = [(-half, half, 0.0), (half, half, 0.0), (half, -half, 0.0), (-half, -half, 0.0)]
            self.markers[level] = FractalMarker(level, bits, corners, submarkers)
            submarkers = [level]
            if level > 0:
                k_sup = regions[level - 1][1] - 2
                if k_sup <= 0:
                    raise ValueError("inner region of an outer level is too small")
                pix_size *= (n_val + 2) / k_sup

        if self.is_normalized:
            scale = np.float32(pix / 2)
            for marker in self.markers.values():
                marker.corners[:, :2] /= scale
        self.markers = dict(sorted(self.markers.items()))

    def configure_mat(
        self,
        n_val: int,
        k_val: int,
        max_iter: int = DEFAULT_MAX_ITER,
        rng: Optional[random.Random] = None,
    ) -> np.ndarray:
        """Random ``n_val`` x ``n_val`` bit matrix whose centre ``k_val`` region holds a sub-marker.

        The outer ring is filled at random; among the candidates the one most
        distant from its own rotations and from the set is kept.  The centre
        region is black with a white one-bit frame.
        """
        if n_val < 1 or k_val < 0 or k_val > n_val:
            raise ValueError("invalid marker region sizes")
        rng = rng or random.Random()
        low = (n_val - k_val) // 2
        high = k_val + low
        ring = [
            (x, y)
            for y in range(n_val)
            for x in range(n_val)
            if x <= low - 1 or x >= high or y <= low - 1 or y >= high
        ]

        best_self = best_set = 0
        best: Optional[np.ndarray] = None
        candidate = np.ones((n_val, n_val), dtype=np.uint8)
        for _ in range(max(max_iter, 0) + 1):
            chosen = list(ring)
            for _ in range(len(chosen) // 2):
                del chosen[rng.randrange(len(chosen))]
            candidate = np.ones((n_val, n_val), dtype=np.uint8)
            for x, y in chosen:
                candidate[y, x] = 0
            d_self = self_distance(candidate)
            if d_self > best_self:
                d_set = self.distance_to_set(candidate)
                if d_set > best_set:
                    best_self, best_set = d_self, d_set
                    best = candidate
        result = (best if best is not None else candidate).copy()
        result[low + 1:high - 1, low + 1:high - 1] = 0
        return result

    def distance_to_set(self, m: np.ndarray) -> int:
        """Smallest marker distance between ``m`` and the set's markers of the same size."""
        m = np.asarray(m, dtype=np.uint8)
        best = int(m.size)
        for marker in self.markers.values():
            if marker.n_bits != m.size or marker.bits.shape != m.shape:
                continue
            distance = marker_distance(marker.bits, m)
            if distance == 0:
                return 0
            best = min(best, distance)
        return best

    def is_fractal_marker(self, code: np.ndarray, nbits: int) -> Optional[int]:
        """Id of the marker whose bits match ``code`` outside its sub-markers, or None."""
        code = np.asarray(code, dtype=np.uint8)
        for marker_id in self.nbits_ids.get(int(nbits), []):
            marker = self.markers[marker_id]
            if code.shape != marker.bits.shape:
                continue
            masked = np.where(marker.mask != 0, code, 0)
            if np.array_equal(masked, marker.bits):
                return marker.id
        return None

    def convert_to_meters(self, fractal_size: float) -> FractalMarkerSet:
        """Copy of the set scaled so that the external marker is ``fractal_size`` wide."""
        if not (self.is_expressed_in_pixels or self.is_normalized):
            raise ValueError("The FractalMarkers are not expressed in pixels")
        result = copy.deepcopy(self)
        result.info_type = InfoType.METERS
        scale = np.float32(fractal_size / np.float32(self.fractal_size()))
        for marker in result.markers.values():
            marker.corners[:4] *= scale
        return result

    def normalize(self) -> FractalMarkerSet:
        """Copy of the set scaled so that the external marker spans -1..1."""
        if not (self.is_expressed_in_pixels or self.is_expressed_in_meters):
            raise ValueError("The FractalMarkers are not expressed in pixels or meters")
        result = copy.deepcopy(self)
        result.info_type = InfoType.NORM
        half = np.float32(self.fractal_size() / 2.0)
        for marker in result.markers.values():
            marker.corners[:4] /= half
        return result


def from_bytes(data: bytes) -> FractalMarkerSet:
    """Set read from its binary form."""
    reader = _Reader(data)
    info, count, external = reader.unpack("<iii")
    if count < 0:
        raise ValueError("negative marker count")
    markers: dict[int, FractalMarker] = {}
    for _ in range(count):
        marker_id, nbits = reader.unpack("<ii")
        if nbits < 0:
            raise ValueError("negative number of bits")
        corners = np.array(reader.unpack("<12f"), dtype=np.float32).reshape(4, 3)
        side = int(math.sqrt(nbits))
        bits = np.frombuffer(reader.take(side * side), dtype=np.uint8).reshape(side, side).copy()
        (nsub,) = reader.unpack("<i")
        subs = list(reader.unpack(f"<{nsub}i")) if nsub > 0 else []
        markers[marker_id] = FractalMarker(marker_id, bits, corners, subs)
    marker_set = FractalMarkerSet(_info_type(info), external, markers)
    marker_set._link_submarkers()
    return marker_set


def load_predefined(conf: Union[ConfigurationType, str, int]) -> FractalMarkerSet:
    """One of the predefined configurations."""
    return from_bytes(predefined_bytes(conf))


def read_file(path: Union[str, Path]) -> FractalMarkerSet:
    """Set read from a YAML file written by :meth:`FractalMarkerSet.save`."""
    text = Path(path).read_text()
    lines = text.splitlines()
    if lines and lines[0].startswith("%YAML"):
        text = "\n".join(lines[1:])
    try:
        document = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ValueError(f"cannot parse fractal marker file {path}: {exc}") from exc
    if not isinstance(document, dict):
        raise ValueError(f"invalid fractal marker file {path}")

    markers: dict[int, FractalMarker] = {}
    for entry in document.get("markers") or []:
        marker_id = int(entry.get("id", 0))
        bit_list = [int(b) for b in entry.get("bits") or []]
        side = int(math.sqrt(len(bit_list)))
        if side * side != len(bit_list):
            raise ValueError(f"marker {marker_id} bits do not form a square")
        bits = np.array(bit_list, dtype=np.uint8).reshape(side, side)
        corners = []
        for point in entry.get("corners") or []:
            if len(point) != 3:
                raise ValueError("invalid file type 3")
            corners.append([float(c) for c in point])
        subs = [int(i) for i in entry.get("submarkers_id") or []]
        markers[marker_id] = FractalMarker(marker_id, bits, np.array(corners, dtype=np.float32), subs)

    marker_set = FractalMarkerSet(
        _info_type(document.get("mInfoType", 0)),
        int(document.get("fractal_external_id", 0)),
        markers,
    )
    marker_set._link_submarkers()
    return marker_set


def load(info: Union[str, Path]) -> FractalMarkerSet:
    """A predefined configuration by name, otherwise a set read from a file."""
    if isinstance(info, str) and is_predefined(info):
        return load_predefined(info)
    return read_file(info)