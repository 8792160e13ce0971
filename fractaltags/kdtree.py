"""A small k-d tree for exact nearest-neighbour and radius searches."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Sequence

from .result_set import ResultSet

Adapter = Callable[[Any, int], float]
BoundingBox = list[tuple[float, float]]


def _f32(value: float) -> float:
    return struct.unpack("<f", struct.pack("<f", value))[0]


def item_adapter(elem: Any, dim: int) -> float:
    """Default adapter: the ``dim``-th item of the element."""
    return float(elem[dim])


def l2_distance(a: Any, b: Any, adapter: Adapter, ndims: int, worst_dist: float) -> float:
    """Squared Euclidean distance, stopping early once above ``worst_dist``."""
    sqd = 0.0
    for dim in range(ndims):
        d = adapter(a, dim) - adapter(b, dim)
        sqd += d * d
        if sqd > worst_dist:
            return sqd
    return sqd


@dataclass
class Node:
    """A tree node; leaves hold point indices, inner nodes a split plane."""

    div_val: float = 0.0
    col_index: int = 0
    idx: list[int] = field(default_factory=list)
    divhigh: float = 0.0
    divlow: float = 0.0
    left: int = -1
    right: int = -1

    @property
    def is_leaf(self) -> bool:
        return self.left == -1 and self.right == -1


class KdTreeIndex:
    """Index over a sequence of points accessed through an adapter.

    The points themselves are not stored; the same sequence must be passed
    to the search methods.  Returned distances are squared.
    """

    def __init__(self, dims: int, adapter: Optional[Adapter] = None, max_leaf_size: int = 10):
        if dims < 1:
            raise ValueError("dims must be at least 1")
        if max_leaf_size < 1:
            raise ValueError("max_leaf_size must be at least 1")
        self.dims = dims
        self.adapter: Adapter = adapter or item_adapter
        self.max_leaf_size = max_leaf_size
        self.nodes: list[Node] = []
        self.root_bbox: BoundingBox = []
        self.n_values = 0
        self._indices: list[int] = []

    def build(self, points: Sequence[Any]) -> None:
        """Build the index over ``points``."""
        self.nodes = []
        self.root_bbox = []
        self.n_values = len(points)
        self._indices = list(range(len(points)))
        if not self._indices:
            return
        self.root_bbox = self._bounding_box(points, 0, len(points))
        self.nodes.append(Node())
        self.root_bbox = self._divide(0, 0, len(points), self.root_bbox, points)

    def clear(self) -> None:
        self.nodes = []
        self.root_bbox = []
        self.n_values = 0
        self._indices = []

    def search_knn(self, points: Sequence[Any], query: Any, nn: int, sorted: bool = True) -> list[tuple[int, float]]:
        """The ``nn`` nearest points as (index, squared distance) pairs."""
        return self._search(points, query, -1.0, sorted, None if nn < 0 else nn)

    def radius_search(
        self,
        points: Sequence[Any],
        query: Any,
        dist: float,
        sorted: bool = True,
        max_nn: int = -1,
    ) -> list[tuple[int, float]]:
        """Points closer than ``dist`` as (index, squared distance) pairs."""
        return self._search(points, query, dist, sorted, None if max_nn < 0 else max_nn)

    def _value(self, points: Sequence[Any], index: int, dim: int) -> float:
        return self.adapter(points[index], dim)

    def _bounding_box(self, points: Sequence[Any], start: int, end: int) -> BoundingBox:
        chosen = self._indices[start:end]
        box = []
        for dim in range(self.dims):
            values = [self._value(points, i, dim) for i in chosen]
            box.append((min(values), max(values)))
        return box

    def _mean_var(self, points: Sequence[Any], start: int, end: int) -> tuple[list[float], list[float]]:
        max_elem_mean = 100
        count = end - start
        step = count // max_elem_mean if count >= 2 * max_elem_mean else 1
        sample = self._indices[start:end:step]
        means, variances = [], []
        for dim in range(self.dims):
            values = [self._value(points, i, dim) for i in sample]
            mean = sum(values) / len(values)
            means.append(mean)
            variances.append(sum(v * v for v in values) / len(values) - mean * mean)
        return variances, means

    def _plane_split(self, points: Sequence[Any], start: int, count: int, col: int, cutval: float) -> tuple[int, int]:
        ind = self._indices

        def val(k: int) -> float:
            return self._value(points, ind[start + k], col)

        def swap(i: int, j: int) -> None:
            ind[start + i], ind[start + j] = ind[start + j], ind[start + i]

        left, right = 0, count - 1
        while True:
            while left <= right and val(left) < cutval:
                left += 1
            while left <= right and val(right) >= cutval:
                right -= 1
            if left > right:
                break
            swap(left, right)
            left += 1
            right -= 1
        lim1 = left
        right = count - 1
        while True:
            while left <= right and val(left) <= cutval:
                left += 1
            while left <= right and val(right) > cutval:
                right -= 1
            if left > right:
                break
            swap(left, right)
            left += 1
            right -= 1
        return lim1, left

    def _divide(self, node_idx: int, start: int, end: int, bbox: BoundingBox, points: Sequence[Any]) -> BoundingBox:
        node = self.nodes[node_idx]
        count = end - start
        if count <= self.max_leaf_size:
            node.idx = self._indices[start:end]
            return self._bounding_box(points, start, end)

        node.left = len(self.nodes)
        node.right = node.left + 1
        self.nodes.extend((Node(), Node()))

        variances, means = self._mean_var(points, start, end)
        col = max(range(self.dims), key=lambda d: variances[d])
        node.col_index = col
        node.div_val = means[col]

        lim1, lim2 = self._plane_split(points, start, count, col, _f32(node.div_val))
        half = count // 2
        if lim1 > half:
            split = lim1
        elif lim2 < half:
            split = lim2
        else:
            split = half
        if lim1 == count or lim2 == 0:
            split = half
        mls = self.max_leaf_size
        if mls != 1 and (split < mls or count - split < mls):
            self._indices[start:end] = sorted(
                self._indices[start:end], key=lambda i: self._value(points, i, col)
            )
            split = half
            node.div_val = self._value(points, self._indices[start + split], col)

        left_bbox = list(bbox)
        left_bbox[col] = (left_bbox[col][0], node.div_val)
        left_bbox = self._divide(node.left, start, start + split, left_bbox, points)
        left_bbox[col] = (left_bbox[col][0], node.div_val)
        right_bbox = list(bbox)
        right_bbox[col] = (node.div_val, right_bbox[col][1])
        right_bbox = self._divide(node.right, start + split, end, right_bbox, points)

        node.divlow = _f32(left_bbox[col][1])
        node.divhigh = _f32(right_bbox[col][0])
        return [(min(lo[0], hi[0]), max(lo[1], hi[1])) for lo, hi in zip(left_bbox, right_bbox)]

    def _search(
        self,
        points: Sequence[Any],
        query: Any,
        dist: float,
        sorted: bool,
        max_size: Optional[int],
    ) -> list[tuple[int, float]]:
        result = ResultSet(max_size, dist * dist if dist > 0 else -1.0)
        if not self.nodes:
            return []
        dists = [0.0] * self.dims
        mindistsq = 0.0
        for dim, (low, high) in enumerate(self.root_bbox):
            value = self.adapter(query, dim)
            if value < low:
                dists[dim] = (value - low) ** 2
                mindistsq += dists[dim]
            if value > high:
                dists[dim] = (value - high) ** 2
                mindistsq += dists[dim]
        self._search_level(0, query, result, mindistsq, dists, points)
        return result.results(sorted)

    def _search_level(
        self,
        node_idx: int,
        query: Any,
        result: ResultSet,
        mindistsq: float,
        dists: list[float],
        points: Sequence[Any],
    ) -> None:
        node = self.nodes[node_idx]
        if node.is_leaf:
            worst = result.worst_dist()
            for index in node.idx:
                sqd = l2_distance(query, points[index], self.adapter, self.dims, worst)
                if sqd < worst:
                    result.push(index, sqd)
                    worst = result.worst_dist()
            return

        value = self.adapter(query, node.col_index)
        diff1 = value - node.divlow
        diff2 = value - node.divhigh
        if diff1 + diff2 < 0:
            best, other, cut_dist = node.left, node.right, diff2 * diff2
        else:
            best, other, cut_dist = node.right, node.left, diff1 * diff1
        self._search_level(best, query, result, mindistsq, dists, points)

        saved = dists[node.col_index]
        mindistsq = mindistsq + cut_dist - saved
        dists[node.col_index] = cut_dist
        if mindistsq <= result.worst_dist():
            self._search_level(other, query, result, mindistsq, dists, points)
        dists[node.col_index] = saved