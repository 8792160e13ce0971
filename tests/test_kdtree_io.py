import io
import random

import pytest

from fractaltags.kdtree import KdTreeIndex
from fractaltags.kdtree_io import index_from_bytes, index_to_bytes, read_index, write_index


def _points(n, dims=2, seed=7):
    rng = random.Random(seed)
    return [tuple(rng.uniform(-1000.0, 1000.0) for _ in range(dims)) for _ in range(n)]


def _built(points, dims=2):
    tree = KdTreeIndex(dims)
    tree.build(points)
    return tree


def test_round_trip_search_results():
    points = _points(500)
    tree = _built(points)
    restored = index_from_bytes(KdTreeIndex(2), index_to_bytes(tree))
    for query in [(0.0, 0.0), (250.0, -100.0), (-900.0, 900.0)]:
        assert restored.search_knn(points, query, 10) == tree.search_knn(points, query, 10)
        assert restored.radius_search(points, query, 150.0) == tree.radius_search(points, query, 150.0)


def test_round_trip_bytes_stable():
    points = _points(300, dims=3)
    tree = _built(points, dims=3)
    data = index_to_bytes(tree)
    restored = index_from_bytes(KdTreeIndex(3), data)
    assert index_to_bytes(restored) == data
    assert len(restored.nodes) == len(tree.nodes)
    assert restored.n_values == tree.n_values
    assert restored.root_bbox == tree.root_bbox


def test_stream_functions():
    points = _points(50)
    tree = _built(points)
    buffer = io.BytesIO()
    write_index(tree, buffer)
    buffer.seek(0)
    target = KdTreeIndex(2)
    returned = read_index(target, buffer)
    assert returned is target
    assert target.search_knn(points, (1.0, 2.0), 3) == tree.search_knn(points, (1.0, 2.0), 3)


def test_empty_tree_layout():
    tree = _built([])
    data = index_to_bytes(tree)
    assert data[:4] == b"\x02\x00\x00\x00"
    assert len(data) == 48
    restored = index_from_bytes(KdTreeIndex(2), data)
    assert restored.nodes == []
    assert restored.search_knn([], (0.0, 0.0), 3) == []


def test_dimension_mismatch_raises():
    data = index_to_bytes(_built(_points(30)))
    with pytest.raises(ValueError, match="dimensions"):
        index_from_bytes(KdTreeIndex(3), data)


def test_dimension_mismatch_allowed_for_empty_index():
    data = index_to_bytes(_built([]))
    restored = index_from_bytes(KdTreeIndex(3), data)
    assert restored.nodes == []
    assert restored.n_values == 0


def test_truncated_raises():
    data = index_to_bytes(_built(_points(40)))
    with pytest.raises(ValueError, match="truncated"):
        index_from_bytes(KdTreeIndex(2), data[:-3])