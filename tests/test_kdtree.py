import random
from dataclasses import dataclass

import pytest

from fractaltags.kdtree import KdTreeIndex, Node, l2_distance, item_adapter


def _points(n, dims, seed=7):
    rng = random.Random(seed)
    return [tuple(rng.randint(-1000, 1000) / 4 for _ in range(dims)) for _ in range(n)]


def _sq(a, b):
    return sum((x - y) ** 2 for x, y in zip(a, b))


def test_l2_distance_full_and_early_exit():
    assert l2_distance((0.0, 0.0), (3.0, 4.0), item_adapter, 2, 1e9) == 25.0
    assert l2_distance((0.0, 0.0), (3.0, 4.0), item_adapter, 2, 5.0) == 9.0


def test_node_leaf_flag():
    assert Node().is_leaf
    assert not Node(left=1, right=2).is_leaf


@pytest.mark.parametrize("dims", [2, 3])
def test_knn_matches_exhaustive_search(dims):
    points = _points(600, dims)
    tree = KdTreeIndex(dims)
    tree.build(points)
    query = tuple(0.3 for _ in range(dims))
    found = tree.search_knn(points, query, 10)
    expected = sorted(_sq(query, p) for p in points)[:10]
    assert [d for _, d in found] == pytest.approx(expected)
    for index, distance in found:
        assert distance == pytest.approx(_sq(query, points[index]))


def test_radius_search_matches_exhaustive_search():
    points = _points(800, 2, seed=3)
    tree = KdTreeIndex(2)
    tree.build(points)
    query = (1.1, -2.2)
    found = tree.radius_search(points, query, 30.3)
    expected = {i for i, p in enumerate(points) if _sq(query, p) < 30.3 ** 2}
    assert {i for i, _ in found} == expected
    distances = [d for _, d in found]
    assert distances == sorted(distances)


def test_point_finds_itself_first():
    points = _points(200, 3, seed=11)
    tree = KdTreeIndex(3)
    tree.build(points)
    for index in (0, 57, 199):
        best = tree.search_knn(points, points[index], 1)
        assert best[0][1] == 0.0
        assert points[best[0][0]] == points[index]


def test_small_set_is_single_leaf():
    points = _points(5, 2)
    tree = KdTreeIndex(2)
    tree.build(points)
    assert len(tree.nodes) == 1
    assert sorted(tree.nodes[0].idx) == list(range(5))
    assert tree.n_values == 5


def test_tree_covers_every_index_once():
    points = _points(500, 2, seed=5)
    tree = KdTreeIndex(2, max_leaf_size=4)
    tree.build(points)
    leaves = [i for node in tree.nodes if node.is_leaf for i in node.idx]
    assert sorted(leaves) == list(range(500))
    assert all(len(node.idx) <= 4 for node in tree.nodes if node.is_leaf)
    for node in tree.nodes:
        if not node.is_leaf:
            assert node.divlow <= node.divhigh


def test_identical_points():
    points = [(1.0, 1.0)] * 50
    tree = KdTreeIndex(2)
    tree.build(points)
    found = tree.search_knn(points, (1.0, 1.0), 50)
    assert len(found) == 50
    assert all(d == 0.0 for _, d in found)


def test_custom_adapter():
    @dataclass
    class P:
        x: float
        y: float

    points = [P(float(i), float(-i)) for i in range(40)]
    tree = KdTreeIndex(2, adapter=lambda p, d: p.x if d == 0 else p.y)
    tree.build(points)
    found = tree.search_knn(points, P(10.2, -10.2), 1)
    assert found[0][0] == 10


def test_empty_and_cleared_tree_return_nothing():
    tree = KdTreeIndex(2)
    tree.build([])
    assert tree.search_knn([], (0.0, 0.0), 3) == []
    points = _points(30, 2)
    tree.build(points)
    tree.clear()
    assert tree.nodes == []
    assert tree.radius_search(points, (0.0, 0.0), 100.0) == []


def test_nonpositive_radius_returns_everything():
    points = _points(25, 2)
    tree = KdTreeIndex(2)
    tree.build(points)
    assert len(tree.radius_search(points, (0.0, 0.0), 0.0)) == 25


def test_invalid_arguments():
    with pytest.raises(ValueError):
        KdTreeIndex(0)
    with pytest.raises(ValueError):
        KdTreeIndex(2, max_leaf_size=0)
    points = _points(20, 2)
    tree = KdTreeIndex(2)
    tree.build(points)
    with pytest.raises(ValueError):
        tree.search_knn(points, (0.0, 0.0), 0)