import sys

import pytest

from fractaltags.result_set import ResultSet


def test_knn_keeps_smallest_distances():
    rs = ResultSet(3)
    for index, distance in enumerate([5.0, 1.0, 4.0, 2.0, 3.0]):
        rs.push(index, distance)
    assert rs.results(sorted=True) == [(1, 1.0), (3, 2.0), (4, 3.0)]
    assert len(rs) == 3


def test_knn_unsorted_holds_same_pairs():
    rs = ResultSet(2)
    for index, distance in enumerate([7.0, 0.5, 9.0, 0.25]):
        rs.push(index, distance)
    assert set(rs.results(sorted=False)) == {(1, 0.5), (3, 0.25)}


def test_worst_dist_is_max_until_full():
    rs = ResultSet(2)
    assert rs.worst_dist() == sys.float_info.max
    rs.push(0, 8.0)
    assert rs.worst_dist() == sys.float_info.max
    rs.push(1, 6.0)
    assert rs.worst_dist() == 8.0
    assert rs.top() == 8.0


def test_candidate_not_better_than_top_is_ignored():
    rs = ResultSet(1)
    rs.push(0, 2.0)
    rs.push(1, 2.0)
    rs.push(2, 3.0)
    assert rs.results() == [(0, 2.0)]


def test_radius_mode_keeps_inside_only():
    rs = ResultSet(None, 4.0)
    rs.push(0, 3.0)
    rs.push(1, 5.0)
    rs.push(2, 4.0)
    rs.push(3, 1.0)
    assert rs.results(sorted=True) == [(3, 1.0), (0, 3.0)]
    assert rs.worst_dist() == 4.0


def test_radius_mode_ignores_max_size():
    rs = ResultSet(1, 10.0)
    for index in range(5):
        rs.push(index, float(index))
    assert len(rs) == 5


def test_nonpositive_max_value_means_knn():
    rs = ResultSet(None, -1.0)
    assert rs.radius_search is False
    rs.push(0, 1e9)
    assert rs.worst_dist() == sys.float_info.max
    assert rs.results() == [(0, 1e9)]


def test_top_of_empty_set_raises():
    with pytest.raises(IndexError):
        ResultSet(3).top()
    with pytest.raises(IndexError):
        ResultSet(None, 2.0).top()


def test_zero_size_rejected():
    with pytest.raises(ValueError):
        ResultSet(0)