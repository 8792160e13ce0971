import random
import struct

import numpy as np
import pytest

from fractaltags.fractal_data import configurations, predefined_bytes
from fractaltags.fractal_set import (
    FractalMarkerSet,
    InfoType,
    from_bytes,
    load,
    load_predefined,
    marker_distance,
    read_file,
    rotate_bits,
    self_distance,
)


def _levels(name):
    return int(name.split("_")[1].rstrip("L"))


@pytest.mark.parametrize("name", configurations())
def test_predefined_bytes_round_trip(name):
    assert load_predefined(name).to_bytes() == predefined_bytes(name)


@pytest.mark.parametrize("name", configurations())
def test_predefined_structure(name):
    marker_set = load_predefined(name)
    levels = _levels(name)
    assert len(marker_set.markers) == levels
    assert marker_set.info_type is InfoType.NORM
    assert marker_set.fractal_size() == pytest.approx(2.0)
    subs = sorted(i for m in marker_set.markers.values() for i in m.submarkers)
    assert subs == list(range(1, levels))


def test_predefined_2l_bit_groups():
    marker_set = load_predefined("FRACTAL_2L_6")
    assert marker_set.nbits_ids == {100: [0], 36: [1]}
    assert marker_set.n_bits == marker_set.markers[0].n_bits


def test_masks_cover_submarker():
    marker_set = load_predefined("FRACTAL_2L_6")
    outer, inner = marker_set.markers[0], marker_set.markers[1]
    assert inner.mask.all()
    zeros = np.argwhere(outer.mask == 0)
    assert len(zeros) > 0
    rows = zeros[:, 0]
    cols = zeros[:, 1]
    height = rows.max() - rows.min() + 1
    width = cols.max() - cols.min() + 1
    assert height == width
    assert len(zeros) == height * width


def test_is_fractal_marker_matches_own_bits():
    marker_set = load_predefined("FRACTAL_2L_6")
    for marker_id, marker in marker_set.markers.items():
        assert marker_set.is_fractal_marker(marker.bits, marker.n_bits) == marker_id


def test_is_fractal_marker_ignores_masked_bits():
    marker_set = load_predefined("FRACTAL_2L_6")
    outer = marker_set.markers[0]
    code = outer.bits.copy()
    code[outer.mask == 0] = 1
    assert marker_set.is_fractal_marker(code, outer.n_bits) == 0


def test_is_fractal_marker_rejects_changed_bit():
    marker_set = load_predefined("FRACTAL_2L_6")
    outer = marker_set.markers[0]
    code = outer.bits.copy()
    y, x = np.argwhere(outer.mask == 1)[0]
    code[y, x] = 1 - code[y, x]
    assert marker_set.is_fractal_marker(code, outer.n_bits) is None


def test_is_fractal_marker_unknown_size():
    marker_set = load_predefined("FRACTAL_2L_6")
    assert marker_set.is_fractal_marker(np.zeros((5, 5), np.uint8), 25) is None


def test_load_by_name():
    assert load("FRACTAL_3L_6").to_bytes() == predefined_bytes("FRACTAL_3L_6")


def test_load_custom_raises():
    with pytest.raises(ValueError):
        load_predefined("CUSTOM")


def test_from_bytes_truncated():
    with pytest.raises(ValueError):
        from_bytes(predefined_bytes("FRACTAL_2L_6")[:-5])


def test_from_bytes_missing_submarker():
    data = bytearray(predefined_bytes("FRACTAL_2L_6"))
    data[4:8] = struct.pack("<i", 1)
    with pytest.raises(ValueError):
        from_bytes(bytes(data))


def test_save_and_read_file(tmp_path):
    original = load_predefined("FRACTAL_4L_6")
    path = tmp_path / "fractal.yml"
    original.save(path)
    restored = read_file(path)
    assert restored.to_bytes() == original.to_bytes()
    for marker_id, marker in original.markers.items():
        assert np.array_equal(restored.markers[marker_id].mask, marker.mask)
    assert load(str(path)).to_bytes() == original.to_bytes()


def test_read_file_bad_corner(tmp_path):
    path = tmp_path / "bad.yml"
    path.write_text(
        "%YAML:1.0\n---\nmInfoType: 2\nfractal_levels: 1\nfractal_external_id: 0\n"
        "markers:\n  - {id: 0, bits: [1, 0, 0, 1], corners: [[1.0, 2.0]], submarkers_id: []}\n"
    )
    with pytest.raises(ValueError):
        read_file(path)


def test_rotate_bits_example_and_cycle():
    m = np.array([[1, 0], [0, 0]], dtype=np.uint8)
    assert rotate_bits(m).tolist() == [[0, 1], [0, 0]]
    bits = load_predefined("FRACTAL_2L_6").markers[1].bits
    assert np.array_equal(rotate_bits(rotate_bits(rotate_bits(rotate_bits(bits)))), bits)


def test_self_distance():
    assert self_distance(np.ones((4, 4), np.uint8)) == 0
    bits = load_predefined("FRACTAL_2L_6").markers[1].bits
    assert 0 < self_distance(bits) <= bits.size


def test_marker_distance():
    bits = load_predefined("FRACTAL_2L_6").markers[1].bits
    assert marker_distance(rotate_bits(bits), bits) == 0
    assert 0 <= marker_distance(bits, bits) <= bits.size


def test_distance_to_set():
    marker_set = load_predefined("FRACTAL_2L_6")
    bits = marker_set.markers[1].bits
    back = rotate_bits(rotate_bits(rotate_bits(bits)))
    assert marker_set.distance_to_set(back) == 0
    other = np.zeros((3, 3), np.uint8)
    assert marker_set.distance_to_set(other) == other.size


def test_convert_to_meters_and_back():
    marker_set = load_predefined("FRACTAL_2L_6")
    meters = marker_set.convert_to_meters(0.5)
    assert meters.info_type is InfoType.METERS
    assert meters.fractal_size() == pytest.approx(0.5)
    assert marker_set.info_type is InfoType.NORM
    assert marker_set.fractal_size() == pytest.approx(2.0)
    normalized = meters.normalize()
    for marker_id, marker in marker_set.markers.items():
        np.testing.assert_allclose(normalized.markers[marker_id].corners, marker.corners, atol=1e-6)


def test_unit_errors():
    marker_set = load_predefined("FRACTAL_2L_6")
    with pytest.raises(ValueError):
        marker_set.normalize()
    with pytest.raises(ValueError):
        marker_set.convert_to_meters(1.0).convert_to_meters(1.0)


def test_configure_mat_layout():
    marker_set = FractalMarkerSet()
    m = marker_set.configure_mat(8, 4, max_iter=20, rng=random.Random(0))
    assert m.shape == (8, 8)
    assert set(np.unique(m)) <= {0, 1}
    assert not m[3:5, 3:5].any()
    frame = m[2:6, 2:6].copy()
    frame[1:3, 1:3] = 1
    assert frame.all()
    ring = np.ones((8, 8), bool)
    ring[2:6, 2:6] = False
    total = int(ring.sum())
    assert int(np.count_nonzero(m[ring] == 0)) == total - total // 2


def test_configure_mat_deterministic():
    marker_set = FractalMarkerSet()
    a = marker_set.configure_mat(8, 4, max_iter=10, rng=random.Random(7))
    b = marker_set.configure_mat(8, 4, max_iter=10, rng=random.Random(7))
    assert np.array_equal(a, b)


def test_configure_mat_invalid():
    with pytest.raises(ValueError):
        FractalMarkerSet().configure_mat(4, 6)


def test_create_normalized():
    marker_set = FractalMarkerSet()
    marker_set.create([(10, 6), (4, 0)], rng=random.Random(3))
    assert marker_set.info_type is InfoType.NORM
    assert marker_set.markers[0].bits.shape == (10, 10)
    assert marker_set.markers[1].bits.shape == (4, 4)
    assert marker_set.markers[0].submarkers == [1]
    assert marker_set.markers[1].submarkers == []
    assert marker_set.fractal_size() == pytest.approx(2.0)
    restored = from_bytes(marker_set.to_bytes())
    assert restored.to_bytes() == marker_set.to_bytes()


def test_create_pixels_matches_normalized():
    norm_set = FractalMarkerSet()
    norm_set.create([(10, 6), (4, 0)], rng=random.Random(5))
    pix_set = FractalMarkerSet()
    pix_set.create([(10, 6), (4, 0)], pix_size=1.0, rng=random.Random(5))
    assert pix_set.info_type is InfoType.PIX
    normalized = pix_set.normalize()
    for marker_id, marker in norm_set.markers.items():
        np.testing.assert_allclose(normalized.markers[marker_id].corners, marker.corners, atol=1e-6)
        assert np.array_equal(pix_set.markers[marker_id].bits, marker.bits)


def test_create_empty_raises():
    with pytest.raises(ValueError):
        FractalMarkerSet().create([])