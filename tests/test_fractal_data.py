import struct

import pytest

from fractaltags.fractal_data import (
    ConfigurationType,
    configurations,
    is_predefined,
    predefined_bytes,
    type_from_string,
    type_string,
)

LEVELS = {
    ConfigurationType.FRACTAL_2L_6: 2,
    ConfigurationType.FRACTAL_3L_6: 3,
    ConfigurationType.FRACTAL_4L_6: 4,
    ConfigurationType.FRACTAL_5L_6: 5,
}

LENGTHS = {
    ConfigurationType.FRACTAL_2L_6: 272,
    ConfigurationType.FRACTAL_3L_6: 480,
    ConfigurationType.FRACTAL_4L_6: 713,
    ConfigurationType.FRACTAL_5L_6: 898,
}


def _walk(data):
    info_type, nmarkers, external = struct.unpack_from("<iii", data, 0)
    pos = 12
    markers = []
    for _ in range(nmarkers):
        marker_id, nbits = struct.unpack_from("<ii", data, pos)
        pos += 8
        corners = struct.unpack_from("<12f", data, pos)
        pos += 48
        bits = data[pos:pos + nbits]
        pos += nbits
        (nsub,) = struct.unpack_from("<i", data, pos)
        pos += 4
        subs = list(struct.unpack_from(f"<{nsub}i", data, pos))
        pos += 4 * nsub
        markers.append((marker_id, nbits, corners, bits, subs))
    return info_type, nmarkers, external, markers, pos


def test_configuration_names():
    assert configurations() == ["FRACTAL_2L_6", "FRACTAL_3L_6", "FRACTAL_4L_6", "FRACTAL_5L_6"]


@pytest.mark.parametrize("name", ["FRACTAL_2L_6", "FRACTAL_3L_6", "FRACTAL_4L_6", "FRACTAL_5L_6"])
def test_name_round_trip(name):
    conf = type_from_string(name)
    assert type_string(conf) == name
    assert is_predefined(name)


def test_unknown_name_is_custom():
    assert type_from_string("my_markers.yml") is ConfigurationType.CUSTOM
    assert not is_predefined("my_markers.yml")
    assert type_string(ConfigurationType.CUSTOM) == "CUSTOM"


def test_invalid_type_string():
    assert type_string(99) == "Non valid CONF_TYPE"


@pytest.mark.parametrize("conf", list(LENGTHS))
def test_lengths(conf):
    assert len(predefined_bytes(conf)) == LENGTHS[conf]


@pytest.mark.parametrize("conf", list(LEVELS))
def test_structure(conf):
    data = predefined_bytes(conf)
    info_type, nmarkers, external, markers, end = _walk(data)
    assert info_type == 2
    assert nmarkers == LEVELS[conf]
    assert external == 0
    assert end == len(data)
    assert [m[0] for m in markers] == list(range(nmarkers))
    for i, (_, nbits, _, bits, subs) in enumerate(markers):
        side = int(round(nbits ** 0.5))
        assert side * side == nbits
        assert set(bits) <= {0, 1}
        expected_subs = [i + 1] if i + 1 < nmarkers else []
        assert subs == expected_subs


@pytest.mark.parametrize("conf", list(LEVELS))
def test_external_marker_is_normalized(conf):
    _, _, _, markers, _ = _walk(predefined_bytes(conf))
    corners = markers[0][2]
    assert corners == (-1.0, 1.0, 0.0, 1.0, 1.0, 0.0, 1.0, -1.0, 0.0, -1.0, -1.0, 0.0)


def test_accepts_string():
    assert predefined_bytes("FRACTAL_3L_6") == predefined_bytes(ConfigurationType.FRACTAL_3L_6)


def test_custom_raises():
    with pytest.raises(ValueError, match="CUSTOM"):
        predefined_bytes(ConfigurationType.CUSTOM)
    with pytest.raises(ValueError):
        predefined_bytes("unknown")


def test_invalid_raises():
    with pytest.raises(ValueError):
        predefined_bytes(42)