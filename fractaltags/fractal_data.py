"""Predefined fractal marker configurations and their names."""

from __future__ import annotations

import enum
from typing import Union


class ConfigurationType(enum.IntEnum):
    """Known fractal marker configurations."""

    FRACTAL_2L_6 = 0
    FRACTAL_3L_6 = 1
    FRACTAL_4L_6 = 2
    FRACTAL_5L_6 = 3
    CUSTOM = 4


_PREDEFINED_HEX = {
    ConfigurationType.FRACTAL_2L_6: """
        02 00 00 00 02 00 00 00 00 00 00 00 00
        00 00 00 64 00 00 00 00 00 80 bf 00 00
        80 3f 00 00 00 00 00 00 80 3f 00 00 80
        3f 00 00 00 00 00 00 80 3f 00 00 80 bf
        00 00 00 00 00 00 80 bf 00 00 80 bf 00
        00 00 00 00 00 00 01 00 01 01 01 01 01
        01 00 01 00 00 00 01 01 00 01 00 00 01
        01 01 01 01 01 00 01 00 01 01 00 00 00
        00 01 01 00 00 01 01 00 00 00 00 01 00
        01 01 01 01 00 00 00 00 01 00 00 00 01
        01 00 00 00 00 01 00 00 01 01 01 01 01
        01 01 01 01 00 01 01 00 01 00 00 00 00
        01 01 01 00 01 01 00 00 01 01 00 00 01
        00 00 00 01 00 00 00 01 00 00 00 24 00
        00 00 ab aa aa be ab aa aa 3e 00 00 00
        00 ab aa aa 3e ab aa aa 3e 00 00 00 00
        ab aa aa 3e ab aa aa be 00 00 00 00 ab
        aa aa be ab aa aa be 00 00 00 00 00 01
        00 01 01 00 00 01 00 01 00 01 00 00 01
        00 01 01 01 01 00 01 01 00 01 00 00 00
        01 00 00 01 01 00 00 01 00 00 00 00
    """,
    ConfigurationType.FRACTAL_3L_6: """
        02 00 00 00 03 00 00 00 00 00 00 00 00
        00 00 00 90 00 00 00 00 00 80 bf 00 00
        80 3f 00 00 00 00 00 00 80 3f 00 00 80
        3f 00 00 00 00 00 00 80 3f 00 00 80 bf
        00 00 00 00 00 00 80 bf 00 00 80 bf 00
        00 00 00 00 00 01 00 01 00 01 01 00 00
        01 01 00 01 00 00 00 01 00 00 01 01 00
        01 01 00 01 01 01 01 01 01 01 01 00 00
        01 01 01 00 00 00 00 00 00 01 00 01 00
        00 01 00 00 00 00 00 00 01 00 00 01 01
        01 00 00 00 00 00 00 01 00 01 00 00 01
        00 00 00 00 00 00 01 01 01 00 01 01 00
        00 00 00 00 00 01 01 01 01 01 01 00 00
        00 00 00 00 01 00 01 00 01 01 01 01 01
        01 01 01 01 00 00 01 00 01 01 01 00 01
        00 00 00 01 00 01 01 01 00 01 01 00 01
        00 01 00 00 01 00 00 00 01 00 00 00 01
        00 00 00 64 00 00 00 b7 6d db be b7 6d
        db 3e 00 00 00 00 b7 6d db 3e b7 6d db
        3e 00 00 00 00 b7 6d db 3e b7 6d db be
        00 00 00 00 b7 6d db be b7 6d db be 00
        00 00 00 01 01 01 01 01 01 00 01 00 00
        00 01 00 01 01 00 01 01 00 00 00 00 01
        01 01 01 01 01 00 00 01 00 01 00 00 00
        00 01 00 00 00 01 01 00 00 00 00 01 01
        00 00 01 01 00 00 00 00 01 01 00 00 00
        01 00 00 00 00 01 01 00 00 00 01 01 01
        01 01 01 00 00 01 00 01 01 00 00 01 01
        01 01 01 00 01 01 01 00 01 01 01 00 01
        00 00 00 02 00 00 00 02 00 00 00 24 00
        00 00 25 49 12 be 25 49 12 3e 00 00 00
        00 25 49 12 3e 25 49 12 3e 00 00 00 00
        25 49 12 3e 25 49 12 be 00 00 00 00 25
        49 12 be 25 49 12 be 00 00 00 00 00 00
        00 01 01 01 00 01 00 00 00 01 00 01 01
        00 01 00 01 01 01 01 01 00 01 00 00 00
        01 01 01 00 01 00 00 00 00 00 00 00
    """,
    ConfigurationType.FRACTAL_4L_6: """
        02 00 00 00 04 00 00 00 00 00 00 00 00
        00 00 00 a9 00 00 00 00 00 80 bf 00 00
        80 3f 00 00 00 00 00 00 80 3f 00 00 80
        3f 00 00 00 00 00 00 80 3f 00 00 80 bf
        00 00 00 00 00 00 80 bf 00 00 80 bf 00
        00 00 00 00 01 00 00 00 01 00 00 01 00
        01 01 00 01 01 01 00 01 00 00 00 00 01
        00 00 00 01 01 01 01 01 01 01 01 01 01
        01 00 00 01 00 01 00 00 00 00 00 00 00
        01 01 00 01 00 01 00 00 00 00 00 00 00
        01 00 01 00 01 01 00 00 00 00 00 00 00
        01 01 00 01 01 01 00 00 00 00 00 00 00
        01 01 01 00 01 01 00 00 00 00 00 00 00
        01 01 01 01 00 01 00 00 00 00 00 00 00
        01 00 01 00 01 01 00 00 00 00 00 00 00
        01 00 01 00 00 01 01 01 01 01 01 01 01
        01 01 01 01 00 01 01 01 00 01 00 01 00
        01 01 00 00 01 00 00 00 00 00 01 00 01
        01 01 00 01 00 00 00 01 00 00 00 01 00
        00 00 90 00 00 00 ef ee ee be ef ee ee
        3e 00 00 00 00 ef ee ee 3e ef ee ee 3e
        00 00 00 00 ef ee ee 3e ef ee ee be 00
        00 00 00 ef ee ee be ef ee ee be 00 00
        00 00 01 00 01 00 00 00 00 00 01 01 01
        00 00 00 00 00 00 01 01 01 00 00 01 01
        01 00 01 01 01 01 01 01 01 01 01 00 01
        01 01 00 00 00 00 00 00 01 01 00 01 00
        01 00 00 00 00 00 00 01 00 01 01 00 01
        00 00 00 00 00 00 01 01 01 01 00 01 00
        00 00 00 00 00 01 00 01 01 01 01 00 00
        00 00 00 00 01 00 01 00 00 01 00 00 00
        00 00 00 01 00 01 01 01 01 01 01 01 01
        01 01 01 01 01 01 00 00 00 01 01 00 01
        01 00 00 00 01 01 00 00 00 00 00 00 01
        01 00 01 01 00 00 00 02 00 00 00 02 00
        00 00 64 00 00 00 cd cc 4c be cd cc 4c
        3e 00 00 00 00 cd cc 4c 3e cd cc 4c 3e
        00 00 00 00 cd cc 4c 3e cd cc 4c be 00
        00 00 00 cd cc 4c be cd cc 4c be 00 00
        00 00 01 00 01 00 00 01 01 00 01 00 01
        01 01 00 01 00 01 00 00 01 01 00 01 01
        01 01 01 01 01 00 00 00 01 00 00 00 00
        01 01 00 00 01 01 00 00 00 00 01 00 01
        00 00 01 00 00 00 00 01 00 00 00 01 01
        00 00 00 00 01 00 00 00 00 01 01 01 01
        01 01 01 01 01 00 00 01 01 01 00 00 01
        01 00 01 01 01 01 00 01 01 00 01 01 00
        00 00 03 00 00 00 03 00 00 00 24 00 00
        00 89 88 88 bd 89 88 88 3d 00 00 00 00
        89 88 88 3d 89 88 88 3d 00 00 00 00 89
        88 88 3d 89 88 88 bd 00 00 00 00 89 88
        88 bd 89 88 88 bd 00 00 00 00 01 01 01
        01 00 00 01 00 00 01 01 00 00 00 01 01
        01 00 00 01 00 01 00 01 00 01 01 00 00
        01 00 00 00 01 01 00 00 00 00 00
    """,
    ConfigurationType.FRACTAL_5L_6: """
        02 00 00 00 05 00 00 00 00 00 00 00 00
        00 00 00 79 00 00 00 00 00 80 bf 00 00
        80 3f 00 00 00 00 00 00 80 3f 00 00 80
        3f 00 00 00 00 00 00 80 3f 00 00 80 bf
        00 00 00 00 00 00 80 bf 00 00 80 bf 00
        00 00 00 01 01 01 01 01 00 00 01 01 00
        00 01 00 00 00 00 00 01 00 01 01 00 00
        00 01 01 01 01 01 01 01 01 00 00 00 01
        00 00 00 00 00 01 01 01 00 00 01 00 00
        00 00 00 01 01 01 00 01 01 00 00 00 00
        00 01 01 00 01 01 01 00 00 00 00 00 01
        00 01 00 00 01 00 00 00 00 00 01 00 00
        00 00 01 01 01 01 01 01 01 00 01 00 01
        01 01 01 01 00 00 01 00 01 00 00 01 01
        00 01 00 01 01 01 01 01 00 00 00 01 00
        00 00 01 00 00 00 a9 00 00 00 4f ec c4
        be 4f ec c4 3e 00 00 00 00 4f ec c4 3e
        4f ec c4 3e 00 00 00 00 4f ec c4 3e 4f
        ec c4 be 00 00 00 00 4f ec c4 be 4f ec
        c4 be 00 00 00 00 01 01 01 00 01 01 00
        00 00 01 01 01 00 00 00 01 00 01 00 01
        00 01 00 00 01 00 00 00 01 01 01 01 01
        01 01 01 01 00 01 01 01 01 00 00 00 00
        00 00 00 01 01 01 01 00 01 00 00 00 00
        00 00 00 01 00 00 01 01 01 00 00 00 00
        00 00 00 01 01 00 01 01 01 00 00 00 00
        00 00 00 01 01 00 00 00 01 00 00 00 00
        00 00 00 01 01 01 00 00 01 00 00 00 00
        00 00 00 01 00 01 01 01 01 00 00 00 00
        00 00 00 01 01 01 00 00 01 01 01 01 01
        01 01 01 01 00 01 00 00 01 00 01 00 00
        00 01 00 00 01 01 00 01 01 00 00 00 01
        01 01 00 00 00 01 01 00 00 00 02 00 00
        00 02 00 00 00 90 00 00 00 7d cb 37 be
        7d cb 37 3e 00 00 00 00 7d cb 37 3e 7d
        cb 37 3e 00 00 00 00 7d cb 37 3e 7d cb
        37 be 00 00 00 00 7d cb 37 be 7d cb 37
        be 00 00 00 00 00 00 01 00 01 00 01 00
        00 00 01 00 01 01 01 01 00 01 01 01 00
        01 00 00 00 00 01 01 01 01 01 01 01 01
        00 00 00 01 01 00 00 00 00 00 00 01 00
        01 01 00 01 00 00 00 00 00 00 01 01 01
        00 01 01 00 00 00 00 00 00 01 00 01 01
        00 01 00 00 00 00 00 00 01 00 00 00 01
        01 00 00 00 00 00 00 01 00 01 01 01 01
        00 00 00 00 00 00 01 01 01 00 00 01 01
        01 01 01 01 01 01 00 01 00 00 01 00 01
        00 01 00 00 01 01 01 01 00 01 01 00 00
        01 01 00 01 01 00 01 00 00 00 03 00 00
        00 03 00 00 00 64 00 00 00 d9 89 9d bd
        d9 89 9d 3d 00 00 00 00 d9 89 9d 3d d9
        89 9d 3d 00 00 00 00 d9 89 9d 3d d9 89
        9d bd 00 00 00 00 d9 89 9d bd d9 89 9d
        bd 00 00 00 00 01 00 01 00 01 00 01 01
        00 00 00 01 00 00 00 01 01 00 01 00 00
        01 01 01 01 01 01 01 01 00 00 00 01 00
        00 00 00 01 01 00 00 00 01 00 00 00 00
        01 01 01 00 01 01 00 00 00 00 01 00 00
        01 01 01 00 00 00 00 01 00 01 00 01 01
        01 01 01 01 01 01 00 01 01 01 01 01 00
        00 00 00 00 00 01 01 00 01 01 01 01 00
        01 01 00 00 00 04 00 00 00 04 00 00 00
        24 00 00 00 21 0d d2 bc 21 0d d2 3c 00
        00 00 00 21 0d d2 3c 21 0d d2 3c 00 00
        00 00 21 0d d2 3c 21 0d d2 bc 00 00 00
        00 21 0d d2 bc 21 0d d2 bc 00 00 00 00
        00 00 00 00 00 01 00 00 01 00 00 01 01
        01 00 01 00 01 01 00 01 00 01 01 01 00
        00 01 01 01 01 01 00 01 00 00 00 00 00
        00
    """,
}

_NAMES = {
    conf: conf.name for conf in ConfigurationType
}


def type_from_string(name: str) -> ConfigurationType:
    """Configuration type named ``name``; unknown names give ``CUSTOM``."""
    for conf in ConfigurationType:
        if conf is not ConfigurationType.CUSTOM and conf.name == name:
            return conf
    return ConfigurationType.CUSTOM


def type_string(conf: Union[ConfigurationType, int]) -> str:
    """Name of a configuration type."""
    try:
        return _NAMES[ConfigurationType(conf)]
    except ValueError:
        return "Non valid CONF_TYPE"


def configurations() -> list[str]:
    """Names of the predefined configurations."""
    return [conf.name for conf in ConfigurationType if conf is not ConfigurationType.CUSTOM]


def is_predefined(name: str) -> bool:
    """Whether ``name`` names a predefined configuration."""
    return type_from_string(name) is not ConfigurationType.CUSTOM


def predefined_bytes(conf: Union[ConfigurationType, str, int]) -> bytes:
    """Serialized form of a predefined configuration."""
    if isinstance(conf, str):
        conf = type_from_string(conf)
    try:
        conf = ConfigurationType(conf)
    except ValueError:
        raise ValueError("Invalid configuration type requested") from None
    if conf is ConfigurationType.CUSTOM:
        raise ValueError("CUSTOM type is only set by loading from file")
    return bytes.fromhex(_PREDEFINED_HEX[conf])