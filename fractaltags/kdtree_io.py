"""Binary serialization of a k-d tree index (the points are not stored)."""

from __future__ import annotations

import io
import struct
from typing import BinaryIO

from .kdtree import KdTreeIndex, Node

_INT = struct.Struct("<i")
_PAIR = struct.Struct("<dd")
_COUNT = struct.Struct("<Q")
_NODE = struct.Struct("<dHffqqQ")


def _read(stream: BinaryIO, size: int) -> bytes:
    data = stream.read(size)
    if len(data) != size:
        raise ValueError("truncated index stream")
    return data


def write_index(index: KdTreeIndex, stream: BinaryIO) -> None:
    """Write the tree structure of ``index`` to a binary stream."""
    dims = index.dims
    bbox = list(index.root_bbox)[:dims]
    bbox += [(0.0, 0.0)] * (dims - len(bbox))
    stream.write(_INT.pack(dims))
    for low, high in bbox:
        stream.write(_PAIR.pack(low, high))
    stream.write(_INT.pack(index.n_values))
    stream.write(_COUNT.pack(len(index.nodes)))
    for node in index.nodes:
        stream.write(
            _NODE.pack(
                node.div_val,
                node.col_index,
                node.divhigh,
                node.divlow,
                node.left,
                node.right,
                len(node.idx),
            )
        )
        if node.idx:
            stream.write(struct.pack(f"<{len(node.idx)}i", *node.idx))


def read_index(index: KdTreeIndex, stream: BinaryIO) -> KdTreeIndex:
    """Load a tree structure from ``stream`` into ``index`` and return it."""
    (dims,) = _INT.unpack(_read(stream, _INT.size))
    if dims < 0:
        raise ValueError("invalid number of dimensions in index stream")
    bbox = [_PAIR.unpack(_read(stream, _PAIR.size)) for _ in range(dims)]
    (n_values,) = _INT.unpack(_read(stream, _INT.size))
    (count,) = _COUNT.unpack(_read(stream, _COUNT.size))
    nodes = []
    for _ in range(count):
        div_val, col, divhigh, divlow, left, right, size = _NODE.unpack(_read(stream, _NODE.size))
        idx = list(struct.unpack(f"<{size}i", _read(stream, 4 * size))) if size else []
        nodes.append(
            Node(
                div_val=div_val,
                col_index=col,
                idx=idx,
                divhigh=divhigh,
                divlow=divlow,
                left=left,
                right=right,
            )
        )
    if dims != index.dims and nodes and n_values != 0:
        raise ValueError(
            "Number of dimensions of the index in the stream is different "
            "from the number of dimensions of this"
        )
    index.root_bbox = [tuple(pair) for pair in bbox]
    index.n_values = n_values
    index.nodes = nodes
    return index


def index_to_bytes(index: KdTreeIndex) -> bytes:
    """Serialized tree structure of ``index``."""
    buffer = io.BytesIO()
    write_index(index, buffer)
    return buffer.getvalue()


def index_from_bytes(index: KdTreeIndex, data: bytes) -> KdTreeIndex:
    """Load a serialized tree structure into ``index`` and return it."""
    return read_index(index, io.BytesIO(data))