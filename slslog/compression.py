"""LZ4 block compression used for log upload and download bodies."""

from __future__ import annotations

from enum import IntEnum

import lz4.block


class CompressType(IntEnum):
    """Compression applied to bodies sent by put-log calls."""

    LZ4 = 0
    NONE = 1
    MAX = 2


_RUN_MASK = 0x0F
_RUN_BYTE = 0xFF


def copy_incompressible(src: bytes) -> bytes:
    """Encode ``src`` as a single literal-only LZ4 block."""
    length = len(src)
    header = bytearray()
    if length < _RUN_MASK:
        header.append(length << 4)
    else:
        header.append(_RUN_MASK << 4)
        remaining = length - _RUN_MASK
        full, rest = divmod(remaining, _RUN_BYTE)
        header.extend(b"\xff" * full)
        header.append(rest)
    return bytes(header) + bytes(src)


def compress_block(data: bytes) -> bytes:
    """Compress ``data`` into a raw LZ4 block without a size prefix."""
    data = bytes(data)
    try:
        compressed = lz4.block.compress(data, store_size=False)
    except lz4.block.LZ4BlockError as exc:
        raise ValueError(f"lz4 compression failed: {exc}") from exc
    if not compressed:
        return copy_incompressible(data)
    return compressed


def uncompress_block(data: bytes, raw_size: int) -> bytes:
    """Decompress a raw LZ4 block that must expand to exactly ``raw_size`` bytes."""
    if raw_size < 0:
        raise ValueError(f"invalid raw size: {raw_size}")
    if raw_size == 0:
        return b""
    try:
        out = lz4.block.decompress(bytes(data), uncompressed_size=raw_size)
    except lz4.block.LZ4BlockError as exc:
        raise ValueError(f"lz4 decompression failed: {exc}") from exc
    if len(out) != raw_size:
        raise ValueError(
            f"decompressed size {len(out)} does not match expected {raw_size}"
        )
    return out