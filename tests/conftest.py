"""Shared test fixtures — synthetic TIFF / OME-TIFF file generators."""

import struct
import pytest

from tiffmeta import log

# Type ids used in fixtures
BYTE, ASCII, SHORT, LONG, RATIONAL = 1, 2, 3, 4, 5


def _inline_value(endian, type_id, value):
    """Pack an inline value into the 4-byte value field, left-justified."""
    if type_id == SHORT:
        return struct.pack(endian + 'HH', value, 0)
    if type_id in (BYTE, ASCII):
        return struct.pack(endian + 'BBBB', value, 0, 0, 0)
    return struct.pack(endian + 'I', value)


def build_tiff(entries, endian='<', extra_data=None, magic=42, byte_order=None):
    """Build a minimal single-IFD TIFF file in memory.

    Args:
        entries: List of (tag_id, type_id, count, value_or_bytes) tuples.
            For inline values (<=4 bytes), pass an int.
            For out-of-line values, pass bytes.
        endian: '<' for little-endian, '>' for big-endian.
        extra_data: Optional bytes to append after the IFD data area.
        magic: Header magic number (42 classic, 43 for the BigTIFF marker).
        byte_order: Override the two marker bytes (defaults to II/MM).

    Returns:
        bytes: Complete TIFF file content.
    """
    bo = byte_order or (b'II' if endian == '<' else b'MM')
    header = bo + struct.pack(endian + 'H', magic)

    # IFD starts at offset 8 (or 12 with the 8-byte BigTIFF-style offset)
    ifd_offset = 12 if magic == 43 else 8
    if magic == 43:
        header += struct.pack(endian + 'Q', ifd_offset)
    else:
        header += struct.pack(endian + 'I', ifd_offset)

    num_entries = len(entries)
    ifd_header = struct.pack(endian + 'H', num_entries)

    # Out-of-line data starts after: ifd_count(2) + entries(12*n) + next_ifd(4)
    data_offset = ifd_offset + 2 + 12 * num_entries + 4
    entry_bytes = b''
    data_bytes = b''

    for tag_id, type_id, count, value in entries:
        entry_bytes += struct.pack(endian + 'HHI', tag_id, type_id, count)
        if isinstance(value, bytes):
            val_offset = data_offset + len(data_bytes)
            entry_bytes += struct.pack(endian + 'I', val_offset)
            data_bytes += value
        else:
            entry_bytes += _inline_value(endian, type_id, value)

    next_ifd = struct.pack(endian + 'I', 0)  # No next IFD

    result = header + ifd_header + entry_bytes + next_ifd + data_bytes
    if extra_data:
        result += extra_data
    return result


def rational(num, denom, endian='<'):
    return struct.pack(endian + 'II', num, denom)


def ascii_value(text):
    """NUL-terminated ASCII bytes and their TIFF count."""
    raw = text.encode('latin-1') + b'\x00'
    return raw, len(raw)


OME_XML = (
    '<?xml version="1.0" encoding="UTF-8"?>'
    '<OME xmlns="http://www.openmicroscopy.org/Schemas/OME/2016-06">'
    '<Image ID="Image:0"><Pixels ID="Pixels:0" DimensionOrder="XYZCT" '
    'Type="uint16" SizeX="512" SizeY="256" SizeZ="1" SizeC="1" SizeT="10" '
    'PhysicalSizeX="0.65" PhysicalSizeY="0.65" PhysicalSizeZ="2.0" '
    'PhysicalSizeXUnit="µm" TimeIncrement="0.1" TimeIncrementUnit="s"/>'
    '</Image></OME>'
)


def build_geometry_tiff(description=None, endian='<'):
    """512x256 TIFF with 72/1 resolution and an optional description."""
    entries = [
        (0x0100, SHORT, 1, 512),
        (0x0101, LONG, 1, 256),
        (0x011A, RATIONAL, 1, rational(72, 1, endian)),
        (0x011B, RATIONAL, 1, rational(144, 2, endian)),
    ]
    if description is not None:
        raw, count = ascii_value(description)
        entries.append((0x010E, ASCII, count, raw))
    return build_tiff(entries, endian=endian)


@pytest.fixture(autouse=True)
def _plain_output():
    """Keep CLI output free of ANSI codes."""
    log.set_color_enabled(False)
    yield
    log.set_color_enabled(False)
    log.set_html_theme('dark')


@pytest.fixture(autouse=True)
def _isolated_config(tmp_path, monkeypatch):
    """Point settings.ini at a per-test directory."""
    monkeypatch.setenv('TIFFMETA_CONFIG_DIR', str(tmp_path / 'config'))


@pytest.fixture
def tmp_tiff(tmp_path):
    """A plain TIFF with geometry and no description."""
    f = tmp_path / 'plain.tif'
    f.write_bytes(build_geometry_tiff())
    return f


@pytest.fixture
def tmp_ome_tiff(tmp_path):
    """An OME-TIFF with Pixels physical sizes and time increment."""
    f = tmp_path / 'stack.ome.tif'
    f.write_bytes(build_geometry_tiff(OME_XML))
    return f


@pytest.fixture
def tmp_scanimage_tiff(tmp_path):
    """A TIFF whose description is free-form instrument text."""
    f = tmp_path / 'scan.tif'
    f.write_bytes(build_geometry_tiff(
        'state.acq.frameRate\nmicronsPerPixelX = 0.3\nmicronsPerPixelY = 0.4\n'
        'frame rate = 30\ntime increment: 0.033\n'))
    return f


@pytest.fixture
def tmp_not_tiff(tmp_path):
    f = tmp_path / 'notes.tif'
    f.write_bytes(b'This is not a TIFF file at all.')
    return f
