"""Low-level TIFF header parser -- stdlib only (struct module).

Reads the byte-order marker, the magic number and the first IFD of a
classic TIFF (magic 42) held entirely in memory. Magic 43 (BigTIFF) is
accepted but only approximated: the first IFD offset is read as a 64-bit
word at offset 4 and the directory is then walked with classic 12-byte
entries. Only the first IFD is ever visited.
"""

import logging
import struct
from typing import Dict, List, Optional

from tiffmeta.description import interpret_description
from tiffmeta.models import TiffMetadata

logger = logging.getLogger(__name__)

# TIFF field type sizes in bytes: {type_id: element_size}
# Unknown types map to 0, which makes their values "inline" with no length.
TIFF_TYPE_SIZES: Dict[int, int] = {
    1: 1,    # BYTE
    2: 1,    # ASCII
    3: 2,    # SHORT
    4: 4,    # LONG
    5: 8,    # RATIONAL (num/denom)
    7: 1,    # UNDEFINED
    16: 8,   # LONG8 (BigTIFF)
}

TIFF_TYPE_NAMES: Dict[int, str] = {
    1: 'BYTE', 2: 'ASCII', 3: 'SHORT', 4: 'LONG',
    5: 'RATIONAL', 7: 'UNDEFINED', 16: 'LONG8',
}

TAG_IMAGE_WIDTH = 0x0100
TAG_IMAGE_LENGTH = 0x0101
TAG_IMAGE_DESCRIPTION = 0x010E
TAG_X_RESOLUTION = 0x011A
TAG_Y_RESOLUTION = 0x011B

# Well-known TIFF tag names (for `tiffmeta info`)
TAG_NAMES: Dict[int, str] = {
    254: 'NewSubfileType', 256: 'ImageWidth', 257: 'ImageLength',
    258: 'BitsPerSample', 259: 'Compression', 262: 'PhotometricInterpretation',
    270: 'ImageDescription', 271: 'Make', 272: 'Model',
    273: 'StripOffsets', 277: 'SamplesPerPixel', 278: 'RowsPerStrip',
    279: 'StripByteCounts', 282: 'XResolution', 283: 'YResolution',
    284: 'PlanarConfiguration', 296: 'ResolutionUnit',
    305: 'Software', 306: 'DateTime', 315: 'Artist', 316: 'HostComputer',
    322: 'TileWidth', 323: 'TileLength', 324: 'TileOffsets',
    325: 'TileByteCounts', 330: 'SubIFDs', 339: 'SampleFormat',
}

ENTRY_SIZE = 12
INLINE_THRESHOLD = 4


def type_size(dtype: int) -> int:
    return TIFF_TYPE_SIZES.get(dtype, 0)


class ByteReader:
    """Endian-aware fixed-width reads over an in-memory buffer.

    The reader does not check bounds; callers guard every offset against
    ``len(reader)`` before reading.
    """
    __slots__ = ('data', 'endian')

    def __init__(self, data: bytes, endian: str):
        self.data = data
        self.endian = endian

    def __len__(self) -> int:
        return len(self.data)

    def read_u8(self, offset: int) -> int:
        return self.data[offset]

    def read_u16(self, offset: int) -> int:
        return struct.unpack_from(self.endian + 'H', self.data, offset)[0]

    def read_u32(self, offset: int) -> int:
        return struct.unpack_from(self.endian + 'I', self.data, offset)[0]

    def read_u64(self, offset: int) -> int:
        """Read a 64-bit value as two 32-bit words.

        Best-effort BigTIFF offset: the words are combined as
        ``high * 2**32 + low`` with the word order taken from the byte
        order. Callers that port this to a float-based runtime lose
        precision above 2**53.
        """
        first = self.read_u32(offset)
        second = self.read_u32(offset + 4)
        if self.endian == '<':
            return second * 0x100000000 + first
        return first * 0x100000000 + second


class IFDEntry:
    """A single IFD (Image File Directory) entry."""
    __slots__ = ('tag_id', 'dtype', 'count', 'value_offset', 'entry_offset',
                 'is_inline')

    def __init__(self, tag_id: int, dtype: int, count: int,
                 value_offset: int, entry_offset: int, is_inline: bool):
        self.tag_id = tag_id
        self.dtype = dtype
        self.count = count
        self.value_offset = value_offset
        self.entry_offset = entry_offset
        self.is_inline = is_inline

    @property
    def tag_name(self) -> str:
        return TAG_NAMES.get(self.tag_id, f'Tag_{self.tag_id}')

    @property
    def type_name(self) -> str:
        return TIFF_TYPE_NAMES.get(self.dtype, f'Type_{self.dtype}')

    @property
    def total_size(self) -> int:
        return type_size(self.dtype) * self.count


class TIFFHeader:
    """Parsed TIFF file header."""
    __slots__ = ('endian', 'is_bigtiff', 'first_ifd_offset', 'num_entries')

    def __init__(self, endian: str, is_bigtiff: bool, first_ifd_offset: int,
                 num_entries: int):
        self.endian = endian
        self.is_bigtiff = is_bigtiff
        self.first_ifd_offset = first_ifd_offset
        self.num_entries = num_entries


def detect_byte_order(data: bytes) -> str:
    """Return '<' for an ``II`` marker, '>' for anything else.

    Markers other than ``MM`` are not rejected; they fall through to
    big-endian and the magic-number check usually catches them.
    """
    return '<' if data[:2] == b'II' else '>'


def read_header(data: bytes) -> Optional[TIFFHeader]:
    """Read and validate the TIFF header. Returns None if not parseable."""
    if len(data) < 8:
        return None

    endian = detect_byte_order(data)
    reader = ByteReader(data, endian)

    magic = reader.read_u16(2)
    if magic == 42:
        ifd_offset = reader.read_u32(4)
    elif magic == 43:
        # Approximate BigTIFF: bytesize/reserved fields are not honoured
        ifd_offset = reader.read_u64(4)
    else:
        return None

    if ifd_offset + 2 > len(data):
        return None

    num_entries = reader.read_u16(ifd_offset)
    return TIFFHeader(endian, magic == 43, ifd_offset, num_entries)


def read_ifd(reader: ByteReader, header: TIFFHeader) -> List[IFDEntry]:
    """Read the entries of the first IFD in physical order.

    Entries whose 12 bytes run past the buffer, or whose out-of-line
    value does not fit in the buffer, are skipped.
    """
    buf_len = len(reader)
    entries = []
    for i in range(header.num_entries):
        entry_offset = header.first_ifd_offset + 2 + i * ENTRY_SIZE
        if entry_offset + ENTRY_SIZE > buf_len:
            logger.debug('IFD entry %d at %d runs past end of buffer', i, entry_offset)
            continue

        tag_id = reader.read_u16(entry_offset)
        dtype = reader.read_u16(entry_offset + 2)
        count = reader.read_u32(entry_offset + 4)
        total = type_size(dtype) * count

        if total <= INLINE_THRESHOLD:
            value_offset = entry_offset + 8
            is_inline = True
        else:
            value_offset = reader.read_u32(entry_offset + 8)
            is_inline = False
            if value_offset + total > buf_len:
                logger.debug('Tag %d value at %d (%d bytes) out of bounds',
                             tag_id, value_offset, total)
                continue

        entries.append(IFDEntry(tag_id, dtype, count, value_offset,
                                entry_offset, is_inline))
    return entries


def read_rational(reader: ByteReader, entry: IFDEntry) -> Optional[float]:
    """Read a RATIONAL value as a float. Returns None on a zero denominator."""
    num = reader.read_u32(entry.value_offset)
    denom = reader.read_u32(entry.value_offset + 4)
    if denom == 0:
        return None
    return num / denom


def read_dimension(reader: ByteReader, entry: IFDEntry) -> int:
    """Read ImageWidth/ImageLength: SHORT when type 3, LONG otherwise."""
    if entry.dtype == 3:
        return reader.read_u16(entry.value_offset)
    return reader.read_u32(entry.value_offset)


def read_tag_string(reader: ByteReader, entry: IFDEntry) -> str:
    """Read an ASCII value up to the first NUL or the end of the buffer."""
    start = entry.value_offset
    end = min(start + entry.total_size, len(reader))
    raw = reader.data[start:end]
    nul = raw.find(b'\x00')
    if nul >= 0:
        raw = raw[:nul]
    return raw.decode('latin-1')


def parse_tiff_metadata(data: bytes) -> TiffMetadata:
    """Extract width, height, resolution and description metadata.

    Always returns a TiffMetadata; unparseable input yields one with
    every field set to None. Later entries for the same tag overwrite
    earlier ones.
    """
    meta = TiffMetadata()
    header = read_header(data)
    if header is None:
        return meta

    reader = ByteReader(data, header.endian)
    description = None

    for entry in read_ifd(reader, header):
        try:
            if entry.tag_id == TAG_IMAGE_WIDTH:
                meta.width = read_dimension(reader, entry)
            elif entry.tag_id == TAG_IMAGE_LENGTH:
                meta.height = read_dimension(reader, entry)
            elif entry.tag_id == TAG_X_RESOLUTION:
                meta.x_resolution = read_rational(reader, entry)
            elif entry.tag_id == TAG_Y_RESOLUTION:
                meta.y_resolution = read_rational(reader, entry)
            elif entry.tag_id == TAG_IMAGE_DESCRIPTION:
                description = read_tag_string(reader, entry)
        except struct.error as e:
            # Zero-size (unknown type) rationals sit inline and can read
            # past the end of a truncated buffer.
            logger.debug('Skipping %s at %d: %s', entry.tag_name,
                         entry.entry_offset, e)

    if description:
        meta.update(interpret_description(description))
    return meta
