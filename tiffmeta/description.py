"""ImageDescription interpretation -- OME-XML attributes or regex heuristics.

Descriptions that look like XML are searched for the first OME ``Pixels``
element. Anything else (ScanImage, Prairie View, free-form instrument
text) is mined with a small table of case-insensitive patterns.
"""

import logging
import re
import xml.etree.ElementTree as ET
from typing import Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

# Free-text patterns: (field_name, compiled_pattern). First match wins.
DESCRIPTION_PATTERNS: List[Tuple[str, re.Pattern]] = [
    ('physical_size_x', re.compile(r'micronsPerPixelX\s*=\s*([0-9.]+)', re.IGNORECASE)),
    ('physical_size_y', re.compile(r'micronsPerPixelY\s*=\s*([0-9.]+)', re.IGNORECASE)),
    ('frame_rate', re.compile(r'frame\s*rate\s*[:=]\s*([0-9.]+)', re.IGNORECASE)),
    ('time_increment', re.compile(r'time\s*increment\s*[:=]\s*([0-9.]+)', re.IGNORECASE)),
]

# OME Pixels attributes: (attribute, field_name, is_numeric)
PIXELS_ATTRIBUTES: List[Tuple[str, str, bool]] = [
    ('PhysicalSizeX', 'physical_size_x', True),
    ('PhysicalSizeY', 'physical_size_y', True),
    ('PhysicalSizeZ', 'physical_size_z', True),
    ('TimeIncrement', 'time_increment', True),
    ('TimeIncrementUnit', 'time_increment_unit', False),
    ('FrameRate', 'frame_rate', True),
]

# Leading decimal number, the way a lenient float parser reads "0.5um"
_LEADING_FLOAT = re.compile(r'[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?')


def parse_number(text: str) -> Optional[float]:
    """Parse the leading decimal number of a string, ignoring trailing junk.

    Returns None when the string does not start with a number
    (e.g. ``"."`` or ``"abc"``).
    """
    m = _LEADING_FLOAT.match(text.strip())
    if not m:
        return None
    return float(m.group(0))


def _local_name(tag) -> str:
    if not isinstance(tag, str):
        return ''
    return tag.rsplit('}', 1)[-1]


def _find_pixels(root: ET.Element) -> Optional[ET.Element]:
    for elem in root.iter():
        if _local_name(elem.tag) == 'Pixels':
            return elem
    return None


def interpret_ome_xml(text: str) -> Dict[str, object]:
    """Pull Pixels attributes out of an OME-XML description.

    Malformed XML yields an empty dict.
    """
    try:
        root = ET.fromstring(text)
    except (ET.ParseError, ValueError) as e:
        logger.debug('Description is not well-formed XML: %s', e)
        return {}

    pixels = _find_pixels(root)
    if pixels is None:
        return {}

    values = {}
    for attr, name, is_numeric in PIXELS_ATTRIBUTES:
        raw = pixels.get(attr)
        if not raw:
            continue
        if is_numeric:
            number = parse_number(raw)
            if number is not None:
                values[name] = number
        else:
            values[name] = raw

    unit = pixels.get('PhysicalSizeXUnit') or pixels.get('PhysicalSizeYUnit')
    if unit:
        values['physical_size_unit'] = unit
    return values


def interpret_free_text(text: str) -> Dict[str, float]:
    """Apply the description pattern table to a non-XML description."""
    values = {}
    for name, pattern in DESCRIPTION_PATTERNS:
        m = pattern.search(text)
        if not m:
            continue
        number = parse_number(m.group(1))
        if number is not None:
            values[name] = number
    return values


def interpret_description(text: Optional[str]) -> Dict[str, object]:
    """Interpret an ImageDescription string into metadata fields.

    Returns a {field_name: value} dict suitable for TiffMetadata.update().
    Never raises; anything unusable contributes no fields.
    """
    if not text:
        return {}
    if text.strip().startswith('<'):
        return interpret_ome_xml(text)
    return interpret_free_text(text)
