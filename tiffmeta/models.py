"""Data models for tiffmeta extraction results."""

from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Optional

GEOMETRY_FIELDS = ('width', 'height', 'x_resolution', 'y_resolution')


@dataclass
class TiffMetadata:
    """Header and description metadata recovered from one TIFF file.

    None means "not present in this file", never zero.
    """
    width: Optional[int] = None
    height: Optional[int] = None
    x_resolution: Optional[float] = None
    y_resolution: Optional[float] = None
    physical_size_x: Optional[float] = None
    physical_size_y: Optional[float] = None
    physical_size_z: Optional[float] = None
    physical_size_unit: Optional[str] = None
    time_increment: Optional[float] = None
    time_increment_unit: Optional[str] = None
    frame_rate: Optional[float] = None

    def update(self, values: dict):
        """Set fields from a {field_name: value} mapping, ignoring unknown keys."""
        known = {f.name for f in fields(self)}
        for key, value in values.items():
            if key in known:
                setattr(self, key, value)

    def has_geometry(self) -> bool:
        """True if any of width, height or resolution was recovered."""
        return any(getattr(self, name) is not None for name in GEOMETRY_FIELDS)

    def is_empty(self) -> bool:
        return all(v is None for v in asdict(self).values())

    def to_dict(self) -> dict:
        """Present fields only."""
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass
class FileReport:
    """Result of extracting metadata from a single file."""
    filepath: Path
    file_size: int = 0
    metadata: TiffMetadata = field(default_factory=TiffMetadata)
    text: str = ''
    parse_time_ms: float = 0.0
    error: Optional[str] = None
