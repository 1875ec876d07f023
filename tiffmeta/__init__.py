"""tiffmeta -- TIFF/OME-TIFF header metadata reader."""

__version__ = "1.0.0"

from tiffmeta.models import FileReport, TiffMetadata
from tiffmeta.tiff import parse_tiff_metadata, read_header
from tiffmeta.description import interpret_description
from tiffmeta.report import (
    extract_file,
    format_report,
    generate_pdf_report,
    read_failure_message,
    render_html_report,
)

__all__ = [
    "__version__",
    "TiffMetadata",
    "FileReport",
    "parse_tiff_metadata",
    "read_header",
    "interpret_description",
    "format_report",
    "read_failure_message",
    "extract_file",
    "render_html_report",
    "generate_pdf_report",
]
