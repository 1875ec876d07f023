"""Report generation -- plain text, HTML and PDF renderings of extracted metadata."""

import math
import re
import time
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import List, Optional

from fpdf import FPDF

import tiffmeta
from tiffmeta import log
from tiffmeta.models import FileReport, TiffMetadata
from tiffmeta.tiff import parse_tiff_metadata

UNPARSEABLE_NOTICE = 'Unable to parse metadata from this file.'

# First "micro"/"Micro" unit spelling (micron, micrometer, ...) becomes μm
_MICRO_UNIT = re.compile(r'[Mm]icro(?:n|met(?:er|re))?s?')

# Python repr pads exponents ("6.5e-07"); JavaScript does not ("6.5e-7")
_EXPONENT_PAD = re.compile(r'e([+-])0+(\d)')


def format_number(value) -> str:
    """Render a number the way JavaScript's Number-to-String does.

    Integral floats drop the trailing '.0'; magnitudes in [1e-6, 1e21)
    print positionally and anything outside uses a short exponent.
    """
    if not isinstance(value, float) or not math.isfinite(value):
        return str(value)
    if value.is_integer() and abs(value) < 1e21:
        return str(int(value))
    if 1e-6 <= abs(value) < 1e21:
        return format(Decimal(repr(value)), 'f')
    return _EXPONENT_PAD.sub(r'e\1\2', repr(value))


def _or_unknown(value) -> str:
    return '?' if value is None else format_number(value)


def micro_to_symbol(unit: str) -> str:
    """Replace the first micro spelling in a unit label with 'μm'."""
    return _MICRO_UNIT.sub('μm', unit, count=1)


def format_report(metadata: TiffMetadata, filename: str, file_size: int) -> str:
    """Build the human-readable multi-line metadata report.

    The "unable to parse" notice is driven by the geometry fields only;
    values recovered from the description do not suppress it.
    """
    lines = [f'File: {filename}', f'Size: {file_size:,} bytes']
    m = metadata

    if m.width is not None or m.height is not None:
        lines.append(f'Width: {_or_unknown(m.width)} px')
        lines.append(f'Height: {_or_unknown(m.height)} px')

    if m.x_resolution is not None or m.y_resolution is not None:
        lines.append(f'X Resolution: {_or_unknown(m.x_resolution)}')
        lines.append(f'Y Resolution: {_or_unknown(m.y_resolution)}')

    pixel_sizes = [('X', m.physical_size_x), ('Y', m.physical_size_y),
                   ('Z', m.physical_size_z)]
    if any(v is not None for _, v in pixel_sizes):
        if m.physical_size_unit:
            unit = f' {micro_to_symbol(m.physical_size_unit)}'
        else:
            unit = ' units'
        for axis, value in pixel_sizes:
            if value is not None:
                lines.append(f'Pixel Size {axis}: {format_number(value)}{unit}')

    if m.time_increment is not None:
        unit = f' {m.time_increment_unit}' if m.time_increment_unit else ' s'
        lines.append(f'Time Increment: {format_number(m.time_increment)}{unit}')

    if m.frame_rate is not None:
        lines.append(f'Frame Rate: {format_number(m.frame_rate)} Hz')

    if not m.has_geometry():
        lines.append('')
        lines.append(UNPARSEABLE_NOTICE)

    return '\n'.join(lines)


def read_failure_message(filename: str) -> str:
    return f'Failed to read file: {filename}'


def extract_file(filepath: Path) -> FileReport:
    """Read a whole file into memory, parse it and format the report.

    A read failure bypasses the parser and the formatter; the report
    text is then the one-line failure message.
    """
    filepath = Path(filepath)
    t0 = time.monotonic()
    try:
        data = filepath.read_bytes()
    except OSError as e:
        return FileReport(
            filepath=filepath,
            text=read_failure_message(filepath.name),
            error=str(e),
        )

    metadata = parse_tiff_metadata(data)
    text = format_report(metadata, filepath.name, len(data))
    elapsed = (time.monotonic() - t0) * 1000
    return FileReport(
        filepath=filepath, file_size=len(data), metadata=metadata,
        text=text, parse_time_ms=elapsed,
    )


def report_to_json(report: FileReport) -> dict:
    record = {
        'file': str(report.filepath),
        'file_size': report.file_size,
        'metadata': report.metadata.to_dict(),
        'parsed': report.metadata.has_geometry(),
        'parse_time_ms': round(report.parse_time_ms, 1),
    }
    if report.error:
        record['error'] = report.error
    return record


# ---------------------------------------------------------------------------
# HTML report
# ---------------------------------------------------------------------------

def _html_report_lines(report: FileReport) -> str:
    if report.error:
        return log.html_error(report.text)
    out = []
    for line in report.text.split('\n'):
        if line == UNPARSEABLE_NOTICE:
            out.append(log.html_warning(line))
        elif line.startswith('File: '):
            out.append(log.html_header(line))
        elif line.startswith('Size: '):
            out.append(log.html_dim(line))
        else:
            out.append(log.html_info(line))
    return '<br>\n'.join(out)


def render_html_report(reports: List[FileReport], theme: str = 'dark',
                       year: Optional[int] = None) -> str:
    """Render one or more reports as a standalone themed HTML page.

    The footer carries the copyright year (current year by default).
    """
    if year is None:
        year = datetime.now().year
    previous_theme = log.get_html_theme()
    log.set_html_theme(theme)
    try:
        return _render_html_page(reports, theme, year)
    finally:
        log.set_html_theme(previous_theme)


def _render_html_page(reports: List[FileReport], theme: str, year: int) -> str:
    sections = []
    for report in reports:
        sections.append(
            f'<pre style="background:{log.html_color("surface")};'
            f'padding:12px;border-radius:6px;white-space:pre-wrap;">'
            f'{_html_report_lines(report)}</pre>'
        )

    body = f'\n{log.html_separator()}\n'.join(sections)
    return (
        '<!DOCTYPE html>\n'
        f'<html lang="en" class="{theme}">\n'
        '<head>\n<meta charset="utf-8">\n'
        '<title>TIFF Metadata Report</title>\n</head>\n'
        f'<body style="background:{log.html_color("background")};'
        f'color:{log.html_color("text")};font-family:sans-serif;">\n'
        f'<h1 style="color:{log.html_color("cyan")};">TIFF Metadata Report</h1>\n'
        f'{body}\n'
        f'<footer style="color:{log.html_color("dim")};margin-top:16px;">'
        f'&copy; <span id="year">{year}</span> tiffmeta v{tiffmeta.__version__}'
        '</footer>\n'
        '</body>\n</html>\n'
    )


def write_html_report(reports: List[FileReport], output_path: Path,
                      theme: str = 'dark') -> Path:
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(render_html_report(reports, theme=theme), encoding='utf-8')
    return output_path


# ---------------------------------------------------------------------------
# PDF report
# ---------------------------------------------------------------------------

def _sanitize_for_pdf(text: str) -> str:
    """Replace non-printable and non-ASCII characters for safe PDF rendering.

    fpdf's built-in Helvetica font only supports Latin-1; the micro sign
    is spelled out as 'u' and anything else outside ASCII becomes '?'.
    """
    text = text.replace('μ', 'u').replace('µ', 'u')
    return ''.join(c if 0x20 <= ord(c) <= 0x7E else '?' for c in text)


def _pdf_report_block(pdf: FPDF, report: FileReport):
    """Render one file's report with alternating row shading."""
    lines = [line for line in report.text.split('\n') if line]
    for i, line in enumerate(lines):
        if report.error or line == UNPARSEABLE_NOTICE:
            pdf.set_text_color(192, 48, 48)
        pdf.set_font('Helvetica', 'B' if i == 0 else '', 9)
        fill = i % 2 == 0
        if fill:
            pdf.set_fill_color(240, 240, 245)
        pdf.cell(0, 7, _sanitize_for_pdf(line), border=0, fill=fill,
                 new_x='LMARGIN', new_y='NEXT')
        pdf.set_text_color(0, 0, 0)
    pdf.ln(3)


def generate_pdf_report(reports: List[FileReport], output_path: Path) -> Path:
    """Generate a PDF containing every file's metadata report.

    Returns:
        The output_path.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    pdf = FPDF(orientation='P', unit='mm', format='A4')
    pdf.set_auto_page_break(auto=True, margin=20)
    pdf.add_page()

    # --- Header ---
    pdf.set_font('Helvetica', 'B', 16)
    pdf.cell(0, 10, 'TIFF Metadata Report', new_x='LMARGIN', new_y='NEXT')
    pdf.set_font('Helvetica', '', 9)
    pdf.set_text_color(120, 120, 120)
    pdf.cell(0, 5, f'tiffmeta v{tiffmeta.__version__}  |  '
             f'{datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")}',
             new_x='LMARGIN', new_y='NEXT')
    pdf.set_text_color(0, 0, 0)
    pdf.line(10, pdf.get_y() + 1, 200, pdf.get_y() + 1)
    pdf.ln(5)

    for report in reports:
        _pdf_report_block(pdf, report)

    pdf.output(str(output_path))
    return output_path
