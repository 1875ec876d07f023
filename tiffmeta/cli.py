"""CLI interface for tiffmeta — extract, info, theme subcommands."""

import json
import os
import sys
from pathlib import Path
from typing import List

import click

import tiffmeta
from tiffmeta import log, settings
from tiffmeta.report import (
    UNPARSEABLE_NOTICE,
    extract_file,
    generate_pdf_report,
    report_to_json,
    write_html_report,
)
from tiffmeta.tiff import ByteReader, read_header, read_ifd

TIFF_EXTENSIONS = {'.tif', '.tiff'}  # also covers .ome.tif / .ome.tiff


def collect_tiff_files(path: Path) -> List[Path]:
    """Collect TIFF files from a path (file or directory, recursive).

    A single file is returned as-is regardless of its extension.
    """
    if path.is_file():
        return [path]

    files = []
    for root, _, filenames in os.walk(path):
        for fname in sorted(filenames):
            if Path(fname).suffix.lower() in TIFF_EXTENSIONS:
                files.append(Path(root) / fname)
    files.sort()
    return files


def _styled(report) -> str:
    if report.error:
        return log.cli_error(report.text)
    out = []
    for line in report.text.split('\n'):
        if line == UNPARSEABLE_NOTICE:
            out.append(log.cli_warning(line))
        elif line.startswith('File: '):
            out.append(log.cli_header(line))
        else:
            out.append(line)
    return '\n'.join(out)


@click.group()
@click.version_option(version=tiffmeta.__version__, prog_name='tiffmeta')
def main():
    """tiffmeta — TIFF/OME-TIFF header metadata reader.

    Extract width, height, resolution and embedded OME-XML or instrument
    metadata from TIFF files without decoding any pixel data.
    """
    pass


@main.command()
@click.argument('path', type=click.Path(exists=True))
@click.option('--json-out', type=click.Path(), help='Write results as JSON to file.')
@click.option('--html', 'html_out', type=click.Path(), help='Write an HTML report to file.')
@click.option('--pdf', 'pdf_out', type=click.Path(), help='Write a PDF report to file.')
@click.option('--theme', type=click.Choice(settings.THEMES),
              help='HTML report theme (defaults to the saved theme).')
@click.option('--log', 'log_path', type=click.Path(), help='Write log to file.')
@click.option('--no-color', is_flag=True, help='Disable colored output.')
def extract(path, json_out, html_out, pdf_out, theme, log_path, no_color):
    """Extract header metadata from TIFF files.

    PATH can be a single file or a directory to search recursively.
    """
    if no_color:
        log.set_color_enabled(False)

    input_path = Path(path)
    files = collect_tiff_files(input_path)
    if not files:
        click.echo(f'No TIFF files found in {input_path}')
        return

    try:
        log_file = open(log_path, 'w', encoding='utf-8') if log_path else None
    except OSError as e:
        click.echo(log.cli_error(f'Error: cannot open log file {log_path}: {e}'), err=True)
        sys.exit(1)

    def log_line(line):
        if log_file:
            log_file.write(line + '\n')
            log_file.flush()

    reports = []
    errors = 0
    try:
        for i, filepath in enumerate(files):
            report = extract_file(filepath)
            reports.append(report)

            if i > 0:
                click.echo(log.cli_separator())
            click.echo(_styled(report))

            if report.error:
                errors += 1
                log_line(log.log_error(f'{filepath}: {report.error}'))
            elif not report.metadata.has_geometry():
                log_line(log.log_warn(f'{filepath}: no geometry fields recovered'))
            else:
                log_line(log.log_info(f'{filepath}: {report.metadata.to_dict()}'))

        if json_out:
            with open(json_out, 'w', encoding='utf-8') as f:
                json.dump([report_to_json(r) for r in reports], f, indent=2)
            click.echo(log.cli_dim(f'Results written to {json_out}'))

        if html_out:
            write_html_report(reports, Path(html_out), theme=theme or settings.get_theme())
            click.echo(log.cli_dim(f'HTML report written to {html_out}'))

        if pdf_out:
            generate_pdf_report(reports, Path(pdf_out))
            click.echo(log.cli_dim(f'PDF report written to {pdf_out}'))
    finally:
        if log_file:
            log_file.close()

    if errors > 0:
        sys.exit(1)


@main.command()
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
def info(path):
    """Show TIFF header and first-IFD entries for a file."""
    filepath = Path(path)
    try:
        data = filepath.read_bytes()
    except OSError as e:
        click.echo(log.cli_error(f'Failed to read file: {filepath.name} ({e})'), err=True)
        sys.exit(1)

    click.echo(log.cli_header(f'File: {filepath.name}'))
    click.echo(f'Size: {len(data):,} bytes')

    header = read_header(data)
    if header is None:
        click.echo(log.cli_warning('Not a parseable TIFF header.'))
        return

    click.echo(f'Byte order: {"little-endian (II)" if header.endian == "<" else "big-endian"}')
    click.echo(f'Variant: {"BigTIFF (approximate)" if header.is_bigtiff else "classic TIFF"}')
    click.echo(f'First IFD offset: {header.first_ifd_offset}')
    click.echo(f'Entries: {header.num_entries}')

    entries = read_ifd(ByteReader(data, header.endian), header)
    skipped = header.num_entries - len(entries)
    for entry in entries:
        where = 'inline' if entry.is_inline else f'@{entry.value_offset}'
        click.echo(f'  {entry.tag_name:<28} {entry.type_name:<10} '
                   f'count={entry.count:<8} {where}')
    if skipped:
        click.echo(log.cli_warning(f'  {skipped} entry(ies) skipped (out of bounds)'))


@main.command()
@click.argument('choice', required=False,
                type=click.Choice(settings.THEMES + ('toggle',)))
def theme(choice):
    """Show or set the saved report theme (dark, light or toggle)."""
    if choice is None:
        click.echo(settings.get_theme())
        return
    if choice == 'toggle':
        new_theme = settings.toggle_theme()
    else:
        new_theme = settings.set_theme(choice)
    click.echo(log.cli_success(f'Theme set to {new_theme}'))


if __name__ == '__main__':
    main()
