"""Logging utilities -- ANSI terminal colors, HTML rich text, timestamps.

Provides consistent color-coded output for the CLI (ANSI) and the HTML
report (dark/light palettes), with timestamped log file lines.
"""

import sys
from datetime import datetime

# ---------------------------------------------------------------------------
# ANSI styles for report output
# ---------------------------------------------------------------------------

_RESET = '\033[0m'

_ANSI_STYLES = {
    'header': '\033[1;36m',   # bold cyan: "File:" line
    'success': '\033[32m',
    'warning': '\033[33m',    # "unable to parse" notice
    'error': '\033[1;31m',    # read failures
    'dim': '\033[2m',
}


def _stdout_is_tty():
    try:
        return sys.stdout.isatty()
    except AttributeError:
        return False


# Decided once at import; --no-color and tests override it
_USE_COLOR = _stdout_is_tty()


def set_color_enabled(enabled: bool):
    """Force ANSI styling on or off."""
    global _USE_COLOR
    _USE_COLOR = enabled


def _style(name: str, text: str) -> str:
    if not _USE_COLOR:
        return text
    return f'{_ANSI_STYLES[name]}{text}{_RESET}'


def cli_header(text: str) -> str:
    return _style('header', text)


def cli_success(text: str) -> str:
    return _style('success', text)


def cli_warning(text: str) -> str:
    return _style('warning', text)


def cli_error(text: str) -> str:
    return _style('error', text)


def cli_dim(text: str) -> str:
    return _style('dim', text)


def cli_separator() -> str:
    """Rule printed between per-file reports."""
    return _style('dim', '─' * 60)


# ---------------------------------------------------------------------------
# --log file lines: "[YYYY-mm-dd HH:MM:SS] [LEVEL] message"
# ---------------------------------------------------------------------------

def _log_line(level: str, msg: str) -> str:
    stamp = datetime.now().strftime('%Y-%m-%d %H:%M:%S')
    return f'[{stamp}] {f"[{level}]":<7} {msg}'


def log_info(msg: str) -> str:
    return _log_line('INFO', msg)


def log_warn(msg: str) -> str:
    return _log_line('WARN', msg)


def log_error(msg: str) -> str:
    return _log_line('ERROR', msg)


# ---------------------------------------------------------------------------
# HTML formatting helpers (for the exported HTML report)
# ---------------------------------------------------------------------------

# Color palette for the dark theme
_HTML_COLORS = {
    'background': '#1e1e2e',
    'surface': '#313244',
    'green': '#a6e3a1',
    'yellow': '#f9e2af',
    'red': '#f38ba8',
    'cyan': '#89b4fa',
    'dim': '#6c7086',
    'text': '#cdd6f4',
}

# Lighter palette for the light theme
_HTML_COLORS_LIGHT = {
    'background': '#ffffff',
    'surface': '#f2f2f5',
    'green': '#1e7a2e',
    'yellow': '#8a6d00',
    'red': '#c03030',
    'cyan': '#1a65c0',
    'dim': '#888888',
    'text': '#333333',
}

_html_palette = _HTML_COLORS  # default to dark


def set_html_theme(theme: str):
    """Switch HTML color palette ('dark' or 'light')."""
    global _html_palette
    _html_palette = _HTML_COLORS if theme == 'dark' else _HTML_COLORS_LIGHT


def get_html_theme() -> str:
    return 'dark' if _html_palette is _HTML_COLORS else 'light'


def html_color(color_key: str) -> str:
    """Return the active palette's color for a key (falls back to text)."""
    return _html_palette.get(color_key, _html_palette['text'])


def html_escape(text: str) -> str:
    return text.replace('&', '&amp;').replace('<', '&lt;').replace('>', '&gt;')


def _html_span(color_key: str, text: str, bold: bool = False) -> str:
    """Wrap text in a colored HTML span."""
    weight = 'font-weight:bold;' if bold else ''
    return f'<span style="color:{html_color(color_key)};{weight}">{html_escape(text)}</span>'


def html_header(text: str) -> str:
    """Bold cyan header."""
    return _html_span('cyan', text, bold=True)


def html_warning(text: str) -> str:
    return _html_span('yellow', text, bold=True)


def html_error(text: str) -> str:
    """Red bold line."""
    return _html_span('red', text, bold=True)


def html_info(text: str) -> str:
    return _html_span('text', text)


def html_dim(text: str) -> str:
    return _html_span('dim', text)


def html_separator() -> str:
    """A thin horizontal rule."""
    return f'<hr style="border:none;border-top:1px solid {html_color("dim")};margin:4px 0;">'
