"""Console output helpers -- ANSI terminal colors and timestamped log lines.

The library itself logs through the standard logging module; these
helpers only format what the CLI prints.
"""

import sys
from datetime import datetime

# ---------------------------------------------------------------------------
# ANSI color codes
# ---------------------------------------------------------------------------

_RESET = '\033[0m'
_DIM = '\033[2m'

_GREEN = '\033[32m'
_YELLOW = '\033[33m'
_CYAN = '\033[36m'

_BOLD_RED = '\033[1;31m'
_BOLD_CYAN = '\033[1;36m'
_BOLD_WHITE = '\033[1;37m'


def _is_tty():
    try:
        return sys.stdout.isatty()
    except AttributeError:
        return False


_USE_COLOR = _is_tty()


def set_color_enabled(enabled: bool):
    """Override automatic color detection."""
    global _USE_COLOR
    _USE_COLOR = enabled


def _c(code: str, text: str) -> str:
    if _USE_COLOR:
        return f'{code}{text}{_RESET}'
    return text


# ---------------------------------------------------------------------------
# CLI formatting helpers
# ---------------------------------------------------------------------------

def cli_header(text: str) -> str:
    """Bold cyan header line."""
    return _c(_BOLD_CYAN, text)


def cli_success(text: str) -> str:
    return _c(_GREEN, text)


def cli_warning(text: str) -> str:
    """Yellow text for recoverable metadata problems."""
    return _c(_YELLOW, text)


def cli_error(text: str) -> str:
    return _c(_BOLD_RED, text)


def cli_info(text: str) -> str:
    return _c(_CYAN, text)


def cli_dim(text: str) -> str:
    """Dim text for secondary information such as raw tag ids."""
    return _c(_DIM, text)


def cli_bold(text: str) -> str:
    return _c(_BOLD_WHITE, text)


def cli_separator() -> str:
    return _c(_DIM, '-' * 60)


# ---------------------------------------------------------------------------
# Log file lines (always plain text with timestamps and levels)
# ---------------------------------------------------------------------------

def _timestamp() -> str:
    return datetime.now().strftime('%Y-%m-%d %H:%M:%S')


def log_info(msg: str) -> str:
    return f'[{_timestamp()}] [INFO]  {msg}'


def log_warn(msg: str) -> str:
    return f'[{_timestamp()}] [WARN]  {msg}'


def log_error(msg: str) -> str:
    return f'[{_timestamp()}] [ERROR] {msg}'
