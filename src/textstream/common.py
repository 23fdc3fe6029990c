"""
common.py: Shared library for the textstream command toolchain.

This module consolidates the reusable pieces every command needs:
- Configuration management (defaults, optional settings.json, environment overrides).
- Logging setup (diagnostics go to stderr so they never mix with command output).
- Console helpers (coloured error/warning lines, Ctrl-C handling).
- Error types shared by the file-reading primitives.
"""

import os
import sys
import json
import signal
import logging
from pathlib import Path

from colorama import Fore, Style, just_fix_windows_console


def _handle_interrupt(sig, frame):
    """Handle Ctrl-C gracefully."""
    print("\nCtrl-C", file=sys.stderr)
    sys.exit(1)


def install_interrupt_handler():
    """Route SIGINT to a quiet exit instead of a KeyboardInterrupt traceback."""
    signal.signal(signal.SIGINT, _handle_interrupt)


# =============================================================================
# ERRORS
# =============================================================================

class NoLengthError(OSError):
    """Raised when a length is requested for a stream that has none (stdin)."""


def describe_os_error(e: OSError) -> str:
    """
    Turn an OSError into the short reason shown to users.

    Returns the OS description ("No such file or directory", "Is a directory")
    when there is one, falling back to str(e).
    """
    return e.strerror or str(e)


# =============================================================================
# CONFIGURATION MANAGEMENT
# =============================================================================

DEFAULT_SETTINGS = {
    "LOG_LEVEL": "ERROR",
    "LOG_FILE": None,
    "SLEEP_INTERVAL": 1.0,
    "CHANNEL_CAPACITY": 100,
    "MAX_UNCHANGED_STATS": 5,
    "BYTE_CHUNK_SIZE": 1,
}

ENV_OVERRIDES = {
    "TEXTSTREAM_LOG_LEVEL": "LOG_LEVEL",
    "TEXTSTREAM_LOG_FILE": "LOG_FILE",
}


def find_settings_file() -> Path:
    """
    Locate settings.json.

    $TEXTSTREAM_SETTINGS wins when set; otherwise the file sits next to this
    module (src/textstream/settings.json).
    """
    override = os.environ.get("TEXTSTREAM_SETTINGS")
    if override:
        return Path(override)
    return Path(__file__).parent.resolve() / "settings.json"


def load_settings() -> dict:
    """
    Load settings.json and return it as a dict.

    A missing file yields an empty dict. An unreadable or malformed file is
    reported and ignored so a bad settings file never stops a command.
    """
    settings_file = find_settings_file()

    if not settings_file.exists():
        logging.debug(f"settings.json not found at {settings_file}, using defaults.")
        return {}

    try:
        with open(settings_file, 'r', encoding='utf-8') as f:
            settings_data = json.load(f)
    except json.JSONDecodeError as e:
        logging.warning(f"Invalid JSON in {settings_file}: {e}. Ignoring it.")
        return {}
    except OSError as e:
        logging.warning(f"Could not read {settings_file}: {e}. Ignoring it.")
        return {}

    if not isinstance(settings_data, dict):
        logging.warning(f"{settings_file} must contain a JSON object. Ignoring it.")
        return {}

    unknown = sorted(set(settings_data) - set(DEFAULT_SETTINGS))
    if unknown:
        logging.warning(f"Unknown keys in {settings_file}: {', '.join(unknown)}")

    return settings_data


def get_config(overrides=None) -> dict:
    """
    Build the effective configuration for a command run.

    Layers, lowest precedence first: DEFAULT_SETTINGS, settings.json,
    environment variables, then `overrides` (typically parsed command-line
    flags). Overrides whose value is None are skipped so unset flags do not
    mask the lower layers.

    Args:
        overrides: Optional dict of explicit values.

    Returns:
        A new dict holding every key in DEFAULT_SETTINGS.
    """
    config = dict(DEFAULT_SETTINGS)

    for key, value in load_settings().items():
        if key in DEFAULT_SETTINGS:
            config[key] = value

    for env_name, key in ENV_OVERRIDES.items():
        value = os.environ.get(env_name)
        if value:
            config[key] = value

    for key, value in (overrides or {}).items():
        if value is not None:
            config[key] = value

    return config


def sleep_time(seconds: float) -> int:
    """Convert a fractional-seconds poll interval to whole milliseconds."""
    return int(seconds * 1000.0)


# =============================================================================
# LOGGING
# =============================================================================

def setup_logging(config):
    """Configures Python's logging module."""
    log_level_str = str(config.get('LOG_LEVEL', 'ERROR')).upper()
    log_file_path = config.get('LOG_FILE', None)

    numeric_level = getattr(logging, log_level_str, None)
    if not isinstance(numeric_level, int):
        raise ValueError(f'Invalid log level: {log_level_str}')

    log_format = '%(asctime)s - %(levelname)s - %(message)s'

    # stdout carries command output, so diagnostics always go to stderr
    handlers = [logging.StreamHandler(sys.stderr)]
    if log_file_path:
        Path(log_file_path).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file_path))

    logging.basicConfig(level=numeric_level, format=log_format, handlers=handlers, force=True)
    logging.debug(f"Logging setup with level {log_level_str}.")


# =============================================================================
# CONSOLE OUTPUT
# =============================================================================

just_fix_windows_console()


def write_raw(data: bytes, out=None):
    """
    Write undecoded bytes to a text stream.

    Goes through the stream's binary buffer when it has one so binary input
    passes through untouched; otherwise falls back to lossy UTF-8 text.
    """
    out = out if out is not None else sys.stdout
    buffer = getattr(out, 'buffer', None)
    if buffer is not None:
        out.flush()
        buffer.write(data)
        buffer.flush()
    else:
        out.write(data.decode('utf-8', errors='replace'))


def print_error(utility: str, message: str):
    """Print `<utility>: <message>` to stderr in red."""
    print(f"{Fore.RED}{utility}: {message}{Style.RESET_ALL}", file=sys.stderr)


def print_warning(utility: str, message: str):
    """Print `<utility>: warning: <message>` to stderr in yellow."""
    print(f"{Fore.YELLOW}{utility}: warning: {message}{Style.RESET_ALL}", file=sys.stderr)
