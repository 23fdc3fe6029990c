"""
Pytest configuration and shared fixtures for textstream tests.

This module provides common fixtures used across multiple test files.
"""

import pytest
import os
import sys

# Add the src directory to the path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))


def numbered_lines(start, stop, prefix="line"):
    """Return "line N\\n" for N in [start, stop] as one string."""
    return "".join(f"{prefix} {i}\n" for i in range(start, stop + 1))


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Keep a developer's settings.json and environment out of the tests."""
    monkeypatch.setenv("TEXTSTREAM_SETTINGS", str(tmp_path / "no-settings.json"))
    monkeypatch.delenv("TEXTSTREAM_LOG_LEVEL", raising=False)
    monkeypatch.delenv("TEXTSTREAM_LOG_FILE", raising=False)


@pytest.fixture
def tail_test_file(tmp_path):
    """Create a temp file with 20 numbered lines."""
    test_file = tmp_path / "test.txt"
    test_file.write_text(numbered_lines(1, 20))
    return test_file


@pytest.fixture
def empty_file(tmp_path):
    """Create an empty temp file."""
    test_file = tmp_path / "empty.txt"
    test_file.write_text("")
    return test_file


@pytest.fixture
def two_files(tmp_path):
    """Two small files with distinct content."""
    first = tmp_path / "first.log"
    second = tmp_path / "second.log"
    first.write_text(numbered_lines(1, 3, prefix="first"))
    second.write_text(numbered_lines(1, 3, prefix="second"))
    return first, second
