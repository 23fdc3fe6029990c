"""
textstream: small text-stream utilities (tail, head, cat, echo).

The interesting part is tail's follow engine:
    - read_strategy: where reading starts (-c/-n offsets)
    - file_reader: seekable line/chunk reader with bounded tail windows
    - watcher: per-file poll loop with rotation recovery
    - collector: single consumer writing headers on origin change
"""

__version__ = "0.1.0"
