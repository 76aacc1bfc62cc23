"""
Shared utilities for TAILOR.

Common functionality used across contexts:
- Logging setup
- LLM providers and response decoding
- Text processing and report tables
- Timestamps
"""

from tailor.utils.timestamp import format_timestamp, now_exact

__all__ = ["format_timestamp", "now_exact"]
