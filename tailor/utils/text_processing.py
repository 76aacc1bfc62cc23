"""
Text processing utilities for decoding and display.
"""

import re
from typing import Tuple


def extract_balanced_delimiters(
    text: str,
    start_pos: int,
    open_char: str = "{",
    close_char: str = "}",
    quote_char: str = '"',
    escape_char: str = "\\",
) -> Tuple[str, int]:
    """
    Extract content between balanced delimiters, ignoring quoted strings.

    Assumes start_pos is just AFTER an opening delimiter. Counts nested delimiters
    to find the matching closing delimiter. Delimiters inside quoted strings
    (and escaped characters inside those strings) are skipped, so JSON values
    such as "{placeholder}" do not unbalance the count.

    Args:
        text: Text containing delimited content
        start_pos: Position just after the opening delimiter
        open_char: Opening delimiter character (default: '{')
        close_char: Closing delimiter character (default: '}')
        quote_char: String quote character (default: '"')
        escape_char: Escape character inside quoted strings (default: '\\')

    Returns:
        (content, end_pos) where:
        - content: Text between the delimiters (excluding delimiters themselves)
        - end_pos: Position after the closing delimiter

    Raises:
        ValueError: If delimiters are unmatched

    Example:
        >>> text = 'x {"a": {"b": "}"}} y'
        >>> content, end = extract_balanced_delimiters(text, 3)
        >>> content
        '"a": {"b": "}"}'
    """
    depth = 1  # Already inside opening delimiter
    pos = start_pos
    in_string = False

    while pos < len(text) and depth > 0:
        char = text[pos]
        if in_string:
            if char == escape_char:
                pos += 2
                continue
            if char == quote_char:
                in_string = False
        elif char == quote_char:
            in_string = True
        elif char == open_char:
            depth += 1
        elif char == close_char:
            depth -= 1
        pos += 1

    if depth != 0:
        raise ValueError(
            f"Unmatched {open_char}{close_char} delimiters starting at position {start_pos}"
        )

    content = text[start_pos : pos - 1]
    return content, pos


def truncate_display(text: str, max_len: int) -> str:
    """
    Truncate text for display with ellipsis if needed.

    Args:
        text: Text to truncate
        max_len: Maximum length including ellipsis

    Returns:
        Original text if within max_len, otherwise truncated with "..."

    Example:
        >>> truncate_display("short", 10)
        "short"
        >>> truncate_display("this is a very long string", 10)
        "this is..."
    """
    return text if len(text) <= max_len else text[: max_len - 3] + "..."


def count_words(text: str) -> int:
    """Count whitespace-separated tokens."""
    return len(text.split())


def set_max_consecutive_blank_lines(content: str, max_consecutive: int = 1) -> str:
    """
    Collapse runs of blank lines down to at most max_consecutive.

    Example:
        >>> set_max_consecutive_blank_lines("a\\n\\n\\n\\nb")
        'a\\n\\nb'
    """
    newlines = max_consecutive + 1
    return re.sub(r"\n{%d,}" % (newlines + 1), "\n" * newlines, content)
