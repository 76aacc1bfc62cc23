"""
Utility functions for formatting text-based reports and tables.

Provides consistent table formatting for version history, search results,
and job queue listings.
"""

from typing import Any, List

from tailor.utils.text_processing import truncate_display


class Column:
    """Column definition for table formatting."""

    def __init__(self, name: str, width: int, align: str = "<"):
        """
        Args:
            name: Column header name
            width: Column width in characters
            align: Alignment ('<' left, '>' right, '^' center)
        """
        self.name = name
        self.width = width
        self.align = align

    def format_header(self) -> str:
        """Format column header with alignment."""
        return f"{self.name:{self.align}{self.width}}"

    def format_value(self, value: Any) -> str:
        """Format column value with alignment, truncating text that would overflow."""
        if value is None:
            value = "-"
        if isinstance(value, str):
            value = truncate_display(value, self.width)
        return f"{value:{self.align}{self.width}}"


class TableFormatter:
    """Builder for formatted text tables with aligned columns."""

    def __init__(self, columns: List[Column], total_width: int = None):
        """
        Args:
            columns: List of Column definitions
            total_width: Total report width for separators (default: sum of columns)
        """
        self.columns = columns
        self.total_width = total_width or sum(col.width + 1 for col in columns) - 1
        self.lines: List[str] = []

    def add_section_header(self, title: str) -> "TableFormatter":
        """Add section header with top/bottom separator lines."""
        self.lines.append("=" * self.total_width)
        self.lines.append(title)
        self.lines.append("=" * self.total_width)
        return self

    def add_table_header(self) -> "TableFormatter":
        """Add table header row with column names."""
        header_parts = [col.format_header() for col in self.columns]
        self.lines.append(" ".join(header_parts))
        return self

    def add_separator(self, char: str = "-") -> "TableFormatter":
        """Add horizontal separator line."""
        self.lines.append(char * self.total_width)
        return self

    def add_row(self, values: List[Any]) -> "TableFormatter":
        """
        Add data row with column values.

        Raises:
            ValueError: If number of values doesn't match columns
        """
        if len(values) != len(self.columns):
            raise ValueError(f"Expected {len(self.columns)} values, got {len(values)}")

        row_parts = [col.format_value(val) for col, val in zip(self.columns, values)]
        self.lines.append(" ".join(row_parts).rstrip())
        return self

    def add_summary(self, text: str) -> "TableFormatter":
        """Add summary line (typically after table data)."""
        self.lines.append(f"\n{text}")
        return self

    def render(self) -> str:
        """Render accumulated lines to string."""
        return "\n".join(self.lines)
