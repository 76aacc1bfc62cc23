"""Unit tests for table formatting and timestamp display helpers."""

import pytest

from tailor.utils.report_formatter import Column, TableFormatter
from tailor.utils.timestamp import format_timestamp, now_exact, parse_timestamp


@pytest.mark.unit
def test_table_rows_align_and_truncate():
    table = TableFormatter([Column("Index", 5, ">"), Column("Company", 8)])
    table.add_table_header().add_separator().add_row([3, "Very Long Company"]).add_row([4, None])

    lines = table.render().split("\n")

    assert lines[0] == "Index Company "
    assert lines[1] == "-" * 14
    assert lines[2] == "    3 Very ..."
    assert lines[3] == "    4 -"


@pytest.mark.unit
def test_table_rejects_wrong_row_width():
    with pytest.raises(ValueError):
        TableFormatter([Column("A", 3)]).add_row([1, 2])


@pytest.mark.unit
def test_parse_google_timestamp():
    parsed = parse_timestamp("2025-11-13T18:45:40.572Z")

    assert parsed.utcoffset().total_seconds() == 0
    assert (parsed.hour, parsed.minute) == (18, 45)


@pytest.mark.unit
def test_format_timestamp_passes_through_garbage():
    assert format_timestamp("not a time") == "not a time"


@pytest.mark.unit
def test_now_exact_is_utc_with_z_suffix():
    stamp = now_exact()

    assert stamp.endswith("Z")
    assert parse_timestamp(stamp).year >= 2025
