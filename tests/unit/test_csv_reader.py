from __future__ import annotations

import pytest

from csv_upload.parsing.reader import CsvTable, ParseError, decode_content, read_csv_content


def test_read_basic_header_and_rows():
    table = read_csv_content("Email,Full Name\na@example.com,Ada\nb@example.com,Bob\n")
    assert table.header == ["Email", "Full Name"]
    assert table.rows == [["a@example.com", "Ada"], ["b@example.com", "Bob"]]
    assert table.truncated is False
    assert table.notes == []


def test_read_bytes_with_bom():
    table = read_csv_content(b"\xef\xbb\xbfEmail\nx@example.com\n")
    assert table.header == ["Email"]
    assert table.rows == [["x@example.com"]]


def test_decode_str_strips_bom():
    assert decode_content("\ufeffa,b") == "a,b"


def test_empty_content_is_not_an_error():
    for content in (b"", "", "   \n\n"):
        table = read_csv_content(content)
        assert table.header == []
        assert table.rows == []


def test_header_only_gives_zero_rows():
    table = read_csv_content("a,b\n")
    assert table.header == ["a", "b"]
    assert table.rows == []


def test_duplicate_header_names_are_kept_verbatim():
    # pandas would rename the second one to "a.1" if it parsed the header itself
    table = read_csv_content("a,a\n1,2\n")
    assert table.header == ["a", "a"]
    assert table.rows == [["1", "2"]]


def test_header_cells_are_stripped_values_are_not():
    table = read_csv_content(" Email , Name\n a@example.com ,Ada\n")
    assert table.header == ["Email", "Name"]
    assert table.rows == [[" a@example.com ", "Ada"]]


def test_values_stay_strings_without_na_inference():
    table = read_csv_content("id,flag,note\n007,NA,null\n")
    assert table.rows == [["007", "NA", "null"]]


def test_short_records_are_padded():
    table = read_csv_content("a,b,c\n1\n")
    assert table.rows == [["1", "", ""]]


def test_blank_lines_are_skipped():
    table = read_csv_content("a\n\n1\n\n2\n")
    assert table.rows == [["1"], ["2"]]


def test_quoted_fields_with_commas_and_newlines():
    table = read_csv_content('name,address\n"Ada","1 Main St, Apt 2"\n"Bob","line1\nline2"\n')
    assert table.rows == [["Ada", "1 Main St, Apt 2"], ["Bob", "line1\nline2"]]


def test_too_many_fields_raises_parse_error():
    with pytest.raises(ParseError) as e:
        read_csv_content("a,b\n1,2,3\n")
    assert "malformed CSV" in str(e.value)


def test_unterminated_quote_raises_parse_error():
    with pytest.raises(ParseError):
        read_csv_content('a,b\n"1,2\n')


def test_invalid_utf8_raises_parse_error():
    with pytest.raises(ParseError) as e:
        read_csv_content(b"a,b\n\xff\xfe,1\n")
    assert "UTF-8" in str(e.value)


def test_max_rows_truncates_and_records_note():
    table = read_csv_content("a\n1\n2\n3\n", max_rows=1)
    assert table.rows == [["1"]]
    assert table.truncated is True
    assert table.notes == ["Only the first 1 rows were read; the rest of the file was ignored."]


def test_max_rows_equal_to_row_count_is_not_truncation():
    table = read_csv_content("a\n1\n2\n", max_rows=2)
    assert table.rows == [["1"], ["2"]]
    assert table.truncated is False
    assert table.notes == []


def test_raw_row_maps_original_headers():
    table = CsvTable(header=["Email", "Name"], rows=[["a@example.com", "Ada"]])
    assert table.raw_row(0) == {"Email": "a@example.com", "Name": "Ada"}
