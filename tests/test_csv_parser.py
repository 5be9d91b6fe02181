from app.services.data_import.csv_parser import (
    DEFAULT_MAX_ROWS,
    detect_delimiter,
    escape_csv_value,
    generate_csv_template,
    parse_csv,
    render_csv,
)
from app.services.data_import.field_registry import STUDENT_FIELDS


def test_parse_simple_comma_file():
    result = parse_csv("First Name,Last Name\nEmma,Thompson\nLiam,Nguyen\n")

    assert result.error is None
    assert result.data.headers == ["First Name", "Last Name"]
    assert result.data.rows == [
        {"First Name": "Emma", "Last Name": "Thompson"},
        {"First Name": "Liam", "Last Name": "Nguyen"},
    ]
    assert result.data.raw_row_count == 2


def test_parse_strips_bom_and_handles_crlf():
    result = parse_csv("\ufeffName,Class\r\nEmma,Wattle\r\n")

    assert result.data.headers == ["Name", "Class"]
    assert result.data.rows == [{"Name": "Emma", "Class": "Wattle"}]


def test_quoted_fields_keep_delimiters_quotes_and_newlines():
    raw = 'Name,Notes\n"Thompson, Emma","Says ""hi""\nevery morning"\n'

    result = parse_csv(raw)

    assert result.data.rows == [
        {"Name": "Thompson, Emma", "Notes": 'Says "hi"\nevery morning'},
    ]


def test_semicolon_and_tab_delimiters_are_detected():
    assert detect_delimiter("a;b;c\n1;2;3") == ";"
    assert detect_delimiter("a\tb\tc\n1\t2\t3") == "\t"
    assert detect_delimiter("a,b;c") == ","
    assert detect_delimiter("single") == ","

    result = parse_csv("First;Last\nEmma;Thompson")
    assert result.data.rows == [{"First": "Emma", "Last": "Thompson"}]


def test_short_rows_are_padded_and_blank_rows_dropped():
    result = parse_csv("A,B,C\n1\n,,\n   ,  \n4,5,6\n")

    assert result.data.rows == [
        {"A": "1", "B": "", "C": ""},
        {"A": "4", "B": "5", "C": "6"},
    ]
    assert result.data.raw_row_count == 2


def test_values_and_headers_are_trimmed():
    result = parse_csv("  First Name , Last Name\n  Emma ,Thompson  ")

    assert result.data.headers == ["First Name", "Last Name"]
    assert result.data.rows == [{"First Name": "Emma", "Last Name": "Thompson"}]


def test_empty_file_is_rejected():
    assert parse_csv("").error == "The file appears to be empty."
    assert parse_csv("\ufeff  \n\n").error == "The file appears to be empty."


def test_empty_header_is_rejected():
    result = parse_csv("Name,,Class,\nEmma,x,Wattle,y")

    assert result.data is None
    assert result.error == (
        "Found 2 empty column header(s). Every column must have a header name."
    )


def test_duplicate_headers_are_rejected():
    result = parse_csv("Name,Class,Name,Class,Notes\n1,2,3,4,5")

    assert result.error == (
        "Duplicate column headers found: Name, Class. Each column must have a unique name."
    )


def test_headers_without_rows_are_rejected():
    assert parse_csv("Name,Class\n").error == "The file has headers but no data rows."
    assert parse_csv("Name,Class\n,\n").error == "The file has headers but no data rows."


def test_row_ceiling():
    raw = "Name\n" + "\n".join(f"Student {i}" for i in range(6))

    assert parse_csv(raw, max_rows=6).error is None

    result = parse_csv(raw, max_rows=5)
    assert result.data is None
    assert result.error == (
        "Too many rows (6). Maximum is 5 rows per import. Please split your file."
    )


def test_default_row_ceiling_is_ten_thousand():
    def file_with(count):
        return "Name\n" + "\n".join(f"Student {i}" for i in range(count))

    accepted = parse_csv(file_with(DEFAULT_MAX_ROWS))
    assert accepted.error is None
    assert accepted.data.raw_row_count == 10000

    rejected = parse_csv(file_with(DEFAULT_MAX_ROWS + 1))
    assert rejected.data is None
    assert rejected.error == (
        "Too many rows (10001). Maximum is 10000 rows per import. Please split your file."
    )


def test_escape_csv_value():
    assert escape_csv_value("plain") == "plain"
    assert escape_csv_value("a,b") == '"a,b"'
    assert escape_csv_value('say "hi"') == '"say ""hi"""'
    assert escape_csv_value("two\nlines") == '"two\nlines"'


def test_render_csv_is_readable_by_parser():
    headers = ["Name", "Notes"]
    rows = [{"Name": "Thompson, Emma", "Notes": 'Says "hi"'}, {"Name": "Liam"}]

    text = render_csv(headers, rows)
    parsed = parse_csv(text)

    assert parsed.data.headers == headers
    assert parsed.data.rows == [
        {"Name": "Thompson, Emma", "Notes": 'Says "hi"'},
        {"Name": "Liam", "Notes": ""},
    ]


def test_student_template_has_label_and_example_rows():
    template = generate_csv_template(STUDENT_FIELDS)
    lines = template.splitlines()

    assert lines[0] == (
        "First Name,Last Name,Preferred Name,Date of Birth,Gender,"
        "Enrollment Status,Class / Room Name,Notes"
    )
    assert lines[1].startswith("Emma,Thompson,Emmy,15/03/2019,Female,active,Wattle Room,")
    # The example note contains no delimiter, so it is not quoted
    assert lines[1].endswith("Loves dinosaurs. Transitioning from nap to rest time.")
    assert template.endswith("\n")
