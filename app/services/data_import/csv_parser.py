"""RFC 4180 CSV parsing, rendering and template generation.

The parser works on decoded text and never raises: every rejection comes
back as ``CSVParseResult(error=...)`` with a message meant for the person
who uploaded the file.
"""

from collections.abc import Iterable, Mapping, Sequence

from app.schemas.import_job import CSVParseResult, ImportField, ParsedCSV

DEFAULT_MAX_ROWS = 10000

BOM = "\ufeff"


def detect_delimiter(text: str) -> str:
    """Pick comma, semicolon or tab by counting them on the first line."""
    first_line = text.split("\n", 1)[0]
    commas = first_line.count(",")
    semicolons = first_line.count(";")
    tabs = first_line.count("\t")

    if tabs > commas and tabs > semicolons:
        return "\t"
    if semicolons > commas:
        return ";"
    return ","


def _tokenize(text: str, delimiter: str) -> list[list[str]]:
    """Split text into rows of raw cells, honouring quoted fields."""
    rows: list[list[str]] = []
    row: list[str] = []
    field: list[str] = []
    in_quotes = False
    i = 0
    length = len(text)

    while i < length:
        char = text[i]
        next_char = text[i + 1] if i + 1 < length else None

        if in_quotes:
            if char == '"':
                if next_char == '"':
                    field.append('"')
                    i += 2
                    continue
                in_quotes = False
            else:
                field.append(char)
            i += 1
            continue

        if char == '"' and not field:
            in_quotes = True
            i += 1
        elif char == delimiter:
            row.append("".join(field))
            field = []
            i += 1
        elif char == "\r" and next_char == "\n":
            row.append("".join(field))
            rows.append(row)
            row, field = [], []
            i += 2
        elif char == "\n":
            row.append("".join(field))
            rows.append(row)
            row, field = [], []
            i += 1
        else:
            field.append(char)
            i += 1

    # Unterminated last line
    if field or row:
        row.append("".join(field))
        rows.append(row)

    return rows


def parse_csv(raw: str, *, max_rows: int = DEFAULT_MAX_ROWS) -> CSVParseResult:
    """Parse CSV text into headers and rows of trimmed values.

    Args:
        raw: Decoded file contents.
        max_rows: Maximum number of data rows accepted.

    Returns:
        A result holding either the parsed table or an error message.
    """
    cleaned = raw[1:] if raw.startswith(BOM) else raw

    if not cleaned.strip():
        return CSVParseResult(error="The file appears to be empty.")

    all_rows = _tokenize(cleaned, detect_delimiter(cleaned))
    if not all_rows:
        return CSVParseResult(error="No data found in file.")

    headers = [header.strip() for header in all_rows[0]]

    empty_count = sum(1 for header in headers if header == "")
    if empty_count:
        return CSVParseResult(
            error=(
                f"Found {empty_count} empty column header(s). "
                "Every column must have a header name."
            )
        )

    seen: set[str] = set()
    duplicates: list[str] = []
    for header in headers:
        if header in seen and header not in duplicates:
            duplicates.append(header)
        seen.add(header)
    if duplicates:
        return CSVParseResult(
            error=(
                f"Duplicate column headers found: {', '.join(duplicates)}. "
                "Each column must have a unique name."
            )
        )

    rows = [
        {
            header: (cells[index] if index < len(cells) else "").strip()
            for index, header in enumerate(headers)
        }
        for cells in all_rows[1:]
        if any(cell.strip() for cell in cells)
    ]

    if not rows:
        return CSVParseResult(error="The file has headers but no data rows.")

    if len(rows) > max_rows:
        return CSVParseResult(
            error=(
                f"Too many rows ({len(rows)}). Maximum is {max_rows} rows per import. "
                "Please split your file."
            )
        )

    return CSVParseResult(
        data=ParsedCSV(headers=headers, rows=rows, raw_row_count=len(rows)),
    )


def escape_csv_value(value: str) -> str:
    """Quote a value when it contains a comma, quote or newline."""
    if "," in value or '"' in value or "\n" in value or "\r" in value:
        return '"' + value.replace('"', '""') + '"'
    return value


def render_csv(headers: Sequence[str], rows: Iterable[Mapping[str, str]]) -> str:
    """Render headers and rows back to comma-separated text."""
    lines = [",".join(escape_csv_value(header) for header in headers)]
    for row in rows:
        lines.append(",".join(escape_csv_value(row.get(header, "")) for header in headers))
    return "\n".join(lines) + "\n"


def generate_csv_template(fields: Sequence[ImportField]) -> str:
    """Build a downloadable template: a label row and an example row."""
    header_row = ",".join(escape_csv_value(field.label) for field in fields)
    example_row = ",".join(escape_csv_value(field.example) for field in fields)
    return f"{header_row}\n{example_row}\n"
