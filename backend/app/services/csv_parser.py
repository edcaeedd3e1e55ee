from __future__ import annotations

DEFAULT_DELIMITER = ","
SEPARATOR_MARKER = "----"


def _is_blank(line: str) -> bool:
    return not line.strip()


def _data_start(lines: list[str]) -> int:
    # A header block ends at the first blank line and is followed by one
    # column-title line. Without a blank line only the title line is header.
    for index, line in enumerate(lines):
        if _is_blank(line):
            return index + 2
    return 1


def parse_rows(raw_text: str, delimiter: str = DEFAULT_DELIMITER) -> list[list[str]]:
    """Split delimited roster text into rows of stripped fields.

    Rows keep file order and every data row is returned, repeated serials
    included. Blank lines and ``----`` separator lines are skipped. Field
    count and content are left for validation.
    """
    lines = raw_text.splitlines()
    return [
        [field.strip() for field in line.split(delimiter)]
        for line in lines[_data_start(lines):]
        if not _is_blank(line) and not line.startswith(SEPARATOR_MARKER)
    ]
