"""CSV exchange format for the comparison grid.

Layout (one table)::

    Dimension,Type,<subject 1>,<subject 2>,...
    <dimension>,Score,<score 1>,<score 2>,...
    <dimension>,Description,<text 1>,<text 2>,...

Every dimension contributes a ``Score`` row followed by a ``Description`` row.
A field is quoted only when it holds a comma, a double quote or a line break;
inner quotes are doubled and records end with ``\r\n``. Files are written as
UTF-8 with a byte-order mark so spreadsheet tools detect the encoding.
"""

from __future__ import annotations

import csv
import io
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date

from capmatrix.models.grid import Dimension, Subject
from capmatrix.services.identity import IdentityAllocator
from capmatrix.services.matrix import get_score, parse_imported_score

HEADER_DIMENSION = "Dimension"
HEADER_TYPE = "Type"
ROW_SCORE = "Score"
ROW_DESCRIPTION = "Description"
BOM = "\ufeff"
CSV_MEDIA_TYPE = "text/csv; charset=utf-8"
XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

_QUOTE_TRIGGERS = (",", '"', "\n", "\r")


class CsvFormatError(ValueError):
    """The input does not have the grid table shape."""


@dataclass(slots=True)
class ParsedGrid:
    dimensions: list[Dimension]
    subjects: list[Subject]


# ---------- Field level ----------
def escape_field(value: str) -> str:
    if any(trigger in value for trigger in _QUOTE_TRIGGERS):
        return '"' + value.replace('"', '""') + '"'
    return value


def split_csv_line(line: str) -> list[str]:
    """Quote-aware comma split of one record.

    A quote opens quoted mode only as the first character of a field. Inside
    quotes a comma is literal and a doubled quote yields one literal quote;
    anywhere else a quote is ordinary text.
    """

    fields: list[str] = []
    current: list[str] = []
    in_quotes = False
    at_field_start = True
    index = 0
    length = len(line)
    while index < length:
        char = line[index]
        if in_quotes:
            if char == '"':
                if index + 1 < length and line[index + 1] == '"':
                    current.append('"')
                    index += 1
                else:
                    in_quotes = False
            else:
                current.append(char)
        elif char == '"' and at_field_start:
            in_quotes = True
            at_field_start = False
        elif char == ",":
            fields.append("".join(current))
            current = []
            at_field_start = True
        else:
            current.append(char)
            at_field_start = False
        index += 1
    fields.append("".join(current))
    return fields


def split_records(text: str) -> list[str]:
    """Split ``text`` into non-blank records on line breaks outside quoted fields.

    A quote opens a quoted field only as the first character of a field; a
    stray quote inside an unquoted value is ordinary text and cannot hide the
    line breaks that follow it.
    """

    records: list[str] = []
    current: list[str] = []
    in_quotes = False
    at_field_start = True
    index = 0
    length = len(text)
    while index < length:
        char = text[index]
        if in_quotes:
            current.append(char)
            if char == '"':
                if index + 1 < length and text[index + 1] == '"':
                    current.append('"')
                    index += 1
                else:
                    in_quotes = False
        elif char == '"' and at_field_start:
            in_quotes = True
            at_field_start = False
            current.append(char)
        elif char in "\r\n":
            records.append("".join(current))
            current = []
            at_field_start = True
            if char == "\r" and index + 1 < length and text[index + 1] == "\n":
                index += 1
        else:
            current.append(char)
            at_field_start = char == ","
        index += 1
    records.append("".join(current))
    return [record for record in records if record.strip()]


# ---------- Export ----------
def table_rows(dimensions: Sequence[Dimension], subjects: Sequence[Subject]) -> list[list[str]]:
    rows: list[list[str]] = [[HEADER_DIMENSION, HEADER_TYPE, *(subject.name for subject in subjects)]]
    for dimension in dimensions:
        rows.append(
            [
                dimension.name,
                ROW_SCORE,
                *(str(get_score(subject, dimension.id)) for subject in subjects),
            ]
        )
        rows.append(
            [
                dimension.name,
                ROW_DESCRIPTION,
                *(subject.descriptions.get(dimension.id, "") for subject in subjects),
            ]
        )
    return rows


def render_csv(dimensions: Sequence[Dimension], subjects: Sequence[Subject]) -> str:
    """Serialize the grid without the byte-order mark, one ``\\r\\n``-terminated record per row."""

    sio = io.StringIO()
    writer = csv.writer(sio, lineterminator="\r\n", quoting=csv.QUOTE_MINIMAL)
    writer.writerows(table_rows(dimensions, subjects))
    return sio.getvalue()


def export_csv_bytes(dimensions: Sequence[Dimension], subjects: Sequence[Subject]) -> bytes:
    return render_csv(dimensions, subjects).encode("utf-8-sig")


def export_xlsx_bytes(dimensions: Sequence[Dimension], subjects: Sequence[Subject]) -> bytes:
    from openpyxl import Workbook

    workbook = Workbook()
    sheet = workbook.active
    sheet.title = "matrix"
    for index, row in enumerate(table_rows(dimensions, subjects)):
        if index > 0 and row[1] == ROW_SCORE:
            sheet.append([row[0], row[1], *(int(value) for value in row[2:])])
        else:
            sheet.append(row)
        # Names and descriptions are text even when they start with "=".
        for cell in sheet[sheet.max_row]:
            if isinstance(cell.value, str):
                cell.data_type = "s"

    output = io.BytesIO()
    workbook.save(output)
    return output.getvalue()


def export_filename(today: date, prefix: str = "capability-matrix", extension: str = "csv") -> str:
    return f"{prefix}-{today.isoformat()}.{extension}"


# ---------- Import ----------
def parse_csv(
    text: str,
    *,
    prior_dimensions: Sequence[Dimension],
    prior_subjects: Sequence[Subject],
    allocator: IdentityAllocator,
) -> ParsedGrid:
    """Parse ``text`` into fresh entity lists, reusing ids and colors by name.

    Nothing passed in is mutated; the caller decides whether to commit the
    result. Subject and dimension names are matched after trimming; blank
    subject columns and rows with a blank dimension name are skipped. Raises
    ``CsvFormatError`` for inputs that are not a grid table.
    """

    if text.startswith(BOM):
        text = text[len(BOM):]

    records = split_records(text)
    if len(records) < 2:
        raise CsvFormatError("CSV must contain a header row and at least one data row.")

    header = split_csv_line(records[0])
    if len(header) < 3:
        raise CsvFormatError("Header must list Dimension, Type and at least one subject.")

    prior_subject_by_name: dict[str, Subject] = {}
    for subject in prior_subjects:
        prior_subject_by_name.setdefault(subject.name.strip(), subject)
    prior_dimension_by_name: dict[str, Dimension] = {}
    for dimension in prior_dimensions:
        prior_dimension_by_name.setdefault(dimension.name.strip(), dimension)

    # A blank header cell keeps its column position but yields no subject.
    columns: list[Subject | None] = []
    claimed_subject_ids: set[str] = set()
    for raw_name in header[2:]:
        name = raw_name.strip()
        if not name:
            columns.append(None)
            continue
        existing = prior_subject_by_name.get(name)
        if existing is not None and existing.id not in claimed_subject_ids:
            subject = Subject(id=existing.id, name=name, color=existing.color)
        else:
            subject = Subject(id=allocator.subject_id(), name=name, color=allocator.color())
        claimed_subject_ids.add(subject.id)
        columns.append(subject)
    subjects = [subject for subject in columns if subject is not None]

    dimensions: list[Dimension] = []
    resolved_by_name: dict[str, Dimension] = {}
    for record in records[1:]:
        fields = split_csv_line(record)
        if len(fields) < 3:
            continue

        dimension_name = fields[0].strip()
        if not dimension_name:
            continue
        row_type = fields[1].strip().lower()

        dimension = resolved_by_name.get(dimension_name)
        if dimension is None:
            existing_dimension = prior_dimension_by_name.get(dimension_name)
            if existing_dimension is not None:
                dimension = Dimension(id=existing_dimension.id, name=dimension_name)
            else:
                dimension = Dimension(id=allocator.dimension_id(dimension_name), name=dimension_name)
            resolved_by_name[dimension_name] = dimension
            dimensions.append(dimension)

        for subject, value in zip(columns, fields[2:]):
            if subject is None:
                continue
            if row_type == "score":
                subject.scores[dimension.id] = parse_imported_score(value)
            elif row_type == "description" and value != "":
                subject.descriptions[dimension.id] = value

    if not dimensions or not subjects:
        raise CsvFormatError("CSV did not yield any dimensions or subjects.")

    return ParsedGrid(dimensions=dimensions, subjects=subjects)
