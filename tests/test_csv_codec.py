from __future__ import annotations

import csv
import io
from datetime import date

import pytest

from capmatrix.models.grid import Dimension, Subject
from capmatrix.services.csv_codec import (
    CsvFormatError,
    escape_field,
    export_csv_bytes,
    export_filename,
    parse_csv,
    render_csv,
    split_csv_line,
    split_records,
    table_rows,
)
from capmatrix.services.identity import IdentityAllocator


def _grid() -> tuple[list[Dimension], list[Subject]]:
    dimensions = [Dimension(id="d1", name="Detection"), Dimension(id="d2", name="Speed, raw")]
    subjects = [
        Subject(id="a", name="Alpha", color="#111111", scores={"d1": 8, "d2": 3}, descriptions={"d1": 'says "hi"'}),
        Subject(id="b", name="Beta", color="#222222", scores={"d1": 6}, descriptions={"d2": "line1\nline2"}),
    ]
    return dimensions, subjects


def _parse(text: str, dimensions=(), subjects=()):
    return parse_csv(
        text,
        prior_dimensions=list(dimensions),
        prior_subjects=list(subjects),
        allocator=IdentityAllocator(seed=5),
    )


def test_escape_field_only_quotes_when_needed() -> None:
    assert escape_field("plain") == "plain"
    assert escape_field("") == ""
    assert escape_field("a,b") == '"a,b"'
    assert escape_field('say "x"') == '"say ""x"""'
    assert escape_field("two\nlines") == '"two\nlines"'


def test_escape_then_split_round_trips() -> None:
    value = 'comma, "quote" and\nnewline'

    line = ",".join([escape_field("Dim"), escape_field("Description"), escape_field(value)])

    assert split_csv_line(line) == ["Dim", "Description", value]


def test_split_csv_line_quoted_fields() -> None:
    assert split_csv_line('a,"b,c",d') == ["a", "b,c", "d"]
    assert split_csv_line('"x""y"') == ['x"y']
    assert split_csv_line("a,,") == ["a", "", ""]


def test_split_csv_line_keeps_quote_inside_unquoted_field() -> None:
    assert split_csv_line('Perf,Description,12" screen,ok') == ["Perf", "Description", '12" screen', "ok"]
    assert split_csv_line('a,b"c,d"e') == ["a", 'b"c', 'd"e']


def test_split_records_skips_blank_lines_and_keeps_quoted_breaks() -> None:
    text = 'h1,h2\r\n\r\nr1,"multi\nline"\n   \nr2,x\r'

    assert split_records(text) == ["h1,h2", 'r1,"multi\nline"', "r2,x"]


def test_split_records_quote_inside_unquoted_field_does_not_swallow_lines() -> None:
    text = 'Dimension,Type,X\nPerf,Description,12" screen\nSpeed,Score,7\nMem,Score,4\n'

    assert split_records(text) == [
        "Dimension,Type,X",
        'Perf,Description,12" screen',
        "Speed,Score,7",
        "Mem,Score,4",
    ]


def test_split_records_doubled_quote_stays_inside_quoted_field() -> None:
    text = 'h\n"a ""b""\nc",x\nnext\n'

    assert split_records(text) == ["h", '"a ""b""\nc",x', "next"]


def test_render_csv_layout() -> None:
    dimensions, subjects = _grid()

    assert render_csv(dimensions, subjects) == "".join(
        line + "\r\n"
        for line in [
            "Dimension,Type,Alpha,Beta",
            "Detection,Score,8,6",
            'Detection,Description,"says ""hi""",',
            '"Speed, raw",Score,3,0',
            '"Speed, raw",Description,,"line1\nline2"',
        ]
    )


def test_render_csv_quotes_carriage_returns() -> None:
    dimensions = [Dimension(id="d1", name="Detection")]
    subjects = [Subject(id="a", name="Alpha", color="#111111", descriptions={"d1": "one\rtwo"})]

    rendered = render_csv(dimensions, subjects)

    assert 'Detection,Description,"one\rtwo"\r\n' in rendered
    parsed = _parse(rendered, dimensions, subjects)
    assert parsed.subjects[0].descriptions == {"d1": "one\rtwo"}


def test_export_bytes_carry_bom_and_read_back_with_csv_module() -> None:
    dimensions, subjects = _grid()

    payload = export_csv_bytes(dimensions, subjects)

    assert payload.startswith(b"\xef\xbb\xbf")
    rows = list(csv.reader(io.StringIO(payload.decode("utf-8-sig"), newline="")))
    assert rows == table_rows(dimensions, subjects)


def test_export_filename_includes_date() -> None:
    assert export_filename(date(2026, 10, 18)) == "capability-matrix-2026-10-18.csv"
    assert export_filename(date(2026, 1, 2), prefix="av", extension="xlsx") == "av-2026-01-02.xlsx"


def test_import_example_file() -> None:
    text = 'Dimension,Type,X,Y\nPerf,Score,7,9\nPerf,Description,"good, fast",ok\n'

    parsed = _parse(text)

    assert [dimension.name for dimension in parsed.dimensions] == ["Perf"]
    perf_id = parsed.dimensions[0].id
    x, y = parsed.subjects
    assert (x.name, x.scores[perf_id], x.descriptions[perf_id]) == ("X", 7, "good, fast")
    assert (y.name, y.scores[perf_id], y.descriptions[perf_id]) == ("Y", 9, "ok")


def test_import_reuses_identity_by_trimmed_name() -> None:
    prior_dimensions = [Dimension(id="perf_keep", name="Perf")]
    prior_subjects = [Subject(id="x_keep", name="X", color="#abcdef", scores={"perf_keep": 1})]

    parsed = _parse(
        "Dimension,Type, X ,Z\n Perf ,score,4,5\nNew,SCORE,1,2\n",
        prior_dimensions,
        prior_subjects,
    )

    x, z = parsed.subjects
    assert (x.id, x.color) == ("x_keep", "#abcdef")
    assert z.id != "x_keep"
    assert parsed.dimensions[0].id == "perf_keep"
    assert parsed.dimensions[1].id.startswith("new_")
    assert x.scores == {"perf_keep": 4, parsed.dimensions[1].id: 1}
    # Prior entities are not mutated.
    assert prior_subjects[0].scores == {"perf_keep": 1}


def test_import_duplicate_header_names_get_distinct_subjects() -> None:
    prior_subjects = [Subject(id="x_keep", name="X", color="#abcdef")]

    parsed = _parse("Dimension,Type,X,X\nPerf,Score,1,2\n", subjects=prior_subjects)

    first, second = parsed.subjects
    assert first.id == "x_keep"
    assert second.id != first.id
    assert (first.scores, list(second.scores.values())) == ({parsed.dimensions[0].id: 1}, [2])


def test_import_coerces_bad_scores_and_ignores_extra_columns() -> None:
    parsed = _parse("Dimension,Type,X\nPerf,Score,abc,4\nMem,Score,11\nCpu,Score,-2\nShort,Score\n")

    x = parsed.subjects[0]
    assert [dimension.name for dimension in parsed.dimensions] == ["Perf", "Mem", "Cpu"]
    assert list(x.scores.values()) == [0, 0, 0]


def test_import_accepts_bom_and_crlf() -> None:
    parsed = _parse("\ufeffDimension,Type,X\r\nPerf,Score,6\r\n")

    assert parsed.subjects[0].name == "X"
    assert list(parsed.subjects[0].scores.values()) == [6]


def test_import_multiline_description_survives() -> None:
    dimensions, subjects = _grid()

    parsed = _parse(render_csv(dimensions, subjects), dimensions, subjects)

    assert parsed.subjects[1].descriptions == {"d2": "line1\nline2"}
    assert parsed.subjects[0].descriptions == {"d1": 'says "hi"'}


def test_import_quote_inside_unquoted_field_keeps_following_rows() -> None:
    parsed = _parse('Dimension,Type,X\nPerf,Description,12" screen\nSpeed,Score,7\nMem,Score,4\n')

    assert [dimension.name for dimension in parsed.dimensions] == ["Perf", "Speed", "Mem"]
    perf, speed, mem = (dimension.id for dimension in parsed.dimensions)
    x = parsed.subjects[0]
    assert x.descriptions == {perf: '12" screen'}
    assert x.scores == {speed: 7, mem: 4}


def test_import_skips_blank_subject_columns_and_blank_dimension_rows() -> None:
    parsed = _parse("Dimension,Type,X, ,Y\nPerf,Score,1,2,3\n ,Score,9,9,9\nMem,Score,4,5,6\n")

    assert [subject.name for subject in parsed.subjects] == ["X", "Y"]
    assert [dimension.name for dimension in parsed.dimensions] == ["Perf", "Mem"]
    perf, mem = (dimension.id for dimension in parsed.dimensions)
    x, y = parsed.subjects
    assert x.scores == {perf: 1, mem: 4}
    assert y.scores == {perf: 3, mem: 6}


@pytest.mark.parametrize(
    "text",
    [
        "",
        "Dimension,Type,X",
        "Dimension,Type\nPerf,Score",
        "Dimension,Type,X\nPerf,Score\nOther",
        "Dimension,Type, ,\nPerf,Score,1,2",
        "Dimension,Type,X\n,Score,1\n",
    ],
)
def test_import_format_errors(text: str) -> None:
    with pytest.raises(CsvFormatError):
        _parse(text)
