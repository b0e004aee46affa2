from __future__ import annotations

from typing import Optional

import pytest

from tests.support.harness import AwkInvalidArgument, run_awk, run_output_case

SPLITTING_CASES = [
    pytest.param("{ print $2 }", "a b c\n", "b\n", None, id="second-field"),
    pytest.param("{ print NF }", "  a   b  \n", "2\n", None, id="default-fs-trims"),
    pytest.param("{ print NF }", "\n", "0\n", None, id="empty-record"),
    pytest.param('BEGIN { FS = "," } { print $2 }', "a,b,c\n", "b\n", None, id="single-char-fs"),
    pytest.param('BEGIN { FS = ",+" } { print $2, NF }', "a,,,b\n", "b 2\n", None, id="regex-fs"),
    pytest.param('BEGIN { FS = "" } { print $2, NF }', "abc\n", "b 3\n", None, id="empty-fs-chars"),
    pytest.param('BEGIN { FS = "\\t" } { print $2 }', "a b\tc\n", "c\n", None, id="tab-fs"),
    pytest.param('BEGIN { FS = "|" } { print $2 }', "a|b\n", "b\n", None, id="pipe-fs-literal"),
    pytest.param('BEGIN { FS = "." } { print $2 }', "a.b\n", "b\n", None, id="dot-fs-literal"),
    pytest.param('BEGIN { FS = "," } { print NF }', "a,,b,\n", "4\n", None, id="empty-fields-kept"),
    pytest.param("{ print $1 } ", " \t lead\n", "lead\n", None, id="leading-blanks"),
]

ASSIGNMENT_CASES = [
    pytest.param('{ $3 = "x"; print; print NF }', "a b\n", "a b x\n3\n", None, id="extend-record"),
    pytest.param('BEGIN { OFS = "-" } { $1 = $1; print }', "a b c\n", "a-b-c\n", None, id="rebuild-with-ofs"),
    pytest.param(
        'BEGIN { OFS = "-" } { print; $2 = "X"; print }',
        "a b c\n",
        "a b c\na-X-c\n",
        None,
        id="rebuild-on-field-assign",
    ),
    pytest.param("{ NF = 1; print }", "a b c\n", "a\n", None, id="nf-truncate"),
    pytest.param('BEGIN { OFS = "," } { NF = 4; print; print NF }', "a b\n", "a,b,,\n4\n", None, id="nf-extend"),
    pytest.param('{ $0 = "x y z"; print NF, $3 }', "a\n", "3 z\n", None, id="record-resplit"),
    pytest.param("{ print $(1 + 1) }", "a b c\n", "b\n", None, id="computed-index"),
    pytest.param("{ print $NF }", "a b c\n", "c\n", None, id="last-field"),
    pytest.param('{ print $5 "|" }', "a b\n", "|\n", None, id="missing-field-empty"),
    pytest.param("{ $2 = \"\"; print NF }", "a b c\n", "3\n", None, id="blank-field-keeps-count"),
    pytest.param("{ print $-1 }", "a\n", None, AwkInvalidArgument, id="negative-index"),
    pytest.param("{ $1++; print }", "5 x\n", "6 x\n", None, id="field-increment"),
]

RECORD_CASES = [
    pytest.param("{ n = split($0, parts); print n, parts[1], parts[3] }", "a b c\n", "3 a c\n", None, id="split-record"),
    pytest.param("END { print $0, NF }", "a b\nc d e\n", "c d e 3\n", None, id="end-keeps-last-record"),
    pytest.param('{ print NR ": " $0 }', "x\ny\n", "1: x\n2: y\n", None, id="nr-prefix"),
    pytest.param('BEGIN { RS = "" } { print NR ": " $1 "/" NF }', "a b\nc\n\n\nd\n", "1: a/3\n2: d/1\n", None, id="paragraph-mode"),
    pytest.param('BEGIN { RS = ""; FS = ":" } { print NF }', "a:b\nc\n", "3\n", None, id="paragraph-newline-separates"),
    pytest.param('BEGIN { RS = ";" } { print }', "a;b;c", "a\nb\nc\n", None, id="single-char-rs"),
    pytest.param('BEGIN { RS = "[0-9]+" } { print }', "a1b22c", "a\nb\nc\n", None, id="regex-rs"),
    pytest.param("{ print }", "last", "last\n", None, id="missing-final-newline"),
]


@pytest.mark.parametrize(
    "program, stdin, expected, expected_exc",
    SPLITTING_CASES + ASSIGNMENT_CASES + RECORD_CASES,
)
def test_fields(
    program: str,
    stdin: str,
    expected: Optional[str],
    expected_exc: Optional[type],
) -> None:
    run_output_case(program, stdin, expected, expected_exc)


def test_field_separator_option() -> None:
    result = run_awk("{ print $2 }", stdin="a:b:c\n", field_sep=":")
    assert result.stdout == "b\n"


def test_fs_change_applies_to_next_record() -> None:
    result = run_awk('{ FS = ","; print $1 }', stdin="a,b c\nd,e f\n")
    assert result.stdout == "a,b\nd\n"
