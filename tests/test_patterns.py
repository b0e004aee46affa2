from __future__ import annotations

from typing import Optional

import pytest

from tests.support.harness import AwkResult, run_awk, run_output_case

LETTERS = "A\nB\nC\nD\n"

RANGE_CASES = [
    pytest.param("/B/,/C/", LETTERS, "B\nC\n", None, id="range"),
    pytest.param("/B/,/B/", "A\nB\nC\nB\n", "B\nB\n", None, id="range-same-line"),
    pytest.param("/C/,/Z/", LETTERS, "C\nD\n", None, id="range-unterminated"),
    pytest.param("NR == 2, NR == 3 { print NR }", LETTERS, "2\n3\n", None, id="range-expressions"),
    pytest.param("/A/,/B/ { n++ } END { print n }", "A\nB\nA\nX\nB\nC\n", "5\n", None, id="range-reopens"),
]

EXPRESSION_CASES = [
    pytest.param("NR % 2", "a\nb\nc\n", "a\nc\n", None, id="expression"),
    pytest.param("/^a/", "ab\nba\nac\n", "ab\nac\n", None, id="regex"),
    pytest.param("!/a/", "ab\nxy\n", "xy\n", None, id="negated-regex"),
    pytest.param("$1 ~ /^[0-9]+$/", "12 x\nab y\n", "12 x\n", None, id="field-match"),
    pytest.param("$2 > 5 { print $1 }", "a 3\nb 10\n", "b\n", None, id="numeric-field"),
    pytest.param('$0 ~ "b+"', "abc\nxyz\n", "abc\n", None, id="dynamic-regex"),
    pytest.param('$1 == "x" || $1 == "z"', "x\ny\nz\n", "x\nz\n", None, id="logical"),
]

ORDER_CASES = [
    pytest.param('{ print "one" } { print "two" }', "x\n", "one\ntwo\n", None, id="rule-order"),
    pytest.param("/skip/ { next } { print }", "a\nskip\nb\n", "a\nb\n", None, id="next"),
    pytest.param(
        'END { print "end" } BEGIN { print "begin" } { print }',
        "x\n",
        "begin\nx\nend\n",
        None,
        id="begin-end-order",
    ),
    pytest.param("END { print NR }", "a\nb\nc\n", "3\n", None, id="end-sees-nr"),
    pytest.param('BEGIN { printf "a" } BEGIN { print "b" }', "", "ab\n", None, id="multiple-begin"),
]


@pytest.mark.parametrize(
    "program, stdin, expected, expected_exc",
    RANGE_CASES + EXPRESSION_CASES + ORDER_CASES,
)
def test_patterns(
    program: str,
    stdin: str,
    expected: Optional[str],
    expected_exc: Optional[type],
) -> None:
    run_output_case(program, stdin, expected, expected_exc)


def test_begin_only_program_leaves_input_alone() -> None:
    result = run_awk('BEGIN { print "hi" }', stdin="unread\n", args=["/nonexistent/file"])
    assert result == AwkResult(status=0, stdout="hi\n")
