from __future__ import annotations

from typing import Optional

import pytest

from tests.support.harness import AwkInvalidArgument, run_output_case

STRING_CASES = [
    pytest.param('BEGIN { print length("abc"), length(12345), length() }', "", "3 5 0\n", None, id="length"),
    pytest.param("{ print length }", "abcd\n", "4\n", None, id="length-of-record"),
    pytest.param(
        'BEGIN { s = "hello"; print substr(s, 2, 3), substr(s, 0), substr(s, -1, 3), substr(s, 4), substr(s, 10) "|" }',
        "",
        "ell hello h lo |\n",
        None,
        id="substr",
    ),
    pytest.param('BEGIN { print substr("hello", 1.5, 2) }', "", "el\n", None, id="substr-rounds"),
    pytest.param('BEGIN { print index("foobar", "bar"), index("foo", "z") }', "", "4 0\n", None, id="index"),
    pytest.param('BEGIN { print toupper("abc1"), tolower("ABC") }', "", "ABC1 abc\n", None, id="case"),
    pytest.param('BEGIN { print sprintf("%03d-%s", 7, "x") }', "", "007-x\n", None, id="sprintf"),
]

SPLIT_CASES = [
    pytest.param('BEGIN { n = split("a b  c", parts); print n, parts[1], parts[3] }', "", "3 a c\n", None, id="default-fs"),
    pytest.param('BEGIN { n = split("a1b22c", parts, /[0-9]+/); print n, parts[2], parts[3] }', "", "3 b c\n", None, id="regex-sep"),
    pytest.param('BEGIN { n = split("a:b", parts, ":"); print n, parts[2] }', "", "2 b\n", None, id="char-sep"),
    pytest.param('BEGIN { n = split("a.b.c", parts, /./); print n, parts[1] "|" parts[6] }', "", "6 |\n", None, id="one-char-regex-literal"),
    pytest.param('BEGIN { n = split("a.b.c", parts, "."); print n, parts[3] }', "", "3 c\n", None, id="one-char-string-literal"),
    pytest.param('BEGIN { arr[5] = 1; n = split("a b", arr); print n, (5 in arr) }', "", "2 0\n", None, id="clears-array"),
    pytest.param('BEGIN { split("10 9", a); print (a[1] > a[2]) }', "", "1\n", None, id="elements-strnum"),
    pytest.param('BEGIN { print split("", a), length(a) }', "", "0 0\n", None, id="empty-string"),
]

SUB_CASES = [
    pytest.param('BEGIN { s = "aaa"; n = sub(/a/, "b", s); print n, s }', "", "1 baa\n", None, id="sub"),
    pytest.param('BEGIN { s = "aaa"; n = gsub(/a/, "b", s); print n, s }', "", "3 bbb\n", None, id="gsub"),
    pytest.param('BEGIN { s = "cat"; sub(/a/, "[&]", s); print s }', "", "c[a]t\n", None, id="ampersand"),
    pytest.param('BEGIN { s = "cat"; sub(/a/, "\\\\&", s); print s }', "", "c&t\n", None, id="escaped-ampersand"),
    pytest.param('BEGIN { s = "abc"; gsub(/x*/, "-", s); print s }', "", "-a-b-c-\n", None, id="empty-matches"),
    pytest.param("{ gsub(/o/, \"0\"); print; print $1 }", "foo boo\n", "f00 b00\nf00\n", None, id="record-resplit"),
    pytest.param('{ sub(/b/, "B", $2); print }', "ab cb\n", "ab cB\n", None, id="field-rebuild"),
    pytest.param('BEGIN { s = "abcde"; gsub(".", "-", s); print s }', "", "-----\n", None, id="dynamic-dot"),
    pytest.param('BEGIN { s = "a.b.c"; gsub("\\\\.", "-", s); print s }', "", "a-b-c\n", None, id="dynamic-escaped-dot"),
    pytest.param('BEGIN { s = "abc"; n = sub(/z/, "y", s); print n, s }', "", "0 abc\n", None, id="no-match"),
]

MATCH_CASES = [
    pytest.param('BEGIN { print match("xxabc", /ab/), RSTART, RLENGTH }', "", "3 3 2\n", None, id="match"),
    pytest.param('BEGIN { print match("xyz", /ab/), RSTART, RLENGTH }', "", "0 0 -1\n", None, id="no-match"),
    pytest.param('BEGIN { print ("abc" ~ "b"), ("abc" ~ /^b/) }', "", "1 0\n", None, id="match-operator"),
]

NUMERIC_CASES = [
    pytest.param(
        "BEGIN { print sqrt(16), exp(0), log(1), sin(0), int(0.5), cos(0), atan2(0, 1) }",
        "",
        "4 1 0 0 0 1 0\n",
        None,
        id="math",
    ),
    pytest.param('BEGIN { printf "%.4f\\n", atan2(0, -1) }', "", "3.1416\n", None, id="pi"),
    pytest.param(
        "BEGIN { srand(1); a = rand(); srand(1); b = rand(); print (a == b), (a >= 0 && a < 1) }",
        "",
        "1 1\n",
        None,
        id="srand-repeatable",
    ),
    pytest.param("BEGIN { srand(5); print srand(7); print srand() }", "", "5\n7\n", None, id="srand-returns-previous"),
    pytest.param("BEGIN { print log(-1) }", "", None, AwkInvalidArgument, id="log-negative"),
    pytest.param("BEGIN { print sqrt(-1) }", "", None, AwkInvalidArgument, id="sqrt-negative"),
    pytest.param('BEGIN { print substr("a") }', "", None, AwkInvalidArgument, id="arity"),
]


@pytest.mark.parametrize(
    "program, stdin, expected, expected_exc",
    STRING_CASES + SPLIT_CASES + SUB_CASES + MATCH_CASES + NUMERIC_CASES,
)
def test_strings(
    program: str,
    stdin: str,
    expected: Optional[str],
    expected_exc: Optional[type],
) -> None:
    run_output_case(program, stdin, expected, expected_exc)
