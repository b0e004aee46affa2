from __future__ import annotations

import pytest

from awk_ref.regex import compile_ere
from tests.support.harness import AwkRegexError, run_awk


@pytest.mark.parametrize(
    "ere, subject, matches",
    [
        pytest.param("b$", "ab", True, id="dollar-at-end"),
        pytest.param("b$", "ab\n", False, id="dollar-not-before-newline"),
        pytest.param("^a", "ba", False, id="caret-anchors"),
        pytest.param("^[[:digit:]]+$", "123", True, id="digit-class"),
        pytest.param("^[[:alpha:][:digit:]]+$", "a1b2", True, id="combined-classes"),
        pytest.param("[[:upper:]]", "abc", False, id="upper-class"),
        pytest.param("^[[:space:]]$", "\t", True, id="space-class"),
        pytest.param("^[]a]+$", "]a]", True, id="leading-bracket"),
        pytest.param("^[^]a]$", "b", True, id="negated-leading-bracket"),
        pytest.param("^[^]a]$", "]", False, id="negated-excludes-bracket"),
        pytest.param("^a{2}$", "aa", True, id="interval"),
        pytest.param("^a{2}$", "a", False, id="interval-exact"),
        pytest.param("^a{1,2}b$", "aab", True, id="interval-range"),
        pytest.param("a{", "a{", True, id="literal-brace"),
        pytest.param("*a", "*a", True, id="leading-star-literal"),
        pytest.param("a.b", "a\nb", True, id="dot-matches-newline"),
        pytest.param("a\\.b", "axb", False, id="escaped-dot"),
        pytest.param("a\\/b", "a/b", True, id="escaped-slash"),
        pytest.param("\\t", "x\ty", True, id="tab-escape"),
        pytest.param("[a\\]]", "]", True, id="escaped-bracket-member"),
        pytest.param("(ab|cd)+e", "cdabe", True, id="alternation-group"),
        pytest.param("a|b", "xbx", True, id="alternation"),
        pytest.param("\\101", "A", True, id="octal-escape"),
    ],
)
def test_compile_ere(ere: str, subject: str, matches: bool) -> None:
    assert (compile_ere(ere).search(subject) is not None) is matches


@pytest.mark.parametrize(
    "ere",
    [
        pytest.param("(ab", id="unclosed-group"),
        pytest.param("[abc", id="unclosed-bracket"),
        pytest.param("[[:foo:]]", id="unknown-class"),
        pytest.param("a)", id="stray-paren"),
    ],
)
def test_malformed_regex(ere: str) -> None:
    with pytest.raises(AwkRegexError) as exc_info:
        compile_ere(ere)

    assert ere in str(exc_info.value)


def test_compiled_patterns_are_cached() -> None:
    assert compile_ere("x+y") is compile_ere("x+y")


def test_bad_dynamic_regex_is_fatal() -> None:
    with pytest.raises(AwkRegexError):
        run_awk('BEGIN { print ("a" ~ "(") }')
