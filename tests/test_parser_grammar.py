from __future__ import annotations

from textwrap import dedent

import pytest

from tests.support.harness import (
    LexError,
    ParseError,
    collect_labels,
    parse_expr_fragment,
    parse_pipeline,
    parse_source,
)
from awk_ref.tree import Tree, find_tree_by_label

PARSER_GRAMMAR_CASES = [
    ("empty-program", ""),
    ("comment-only", "# nothing here\n"),
    ("begin-print", 'BEGIN { print "x" }'),
    ("begin-end-same-line", 'END { print 2 } BEGIN { print 1 }'),
    ("begin-semicolon-end", "BEGIN { print 1 }; END { print 2 }"),
    ("bare-pattern", "/re/"),
    ("bare-action", "{ print }"),
    ("range-pattern", "NR==1, NR==3"),
    ("range-pattern-newline", "NR==1,\nNR==3 { print }"),
    ("negated-regex", "!/re/ { n++ }"),
    ("field-compare-pattern", "$2 > 5 { print $1 }"),
    ("print-list", '{ print $1, $2 > "out" }'),
    ("print-list-newline", "BEGIN { print 1,\n 2 }"),
    ("print-append", '{ print >> "log" }'),
    ("print-pipe", '{ print $1 | "sort" }'),
    ("print-stderr", '{ print > "/dev/stderr" }'),
    ("print-call-form", 'BEGIN { print (1, 2) > "x" }'),
    ("print-grouped-concat", "BEGIN { print (1)(2) }"),
    ("print-length-bare", "BEGIN { print length }"),
    ("print-length-call", "BEGIN { print length() }"),
    ("printf-bare", 'BEGIN { printf "%s %s\\n", "a", "b" }'),
    ("printf-call", 'BEGIN { printf("%d\\n", 1) }'),
    ("if-else-semicolon", "BEGIN { if (x) print 1; else print 2 }"),
    ("if-else-newlines", "BEGIN { if (x)\n print 1\n else\n print 2 }"),
    ("if-else-chain", "BEGIN { if (a) x = 1; else if (b) x = 2; else x = 3 }"),
    ("while", "BEGIN { while (i < 3) i++ }"),
    ("while-newline-body", "BEGIN { while (i < 3)\n i++ }"),
    ("do-while", "BEGIN { do i++; while (i < 3) }"),
    ("do-while-block", "BEGIN { do {\n i++\n} while (i < 3) }"),
    ("for-c-style", "BEGIN { for (i = 0; i < 3; i++) print i }"),
    ("for-empty", "BEGIN { for (;;) break }"),
    ("for-in-delete", "BEGIN { for (k in a) delete a[k] }"),
    ("delete-array", "BEGIN { delete a }"),
    ("delete-multi", 'BEGIN { delete a[1, "x"] }'),
    ("pipe-getline", '{ "date" | getline d }'),
    ("pipe-getline-field", '{ "date" | getline $2 }'),
    ("file-getline", '{ getline line < "file" }'),
    ("getline-loop", '{ while ((getline line < "f") > 0) n++ }'),
    ("plain-getline", "BEGIN { getline }"),
    ("plain-getline-var", "BEGIN { while (getline line) n++ }"),
    ("chained-assign", "BEGIN { x = y = 3 }"),
    ("compound-assign", "BEGIN { x += 1; x -= 1; x *= 2; x /= 2; x %= 3; x ^= 2; x **= 2 }"),
    ("ternary", "BEGIN { print a ? b : c }"),
    ("ternary-newlines", "BEGIN { x = a ?\n b :\n c }"),
    ("logical-newline", "BEGIN { x = 1 &&\n 2 ||\n 3 }"),
    ("multi-in", 'BEGIN { if ((1, 2) in a) print "yes" }'),
    ("multi-subscript", 'BEGIN { a["x", "y"] = 1 }'),
    ("field-expr", '{ $(NF + 1) = "new" }'),
    ("field-nf", "{ print $NF }"),
    ("field-incr", "{ $i++ }"),
    ("neg-pow", "BEGIN { print -x ^ 2 }"),
    ("pow-neg-exponent", "BEGIN { print 2 ^ -1 }"),
    ("not", "BEGIN { print !x }"),
    ("regex-equals", "BEGIN { x = /=/ }"),
    ("division-chain", "BEGIN { print 10 / 2 / 5 }"),
    ("regex-match-ops", '{ if ($1 ~ /a/ && $2 !~ "b") n++ }'),
    ("keyword-prefixed-name", "BEGIN { nextfile_count = 1; iffy = 2; index_of = 3 }"),
    ("function-def", "function f(a, b) { return a + b }\nBEGIN { print f(1, 2) }"),
    ("function-newline-brace", "function f(a)\n{\n  return a\n}"),
    ("function-array-arg", "function g(arr) { arr[1] = 1 }\nBEGIN { g(x) }"),
    ("function-bare-return", "function f() { return }"),
    ("function-call-before-def", "BEGIN { f() }\nfunction f() { }"),
    ("func-alias", "func f() { return 1 }"),
    ("empty-block", "BEGIN {\n}\n"),
    ("empty-statements", "BEGIN { ; ; }"),
    ("sub-gsub", '{ sub(/a/, "b") ; gsub("x", "y", $2) }'),
    ("exit-bare", "{ exit }"),
    ("exit-code", "END { exit 1 + 2 }"),
    ("next", "NR == 1 { next }"),
    ("nextfile", "{ nextfile }"),
    ("builtin-arg-newline", "BEGIN { x = substr(\n  s, 1) }"),
    ("unary-minus-concat", 'BEGIN { print -1 " " -2 }'),
    ("string-comparison-in-print", 'BEGIN { print ("a" > "b") }'),
]


@pytest.mark.parametrize(
    "code",
    [pytest.param(code, id=name) for name, code in PARSER_GRAMMAR_CASES],
)
def test_parser_grammar(code: str) -> None:
    tree = parse_pipeline(code)
    assert isinstance(tree, Tree)
    assert tree.data == "program"


PARSE_ERROR_CASES = [
    ("unclosed-block", "BEGIN { print 1", "'}'"),
    ("break-outside-loop", "BEGIN { break }", "outside a loop"),
    ("continue-outside-loop", "{ continue }", "outside a loop"),
    ("next-in-begin", "BEGIN { next }", "BEGIN or END"),
    ("nextfile-in-end", "END { nextfile }", "BEGIN or END"),
    ("return-outside-function", "{ return 1 }", "outside function"),
    ("duplicate-function", "function f(a) { }\nfunction f(b) { }", "previously defined"),
    ("duplicate-param", "function f(a, a) { }", "duplicate parameter"),
    ("param-named-function", "function f(f) { }", "function name as parameter"),
    ("undefined-function", "BEGIN { g(1) }", "undefined function 'g'"),
    ("too-many-args", "function f(a) { }\nBEGIN { f(1, 2) }", "accepts only 1"),
    ("printf-without-format", "BEGIN { printf }", "syntax error"),
    ("grouped-list-without-in", "BEGIN { x = (1, 2) }", "syntax error"),
    ("builtin-without-paren", 'BEGIN { substr "a" }', "syntax error"),
    ("assign-to-constant", "BEGIN { 1 = 2 }", "syntax error"),
    ("stray-rbrace", "{ print $1 }}", "syntax error"),
    ("missing-statement-separator", "BEGIN { x = 1 y = 2 }", "syntax error"),
    ("pattern-then-garbage", "NR == 1 )", "syntax error"),
    ("delete-needs-name", "BEGIN { delete 1 }", "syntax error"),
    ("for-missing-semi", "BEGIN { for (i = 0 i < 3; i++) x }", "syntax error"),
]


@pytest.mark.parametrize(
    "source, msg",
    [pytest.param(source, msg, id=name) for name, source, msg in PARSE_ERROR_CASES],
)
def test_parse_errors(source: str, msg: str) -> None:
    with pytest.raises(ParseError) as exc_info:
        parse_source(source)
    assert msg in str(exc_info.value)


def test_lex_error_is_a_parse_error() -> None:
    with pytest.raises(ParseError) as exc_info:
        parse_source('BEGIN { x = "open }')
    assert isinstance(exc_info.value, LexError)


PARSE_ERROR_LOCATION_CASES = [
    ("trailing-operator", "BEGIN {\n  print 1 +\n}", 2, 12, "newline"),
    ("missing-rpar", "BEGIN { if (x { } }", 1, 15, "{"),
    ("undefined-call-position", "BEGIN {\n  y = 1\n  foo(y)\n}", 3, 3, "foo"),
    ("bad-param", "function f(1) { }", 1, 12, "1"),
]


@pytest.mark.parametrize(
    "name,source,exp_line,exp_col,near",
    PARSE_ERROR_LOCATION_CASES,
    ids=[c[0] for c in PARSE_ERROR_LOCATION_CASES],
)
def test_parse_error_location(name: str, source: str, exp_line: int, exp_col: int, near: str) -> None:
    with pytest.raises(ParseError) as exc_info:
        parse_source(source)

    err = exc_info.value
    assert err.line == exp_line, f"expected line {exp_line}, got {err.line}"
    assert err.column == exp_col, f"expected col {exp_col}, got {err.column}"
    assert err.near == near
    assert f"at line {exp_line}, col {exp_col}" in str(err)


def _print_stmt(source: str) -> Tree:
    stmt = find_tree_by_label(parse_source(source), ["print_stmt"])
    assert stmt is not None
    return stmt


def test_print_call_form_is_list_with_redirect() -> None:
    stmt = _print_stmt('BEGIN { print (1, 2) > "x" }')
    keyword, items, redirect = stmt.children

    assert str(keyword) == "print"
    assert items.data == "expr_list"
    assert len(items.children) == 2
    assert redirect.data == "output_redirect"
    assert str(redirect.children[0]) == ">"
    assert "compare" not in collect_labels(stmt)


def test_print_single_group_is_not_a_list() -> None:
    stmt = _print_stmt("BEGIN { print (1)(2) }")
    items = stmt.children[1]

    assert len(items.children) == 1
    assert items.children[0].data == "concat"


def test_print_gt_is_redirect_outside_parens() -> None:
    stmt = _print_stmt('BEGIN { print a > "f" }')
    assert len(stmt.children) == 3
    assert "compare" not in collect_labels(stmt)


def test_print_gt_is_comparison_inside_parens() -> None:
    stmt = _print_stmt('BEGIN { print (a > "f") }')
    assert len(stmt.children) == 2
    assert "compare" in collect_labels(stmt)


def test_print_redirect_target_is_concatenation() -> None:
    stmt = _print_stmt('BEGIN { print "x" > dir "/" name }')
    target = stmt.children[2].children[1]
    assert target.data == "concat"
    assert len(target.children) == 3


def test_print_pipe_target() -> None:
    stmt = _print_stmt('{ print $1 | "sort -n" }')
    redirect = stmt.children[2]
    assert str(redirect.children[0]) == "|"


def test_concatenation_of_three_strings() -> None:
    tree = parse_expr_fragment('"a" "b" "c"')
    assert tree.data == "concat"
    assert [child.data for child in tree.children] == ["string", "string", "string"]


def test_binary_minus_before_concatenation() -> None:
    tree = parse_expr_fragment('1 - 1 " "')
    assert tree.data == "concat"
    first, second = tree.children
    assert first.data == "arith"
    assert str(first.children[1]) == "-"
    assert second.data == "string"


def test_double_minus_is_subtraction_of_negation() -> None:
    tree = parse_expr_fragment("a - -b")
    assert tree.data == "arith"
    assert tree.children[2].data == "unary"


def test_power_is_right_associative() -> None:
    tree = parse_expr_fragment("2 ^ 3 ^ 2")
    assert tree.data == "power"
    assert tree.children[1].data == "power"


def test_unary_minus_binds_looser_than_power() -> None:
    tree = parse_expr_fragment("-2 ^ 2")
    assert tree.data == "unary"
    assert tree.children[1].data == "power"


def test_assignment_is_right_associative() -> None:
    tree = parse_expr_fragment("x = y = 3")
    assert tree.data == "assign"
    assert tree.children[2].data == "assign"


def test_pipe_getline_chains_left() -> None:
    tree = parse_expr_fragment('"cmd" | getline | getline')
    assert tree.data == "pipe_getline"
    inner = tree.children[0]
    assert inner.data == "pipe_getline"
    assert inner.children[0].data == "string"


def test_pipe_getline_binds_concatenation_left() -> None:
    tree = parse_expr_fragment('"echo " x | getline line')
    assert tree.data == "pipe_getline"
    assert tree.children[0].data == "concat"
    assert tree.children[1].data == "var"


def test_file_getline_with_target() -> None:
    tree = parse_expr_fragment('getline x < "f"')
    assert tree.data == "file_getline"
    target, source = tree.children
    assert target.data == "var"
    assert source.data == "string"


def test_file_getline_compared_after_group() -> None:
    tree = parse_expr_fragment('(getline line < "f") > 0')
    assert tree.data == "compare"
    assert tree.children[0].data == "group"


def test_plain_getline_without_target() -> None:
    tree = parse_expr_fragment("getline")
    assert tree.data == "simple_getline"
    assert tree.children[0].data == "empty"


def test_multi_dimensional_membership() -> None:
    tree = parse_expr_fragment("(i, j) in arr")
    assert tree.data == "in_expr"
    subscripts, name = tree.children
    assert len(subscripts.children) == 2
    assert str(name) == "arr"


def test_keyword_prefix_is_a_name() -> None:
    tree = parse_expr_fragment("iffy = 1")
    assert tree.data == "assign"
    assert tree.children[0].data == "var"
    assert str(tree.children[0].children[0]) == "iffy"


def test_field_increment_applies_to_field() -> None:
    tree = parse_expr_fragment("$i++")
    assert tree.data == "post_incdec"
    assert tree.children[0].data == "field"


def test_field_operand_binds_tight() -> None:
    tree = parse_expr_fragment("$1 + 1")
    assert tree.data == "arith"
    assert tree.children[0].data == "field"


def test_regex_in_operand_position() -> None:
    tree = parse_expr_fragment("$0 ~ /a\\/b/")
    assert tree.data == "match"
    regex = tree.children[2]
    assert regex.data == "regex"
    assert str(regex.children[0]) == "a/b"


def test_division_after_operand() -> None:
    tree = parse_expr_fragment("a / b / c")
    assert tree.data == "arith"
    assert tree.children[0].data == "arith"


def test_for_in_statement_shape() -> None:
    stmt = find_tree_by_label(parse_source("BEGIN { for (k in a) n++ }"), ["for_in_stmt"])
    assert stmt is not None
    var, array, body = stmt.children
    assert (str(var), str(array)) == ("k", "a")
    assert body.data == "expr_stmt"


def test_parenthesised_in_is_not_for_in() -> None:
    tree = parse_source("BEGIN { for ((k in a); i < 1; i++) n++ }")
    assert find_tree_by_label(tree, ["for_in_stmt"]) is None
    assert find_tree_by_label(tree, ["for_stmt"]) is not None


def test_rule_shapes() -> None:
    tree = parse_source(
        dedent(
            """\
            /a/
            { print }
            NR == 1, NR == 2 { print }
            """
        )
    )
    rules = tree.children
    assert [r.data for r in rules] == ["rule", "rule", "rule"]
    assert [c.data for c in rules[0].children] == ["pattern"]
    assert [c.data for c in rules[1].children] == ["block"]
    assert [c.data for c in rules[2].children] == ["range_pattern", "block"]


def test_function_definition_shape() -> None:
    tree = parse_source("function add(a, b,   tmp) { return a + b }")
    fn = tree.children[0]
    name, params, body = fn.children

    assert fn.data == "function_def"
    assert str(name) == "add"
    assert [str(p) for p in params.children] == ["a", "b", "tmp"]
    assert body.data == "block"


def test_fragment_rejects_trailing_tokens() -> None:
    with pytest.raises(ParseError):
        parse_expr_fragment("1 2 )")
