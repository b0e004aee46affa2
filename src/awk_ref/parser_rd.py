"""
Recursive Descent Parser for awk

Builds a lark ``Tree`` for a whole awk program. The tree is purely syntactic;
``ast_transforms.Prune`` folds literals into values before evaluation.

Structure:
- Lexer: pulled one token at a time at the parser's current offset
- Parser: recursive descent, one method per precedence level
- Tree: lark Tree/Token with Meta positions for error reporting

Disambiguation handled here rather than in the lexer:
- '/' starts an ERE only where an operand may start
- '>' inside an unparenthesised print list is output redirection
- '|' inside print is an output pipe; elsewhere it must be followed by getline
- concatenation has no token: it is recognised by adjacency
"""

from typing import Dict, List, Optional, Tuple

from lark import Token, Tree

from .lexer_rd import Lexer
from .token_types import ASSIGN_OPS, COMPARE_OPS, TT, Tok
from .tree import make_token, make_tree, tree_label
from .types import AwkSyntaxError

# ============================================================================
# Parser
# ============================================================================

ParseError = AwkSyntaxError

LVALUE_LABELS = ('var', 'index', 'field')

# Tokens that may start the right operand of an implicit concatenation.
# Unary +/- are excluded so that ``a -1`` stays a subtraction.
CONCAT_START = frozenset({
    TT.NUMBER, TT.STRING, TT.NAME, TT.FUNC_NAME, TT.BUILTIN_FUNC,
    TT.DOLLAR, TT.NOT, TT.LPAR, TT.INCR, TT.DECR,
})

TERMINATORS = (TT.NEWLINE, TT.SEMI, TT.RBRACE, TT.EOF)

OUTPUT_REDIRECTS = (TT.GT, TT.APPEND, TT.PIPE)

_DESCRIBE = {
    TT.NEWLINE: 'newline',
    TT.EOF: 'end of file',
}


class Parser:
    """
    Recursive descent parser for awk.

    Expression precedence (lowest to highest):
    1. assignment (= += -= *= /= %= ^=), right associative
    2. ternary (? :), right associative
    3. or (||)
    4. and (&&)
    5. membership (in)
    6. match (~ !~)
    7. comparison (< <= != == > >=), non associative; ``| getline``
    8. concatenation (adjacency)
    9. additive (+ -)
    10. multiplicative (* / %)
    11. unary (+ - !)
    12. exponent (^), right associative
    13. increment/decrement (++ --)
    14. field ($)
    15. grouping and primaries
    """

    def __init__(self, source: str):
        self.lexer = Lexer(source)
        self.pos = 0
        self.current = self.lexer.token_at(0)
        self.prev: Optional[Tok] = None

        self.functions: Dict[str, Tok] = {}
        self.arity: Dict[str, int] = {}
        self.calls: List[Tuple[Tok, int]] = []
        self.loop_depth = 0
        self.in_function = False
        self.in_special = False  # inside BEGIN or END

    # ========================================================================
    # Token Navigation
    # ========================================================================

    def advance(self) -> Tok:
        """Consume current token and move to next"""
        prev = self.current
        self.prev = prev
        self.pos = prev.end
        self.current = self.lexer.token_at(self.pos)
        return prev

    def check(self, *types: TT) -> bool:
        """Check if current token matches any of the given types"""
        return self.current.type in types

    def match(self, *types: TT) -> bool:
        """Check and consume if current token matches"""
        if self.check(*types):
            self.advance()
            return True
        return False

    def expect(self, token_type: TT, expected: Optional[str] = None) -> Tok:
        """Consume token of expected type or raise error"""
        if not self.check(token_type):
            raise self.error(expected or describe_type(token_type))
        return self.advance()

    def mark(self) -> Tuple[int, Optional[Tok]]:
        return self.pos, self.prev

    def reset(self, saved: Tuple[int, Optional[Tok]]) -> None:
        self.pos, self.prev = saved
        self.current = self.lexer.token_at(self.pos)

    def peek_after(self, count: int) -> Tok:
        """Token ``count`` positions past the current one (default scan mode)."""
        tok = self.current
        for _ in range(count):
            tok = self.lexer.token_at(tok.end)
        return tok

    def skip_newlines(self) -> None:
        while self.current.type is TT.NEWLINE:
            self.advance()

    def skip_terminators(self) -> None:
        while self.current.type in (TT.NEWLINE, TT.SEMI):
            self.advance()

    def at_terminator(self) -> bool:
        return self.current.type in TERMINATORS

    def error(self, expected: Optional[str] = None, message: str = "syntax error", tok: Optional[Tok] = None) -> AwkSyntaxError:
        tok = tok or self.current
        near = _DESCRIBE.get(tok.type, tok.value)
        return AwkSyntaxError(message, tok.line, tok.column, expected=expected, near=near)

    def node(self, label: str, children: List, tok: Tok) -> Tree:
        """Tree whose position is ``tok`` and whose span ends at the last consumed token"""
        end = self.prev.end if self.prev is not None else tok.end
        return make_tree(label, children, tok, max(end, tok.end))

    def empty(self) -> Tree:
        return Tree('empty', [])

    # ========================================================================
    # Top-Level Parsing
    # ========================================================================

    def parse(self) -> Tree:
        """Parse entire program"""
        start = self.current
        items: List[Tree] = []

        self.skip_terminators()

        while not self.check(TT.EOF):
            items.append(self.parse_item())
            self.skip_terminators()

        self.check_calls()
        return self.node('program', items, start)

    def parse_item(self) -> Tree:
        tok = self.current

        if self.match(TT.BEGIN, TT.END):
            self.in_special = True
            try:
                block = self.parse_block()
            finally:
                self.in_special = False
            return self.node('begin' if tok.type is TT.BEGIN else 'end', [block], tok)

        if self.check(TT.FUNCTION):
            return self.parse_function()

        if self.check(TT.LBRACE):
            return self.node('rule', [self.parse_block()], tok)

        pattern = self.parse_pattern()

        if self.check(TT.LBRACE):
            return self.node('rule', [pattern, self.parse_block()], tok)

        if not self.at_terminator():
            raise self.error("'{' or newline")

        return self.node('rule', [pattern], tok)

    def parse_pattern(self) -> Tree:
        tok = self.current
        first = self.parse_expr()

        if not self.match(TT.COMMA):
            return self.node('pattern', [first], tok)

        self.skip_newlines()
        second = self.parse_expr()
        return self.node('range_pattern', [first, second], tok)

    def parse_function(self) -> Tree:
        tok = self.advance()
        name_tok = self.current

        if not self.match(TT.NAME, TT.FUNC_NAME):
            raise self.error("function name")

        name = name_tok.value
        if name in self.functions:
            raise self.error(message=f"function '{name}' previously defined", tok=name_tok)
        self.functions[name] = name_tok

        self.expect(TT.LPAR, "'('")
        params: List[Token] = []
        seen = set()

        if not self.check(TT.RPAR):
            while True:
                self.skip_newlines()
                ptok = self.current
                self.expect(TT.NAME, "parameter name")

                if ptok.value == name:
                    raise self.error(message=f"function '{name}': cannot use function name as parameter name", tok=ptok)
                if ptok.value in seen:
                    raise self.error(message=f"function '{name}': duplicate parameter '{ptok.value}'", tok=ptok)

                seen.add(ptok.value)
                params.append(make_token(ptok))

                if not self.match(TT.COMMA):
                    break

        self.expect(TT.RPAR, "')'")
        self.arity[name] = len(params)
        self.skip_newlines()

        self.in_function = True
        try:
            body = self.parse_block()
        finally:
            self.in_function = False

        return self.node('function_def', [make_token(name_tok), Tree('params', params), body], tok)

    def check_calls(self) -> None:
        for call, argc in self.calls:
            if call.value not in self.functions:
                raise self.error(message=f"calling undefined function '{call.value}'", tok=call)

            accepted = self.arity[call.value]
            if argc > accepted:
                raise self.error(
                    message=f"function '{call.value}' called with {argc} args, accepts only {accepted}",
                    tok=call,
                )

    # ========================================================================
    # Statements
    # ========================================================================

    def parse_block(self) -> Tree:
        tok = self.expect(TT.LBRACE, "'{'")
        stmts: List[Tree] = []

        while True:
            self.skip_terminators()
            if self.match(TT.RBRACE):
                break
            if self.check(TT.EOF):
                raise self.error("'}'")
            stmts.append(self.parse_statement())

        return self.node('block', stmts, tok)

    def parse_statement(self) -> Tree:
        tok = self.current

        if self.check(TT.LBRACE):
            return self.parse_block()

        if self.check(TT.IF):
            return self.parse_if_stmt()

        if self.check(TT.WHILE):
            return self.parse_while_stmt()

        if self.check(TT.DO):
            return self.parse_do_stmt()

        if self.check(TT.FOR):
            return self.parse_for_stmt()

        if self.match(TT.SEMI):
            return self.node('empty_stmt', [], tok)

        stmt = self.parse_simple_statement()

        if not self.at_terminator():
            raise self.error("';' or newline")

        return stmt

    def parse_body(self) -> Tree:
        """Loop/branch body: newlines may precede it"""
        self.skip_newlines()
        return self.parse_statement()

    def parse_if_stmt(self) -> Tree:
        tok = self.advance()
        self.expect(TT.LPAR, "'('")
        cond = self.parse_expr()
        self.expect(TT.RPAR, "')'")
        then_stmt = self.parse_body()

        # an 'else' may follow after newlines and one ';'
        saved = self.mark()
        self.skip_newlines()
        self.match(TT.SEMI)
        self.skip_newlines()

        if self.match(TT.ELSE):
            else_stmt = self.parse_body()
            return self.node('if_stmt', [cond, then_stmt, else_stmt], tok)

        self.reset(saved)
        return self.node('if_stmt', [cond, then_stmt], tok)

    def parse_loop_body(self) -> Tree:
        self.loop_depth += 1
        try:
            return self.parse_body()
        finally:
            self.loop_depth -= 1

    def parse_while_stmt(self) -> Tree:
        tok = self.advance()
        self.expect(TT.LPAR, "'('")
        cond = self.parse_expr()
        self.expect(TT.RPAR, "')'")
        body = self.parse_loop_body()
        return self.node('while_stmt', [cond, body], tok)

    def parse_do_stmt(self) -> Tree:
        tok = self.advance()
        body = self.parse_loop_body()
        self.skip_terminators()
        self.expect(TT.WHILE, "'while'")
        self.expect(TT.LPAR, "'('")
        cond = self.parse_expr()
        self.expect(TT.RPAR, "')'")

        if not self.at_terminator():
            raise self.error("';' or newline")

        return self.node('do_stmt', [body, cond], tok)

    def parse_for_stmt(self) -> Tree:
        tok = self.advance()
        self.expect(TT.LPAR, "'('")

        # for (name in array)
        if (
            self.check(TT.NAME)
            and self.peek_after(1).type is TT.IN
            and self.peek_after(2).type is TT.NAME
            and self.peek_after(3).type is TT.RPAR
        ):
            var = make_token(self.advance())
            self.advance()
            array = make_token(self.advance())
            self.advance()
            body = self.parse_loop_body()
            return self.node('for_in_stmt', [var, array, body], tok)

        init = self.empty() if self.check(TT.SEMI) else self.parse_simple_statement()
        self.expect(TT.SEMI, "';'")
        self.skip_newlines()

        cond = self.empty() if self.check(TT.SEMI) else self.parse_expr()
        self.expect(TT.SEMI, "';'")
        self.skip_newlines()

        update = self.empty() if self.check(TT.RPAR) else self.parse_simple_statement()
        self.expect(TT.RPAR, "')'")

        body = self.parse_loop_body()
        return self.node('for_stmt', [init, cond, update, body], tok)

    def parse_simple_statement(self) -> Tree:
        tok = self.current

        if self.check(TT.PRINT, TT.PRINTF):
            return self.parse_print_stmt()

        if self.match(TT.DELETE):
            name = self.expect(TT.NAME, "array name")
            children: List = [make_token(name)]
            if self.match(TT.LSQB):
                children.append(self.parse_subscripts())
            return self.node('delete_stmt', children, tok)

        if self.match(TT.BREAK, TT.CONTINUE):
            if self.loop_depth == 0:
                raise self.error(message=f"'{tok.value}' is not allowed outside a loop", tok=tok)
            return self.node('break_stmt' if tok.type is TT.BREAK else 'continue_stmt', [], tok)

        if self.match(TT.NEXT, TT.NEXTFILE):
            if self.in_special:
                raise self.error(message=f"'{tok.value}' used in BEGIN or END action", tok=tok)
            return self.node('next_stmt' if tok.type is TT.NEXT else 'nextfile_stmt', [], tok)

        if self.match(TT.EXIT):
            children = [] if self.at_terminator() else [self.parse_expr()]
            return self.node('exit_stmt', children, tok)

        if self.match(TT.RETURN):
            if not self.in_function:
                raise self.error(message="'return' used outside function context", tok=tok)
            children = [] if self.at_terminator() else [self.parse_expr()]
            return self.node('return_stmt', children, tok)

        return self.node('expr_stmt', [self.parse_expr()], tok)

    def parse_print_stmt(self) -> Tree:
        tok = self.advance()
        items: Optional[List[Tree]] = None

        if self.check(TT.LPAR):
            items = self.try_parenthesised_print_list()

        if items is None:
            items = []
            if not self.at_terminator() and not self.check(*OUTPUT_REDIRECTS):
                items.append(self.parse_expr(in_print=True))
                while self.match(TT.COMMA):
                    self.skip_newlines()
                    items.append(self.parse_expr(in_print=True))

        if tok.type is TT.PRINTF and not items:
            raise self.error("format string")

        children: List = [make_token(tok), Tree('expr_list', items)]

        if self.check(*OUTPUT_REDIRECTS):
            rtok = self.advance()
            target = self.parse_concat(in_print=True)
            children.append(self.node('output_redirect', [make_token(rtok), target], rtok))

        return self.node('print_stmt', children, tok)

    def try_parenthesised_print_list(self) -> Optional[List[Tree]]:
        """``print (a, b) > f``: a parenthesised list of two or more items.

        Returns None (with the position restored) when the parentheses turn
        out to be an ordinary grouping, as in ``print (a)(b)`` or
        ``print (k, j) in arr``.
        """
        saved = self.mark()
        self.advance()
        items = [self.parse_expr()]

        while self.match(TT.COMMA):
            self.skip_newlines()
            items.append(self.parse_expr())

        if len(items) >= 2 and self.match(TT.RPAR):
            if self.at_terminator() or self.check(*OUTPUT_REDIRECTS):
                return items

        self.reset(saved)
        return None

    # ========================================================================
    # Expressions
    # ========================================================================

    def parse_expr(self, in_print: bool = False) -> Tree:
        """Parse assignment: lvalue op= expr (right associative)"""
        tok = self.current
        left = self.parse_ternary_expr(in_print)

        if self.current.type in ASSIGN_OPS and tree_label(left) in LVALUE_LABELS:
            op = self.advance()
            self.skip_newlines()
            right = self.parse_expr(in_print)
            return self.node('assign', [left, make_token(op), right], tok)

        return left

    def parse_ternary_expr(self, in_print: bool) -> Tree:
        """Parse ternary: expr ? then : else"""
        tok = self.current
        cond = self.parse_or_expr(in_print)

        if not self.match(TT.QMARK):
            return cond

        self.skip_newlines()
        then_expr = self.parse_expr(in_print)
        self.skip_newlines()
        self.expect(TT.COLON, "':'")
        self.skip_newlines()
        else_expr = self.parse_expr(in_print)  # Right associative
        return self.node('ternary', [cond, then_expr, else_expr], tok)

    def parse_or_expr(self, in_print: bool) -> Tree:
        """Parse logical OR: expr || expr"""
        tok = self.current
        left = self.parse_and_expr(in_print)

        while self.match(TT.OR):
            self.skip_newlines()
            right = self.parse_and_expr(in_print)
            left = self.node('or', [left, right], tok)

        return left

    def parse_and_expr(self, in_print: bool) -> Tree:
        """Parse logical AND: expr && expr"""
        tok = self.current
        left = self.parse_in_expr(in_print)

        while self.match(TT.AND):
            self.skip_newlines()
            right = self.parse_in_expr(in_print)
            left = self.node('and', [left, right], tok)

        return left

    def parse_in_expr(self, in_print: bool) -> Tree:
        """Parse membership: key in array"""
        tok = self.current
        left = self.parse_match_expr(in_print)

        while self.match(TT.IN):
            array = self.expect(TT.NAME, "array name")
            left = self.node('in_expr', [Tree('subscripts', [left]), make_token(array)], tok)

        return left

    def parse_match_expr(self, in_print: bool) -> Tree:
        """Parse string match: expr ~ ere, expr !~ ere"""
        tok = self.current
        left = self.parse_compare_expr(in_print)

        while self.check(TT.TILDE, TT.NOMATCH):
            op = self.advance()
            right = self.parse_compare_expr(in_print)
            left = self.node('match', [left, make_token(op), right], tok)

        return left

    def parse_compare_expr(self, in_print: bool) -> Tree:
        """Parse comparison and piped getline"""
        tok = self.current
        left = self.parse_concat(in_print)

        if not in_print:
            left = self.parse_pipe_getline(left, tok)

        if self.current.type in COMPARE_OPS and not (in_print and self.check(TT.GT)):
            op = self.advance()
            right = self.parse_concat(in_print)
            if not in_print:
                right = self.parse_pipe_getline(right, tok)
            left = self.node('compare', [left, make_token(op), right], tok)

        return left

    def parse_pipe_getline(self, left: Tree, tok: Tok) -> Tree:
        """cmd | getline [lvalue], chained left to right"""
        while self.check(TT.PIPE) and self.peek_after(1).type is TT.GETLINE:
            self.advance()
            self.advance()
            target = self.parse_getline_target()
            left = self.node('pipe_getline', [left, target], tok)

        return left

    def parse_concat(self, in_print: bool = False) -> Tree:
        """Parse concatenation by adjacency"""
        tok = self.current
        parts = [self.parse_additive_expr(in_print)]

        while self.current.type in CONCAT_START:
            parts.append(self.parse_additive_expr(in_print))

        if len(parts) == 1:
            return parts[0]

        return self.node('concat', parts, tok)

    def parse_additive_expr(self, in_print: bool) -> Tree:
        """Parse addition/subtraction: expr + expr"""
        tok = self.current
        left = self.parse_mul_expr(in_print)

        while self.check(TT.PLUS, TT.MINUS):
            op = self.advance()
            right = self.parse_mul_expr(in_print)
            left = self.node('arith', [left, make_token(op), right], tok)

        return left

    def parse_mul_expr(self, in_print: bool) -> Tree:
        """Parse multiplication/division: expr * expr"""
        tok = self.current
        left = self.parse_unary_expr(in_print)

        while self.check(TT.STAR, TT.SLASH, TT.MOD):
            op = self.advance()
            right = self.parse_unary_expr(in_print)
            left = self.node('arith', [left, make_token(op), right], tok)

        return left

    def parse_unary_expr(self, in_print: bool) -> Tree:
        """Parse unary operators: -expr, +expr, !expr"""
        tok = self.current

        if self.check(TT.MINUS, TT.PLUS, TT.NOT):
            op = self.advance()
            operand = self.parse_unary_expr(in_print)
            return self.node('unary', [make_token(op), operand], tok)

        return self.parse_pow_expr(in_print)

    def parse_pow_expr(self, in_print: bool) -> Tree:
        """Parse exponentiation: expr ^ expr (right associative)"""
        tok = self.current
        base = self.parse_incdec_expr(in_print)

        if not self.match(TT.POW):
            return base

        # the exponent may carry its own sign: 2 ^ -1
        if self.check(TT.MINUS, TT.PLUS, TT.NOT):
            op_tok = self.current
            op = self.advance()
            exponent = self.node('unary', [make_token(op), self.parse_pow_operand(in_print)], op_tok)
        else:
            exponent = self.parse_pow_expr(in_print)

        return self.node('power', [base, exponent], tok)

    def parse_pow_operand(self, in_print: bool) -> Tree:
        if self.check(TT.MINUS, TT.PLUS, TT.NOT):
            tok = self.current
            op = self.advance()
            return self.node('unary', [make_token(op), self.parse_pow_operand(in_print)], tok)

        return self.parse_pow_expr(in_print)

    def parse_incdec_expr(self, in_print: bool) -> Tree:
        """Parse ++lvalue, --lvalue, lvalue++, lvalue--"""
        tok = self.current

        if self.check(TT.INCR, TT.DECR):
            op = self.advance()
            target = self.parse_lvalue()
            return self.node('pre_incdec', [make_token(op), target], tok)

        expr = self.parse_primary_expr(in_print)

        if tree_label(expr) in LVALUE_LABELS and self.check(TT.INCR, TT.DECR):
            op = self.advance()
            return self.node('post_incdec', [expr, make_token(op)], tok)

        return expr

    def parse_lvalue(self) -> Tree:
        if self.check(TT.DOLLAR):
            return self.parse_field()

        if self.check(TT.NAME):
            return self.parse_name()

        raise self.error("lvalue")

    def parse_field(self) -> Tree:
        """$expr: the operand binds tighter than everything but grouping"""
        tok = self.expect(TT.DOLLAR)

        if self.check(TT.INCR, TT.DECR):
            op_tok = self.current
            op = self.advance()
            index = self.node('pre_incdec', [make_token(op), self.parse_lvalue()], op_tok)
        elif self.check(TT.MINUS, TT.PLUS, TT.NOT):
            op_tok = self.current
            op = self.advance()
            index = self.node('unary', [make_token(op), self.parse_field_operand()], op_tok)
        else:
            index = self.parse_field_operand()

        return self.node('field', [index], tok)

    def parse_field_operand(self) -> Tree:
        if self.check(TT.MINUS, TT.PLUS, TT.NOT):
            tok = self.current
            op = self.advance()
            return self.node('unary', [make_token(op), self.parse_field_operand()], tok)

        return self.parse_primary_expr(False)

    def parse_name(self) -> Tree:
        tok = self.expect(TT.NAME, "name")

        if self.match(TT.LSQB):
            subscripts = self.parse_subscripts()
            return self.node('index', [make_token(tok), subscripts], tok)

        return self.node('var', [make_token(tok)], tok)

    def parse_subscripts(self) -> Tree:
        """expr_list ']' (the '[' is already consumed)"""
        tok = self.current
        items = [self.parse_expr()]

        while self.match(TT.COMMA):
            self.skip_newlines()
            items.append(self.parse_expr())

        self.expect(TT.RSQB, "']'")
        return self.node('subscripts', items, tok)

    def parse_primary_expr(self, in_print: bool) -> Tree:
        """Parse literals, names, fields, calls, getline and grouping"""
        tok = self.current

        if self.match(TT.NUMBER):
            return self.node('number', [make_token(tok)], tok)

        if self.match(TT.STRING):
            return self.node('string', [make_token(tok)], tok)

        if self.check(TT.SLASH, TT.DIV_ASSIGN):
            ere = self.lexer.regex_at(self.pos)
            self.prev = ere
            self.pos = ere.end
            self.current = self.lexer.token_at(self.pos)
            return self.node('regex', [make_token(ere)], ere)

        if self.check(TT.DOLLAR):
            return self.parse_field()

        if self.check(TT.NAME):
            return self.parse_name()

        if self.check(TT.FUNC_NAME):
            return self.parse_call()

        if self.check(TT.BUILTIN_FUNC):
            return self.parse_builtin_call()

        if self.check(TT.GETLINE):
            return self.parse_simple_getline()

        if self.check(TT.LPAR):
            return self.parse_group()

        raise self.error("expression")

    def parse_group(self) -> Tree:
        """( expr ) or ( expr, expr... ) in array"""
        tok = self.advance()
        first = self.parse_expr()

        if self.check(TT.COMMA):
            items = [first]
            while self.match(TT.COMMA):
                self.skip_newlines()
                items.append(self.parse_expr())

            rpar = self.expect(TT.RPAR, "')'")
            if not self.match(TT.IN):
                raise self.error("'in'")
            array = self.expect(TT.NAME, "array name")
            subscripts = make_tree('subscripts', items, tok, rpar.end)
            return self.node('in_expr', [subscripts, make_token(array)], tok)

        self.expect(TT.RPAR, "')'")
        return self.node('group', [first], tok)

    def parse_call(self) -> Tree:
        """User function call; no blank allowed between name and '('"""
        tok = self.advance()
        self.expect(TT.LPAR, "'('")
        args = self.parse_arg_list()
        self.calls.append((tok, len(args.children)))
        return self.node('call', [make_token(tok), args], tok)

    def parse_builtin_call(self) -> Tree:
        tok = self.advance()

        if self.match(TT.LPAR):
            args = self.parse_arg_list()
        elif tok.value == 'length':
            args = Tree('args', [])
        else:
            raise self.error("'('")

        return self.node('builtin_call', [make_token(tok), args], tok)

    def parse_arg_list(self) -> Tree:
        """Arguments up to and including ')' (the '(' is already consumed)"""
        args: List[Tree] = []
        self.skip_newlines()

        if not self.match(TT.RPAR):
            args.append(self.parse_expr())
            while self.match(TT.COMMA):
                self.skip_newlines()
                args.append(self.parse_expr())
            self.skip_newlines()
            self.expect(TT.RPAR, "')'")

        return Tree('args', args)

    def parse_getline_target(self) -> Tree:
        """Optional lvalue after getline: only a name or a field"""
        if self.check(TT.NAME):
            return self.parse_name()

        if self.check(TT.DOLLAR):
            return self.parse_field()

        return self.empty()

    def parse_simple_getline(self) -> Tree:
        """getline [lvalue] [< source]"""
        tok = self.advance()
        target = self.parse_getline_target()

        if self.match(TT.LT):
            source = self.parse_incdec_expr(False)
            return self.node('file_getline', [target, source], tok)

        return self.node('simple_getline', [target], tok)


def describe_type(token_type: TT) -> str:
    return _DESCRIBE.get(token_type, token_type.name.lower())

# ============================================================================
# Entry points
# ============================================================================

def parse_source(source: str) -> Tree:
    """
    Parse awk source code to a lark parse tree.

    Raises AwkSyntaxError (position plus expected construct) on failure.
    """
    parser = Parser(source)
    return parser.parse()


def parse_expr_fragment(source: str) -> Tree:
    """
    Parse a standalone expression fragment.
    Used by the command line for ``-v`` style checks and by tests.
    """
    parser = Parser(source)
    expr = parser.parse_expr()

    # Ensure we've consumed the entire fragment
    parser.skip_newlines()
    if not parser.check(TT.EOF):
        raise parser.error("end of expression")
    parser.check_calls()
    return expr


# ============================================================================
# Main - parse tree dump
# ============================================================================

if __name__ == '__main__':
    import sys

    args = sys.argv[1:]

    if args and args[0] != '-':
        with open(args[0], 'r') as f:
            source = f.read()
    else:
        source = sys.stdin.read()

    try:
        print(parse_source(source).pretty())
    except AwkSyntaxError as e:
        print(f"Parse error: {e}", file=sys.stderr)
        sys.exit(2)
