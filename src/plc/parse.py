"""PLC parser — recursive descent, one method per grammar production."""

from __future__ import annotations

from decimal import Decimal

from .ast import (
    AssignStmt,
    Binary,
    DefStmt,
    Expr,
    ExprStmt,
    ForStmt,
    FunctionCall,
    Group,
    IfStmt,
    LetStmt,
    Literal,
    MethodCall,
    ObjectLit,
    Param,
    Pos,
    Property,
    ReturnStmt,
    Source,
    Stmt,
    Variable,
)
from .errors import ParseError
from .tokens import (
    TK_CHAR,
    TK_DECIMAL,
    TK_EOF,
    TK_IDENT,
    TK_INT,
    TK_OP,
    TK_STRING,
    Token,
    tokenize,
)

COMPARE_OPS: set[str] = {"==", "!=", "<", "<=", ">", ">="}

# Words that close a statement list.
BLOCK_END: set[str] = {"END", "ELSE"}


class Parser:
    """Recursive descent parser for PLC."""

    def __init__(self, tokens: list[Token]):
        self.tokens: list[Token] = tokens
        self.pos: int = 0

    # ── Helpers ──────────────────────────────────────────────

    def current(self) -> Token:
        return self.tokens[self.pos]

    def advance(self) -> Token:
        tok = self.tokens[self.pos]
        if tok.type != TK_EOF:
            self.pos += 1
        return tok

    def at(self, value: str) -> bool:
        """Operator or keyword match; literal tokens never match."""
        tok = self.current()
        return tok.value == value and (tok.type == TK_OP or tok.type == value)

    def at_type(self, type_: str) -> bool:
        return self.current().type == type_

    def expect(self, value: str) -> Token:
        if not self.at(value):
            raise self.error("expected '" + value + "', got " + self._describe())
        return self.advance()

    def expect_ident(self) -> Token:
        if not self.at_type(TK_IDENT):
            raise self.error("expected identifier, got " + self._describe())
        return self.advance()

    def error(self, msg: str) -> ParseError:
        return ParseError(msg, self._pos())

    def _describe(self) -> str:
        tok = self.current()
        if tok.type == TK_EOF:
            return "end of input"
        return "'" + tok.value + "'"

    def _pos(self) -> Pos:
        tok = self.current()
        return Pos(tok.line, tok.col)

    def _at_block_end(self) -> bool:
        if self.at_type(TK_EOF):
            return True
        return any(self.at(word) for word in BLOCK_END)

    # ── Statements ───────────────────────────────────────────

    def parse_source(self) -> Source:
        """Source = Stmt*"""
        stmts: list[Stmt] = []
        while not self.at_type(TK_EOF):
            stmts.append(self.parse_stmt())
        return Source(stmts)

    def parse_block(self) -> list[Stmt]:
        """Block = Stmt* (stops before END or ELSE)"""
        stmts: list[Stmt] = []
        while not self._at_block_end():
            stmts.append(self.parse_stmt())
        return stmts

    def parse_stmt(self) -> Stmt:
        if self.at("LET"):
            return self.parse_let_stmt()
        if self.at("DEF"):
            return self.parse_def_stmt()
        if self.at("IF"):
            return self.parse_if_stmt()
        if self.at("FOR"):
            return self.parse_for_stmt()
        if self.at("RETURN"):
            return self.parse_return_stmt()
        return self.parse_expr_stmt()

    def parse_let_stmt(self) -> LetStmt:
        """Let = 'LET' Ident ( ':' Ident )? ( '=' Expr )? ';'"""
        pos = self._pos()
        self.expect("LET")
        name = self.expect_ident().value
        type_name = self.parse_type_annotation()
        value: Expr | None = None
        if self.at("="):
            self.advance()
            value = self.parse_expr()
        self.expect(";")
        return LetStmt(pos, name, type_name, value)

    def parse_type_annotation(self) -> str | None:
        """Annotation = ( ':' Ident )?"""
        if not self.at(":"):
            return None
        self.advance()
        return self.expect_ident().value

    def parse_def_stmt(self) -> DefStmt:
        """Def = 'DEF' Ident '(' ParamList ')' ( ':' Ident )? 'DO' Block 'END'"""
        pos = self._pos()
        self.expect("DEF")
        name = self.expect_ident().value
        self.expect("(")
        params = self.parse_param_list()
        self.expect(")")
        return_type_name = self.parse_type_annotation()
        self.expect("DO")
        body = self.parse_block()
        self.expect("END")
        return DefStmt(pos, name, params, return_type_name, body)

    def parse_param_list(self) -> list[Param]:
        """ParamList = ( Param ( ',' Param )* )?"""
        params: list[Param] = []
        if self.at(")"):
            return params
        params.append(self.parse_param())
        while self.at(","):
            self.advance()
            params.append(self.parse_param())
        return params

    def parse_param(self) -> Param:
        """Param = Ident ( ':' Ident )?"""
        pos = self._pos()
        name = self.expect_ident().value
        return Param(pos, name, self.parse_type_annotation())

    def parse_if_stmt(self) -> IfStmt:
        """If = 'IF' Expr 'DO' Block ( 'ELSE' Block )? 'END'"""
        pos = self._pos()
        self.expect("IF")
        condition = self.parse_expr()
        self.expect("DO")
        then_body = self.parse_block()
        else_body: list[Stmt] = []
        if self.at("ELSE"):
            self.advance()
            else_body = self.parse_block()
        self.expect("END")
        return IfStmt(pos, condition, then_body, else_body)

    def parse_for_stmt(self) -> ForStmt:
        """For = 'FOR' Ident 'IN' Expr 'DO' Block 'END'"""
        pos = self._pos()
        self.expect("FOR")
        name = self.expect_ident().value
        self.expect("IN")
        iterable = self.parse_expr()
        self.expect("DO")
        body = self.parse_block()
        if self.at("ELSE"):
            raise self.error("ELSE is not allowed in FOR")
        self.expect("END")
        return ForStmt(pos, name, iterable, body)

    def parse_return_stmt(self) -> ReturnStmt:
        """Return = 'RETURN' Expr? ';'"""
        pos = self._pos()
        self.expect("RETURN")
        value: Expr | None = None
        if not self.at(";"):
            value = self.parse_expr()
        self.expect(";")
        return ReturnStmt(pos, value)

    def parse_expr_stmt(self) -> Stmt:
        """ExprStmt = Expr ( '=' Expr )? ';'"""
        pos = self._pos()
        expr = self.parse_expr()
        if self.at("="):
            self.advance()
            value = self.parse_expr()
            self.expect(";")
            return AssignStmt(pos, expr, value)
        self.expect(";")
        return ExprStmt(pos, expr)

    # ── Expressions ──────────────────────────────────────────

    def parse_expr(self) -> Expr:
        """Expr = Compare ( ( 'AND' | 'OR' ) Compare )*"""
        left = self.parse_compare()
        while self.at("AND") or self.at("OR"):
            op = self.advance().value
            right = self.parse_compare()
            left = Binary(left.pos, op, left, right)
        return left

    def parse_compare(self) -> Expr:
        """Compare = Sum ( CompOp Sum )*"""
        left = self.parse_sum()
        while self.at_type(TK_OP) and self.current().value in COMPARE_OPS:
            op = self.advance().value
            right = self.parse_sum()
            left = Binary(left.pos, op, left, right)
        return left

    def parse_sum(self) -> Expr:
        """Sum = Product ( ( '+' | '-' ) Product )*"""
        left = self.parse_product()
        while self.at("+") or self.at("-"):
            op = self.advance().value
            right = self.parse_product()
            left = Binary(left.pos, op, left, right)
        return left

    def parse_product(self) -> Expr:
        """Product = Secondary ( ( '*' | '/' ) Secondary )*"""
        left = self.parse_secondary()
        while self.at("*") or self.at("/"):
            op = self.advance().value
            right = self.parse_secondary()
            left = Binary(left.pos, op, left, right)
        return left

    def parse_secondary(self) -> Expr:
        """Secondary = Primary ( '.' Ident ( '(' Args ')' )? )*"""
        expr = self.parse_primary()
        while self.at("."):
            self.advance()
            name = self.expect_ident().value
            if self.at("("):
                args = self.parse_args()
                expr = MethodCall(expr.pos, expr, name, args)
            else:
                expr = Property(expr.pos, expr, name)
        return expr

    def parse_args(self) -> list[Expr]:
        """Args = '(' ( Expr ( ',' Expr )* )? ')'"""
        self.expect("(")
        args: list[Expr] = []
        if not self.at(")"):
            args.append(self.parse_expr())
            while self.at(","):
                self.advance()
                args.append(self.parse_expr())
        self.expect(")")
        return args

    def parse_primary(self) -> Expr:
        pos = self._pos()
        tok = self.current()
        if self.at("NIL"):
            self.advance()
            return Literal(pos, None)
        if self.at("TRUE"):
            self.advance()
            return Literal(pos, True)
        if self.at("FALSE"):
            self.advance()
            return Literal(pos, False)
        if tok.type == TK_INT:
            self.advance()
            return Literal(pos, int(Decimal(tok.value)))
        if tok.type == TK_DECIMAL:
            self.advance()
            return Literal(pos, Decimal(tok.value))
        if tok.type == TK_CHAR or tok.type == TK_STRING:
            self.advance()
            return Literal(pos, tok.value)
        if self.at("("):
            self.advance()
            inner = self.parse_expr()
            self.expect(")")
            return Group(pos, inner)
        if self.at("OBJECT"):
            return self.parse_object()
        if tok.type == TK_IDENT:
            self.advance()
            if self.at("("):
                return FunctionCall(pos, tok.value, self.parse_args())
            return Variable(pos, tok.value)
        raise self.error("expected expression, got " + self._describe())

    def parse_object(self) -> ObjectLit:
        """Object = 'OBJECT' Ident? 'DO' Let* Def* 'END'"""
        pos = self._pos()
        self.expect("OBJECT")
        name: str | None = None
        if self.at_type(TK_IDENT):
            name = self.advance().value
        self.expect("DO")
        fields: list[LetStmt] = []
        while self.at("LET"):
            fields.append(self.parse_let_stmt())
        methods: list[DefStmt] = []
        while self.at("DEF"):
            methods.append(self.parse_def_stmt())
        if self.at("LET"):
            raise self.error("fields must precede methods in an object")
        self.expect("END")
        return ObjectLit(pos, name, fields, methods)


def parse(source: str) -> Source:
    """Tokenize and parse PLC source text into a syntax tree."""
    parser = Parser(tokenize(source))
    try:
        return parser.parse_source()
    except RecursionError:
        raise ParseError("maximum nesting depth exceeded", parser._pos()) from None
