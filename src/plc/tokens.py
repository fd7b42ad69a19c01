"""PLC tokenizer — lexes source into a flat token list."""

from __future__ import annotations

from .ast import Pos
from .errors import LexError


# Token type constants
TK_INT = "INT"
TK_DECIMAL = "DECIMAL"
TK_CHAR = "CHAR"
TK_STRING = "STRING"
TK_IDENT = "IDENT"
TK_OP = "OP"
TK_EOF = "EOF"

KEYWORDS: set[str] = {
    "AND",
    "DEF",
    "DO",
    "ELSE",
    "END",
    "FALSE",
    "FOR",
    "IF",
    "IN",
    "LET",
    "NIL",
    "OBJECT",
    "OR",
    "RETURN",
    "TRUE",
}

MULTI_OPS: list[str] = ["<=", ">=", "==", "!="]

SINGLE_OPS: set[str] = {
    "(",
    ")",
    ",",
    ";",
    ".",
    "=",
    "<",
    ">",
    "+",
    "-",
    "*",
    "/",
    ":",
}

ESCAPE_MAP: dict[str, str] = {
    "b": "\b",
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "\\": "\\",
    '"': '"',
    "'": "'",
}

WHITESPACE: set[str] = {" ", "\t", "\r", "\b"}

# Tokens after which a '+'/'-' is a binary operator rather than a sign.
_OPERAND_END_OPS: set[str] = {")"}
_OPERAND_END_WORDS: set[str] = {"NIL", "TRUE", "FALSE", "END"}


class Token:
    """A token with type, value, and position."""

    def __init__(self, type_: str, value: str, line: int, col: int):
        self.type: str = type_
        self.value: str = value
        self.line: int = line
        self.col: int = col

    @property
    def pos(self) -> Pos:
        return Pos(self.line, self.col)

    def __repr__(self) -> str:
        return f"Token({self.type}, {self.value!r}, {self.line}, {self.col})"


def _is_digit(c: str) -> bool:
    return c >= "0" and c <= "9"


def _is_alpha(c: str) -> bool:
    return (c >= "a" and c <= "z") or (c >= "A" and c <= "Z") or c == "_"


def _is_ident_char(c: str) -> bool:
    return _is_alpha(c) or _is_digit(c) or c == "-"


def _expects_operand(tokens: list[Token]) -> bool:
    """True when the next token must start an operand, so a sign is unary."""
    if not tokens:
        return True
    last = tokens[-1]
    if last.type in (TK_INT, TK_DECIMAL, TK_CHAR, TK_STRING, TK_IDENT):
        return False
    if last.type == TK_OP and last.value in _OPERAND_END_OPS:
        return False
    if last.value in _OPERAND_END_WORDS:
        return False
    return True


def _process_escape(src: str, pos: int, line: int, col: int) -> tuple[str, int]:
    """Process escape after backslash. Returns (resolved_char, new_pos)."""
    if pos >= len(src):
        raise LexError("unexpected end of input in escape", Pos(line, col))
    c = src[pos]
    if c in ESCAPE_MAP:
        return ESCAPE_MAP[c], pos + 1
    raise LexError("invalid escape: \\" + c, Pos(line, col))


def _scan_digits(source: str, pos: int) -> int:
    while pos < len(source) and _is_digit(source[pos]):
        pos += 1
    return pos


def tokenize(source: str) -> list[Token]:
    """Tokenize PLC source into a flat list ending with TK_EOF."""
    tokens: list[Token] = []
    pos = 0
    line = 1
    col = 1
    length = len(source)

    while pos < length:
        c = source[pos]

        # Newlines
        if c == "\n":
            pos += 1
            line += 1
            col = 1
            continue

        # Whitespace
        if c in WHITESPACE:
            pos += 1
            col += 1
            continue

        # Line comment: //
        if c == "/" and pos + 1 < length and source[pos + 1] == "/":
            while pos < length and source[pos] != "\n":
                pos += 1
            continue

        start_pos = pos
        start_line = line
        start_col = col

        # Number: optional sign, digits, fraction, exponent
        signed = (
            (c == "+" or c == "-")
            and pos + 1 < length
            and _is_digit(source[pos + 1])
            and _expects_operand(tokens)
        )
        if _is_digit(c) or signed:
            if signed:
                pos += 1
            pos = _scan_digits(source, pos)
            is_decimal = False
            if pos + 1 < length and source[pos] == "." and _is_digit(source[pos + 1]):
                is_decimal = True
                pos = _scan_digits(source, pos + 1)
            # An 'e' without digits is left for the next token.
            if pos + 1 < length and source[pos] == "e" and _is_digit(source[pos + 1]):
                pos = _scan_digits(source, pos + 1)
            raw = source[start_pos:pos]
            col += pos - start_pos
            tokens.append(
                Token(TK_DECIMAL if is_decimal else TK_INT, raw, start_line, start_col)
            )
            continue

        # String literal: "..."
        if c == '"':
            pos += 1
            col += 1
            chars: list[str] = []
            while pos < length and source[pos] != '"':
                if source[pos] == "\n" or source[pos] == "\r":
                    raise LexError(
                        "unterminated string literal", Pos(start_line, start_col)
                    )
                if source[pos] == "\\":
                    pos += 1
                    col += 1
                    ch, pos = _process_escape(source, pos, start_line, col)
                    chars.append(ch)
                else:
                    chars.append(source[pos])
                    pos += 1
                col += 1
            if pos >= length:
                raise LexError("unterminated string literal", Pos(start_line, start_col))
            pos += 1  # skip closing "
            col += 1
            tokens.append(Token(TK_STRING, "".join(chars), start_line, start_col))
            continue

        # Character literal: 'c'
        if c == "'":
            pos += 1
            col += 1
            if pos >= length or source[pos] in ("\n", "\r"):
                raise LexError(
                    "unterminated character literal", Pos(start_line, start_col)
                )
            if source[pos] == "\\":
                pos += 1
                col += 1
                char, pos = _process_escape(source, pos, start_line, col)
            elif source[pos] == "'":
                raise LexError("empty character literal", Pos(start_line, start_col))
            else:
                char = source[pos]
                pos += 1
            col += 1
            if pos >= length or source[pos] != "'":
                raise LexError(
                    "unterminated character literal", Pos(start_line, start_col)
                )
            pos += 1  # skip closing '
            col += 1
            tokens.append(Token(TK_CHAR, char, start_line, start_col))
            continue

        # Identifier or keyword
        if _is_alpha(c):
            while pos < length and _is_ident_char(source[pos]):
                pos += 1
                col += 1
            word = source[start_pos:pos]
            if word in KEYWORDS:
                tokens.append(Token(word, word, start_line, start_col))
            else:
                tokens.append(Token(TK_IDENT, word, start_line, start_col))
            continue

        # Multi-character operators
        matched = False
        for op in MULTI_OPS:
            op_len = len(op)
            if source[pos : pos + op_len] == op:
                tokens.append(Token(TK_OP, op, start_line, start_col))
                pos += op_len
                col += op_len
                matched = True
                break
        if matched:
            continue

        # Single-character operators
        if c in SINGLE_OPS:
            tokens.append(Token(TK_OP, c, start_line, start_col))
            pos += 1
            col += 1
            continue

        raise LexError("unexpected character: " + repr(c), Pos(line, col))

    tokens.append(Token(TK_EOF, "", line, col))
    return tokens
