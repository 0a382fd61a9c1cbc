"""Lexer for the schema definition DSL."""

import ply.lex as lex

KEYWORDS = {
    "enum": "ENUM",
    "fixed": "FIXED",
    "union": "UNION",
}

PUNCTUATION = (
    "LBRACE",
    "RBRACE",
    "LBRACKET",
    "RBRACKET",
    "LPAREN",
    "RPAREN",
    "COLON",
    "COMMA",
    "QUESTION",
)


class SchemaLexer:
    """Lexer for tokenizing schema definition DSL.

    ``#`` starts a comment that runs to the end of the line. Line numbers
    are tracked for error messages.
    """

    tokens = ["IDENTIFIER", "INTEGER", *PUNCTUATION, *KEYWORDS.values()]

    t_ignore = " \t\r"
    t_ignore_COMMENT = r"\#[^\n]*"

    t_LBRACE, t_RBRACE = r"\{", r"\}"
    t_LBRACKET, t_RBRACKET = r"\[", r"\]"
    t_LPAREN, t_RPAREN = r"\(", r"\)"
    t_COLON = r":"
    t_COMMA = r","
    t_QUESTION = r"\?"

    def __init__(self) -> None:
        self.lexer: lex.Lexer = None  # type: ignore

    def t_INTEGER(self, t: lex.LexToken) -> lex.LexToken:
        r"\d+"
        t.value = int(t.value)
        return t

    def t_IDENTIFIER(self, t: lex.LexToken) -> lex.LexToken:
        r"[a-zA-Z_][a-zA-Z0-9_]*"
        t.type = KEYWORDS.get(t.value, "IDENTIFIER")
        return t

    def t_newline(self, t: lex.LexToken) -> None:
        r"\n+"
        t.lexer.lineno += len(t.value)

    def t_error(self, t: lex.LexToken) -> None:
        raise SyntaxError(f"Illegal character '{t.value[0]}' at line {t.lineno}")

    def build(self, **kwargs) -> None:  # type: ignore
        """Build the lexer."""
        self.lexer = lex.lex(module=self, **kwargs)

    def tokenize(self, data: str) -> list[lex.LexToken]:
        """Return every token of data, counting lines from 1."""
        self.lexer.lineno = 1
        self.lexer.input(data)
        return list(self.lexer)
