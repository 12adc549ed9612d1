"""
SQL statement tokenizer.

Splits the SQL text of a migration into statements, each a flat list of
lexemes. Whitespace and comments are dropped, the keywords listed in
``KEYWORDS`` are lower-cased and every other lexeme (identifiers, quoted
identifiers, literals, punctuation) is kept exactly as written.

The scanner never raises: input it does not understand simply produces
lexemes that the DDL extractor will fail to match.

Author: schemashift
Version: 1.0.0
"""

import re
from typing import Iterator, List, NamedTuple, Optional


KEYWORDS = frozenset([
    "alter",
    "concurrently",
    "create",
    "domain",
    "drop",
    "exists",
    "function",
    "if",
    "index",
    "not",
    "on",
    "only",
    "procedure",
    "sequence",
    "table",
    "trigger",
    "type",
    "unique",
    "view",
])

_TOKEN_RE = re.compile(
    r"""
    (?P<whitespace>\s+)
    | (?P<line_comment>--[^\n]*)
    | (?P<block_comment>/\*.*?(?:\*/|\Z))
    | (?P<dollar>\$(?P<tag>[^\W\d]\w*|)\$.*?(?:\$(?P=tag)\$|\Z))
    | (?P<string>'(?:[^']|'')*(?:'|\Z))
    | (?P<quoted>"(?:[^"]|"")*(?:"|\Z)|`(?:[^`]|``)*(?:`|\Z)|\[[^\]]*(?:\]|\Z))
    | (?P<word>[^\W\d][\w$]*)
    | (?P<number>\d+(?:\.\d*)?)
    | (?P<semicolon>;)
    | (?P<other>.)
    """,
    re.VERBOSE | re.DOTALL,
)

_IGNORED = frozenset(["whitespace", "line_comment", "block_comment"])


class Token(NamedTuple):
    """A single lexeme with its position in the source text."""
    kind: str
    value: str
    start: int
    end: int


def tokenize(sql: str) -> Iterator[Token]:
    """Yield the significant tokens of ``sql``, skipping whitespace and comments."""
    pos = 0
    length = len(sql)
    while pos < length:
        match = _TOKEN_RE.match(sql, pos)
        # ``other`` matches any single character, so a match always exists
        kind = match.lastgroup
        value = match.group(0)
        pos = match.end()

        if kind in _IGNORED:
            continue
        if kind == "word" and value.lower() in KEYWORDS:
            value = value.lower()
        yield Token(kind, value, match.start(), match.end())


class Statement:
    """
    One SQL statement as a flat list of lexemes.

    ``text`` holds the statement as written (without the terminating
    semicolon) so it can be sent to a database on its own.
    """

    def __init__(self, lexemes: Optional[List[str]] = None, text: str = ""):
        self.lexemes = list(lexemes or [])
        self.text = text

    def __len__(self) -> int:
        return len(self.lexemes)

    def __iter__(self):
        return iter(self.lexemes)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Statement):
            return NotImplemented
        return self.lexemes == other.lexemes

    def __repr__(self) -> str:
        return f"Statement({self.lexemes!r})"

    def copy(self) -> "Statement":
        return Statement(self.lexemes, self.text)

    def get(self, index: int) -> str:
        """Return the lexeme at ``index``, or an empty string when out of range."""
        if 0 <= index < len(self.lexemes):
            return self.lexemes[index]
        return ""

    def match(self, *lexemes: str) -> bool:
        """Report whether the statement starts with ``lexemes``."""
        if len(lexemes) > len(self.lexemes):
            return False
        return all(self.lexemes[i] == lexeme for i, lexeme in enumerate(lexemes))

    def remove(self, *lexemes: str) -> bool:
        """Strip ``lexemes`` from the front of the statement if they match."""
        if not self.match(*lexemes):
            return False
        del self.lexemes[:len(lexemes)]
        return True


def parse_statements(sql: str) -> List[Statement]:
    """
    Split ``sql`` into statements at semicolons.

    Empty statements are dropped and a final statement without a
    terminating semicolon is still returned.
    """
    statements = []
    lexemes: List[str] = []
    start = end = 0

    for token in tokenize(sql):
        if token.kind == "semicolon":
            if lexemes:
                statements.append(Statement(lexemes, sql[start:end]))
            lexemes = []
            continue
        if not lexemes:
            start = token.start
        lexemes.append(token.value)
        end = token.end

    if lexemes:
        statements.append(Statement(lexemes, sql[start:end]))

    return statements


def split_statements(sql: str) -> List[str]:
    """Return the text of each non-empty statement in ``sql``."""
    return [statement.text for statement in parse_statements(sql)]
