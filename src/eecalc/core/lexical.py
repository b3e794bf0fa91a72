import enum
import re
import typing

from eecalc.core import errors


class Operator(enum.Enum):
    """The single-character operators."""

    PLUS = '+'
    MINUS = '-'
    TIMES = '*'
    DIVIDE = '/'
    RAISE = '^'
    EQUALS = '='

    def __str__(self) -> str:
        return self.value


class Separator(enum.Enum):
    """The single-character separators."""

    OPEN = '('
    CLOSE = ')'
    COMMA = ','
    PERIOD = '.'
    COLON = ':'

    def __str__(self) -> str:
        return self.value


class Kind(enum.Enum):
    """The lexical category of a token."""

    INT = 'int'
    FLOAT = 'float'
    WORD = 'word'
    OPERATOR = 'operator'
    SEPARATOR = 'separator'


class Token(typing.NamedTuple):
    """One lexical unit of the input string."""

    kind: Kind
    text: str
    start: int
    value: typing.Union[int, float, str, Operator, Separator]

    @property
    def end(self) -> int:
        """The index in the input string just beyond this token."""
        return self.start + len(self.text)

    @property
    def isnumber(self) -> bool:
        """True if this token is an integer or floating-point number."""
        return self.kind in {Kind.INT, Kind.FLOAT}


# Any letter (including 'μ' and 'Ω') or '_', then letters, digits, or '_'.
_WORD = r'[^\W\d]\w*'
_POWER = r'(?:\^-?\d+)'

_PATTERNS = {
    'int': re.compile(
        r"""
        -?\d+       # an optional sign and one or more digits
        (?!\d|\.\d) # not followed by a fractional part
        """,
        re.VERBOSE,
    ),
    'float': re.compile(
        r"""
        -?           # an optional sign, followed by ...
        (?:
            \d+\.\d+ # ... digits, a point, and more digits
        |            # OR
            \.\d+    # ... a point and digits (implicit zero)
        )
        """,
        re.VERBOSE,
    ),
    'word': re.compile(_WORD),
    'unit': re.compile(
        fr"""
        {_WORD}{_POWER}?              # a symbol with an optional power
        (?:[*/]{_WORD}{_POWER}?)*     # followed by more, joined by '*' or '/'
        """,
        re.VERBOSE,
    ),
    'operator': re.compile(r'[-+*/=^]'),
    'separator': re.compile(r'[(),.:]'),
}
"""Compiled regular expressions for the lexical categories."""

_WHITESPACE = ' \t'


class Scanner:
    """A lexer with speculative probes over a single input string.

    Each ``try_*`` method skips leading whitespace and then either consumes
    the recognized token and returns it, or returns `None` and leaves the
    position exactly where it was. Callers may therefore try alternative
    productions in sequence without saving and restoring state.

    Examples
    --------
    >>> scanner = Scanner('10w * 24s')
    >>> scanner.try_number().value
    10
    >>> scanner.try_word().text
    'w'
    >>> scanner.try_number() is None
    True
    >>> scanner.try_operator().value
    <Operator.TIMES: '*'>
    """

    def __init__(self, string: str) -> None:
        self.string = string
        """The full input string."""
        self.position = 0
        """The index of the next unconsumed character."""

    def peek(self) -> typing.Optional[str]:
        """The next unconsumed character, if any."""
        if self.position < len(self.string):
            return self.string[self.position]

    def advance(self) -> str:
        """Consume and return the next character."""
        c = self.peek()
        if c is None:
            raise errors.EarlyEndOfInput(self.position)
        self.position += 1
        return c

    @property
    def exhausted(self) -> bool:
        """True if only whitespace remains."""
        return self._skip(self.position) >= len(self.string)

    @property
    def start(self) -> int:
        """The index at which the next probe would begin matching."""
        return self._skip(self.position)

    def try_int(self) -> typing.Optional[Token]:
        """Consume an integer, if possible."""
        if match := self._match('int'):
            return self._commit(Kind.INT, match, int(match[0]))

    def try_float(self) -> typing.Optional[Token]:
        """Consume a number with a fractional part, if possible."""
        if match := self._match('float'):
            return self._commit(Kind.FLOAT, match, float(match[0]))

    def try_number(self) -> typing.Optional[Token]:
        """Consume a floating-point number or an integer, if possible."""
        return self.try_float() or self.try_int()

    def try_word(self) -> typing.Optional[Token]:
        """Consume an identifier, if possible."""
        if match := self._match('word'):
            return self._commit(Kind.WORD, match, match[0])

    def try_unit(self) -> typing.Optional[Token]:
        """Consume a unit expression that directly follows the last token.

        Unlike other probes, this one does not skip whitespace, so that
        ``'9.8m/s^2'`` yields a single unit suffix but ``'9.8 m'`` does not.
        """
        if match := self._match('unit', skip=False):
            return self._commit(Kind.WORD, match, match[0])

    def try_operator(self, *allowed: Operator) -> typing.Optional[Token]:
        """Consume an operator, optionally only one of `allowed`."""
        if match := self._match('operator'):
            operator = Operator(match[0])
            if not allowed or operator in allowed:
                return self._commit(Kind.OPERATOR, match, operator)

    def try_separator(self, *allowed: Separator) -> typing.Optional[Token]:
        """Consume a separator, optionally only one of `allowed`."""
        if match := self._match('separator'):
            separator = Separator(match[0])
            if not allowed or separator in allowed:
                return self._commit(Kind.SEPARATOR, match, separator)

    def next_token(self) -> typing.Optional[Token]:
        """Consume the next token in any category.

        Operator and separator characters take priority over numbers, so a
        leading '-' or '.' always produces an operator or separator here.
        The parser uses the individual probes instead when context decides
        between the two.
        """
        if self.exhausted:
            return
        probes = (
            self.try_separator,
            self.try_operator,
            self.try_number,
            self.try_word,
        )
        for probe in probes:
            if token := probe():
                return token
        raise errors.UnexpectedCharacter(self.string[self.start], self.start)

    def __iter__(self) -> typing.Iterator[Token]:
        """Iterate over the remaining tokens."""
        while (token := self.next_token()) is not None:
            yield token

    def _skip(self, position: int) -> int:
        """Compute the first non-whitespace index at or after `position`."""
        while (
            position < len(self.string)
            and self.string[position] in _WHITESPACE
        ): position += 1
        return position

    def _match(self, key: str, skip: bool=True) -> typing.Optional[re.Match]:
        """Match the named pattern without moving the current position."""
        start = self._skip(self.position) if skip else self.position
        return _PATTERNS[key].match(self.string, start)

    def _commit(self, kind: Kind, match: re.Match, value) -> Token:
        """Move past `match` and build the corresponding token."""
        self.position = match.end()
        return Token(kind, match[0], match.start(), value)

    def __repr__(self) -> str:
        return f"lexical.Scanner({self.string!r}, position={self.position})"


def tokenize(string: str) -> typing.List[Token]:
    """Split `string` into tokens without grammatical context."""
    return list(Scanner(string))
