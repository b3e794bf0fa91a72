import typing


class CalculationError(Exception):
    """Base class for exceptions encountered while lexing, parsing, or
    evaluating a unit-aware expression."""

    def __init__(self, position: typing.Optional[int]=None) -> None:
        self.position = position

    def _where(self) -> str:
        """Format the error position, if known."""
        if self.position is None:
            return ''
        return f" at position {self.position}"


class UnrecognizedUnit(CalculationError):
    """A unit symbol did not resolve in the registry."""

    def __init__(self, span: str, position: int=None) -> None:
        super().__init__(position)
        self.span = span

    def __str__(self) -> str:
        return f"Unrecognized unit {self.span!r}{self._where()}"


class IntegerParseError(CalculationError):
    """An exponent or integer literal is not an integer."""

    def __init__(self, span: str, position: int=None) -> None:
        super().__init__(position)
        self.span = span

    def __str__(self) -> str:
        return f"Can't parse {self.span!r} as an integer{self._where()}"


class NumberParseError(CalculationError):
    """The numerical part of a literal is not a number."""

    def __init__(self, span: str, position: int=None) -> None:
        super().__init__(position)
        self.span = span

    def __str__(self) -> str:
        return f"Can't parse {self.span!r} as a number{self._where()}"


class EarlyEndOfInput(CalculationError):
    """The input ended while a production still expected more tokens."""

    def __str__(self) -> str:
        return f"Unexpected end of input{self._where()}"


class EarlyEndOfLine(EarlyEndOfInput):
    """A unit expression ended with a dangling operator."""

    def __init__(self, span: str, position: int=None) -> None:
        super().__init__(position)
        self.span = span

    def __str__(self) -> str:
        return f"Unit expression {self.span!r} ends with an operator"


class ExpectedValue(CalculationError):
    """A literal, identifier, or '(' was required but not found."""

    def __str__(self) -> str:
        return f"Expected a value{self._where()}"


class ExpectedOperator(CalculationError):
    """An operator was required but not found."""

    def __str__(self) -> str:
        return f"Expected an operator{self._where()}"


class ExpectedSeparator(CalculationError):
    """A specific separator was required but a different token was found."""

    def __init__(self, expected: typing.Iterable[str], position: int=None):
        super().__init__(position)
        self.expected = tuple(expected)

    def __str__(self) -> str:
        options = ' or '.join(repr(s) for s in self.expected)
        return f"Expected {options}{self._where()}"


class UnmatchedSeparator(CalculationError):
    """A closing separator has no corresponding opening separator."""

    def __str__(self) -> str:
        return f"Unmatched ')'{self._where()}"


class UnexpectedCharacter(CalculationError):
    """The input contains a character that starts no token."""

    def __init__(self, character: str, position: int=None) -> None:
        super().__init__(position)
        self.character = character

    def __str__(self) -> str:
        return f"Unexpected character {self.character!r}{self._where()}"


class DimensionMismatch(CalculationError):
    """Two values with different units can't be combined this way."""

    def __init__(self, this, that) -> None:
        super().__init__()
        self.this = this
        self.that = that

    def __str__(self) -> str:
        units = [str(u) or '1' for u in (self.this, self.that)]
        return f"Can't combine {units[0]!r} with {units[1]!r}"


class DivisionByZero(CalculationError):
    """A divide or invert had a zero numerical operand."""

    def __str__(self) -> str:
        return "Division by zero"


class NumericOverflow(CalculationError):
    """A result is too large to represent."""

    def __init__(self, operation: str) -> None:
        super().__init__()
        self.operation = operation

    def __str__(self) -> str:
        return f"Result of {self.operation} is out of range"


class NestingTooDeep(CalculationError):
    """An expression nests more levels than the parser allows."""

    def __init__(self, limit: int, position: int=None) -> None:
        super().__init__(position)
        self.limit = limit

    def __str__(self) -> str:
        return f"Expression nests more than {self.limit} levels{self._where()}"


class InvalidExponent(CalculationError):
    """An exponent is not a dimensionless integer, or a root is not exact."""

    def __init__(self, reason: str) -> None:
        super().__init__()
        self.reason = reason

    def __str__(self) -> str:
        return f"Invalid exponent: {self.reason}"


class DomainError(CalculationError):
    """A function received an argument outside its domain."""

    def __init__(self, name: str, value) -> None:
        super().__init__()
        self.name = name
        self.value = value

    def __str__(self) -> str:
        return f"{self.name}() is undefined for {self.value}"


class UnknownFunction(CalculationError):
    """The name of a function call is not defined."""

    def __init__(self, name: str, position: int=None) -> None:
        super().__init__(position)
        self.name = name

    def __str__(self) -> str:
        return f"Unknown function {self.name!r}{self._where()}"


class ArgumentCountError(CalculationError):
    """A function received the wrong number of arguments."""

    def __init__(self, name: str, expected: str, given: int) -> None:
        super().__init__()
        self.name = name
        self.expected = expected
        self.given = given

    def __str__(self) -> str:
        return (
            f"{self.name}() takes {self.expected} argument(s)"
            f" ({self.given} given)"
        )


class RegistryError(CalculationError):
    """A unit definition conflicts with an existing entry."""

    def __init__(self, key: str) -> None:
        super().__init__()
        self.key = key

    def __str__(self) -> str:
        return f"Unit symbol or name {self.key!r} is already defined"
