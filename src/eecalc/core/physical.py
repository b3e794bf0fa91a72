import numbers
import typing

import numpy

from eecalc.core import errors
from eecalc.core import iterables
from eecalc.core import metric


Instance = typing.TypeVar('Instance', bound='Value')


class Value(iterables.ReprStrMixin):
    """A real number with a physical unit.

    Addition and subtraction require equal units; multiplication, division,
    and integer exponentiation combine units. Instances are immutable, so
    every operation returns a new instance.

    Examples
    --------
    >>> mass = Value(10.0, metric.Unit(mass=1))
    >>> force = mass * Value(9.8, metric.Unit(length=1, time=-2))
    >>> force.unit == metric.Unit(length=1, mass=1, time=-2)
    True
    >>> Value(1.0, metric.Unit(length=1)) + Value(1.0)
    Traceback (most recent call last):
    ...
    eecalc.core.errors.DimensionMismatch: Can't combine 'm' with '1'
    """

    def __init__(
        self,
        number: numbers.Real,
        unit: metric.Unit=None,
    ) -> None:
        self._number = float(number)
        self._unit = unit or metric.Unit()

    @property
    def number(self) -> float:
        """The numerical magnitude, in base SI units."""
        return self._number

    @property
    def unit(self) -> metric.Unit:
        """The physical unit."""
        return self._unit

    @classmethod
    def fromstring(
        cls: typing.Type[Instance],
        string: str,
        registry: metric.Registry=None,
    ) -> Instance:
        """Create a value from a literal such as ``'10kg'`` or ``'5N/m^2'``.

        The first alphabetic character (or '_') separates the numerical part
        from the unit expression. A missing numerical part means 1 (so ``'m'``
        is one meter) and a missing unit means a scalar.

        Parameters
        ----------
        string : str
            The literal to parse.

        registry : `~metric.Registry`, optional
            The registry in which to resolve the unit expression. Defaults to
            the process-wide registry.

        Raises
        ------
        `~errors.NumberParseError`
            If the numerical part is not a number.

        `~errors.UnrecognizedUnit`, `~errors.IntegerParseError`,
        `~errors.EarlyEndOfLine`
            If the unit expression is invalid. See `~metric.Registry.parse`.
        """
        registry = metric.registry() if registry is None else registry
        text = string.strip()
        index = next(
            (i for i, c in enumerate(text) if c.isalpha() or c == '_'),
            len(text),
        )
        numeral, symbols = text[:index].strip(), text[index:]
        if numeral:
            try:
                number = float(numeral)
            except ValueError:
                raise errors.NumberParseError(numeral) from None
        else:
            number = 1.0
        scaled = registry.parse(symbols)
        return cls(scaled.apply(number), scaled.unit)

    def add(self: Instance, other: Instance) -> Instance:
        """Sum two values with equal units."""
        if self.unit != other.unit:
            raise errors.DimensionMismatch(self.unit, other.unit)
        return type(self)(self.number + other.number, self.unit)

    def subtract(self: Instance, other: Instance) -> Instance:
        """Take the difference of two values with equal units."""
        return self.add(other.negate())

    def negate(self: Instance) -> Instance:
        """Change the sign of the number."""
        return type(self)(-self.number, self.unit)

    def multiply(self: Instance, other: Instance) -> Instance:
        """Multiply numbers and units."""
        return type(self)(
            self.number * other.number,
            self.unit.multiply(other.unit),
        )

    def invert(self: Instance) -> Instance:
        """Compute the reciprocal of the number and unit."""
        if self.number == 0.0:
            raise errors.DivisionByZero
        return type(self)(1.0 / self.number, self.unit.invert())

    def divide(self: Instance, other: Instance) -> Instance:
        """Divide numbers and units."""
        return self.multiply(other.invert())

    def scale(self: Instance, factor: numbers.Real) -> Instance:
        """Multiply the number by `factor` without changing the unit."""
        return type(self)(self.number * factor, self.unit)

    def power(self: Instance, n: numbers.Real) -> Instance:
        """Raise this value to the integer power `n`."""
        unit = self.unit.power(n)
        n = int(n)
        if n < 0:
            return self.invert().power(-n)
        try:
            number = self.number ** n
        except OverflowError:
            raise errors.NumericOverflow(f"{self.number!r}^{n}") from None
        return type(self)(number, unit)

    def root(self: Instance, n: int=2) -> Instance:
        """Take the `n`th root, if the unit allows it."""
        unit = self.unit.root(n)
        if self.number < 0 and n % 2 == 0:
            raise errors.DomainError('root', self)
        magnitude = abs(self.number) ** (1.0 / n)
        return type(self)(numpy.copysign(magnitude, self.number), unit)

    def isclose(self, other: 'Value', **kwargs) -> bool:
        """True if units are equal and numbers are close.

        Keyword arguments pass to `numpy.isclose`.
        """
        return (
            self.unit == other.unit
            and bool(numpy.isclose(self.number, other.number, **kwargs))
        )

    __add__ = add
    __sub__ = subtract
    __neg__ = negate
    __mul__ = multiply
    __truediv__ = divide
    __pow__ = power

    def __pos__(self: Instance) -> Instance:
        """Called for +self."""
        return self

    def __abs__(self: Instance) -> Instance:
        """Called for abs(self)."""
        return type(self)(abs(self.number), self.unit)

    def __eq__(self, other) -> bool:
        """True if numbers and units are equal."""
        if not isinstance(other, Value):
            return NotImplemented
        return self.number == other.number and self.unit == other.unit

    def __hash__(self) -> int:
        return hash((self.number, self.unit))

    def __float__(self) -> float:
        """Called for float(self) on a dimensionless value."""
        if self.unit.dimensionless:
            return self.number
        raise TypeError(
            f"Can't convert value with unit {str(self.unit)!r} to float"
        ) from None

    def format(self, registry: metric.Registry=None) -> str:
        """Format this value, with a named unit from `registry` if possible."""
        number = f"{self.number:.12g}"
        unit = str(self.unit)
        if registry is not None and (symbol := registry.symbol(self.unit)):
            unit = '' if symbol == '_' else symbol
        return f"{number} {unit}" if unit else number

    def __str__(self) -> str:
        """A simplified representation of this object."""
        return self.format()


def scalar(number: numbers.Real=1.0) -> Value:
    """Create a dimensionless value."""
    return Value(number, metric.Unit())
