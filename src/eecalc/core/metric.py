import logging
import numbers
import re
import threading
import typing

import numpy

from eecalc.core import aliased
from eecalc.core import errors
from eecalc.core import iterables


logger = logging.getLogger(__name__)


DIMENSIONS = (
    'length',
    'mass',
    'time',
    'current',
    'temperature',
    'amount',
    'luminous intensity',
)
"""The SI base dimensions, in the order of `Unit` exponents."""


_BASE_SYMBOLS = ('m', 'kg', 's', 'A', 'K', 'mol', 'cd')

_DISPLAY_ORDER = (1, 0, 2, 3, 4, 5, 6)


_prefixes = [
    {'symbol': 'G', 'name': 'giga', 'power': 9},
    {'symbol': 'M', 'name': 'mega', 'power': 6},
    {'symbol': 'k', 'name': 'kilo', 'power': 3},
    {'symbol': 'c', 'name': 'centi', 'power': -2},
    {'symbol': 'm', 'name': 'milli', 'power': -3},
    {'symbol': 'u', 'name': 'micro', 'power': -6},
    {'symbol': 'μ', 'name': None, 'power': -6},
    {'symbol': 'n', 'name': 'nano', 'power': -9},
    {'symbol': 'p', 'name': 'pico', 'power': -12},
    {'symbol': 'f', 'name': 'femto', 'power': -15},
    {'symbol': 'a', 'name': 'atto', 'power': -18},
]

DEFAULT_PREFIXES = tuple(_prefixes)
"""Metric prefixes with their powers of ten."""


_units = [
    {'name': 'meter', 'symbol': 'm', 'dimension': 'length'},
    {'name': 'kilogram', 'symbol': 'kg', 'dimension': 'mass'},
    {'name': 'second', 'symbol': 's', 'dimension': 'time'},
    {'name': 'ampere', 'symbol': ('A', 'a'), 'dimension': 'current'},
    {'name': 'kelvin', 'symbol': 'K', 'dimension': 'temperature'},
    {'name': 'mole', 'symbol': 'mol', 'dimension': 'amount'},
    {'name': 'candela', 'symbol': 'cd', 'dimension': 'luminous intensity'},
    {'name': 'scalar', 'symbol': '_', 'dimension': None},
    {'name': 'gram', 'symbol': 'g', 'rule': 'kg', 'power': -3},
    {'name': 'hertz', 'symbol': 'Hz', 'rule': 's^-1'},
    {'name': 'newton', 'symbol': ('N', 'n'), 'rule': 'kg*m/s^2'},
    {'name': 'pascal', 'symbol': 'Pa', 'rule': 'N/m^2'},
    {'name': 'joule', 'symbol': ('J', 'j'), 'rule': 'N*m'},
    {'name': 'watt', 'symbol': ('W', 'w'), 'rule': 'J/s'},
    {'name': 'coulomb', 'symbol': 'C', 'rule': 'A*s'},
    {'name': 'volt', 'symbol': ('V', 'v'), 'rule': 'W/A'},
    {'name': 'ohm', 'symbol': ('ohm', 'R', 'Ω'), 'rule': 'V/A'},
    {'name': 'siemens', 'symbol': 'S', 'rule': 'A/V'},
    {'name': 'farad', 'symbol': 'F', 'rule': 'C/V'},
    {'name': 'weber', 'symbol': 'Wb', 'rule': 'V*s'},
    {'name': 'tesla', 'symbol': 'T', 'rule': 'Wb/m^2'},
    {'name': 'henry', 'symbol': 'H', 'rule': 'Wb/A'},
]

DEFAULT_UNITS = tuple(_units)
"""Unit definitions, in dependency order.

Each entry defines either a base unit, by naming its `dimension` (`None` for
the dimensionless scalar), or a derived unit, by giving a `rule` over
previously defined symbols and an optional decimal `power`.
"""


class Unit(iterables.ReprStrMixin):
    """A physical unit as integer exponents of the SI base dimensions.

    Instances are immutable. Two units are equal if and only if all of their
    exponents are equal, and the zero vector represents the dimensionless
    (scalar) unit.

    Examples
    --------
    >>> newton = Unit(length=1, mass=1, time=-2)
    >>> print(newton)
    kg*m*s^-2
    >>> newton / Unit(length=1) == Unit(mass=1, time=-2)
    True
    >>> print(Unit())
    <BLANKLINE>
    """

    def __init__(
        self,
        exponents: typing.Iterable[int]=None,
        **dimensions: int,
    ) -> None:
        array = numpy.zeros(len(DIMENSIONS), dtype=int)
        if exponents is not None:
            given = numpy.array(list(exponents), dtype=int)
            if given.shape != array.shape:
                raise ValueError(
                    f"Expected {len(DIMENSIONS)} exponents, not {len(given)}"
                ) from None
            array += given
        for name, exponent in dimensions.items():
            key = name.replace('_', ' ')
            if key not in DIMENSIONS:
                raise TypeError(f"Unknown dimension {name!r}") from None
            array[DIMENSIONS.index(key)] = exponent
        array.setflags(write=False)
        self._exponents = array

    @classmethod
    def base(cls, dimension: typing.Optional[str]):
        """Create the unit of a single base dimension (`None` for scalar)."""
        if dimension is None:
            return cls()
        return cls(**{dimension.replace(' ', '_'): 1})

    @property
    def exponents(self) -> typing.Tuple[int, ...]:
        """The exponent of each base dimension."""
        return tuple(int(i) for i in self._exponents)

    @property
    def dimensionless(self) -> bool:
        """True if this is the scalar unit."""
        return not self._exponents.any()

    def __getitem__(self, dimension: str) -> int:
        """The exponent of the named base dimension."""
        return int(self._exponents[DIMENSIONS.index(dimension)])

    def multiply(self, other: 'Unit') -> 'Unit':
        """Combine two units by adding exponents."""
        return type(self)(self._exponents + other._exponents)

    def divide(self, other: 'Unit') -> 'Unit':
        """Combine two units by subtracting exponents."""
        return self.multiply(other.invert())

    def invert(self) -> 'Unit':
        """Negate all exponents."""
        return type(self)(-self._exponents)

    def power(self, n: numbers.Real) -> 'Unit':
        """Multiply all exponents by the integer `n`."""
        n = _as_integer(n)
        if self.dimensionless:
            return self
        try:
            return type(self)([int(e) * n for e in self._exponents])
        except OverflowError:
            raise errors.NumericOverflow(f"({self})^{n}") from None

    def root(self, n: int) -> 'Unit':
        """Divide all exponents by `n`, if the result is exact."""
        quotient, remainder = numpy.divmod(self._exponents, n)
        if remainder.any():
            raise errors.InvalidExponent(
                f"can't take root {n} of unit {str(self)!r}"
            ) from None
        return type(self)(quotient)

    __mul__ = multiply
    __truediv__ = divide
    __pow__ = power

    def __eq__(self, other) -> bool:
        """True if all exponents are equal."""
        if not isinstance(other, Unit):
            return NotImplemented
        return numpy.array_equal(self._exponents, other._exponents)

    def __hash__(self) -> int:
        return hash(self.exponents)

    def __bool__(self) -> bool:
        """False for the scalar unit."""
        return not self.dimensionless

    def format(self, joiner: str='*') -> str:
        """Join base-unit symbols and non-unit exponents into a string."""
        parts = []
        for i in _DISPLAY_ORDER:
            exponent = int(self._exponents[i])
            if exponent == 1:
                parts.append(_BASE_SYMBOLS[i])
            elif exponent:
                parts.append(f"{_BASE_SYMBOLS[i]}^{exponent}")
        return joiner.join(parts)

    def __str__(self) -> str:
        """A simplified representation of this object."""
        return self.format()


def _as_integer(n: numbers.Real) -> int:
    """Convert `n` to `int` if doing so doesn't lose information."""
    try:
        integer = int(n)
    except (TypeError, ValueError, OverflowError):
        raise errors.InvalidExponent(f"{n!r} is not an integer") from None
    if integer != n:
        raise errors.InvalidExponent(f"{n!r} is not an integer") from None
    return integer


class ScaledUnit(typing.NamedTuple):
    """A unit with an accumulated power-of-ten scale factor.

    This is the result of resolving a unit symbol: the `power10` of ``'km'``
    is 3, and that of ``'g'`` is -3 because the kilogram is the base unit of
    mass.
    """

    unit: Unit
    power10: int = 0

    @property
    def factor(self) -> float:
        """The numerical scale factor, ``10 ** power10``."""
        return self.apply(1.0)

    def apply(self, number: float) -> float:
        """Scale `number` by ``10 ** power10``.

        Negative powers divide by an exact power of ten, so that, for
        example, ``5um`` is exactly ``5e-06`` meters.
        """
        try:
            if self.power10 < 0:
                return number / 10.0 ** -self.power10
            return number * 10.0 ** self.power10
        except OverflowError:
            raise errors.NumericOverflow(f"10^{self.power10}") from None

    def multiply(self, other: 'ScaledUnit') -> 'ScaledUnit':
        """Combine with `other` as a product."""
        return ScaledUnit(
            self.unit.multiply(other.unit),
            self.power10 + other.power10,
        )

    def divide(self, other: 'ScaledUnit') -> 'ScaledUnit':
        """Combine with `other` as a ratio."""
        return ScaledUnit(
            self.unit.divide(other.unit),
            self.power10 - other.power10,
        )

    def power(self, n: int) -> 'ScaledUnit':
        """Raise the unit and its scale to the integer power `n`."""
        n = _as_integer(n)
        return ScaledUnit(self.unit.power(n), self.power10 * n)

    def rescale(self, power10: int) -> 'ScaledUnit':
        """Add `power10` to the current scale."""
        return ScaledUnit(self.unit, self.power10 + power10)

    def __str__(self) -> str:
        unit = str(self.unit) or '1'
        if self.power10:
            return f"1e{self.power10} {unit}"
        return unit


class Prefix(typing.NamedTuple):
    """Metadata for a metric order-of-magnitude prefix."""

    symbol: str
    name: typing.Optional[str]
    power: int


class Entry(typing.NamedTuple):
    """A registered unit."""

    name: str
    symbols: typing.Tuple[str, ...]
    scaled: ScaledUnit

    @property
    def symbol(self) -> str:
        """The primary short-form symbol."""
        return self.symbols[0]


_OPERATORS = re.compile(r'([*/])')


class Registry(iterables.ReprStrMixin):
    """Long-form and short-form unit symbols, resolved to scaled units.

    An instance is read-only once constructed. Derived-unit rules may only
    refer to units defined earlier in `units`; referring to an undefined
    symbol raises `~errors.UnrecognizedUnit` during construction.

    Parameters
    ----------
    units : sequence of mappings, default=`DEFAULT_UNITS`
        Unit definitions in dependency order. See `DEFAULT_UNITS`.

    prefixes : sequence of mappings, default=`DEFAULT_PREFIXES`
        Metric prefixes, each with a single-character 'symbol', an optional
        long-form 'name', and a decimal 'power'.

    scalar_prefixes : bool, default=True
        If true, metric prefixes apply to the scalar unit (e.g., ``'k_'``
        means 1000).
    """

    def __init__(
        self,
        units: typing.Sequence[typing.Mapping[str, typing.Any]]=None,
        prefixes: typing.Sequence[typing.Mapping[str, typing.Any]]=None,
        scalar_prefixes: bool=True,
    ) -> None:
        self.prefixes = tuple(
            Prefix(p['symbol'], p.get('name'), p['power'])
            for p in (DEFAULT_PREFIXES if prefixes is None else prefixes)
        )
        """The known metric prefixes."""
        self.scalar_prefixes = scalar_prefixes
        self._symbols = aliased.MutableMapping()
        self._names: typing.Dict[str, Entry] = {}
        self._canonical: typing.Dict[Unit, str] = {}
        for definition in (DEFAULT_UNITS if units is None else units):
            self._register(definition)
        self._symbols = aliased.Mapping(self._symbols)
        self.display['__str__'] = "{_show_symbols}"

    def _register(self, definition: typing.Mapping[str, typing.Any]):
        """Add a single unit definition."""
        name = definition['name']
        symbols = definition['symbol']
        if isinstance(symbols, str):
            symbols = (symbols,)
        if 'rule' in definition:
            scaled = self.parse(definition['rule'])
        else:
            scaled = ScaledUnit(Unit.base(definition['dimension']))
        scaled = scaled.rescale(definition.get('power', 0))
        entry = Entry(name, tuple(symbols), scaled)
        if name in self._names:
            raise errors.RegistryError(name)
        try:
            self._symbols[entry.symbols] = entry
        except KeyError as err:
            raise errors.RegistryError(str(entry.symbols)) from err
        self._names[name] = entry
        if scaled.power10 == 0:
            self._canonical.setdefault(scaled.unit, entry.symbol)
        logger.debug("registered %s %s as %s", name, entry.symbols, scaled)

    def _show_symbols(self) -> str:
        return ', '.join(str(group) for group in self._symbols.groups())

    def __contains__(self, symbol: str) -> bool:
        """True if `symbol` resolves to a unit."""
        return self.lookup(symbol) is not None

    def __len__(self) -> int:
        """The number of registered units."""
        return len(self._names)

    def __iter__(self) -> typing.Iterator[Entry]:
        """Iterate over registered units in order of registration."""
        return iter(self._names.values())

    @property
    def symbols(self) -> typing.List[str]:
        """All registered short-form symbols, including aliases."""
        return list(self._symbols)

    @property
    def names(self) -> typing.List[str]:
        """All registered long-form names."""
        return list(self._names)

    def entry(self, key: str) -> Entry:
        """Get a registered unit by long-form name or short-form symbol."""
        if key in self._symbols:
            return self._symbols[key]
        if key in self._names:
            return self._names[key]
        raise errors.UnrecognizedUnit(key)

    def resolve(self, symbol: str) -> ScaledUnit:
        """Resolve a possibly prefixed unit symbol or name.

        Parameters
        ----------
        symbol : string
            A short-form symbol (e.g., ``'N'``), a prefixed symbol (e.g.,
            ``'kN'``), a long-form name (e.g., ``'newton'``), or a prefixed
            name (e.g., ``'kilonewton'``).

        Returns
        -------
        `~metric.ScaledUnit`

        Raises
        ------
        `~errors.UnrecognizedUnit`
            If `symbol` is not registered with or without a prefix.

        Examples
        --------
        >>> registry = Registry()
        >>> registry.resolve('km')
        ScaledUnit(unit=core.metric.Unit(m), power10=3)
        >>> registry.resolve('mg').power10
        -6
        """
        if (found := self.lookup(symbol)) is not None:
            return found
        raise errors.UnrecognizedUnit(symbol)

    def lookup(self, symbol: str) -> typing.Optional[ScaledUnit]:
        """Like `resolve` but return `None` for an unknown symbol."""
        if symbol in self._symbols:
            return self._symbols[symbol].scaled
        if symbol in self._names:
            return self._names[symbol].scaled
        if len(symbol) < 2:
            return
        for prefix in self.prefixes:
            if symbol[0] == prefix.symbol:
                if found := self._apply_prefix(prefix, symbol[1:], self._symbols):
                    return found
        for prefix in self.prefixes:
            if prefix.name and symbol.startswith(prefix.name):
                rest = symbol[len(prefix.name):]
                if found := self._apply_prefix(prefix, rest, self._names):
                    return found

    def _apply_prefix(
        self,
        prefix: Prefix,
        rest: str,
        table: typing.Mapping[str, Entry],
    ) -> typing.Optional[ScaledUnit]:
        """Scale the unit named by `rest`, if there is one."""
        if rest not in table:
            return
        scaled = table[rest].scaled
        if scaled.unit.dimensionless and not self.scalar_prefixes:
            return
        return scaled.rescale(prefix.power)

    def parse(self, expression: str) -> ScaledUnit:
        """Resolve a composite unit expression such as ``'kg*m/s^2'``.

        The expression consists of unit symbols, each with an optional integer
        exponent after '^', joined by '*' or '/'. Operations apply strictly
        from left to right, so ``'J/s/A'`` means ``'(J/s)/A'``. An empty
        expression is the scalar unit.

        Raises
        ------
        `~errors.UnrecognizedUnit`
            If any symbol does not resolve.

        `~errors.IntegerParseError`
            If an exponent is not an integer.

        `~errors.EarlyEndOfLine`
            If the expression ends with an operator.
        """
        string = expression.replace(' ', '')
        if not string:
            return ScaledUnit(Unit())
        parts = _OPERATORS.split(string)
        result = self._parse_segment(parts[0])
        for operator, segment in zip(parts[1::2], parts[2::2]):
            if not segment:
                raise errors.EarlyEndOfLine(expression)
            current = self._parse_segment(segment)
            if operator == '*':
                result = result.multiply(current)
            else:
                result = result.divide(current)
        return result

    def _parse_segment(self, segment: str) -> ScaledUnit:
        """Resolve a single symbol with an optional exponent."""
        symbol, caret, exponent = segment.partition('^')
        scaled = self.resolve(symbol)
        if not caret:
            return scaled
        try:
            n = int(exponent)
        except ValueError:
            raise errors.IntegerParseError(exponent) from None
        return scaled.power(n)

    def symbol(self, unit: Unit) -> typing.Optional[str]:
        """The registered unprefixed symbol for `unit`, if any."""
        return self._canonical.get(unit)


_DEFAULT: typing.Optional[Registry] = None
_LOCK = threading.Lock()


def registry() -> Registry:
    """The process-wide default registry, built on first use."""
    global _DEFAULT
    if _DEFAULT is None:
        with _LOCK:
            if _DEFAULT is None:
                _DEFAULT = Registry()
    return _DEFAULT
