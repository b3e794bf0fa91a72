import pytest

from eecalc.core import errors
from eecalc.core import metric


def test_unit_algebra(units: dict):
    """Test multiplication, division, inversion, and powers of units."""
    scalar = units['scalar']
    meter = units['meter']
    second = units['second']
    assert meter * scalar == meter
    assert meter / scalar == meter
    assert meter / meter == scalar
    assert meter.invert() == metric.Unit(length=-1)
    assert meter.invert().invert() == meter
    assert meter.power(3) == metric.Unit(length=3)
    assert (meter / second).power(-2) == metric.Unit(length=-2, time=2)
    assert meter ** 0 == scalar
    assert units['kilogram'] * meter / second ** 2 == units['newton']
    assert units['newton'] * meter == units['joule']
    assert units['joule'] / second == units['watt']
    assert units['watt'] / units['ampere'] == units['volt']
    assert units['volt'] / units['ampere'] == units['ohm']
    with pytest.raises(errors.InvalidExponent):
        meter.power(0.5)


def test_unit_power_overflow(units: dict):
    """Exponents too large to store raise an error."""
    with pytest.raises(errors.NumericOverflow):
        units['meter'].power(2**63)
    with pytest.raises(errors.NumericOverflow):
        metric.Unit(length=2**40).power(2**40)
    assert units['scalar'].power(10**30) == units['scalar']


def test_unit_root(units: dict):
    """Roots are only defined when every exponent divides evenly."""
    area = metric.Unit(length=2, time=-4)
    assert area.root(2) == metric.Unit(length=1, time=-2)
    assert units['scalar'].root(2) == units['scalar']
    with pytest.raises(errors.InvalidExponent):
        units['meter'].root(2)


def test_unit_attributes(units: dict):
    """Test exponent access and truthiness."""
    newton = units['newton']
    assert newton.exponents == (1, 1, -2, 0, 0, 0, 0)
    assert newton['time'] == -2
    assert newton['luminous intensity'] == 0
    assert not newton.dimensionless
    assert units['scalar'].dimensionless
    assert not units['scalar']
    assert hash(newton) == hash(metric.Unit((1, 1, -2, 0, 0, 0, 0)))
    with pytest.raises(ValueError):
        metric.Unit((1, 2))
    with pytest.raises(TypeError):
        metric.Unit(charge=1)


def test_unit_format(units: dict):
    """Test the string representation of units."""
    cases = {
        'scalar': '',
        'meter': 'm',
        'kilogram': 'kg',
        'hertz': 's^-1',
        'newton': 'kg*m*s^-2',
        'volt': 'kg*m^2*s^-3*A^-1',
    }
    for name, string in cases.items():
        assert str(units[name]) == string
    assert units['newton'].format(joiner=' ') == 'kg m s^-2'


@pytest.fixture
def symbols(units: dict):
    """Unit symbols and the scaled unit each should resolve to."""
    return {
        'm': (units['meter'], 0),
        'kg': (units['kilogram'], 0),
        'g': (units['kilogram'], -3),
        'km': (units['meter'], 3),
        'mm': (units['meter'], -3),
        'cm': (units['meter'], -2),
        'um': (units['meter'], -6),
        'μm': (units['meter'], -6),
        'mg': (units['kilogram'], -6),
        'kA': (units['ampere'], 3),
        'a': (units['ampere'], 0),
        'ms': (units['second'], -3),
        'mol': (metric.Unit(amount=1), 0),
        'cd': (metric.Unit(luminous_intensity=1), 0),
        'N': (units['newton'], 0),
        'n': (units['newton'], 0),
        'kn': (units['newton'], 3),
        'v': (units['volt'], 0),
        'mV': (units['volt'], -3),
        'GW': (units['watt'], 9),
        'MHz': (units['hertz'], 6),
        'pF': (metric.Unit(length=-2, mass=-1, time=4, current=2), -12),
        'R': (units['ohm'], 0),
        'kΩ': (units['ohm'], 3),
        '_': (units['scalar'], 0),
        'k_': (units['scalar'], 3),
        'meter': (units['meter'], 0),
        'kilometer': (units['meter'], 3),
        'millisecond': (units['second'], -3),
        'kilogram': (units['kilogram'], 0),
        'microgram': (units['kilogram'], -9),
    }


def test_resolve(registry: metric.Registry, symbols: dict):
    """Test resolution of plain and prefixed symbols and names."""
    for symbol, (unit, power10) in symbols.items():
        scaled = registry.resolve(symbol)
        assert scaled.unit == unit, symbol
        assert scaled.power10 == power10, symbol
        assert symbol in registry
    for symbol in ('xyz', 'kxyz', 'q', 'k', '', 'Meter'):
        assert registry.lookup(symbol) is None
        assert symbol not in registry
        with pytest.raises(errors.UnrecognizedUnit):
            registry.resolve(symbol)


def test_parse(registry: metric.Registry, units: dict):
    """Test parsing of composite unit expressions."""
    cases = {
        '': (units['scalar'], 0),
        'kg*m/s^2': (units['newton'], 0),
        'm/s/s': (metric.Unit(length=1, time=-2), 0),
        'km/ms': (metric.Unit(length=1, time=-1), 6),
        'cm^2': (metric.Unit(length=2), -4),
        'km^-1': (metric.Unit(length=-1), -3),
        'g*cm/s': (metric.Unit(mass=1, length=1, time=-1), -5),
        'J/s/A': (units['volt'], 0),
        'kg * m / s^2': (units['newton'], 0),
    }
    for expression, (unit, power10) in cases.items():
        scaled = registry.parse(expression)
        assert scaled.unit == unit, expression
        assert scaled.power10 == power10, expression
    assert registry.parse('km/ms').factor == pytest.approx(1e6)


def test_scale_factor(registry: metric.Registry):
    """Scale factors are exact powers of ten."""
    assert registry.resolve('um').factor == 1e-06
    assert registry.resolve('um').apply(5.0) == 5e-06
    assert registry.resolve('km').apply(2.5) == 2500.0
    assert registry.resolve('m').factor == 1.0


def test_parse_errors(registry: metric.Registry):
    """Invalid composite expressions raise specific errors."""
    with pytest.raises(errors.UnrecognizedUnit):
        registry.parse('kg*xyz')
    with pytest.raises(errors.IntegerParseError):
        registry.parse('m^x')
    with pytest.raises(errors.IntegerParseError):
        registry.parse('m^1.5')
    with pytest.raises(errors.EarlyEndOfLine):
        registry.parse('kg*m/')
    with pytest.raises(errors.EarlyEndOfInput):
        registry.parse('kg*')


def test_round_trip(registry: metric.Registry):
    """Every unprefixed symbol renders to a string that resolves back to it."""
    for entry in registry:
        unit = entry.scaled.unit
        reparsed = registry.parse(str(unit))
        assert reparsed.unit == unit, entry.name
        assert reparsed.power10 == 0
        symbol = registry.symbol(unit)
        assert registry.resolve(symbol).unit == unit
        if entry.scaled.power10 == 0:
            assert registry.resolve(symbol) == entry.scaled


def test_reverse_lookup(registry: metric.Registry, units: dict):
    """Test the table of canonical symbols by unit."""
    cases = {
        'scalar': '_',
        'meter': 'm',
        'kilogram': 'kg',
        'hertz': 'Hz',
        'newton': 'N',
        'joule': 'J',
        'watt': 'W',
        'volt': 'V',
        'ohm': 'ohm',
    }
    for name, symbol in cases.items():
        assert registry.symbol(units[name]) == symbol
    assert registry.symbol(metric.Unit(length=7)) is None


def test_registry_contents(registry: metric.Registry):
    """Test introspection of a registry."""
    assert len(registry) == len(metric.DEFAULT_UNITS)
    assert 'newton' in registry.names
    assert {'N', 'n'} <= set(registry.symbols)
    entry = registry.entry('n')
    assert entry.name == 'newton'
    assert entry.symbol == 'N'
    assert registry.entry('newton') == entry
    with pytest.raises(errors.UnrecognizedUnit):
        registry.entry('xyz')
    assert 'N | n' in str(registry)


def test_scalar_prefixes():
    """A registry may forbid prefixes on the scalar unit."""
    registry = metric.Registry(scalar_prefixes=False)
    assert registry.resolve('_').unit == metric.Unit()
    assert registry.resolve('km').power10 == 3
    with pytest.raises(errors.UnrecognizedUnit):
        registry.resolve('k_')


def test_custom_registry():
    """Test building registries from custom definitions."""
    units = [
        {'name': 'meter', 'symbol': 'm', 'dimension': 'length'},
        {'name': 'second', 'symbol': 's', 'dimension': 'time'},
        {'name': 'knot', 'symbol': 'kt', 'rule': 'm/s', 'power': 0},
    ]
    prefixes = [{'symbol': 'k', 'name': 'kilo', 'power': 3}]
    registry = metric.Registry(units=units, prefixes=prefixes)
    assert len(registry) == 3
    assert registry.resolve('km').power10 == 3
    assert registry.resolve('kilosecond').power10 == 3
    assert registry.lookup('mm') is None
    with pytest.raises(errors.UnrecognizedUnit):
        metric.Registry(units=[
            {'name': 'newton', 'symbol': 'N', 'rule': 'kg*m/s^2'},
        ])
    with pytest.raises(errors.RegistryError):
        metric.Registry(units=[*units, {
            'name': 'mile', 'symbol': 'm', 'dimension': 'length',
        }])
    with pytest.raises(errors.RegistryError):
        metric.Registry(units=[*units, {
            'name': 'meter', 'symbol': 'M', 'dimension': 'length',
        }])


def test_default_registry_is_shared():
    """The process-wide registry is built once."""
    assert metric.registry() is metric.registry()
