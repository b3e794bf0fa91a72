import itertools

import pytest

from eecalc.core import errors
from eecalc.core import metric
from eecalc.core import physical


@pytest.fixture
def values(units: dict):
    """A collection of nonzero values with various units."""
    return [
        physical.Value(2.0),
        physical.Value(-0.5),
        physical.Value(3.0, units['meter']),
        physical.Value(1.5e3, units['meter']),
        physical.Value(9.8, units['kilogram']),
        physical.Value(-4.0, units['newton']),
        physical.Value(1e-6, units['volt']),
    ]


def test_dimensional_closure(values: list):
    """Sums and differences keep the unit, or fail for unequal units."""
    for a, b in itertools.product(values, repeat=2):
        if a.unit == b.unit:
            assert a.add(b).unit == a.unit
            assert a.subtract(b).unit == a.unit
            assert (a + b).number == pytest.approx(a.number + b.number)
            assert (a - b).number == pytest.approx(a.number - b.number)
        else:
            with pytest.raises(errors.DimensionMismatch):
                a.add(b)
            with pytest.raises(errors.DimensionMismatch):
                a.subtract(b)


def test_multiplicative_identity(values: list):
    """Multiplying by scalar one changes nothing."""
    one = physical.scalar(1.0)
    for a in values:
        assert a.multiply(one) == a
        assert one * a == a


def test_inverse_law(values: list):
    """A nonzero value divided by itself is scalar one."""
    for a in values:
        ratio = a.divide(a)
        assert ratio.unit == metric.Unit()
        assert ratio.number == pytest.approx(1.0)
        assert a.invert().invert().isclose(a)


def test_multiply_and_divide(units: dict):
    """Products and quotients combine numbers and units."""
    mass = physical.Value(10.0, units['kilogram'])
    acceleration = physical.Value(9.8, metric.Unit(length=1, time=-2))
    force = mass * acceleration
    assert force.unit == units['newton']
    assert force.number == pytest.approx(98.0)
    assert (force / mass).isclose(acceleration)


def test_negate_and_scale(units: dict):
    """Negation and scaling keep the unit."""
    value = physical.Value(3.0, units['meter'])
    assert value.negate() == physical.Value(-3.0, units['meter'])
    assert -value == value.negate()
    assert +value == value
    assert abs(-value) == value
    assert value.scale(1e3) == physical.Value(3e3, units['meter'])


def test_power_and_root(units: dict):
    """Integer powers and exact roots."""
    side = physical.Value(3.0, units['meter'])
    area = side ** 2
    assert area == physical.Value(9.0, metric.Unit(length=2))
    assert side.power(-1) == side.invert()
    assert side.power(0) == physical.scalar(1.0)
    assert area.root(2).isclose(side)
    with pytest.raises(errors.InvalidExponent):
        side.power(1.5)
    with pytest.raises(errors.InvalidExponent):
        side.root(2)
    with pytest.raises(errors.DomainError):
        physical.Value(-4.0, metric.Unit(length=2)).root(2)
    assert physical.Value(-8.0).root(3).number == pytest.approx(-2.0)


def test_power_overflow(units: dict):
    """Results too large to represent raise an error."""
    with pytest.raises(errors.NumericOverflow):
        physical.Value(10.0).power(400)
    with pytest.raises(errors.NumericOverflow):
        physical.Value(2.0, units['meter']).power(2**63)
    assert physical.Value(1.0).power(10**20) == physical.scalar(1.0)
    assert physical.Value(0.5).power(10**20) == physical.scalar(0.0)


def test_division_by_zero(units: dict):
    """Inverting or dividing by zero is an error."""
    zero = physical.Value(0.0, units['second'])
    with pytest.raises(errors.DivisionByZero):
        zero.invert()
    with pytest.raises(errors.DivisionByZero):
        physical.Value(1.0).divide(zero)
    with pytest.raises(errors.DivisionByZero):
        zero.power(-1)


@pytest.fixture
def literals(units: dict):
    """Literal strings and the value each should produce."""
    return {
        '10kg': (10.0, units['kilogram']),
        '5kg': (5.0, units['kilogram']),
        '5g': (0.005, units['kilogram']),
        '3.3v': (3.3, units['volt']),
        '2a': (2.0, units['ampere']),
        '1.5km': (1500.0, units['meter']),
        '9.8m/s^2': (9.8, metric.Unit(length=1, time=-2)),
        '5N/m^2': (5.0, metric.Unit(length=-1, mass=1, time=-2)),
        '1k_': (1000.0, units['scalar']),
        '1000_': (1000.0, units['scalar']),
        '42': (42.0, units['scalar']),
        '-.5': (-0.5, units['scalar']),
        'm': (1.0, units['meter']),
        '2 mA': (2e-3, units['ampere']),
    }


def test_fromstring(literals: dict):
    """Test creating values from literal strings."""
    for string, (number, unit) in literals.items():
        value = physical.Value.fromstring(string)
        assert value.unit == unit, string
        assert value.number == pytest.approx(number), string


def test_fromstring_prefix_precision():
    """Negative prefix powers scale numbers without rounding error."""
    assert physical.Value.fromstring('5μm').number == 5e-06
    assert physical.Value.fromstring('5um').number == 5e-06
    assert physical.Value.fromstring('3nm').number == 3e-09
    assert physical.Value.fromstring('7g').number == 0.007


def test_fromstring_errors():
    """Invalid literals raise specific errors."""
    with pytest.raises(errors.UnrecognizedUnit):
        physical.Value.fromstring('3xyz')
    with pytest.raises(errors.NumberParseError):
        physical.Value.fromstring('1.2.3m')
    with pytest.raises(errors.IntegerParseError):
        physical.Value.fromstring('2m^x')


def test_isclose(units: dict):
    """Closeness requires equal units."""
    a = physical.Value(0.1 + 0.2, units['meter'])
    b = physical.Value(0.3, units['meter'])
    assert a != b
    assert a.isclose(b)
    assert not a.isclose(physical.Value(0.3, units['second']))
    assert not a.isclose(physical.Value(0.31, units['meter']))


def test_float():
    """Only dimensionless values convert to float."""
    assert float(physical.Value(2.5)) == 2.5
    with pytest.raises(TypeError):
        float(physical.Value(2.5, metric.Unit(length=1)))


def test_format(registry: metric.Registry, units: dict):
    """Test string representations of values."""
    force = physical.Value(98.0, units['newton'])
    assert str(force) == '98 kg*m*s^-2'
    assert force.format(registry) == '98 N'
    assert str(physical.Value(0.25)) == '0.25'
    assert physical.Value(0.25).format(registry) == '0.25'
    assert str(physical.Value(2.0, metric.Unit(length=3))) == '2 m^3'
    odd = physical.Value(2.0, metric.Unit(length=3))
    assert odd.format(registry) == '2 m^3'
    assert repr(force) == 'core.physical.Value(98 kg*m*s^-2)'
