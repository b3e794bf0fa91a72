import pytest

from eecalc.core import metric


@pytest.fixture
def registry() -> metric.Registry:
    """The process-wide default unit registry."""
    return metric.registry()


@pytest.fixture
def units():
    """Unit vectors of common named units, in base dimensions."""
    return {
        'scalar': metric.Unit(),
        'meter': metric.Unit(length=1),
        'kilogram': metric.Unit(mass=1),
        'second': metric.Unit(time=1),
        'ampere': metric.Unit(current=1),
        'hertz': metric.Unit(time=-1),
        'newton': metric.Unit(length=1, mass=1, time=-2),
        'joule': metric.Unit(length=2, mass=1, time=-2),
        'watt': metric.Unit(length=2, mass=1, time=-3),
        'volt': metric.Unit(length=2, mass=1, time=-3, current=-1),
        'ohm': metric.Unit(length=2, mass=1, time=-3, current=-2),
    }
