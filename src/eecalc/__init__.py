import logging

from eecalc.core.evaluation import parse_and_evaluate as evaluate


# read version from installed package
from importlib.metadata import version
__version__ = version("eecalc")


logging.getLogger(__name__).addHandler(logging.NullHandler())
