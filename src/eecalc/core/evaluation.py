import inspect
import logging
import typing

from eecalc.core import errors
from eecalc.core import lexical
from eecalc.core import metric
from eecalc.core import physical
from eecalc.core import syntax


logger = logging.getLogger(__name__)


Value = physical.Value
Operator = lexical.Operator


def _absolute(x: Value) -> Value:
    """The magnitude of `x`, in the same unit."""
    return abs(x)


def _square_root(x: Value) -> Value:
    """The square root of `x`, which must have even unit exponents."""
    if x.number < 0:
        raise errors.DomainError('sqrt', x)
    return x.root(2)


def _same_unit(values: typing.Sequence[Value]) -> None:
    """Raise an exception if `values` do not all share a unit."""
    first = values[0].unit
    for value in values[1:]:
        if value.unit != first:
            raise errors.DimensionMismatch(first, value.unit)


def _minimum(x: Value, *others: Value) -> Value:
    """The smallest of the given values, which must share a unit."""
    values = (x, *others)
    _same_unit(values)
    return min(values, key=lambda v: v.number)


def _maximum(x: Value, *others: Value) -> Value:
    """The largest of the given values, which must share a unit."""
    values = (x, *others)
    _same_unit(values)
    return max(values, key=lambda v: v.number)


FUNCTIONS = {
    'abs': _absolute,
    'sqrt': _square_root,
    'min': _minimum,
    'max': _maximum,
}
"""The built-in functions available to every expression."""


_arithmetic = {
    Operator.PLUS: Value.add,
    Operator.MINUS: Value.subtract,
    Operator.TIMES: Value.multiply,
    Operator.DIVIDE: Value.divide,
}


class Evaluator:
    """Reduce an expression tree to a single physical value.

    Parameters
    ----------
    registry : `~metric.Registry`, optional
        The registry in which to resolve bare unit names such as ``m`` in
        ``10 / m``. Defaults to the process-wide registry.

    variables : mapping of str to `~physical.Value`, optional
        Values for named variables. A variable shadows a unit with the same
        name.

    functions : mapping of str to callable, optional
        The functions that expressions may call. Each callable receives
        evaluated `~physical.Value` arguments and returns a new value.
        Defaults to `FUNCTIONS`.
    """

    def __init__(
        self,
        registry: metric.Registry=None,
        variables: typing.Mapping[str, Value]=None,
        functions: typing.Mapping[str, typing.Callable[..., Value]]=None,
    ) -> None:
        self.registry = metric.registry() if registry is None else registry
        self.variables = dict(variables or {})
        self.functions = dict(FUNCTIONS if functions is None else functions)

    def evaluate(self, node: syntax.Node) -> Value:
        """Compute the value of `node` and its descendants."""
        method = self._get_evaluate_method(node)
        return method(node)

    def _get_evaluate_method(self, node: syntax.Node):
        """Get the appropriate method for evaluating `node`."""
        name = f'_evaluate_{node.kind}'
        if method := getattr(self, name, None):
            return method
        raise TypeError(f"Can't evaluate node of kind {node.kind!r}") from None

    def _evaluate_literal(self, node: syntax.Literal) -> Value:
        return node.value

    def _evaluate_variable(self, node: syntax.Variable) -> Value:
        """Look up a named variable, then a named unit."""
        if node.name in self.variables:
            return self.variables[node.name]
        if scaled := self.registry.lookup(node.name):
            return Value(scaled.factor, scaled.unit)
        raise errors.UnrecognizedUnit(node.name, node.position)

    def _evaluate_function(self, node: syntax.Function) -> Value:
        """Call a named function with evaluated arguments."""
        function = self.functions.get(node.name)
        if function is None:
            raise errors.UnknownFunction(node.name, node.position)
        arguments = [self.evaluate(argument) for argument in node.arguments]
        _check_arguments(node.name, function, arguments)
        return function(*arguments)

    def _evaluate_unary(self, node: syntax.Unary) -> Value:
        operand = self.evaluate(node.operand)
        if node.operator == Operator.MINUS:
            return operand.negate()
        return operand

    def _evaluate_binary(self, node: syntax.Binary) -> Value:
        """Apply an infix operator to evaluated operands."""
        left = self.evaluate(node.left)
        right = self.evaluate(node.right)
        if node.operator in _arithmetic:
            return _arithmetic[node.operator](left, right)
        if node.operator == Operator.RAISE:
            if not right.unit.dimensionless:
                raise errors.InvalidExponent(
                    f"exponent has unit {str(right.unit)!r}"
                ) from None
            return left.power(right.number)
        if node.operator == Operator.EQUALS:
            if left.unit != right.unit:
                raise errors.DimensionMismatch(left.unit, right.unit)
            return physical.scalar(1.0 if left.isclose(right) else 0.0)
        raise TypeError(f"Unknown binary operator {node.operator!r}")

    def _evaluate_group(self, node: syntax.Group) -> Value:
        return self.evaluate(node.inner)


def _check_arguments(
    name: str,
    function: typing.Callable,
    arguments: typing.Sequence[Value],
) -> None:
    """Raise an exception if `function` can't accept `arguments`."""
    signature = inspect.signature(function)
    try:
        signature.bind(*arguments)
    except TypeError:
        raise errors.ArgumentCountError(
            name,
            _describe_arity(signature),
            len(arguments),
        ) from None


def _describe_arity(signature: inspect.Signature) -> str:
    """Describe the number of positional arguments `signature` accepts."""
    kinds = [p.kind for p in signature.parameters.values()]
    required = sum(
        1 for p in signature.parameters.values()
        if p.default is p.empty and p.kind in {
            p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD,
        }
    )
    if inspect.Parameter.VAR_POSITIONAL in kinds:
        return f"at least {required}"
    return str(required)


def parse_and_evaluate(
    string: str,
    registry: metric.Registry=None,
    variables: typing.Mapping[str, Value]=None,
) -> Value:
    """Compute the physical value of a unit-aware arithmetic expression.

    Parameters
    ----------
    string : str
        The expression to evaluate (e.g., ``'10kg * 9.8m/s^2'``).

    registry : `~metric.Registry`, optional
        The registry in which to resolve unit symbols. Defaults to the
        process-wide registry.

    variables : mapping of str to `~physical.Value`, optional
        Values for named variables in `string`.

    Returns
    -------
    `~physical.Value`

    Raises
    ------
    `~errors.CalculationError`
        Any parsing or evaluation error, unchanged.

    Examples
    --------
    >>> result = parse_and_evaluate('10kg * 9.8m/s^2')
    >>> print(result)
    98 kg*m*s^-2
    >>> print(result.format(metric.registry()))
    98 N
    """
    registry = metric.registry() if registry is None else registry
    tree = syntax.Parser(registry).parse(string)
    result = Evaluator(registry, variables).evaluate(tree)
    logger.debug("evaluated %r as %s", string, result)
    return result
