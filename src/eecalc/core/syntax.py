import abc
import logging
import typing

from eecalc.core import errors
from eecalc.core import iterables
from eecalc.core import lexical
from eecalc.core import metric
from eecalc.core import physical


logger = logging.getLogger(__name__)


Operator = lexical.Operator
Separator = lexical.Separator


UNARY = 1
"""The precedence of unary '+' and '-', tighter than every binary operator."""

PRECEDENCE = {
    Operator.RAISE: 2,
    Operator.TIMES: 3,
    Operator.DIVIDE: 3,
    Operator.PLUS: 4,
    Operator.MINUS: 4,
    Operator.EQUALS: 5,
}
"""The binding strength of each binary operator; lower binds tighter."""

if set(PRECEDENCE) != set(Operator):
    raise RuntimeError(
        f"Missing binary precedence for {set(Operator) - set(PRECEDENCE)}"
    )

RIGHT_ASSOCIATIVE = frozenset({Operator.RAISE})
"""Binary operators that group from right to left."""


MAX_DEPTH = 100
"""The deepest expression tree, or nesting of groups and calls, to accept."""


def precedence(operator: Operator) -> int:
    """The binding strength of a binary operator; lower binds tighter."""
    return PRECEDENCE[operator]


class Node(abc.ABC, iterables.ReprStrMixin):
    """Base class for nodes in an expression tree.

    Subclasses assign their child nodes before calling `Node.__init__`,
    which records the depth of the tree.
    """

    kind: str = None
    """The name of the production that built this node."""

    def __init__(self, position: int=None) -> None:
        self.position = position
        """The index of this node's first character in the input string."""
        self.depth = 1 + max((c.depth for c in self.children), default=0)
        """The number of levels in the tree rooted at this node."""

    @property
    @abc.abstractmethod
    def children(self) -> typing.Tuple['Node', ...]:
        """The nodes that this node exclusively owns."""
        pass

    def walk(self) -> typing.Iterator['Node']:
        """Iterate over this node and its descendants, depth first."""
        yield self
        for child in self.children:
            yield from child.walk()


class Literal(Node):
    """A number with an optional unit suffix, such as ``9.8m/s^2``."""

    kind = 'literal'

    def __init__(
        self,
        text: str,
        value: physical.Value,
        position: int=None,
    ) -> None:
        self.text = text
        self.value = value
        super().__init__(position)

    @property
    def children(self):
        return ()

    def __str__(self) -> str:
        return self.text


class Variable(Node):
    """A bare identifier."""

    kind = 'variable'

    def __init__(self, name: str, position: int=None) -> None:
        self.name = name
        super().__init__(position)

    @property
    def children(self):
        return ()

    def __str__(self) -> str:
        return self.name


class Function(Node):
    """A call such as ``max(1m, 2m)``."""

    kind = 'function'

    def __init__(
        self,
        name: str,
        arguments: typing.Iterable[Node],
        position: int=None,
    ) -> None:
        self.name = name
        self.arguments = tuple(arguments)
        super().__init__(position)

    @property
    def children(self):
        return self.arguments

    def __str__(self) -> str:
        return f"{self.name}({', '.join(str(a) for a in self.arguments)})"


class Unary(Node):
    """A prefix '+' or '-' and its operand."""

    kind = 'unary'

    def __init__(
        self,
        operator: Operator,
        operand: Node,
        position: int=None,
    ) -> None:
        self.operator = operator
        self.operand = operand
        super().__init__(position)

    @property
    def children(self):
        return (self.operand,)

    def __str__(self) -> str:
        return f"{self.operator}{self.operand}"


class Binary(Node):
    """An infix operator and its two operands."""

    kind = 'binary'

    def __init__(
        self,
        operator: Operator,
        left: Node,
        right: Node,
    ) -> None:
        self.operator = operator
        self.left = left
        self.right = right
        super().__init__(left.position)

    @property
    def children(self):
        return (self.left, self.right)

    def __str__(self) -> str:
        return f"({self.left} {self.operator} {self.right})"


class Group(Node):
    """A parenthesized sub-expression."""

    kind = 'group'

    def __init__(self, inner: Node, position: int=None) -> None:
        self.inner = inner
        super().__init__(position)

    @property
    def children(self):
        return (self.inner,)

    def __str__(self) -> str:
        return str(self.inner)


class Entry(typing.NamedTuple):
    """An item on the parser stack.

    The `tag` is one of 'operand', 'unary', or 'binary'. The `item` is a
    `Node` for an operand and an `Operator` otherwise.
    """

    tag: str
    item: typing.Union[Node, Operator]
    position: int

    @property
    def precedence(self) -> typing.Optional[int]:
        """The binding strength of an operator entry."""
        if self.tag == 'unary':
            return UNARY
        if self.tag == 'binary':
            return precedence(self.item)


class Stack(iterables.ReprStrMixin):
    """The operand and operator stack of a single (sub-)expression.

    Entries alternate between operands and operators, except that unary
    operators may precede an operand directly. Every method that removes
    entries checks their tags, so a malformed stack raises an error instead
    of building a wrong tree.
    """

    def __init__(self) -> None:
        self._entries: typing.List[Entry] = []

    def push_operand(self, node: Node) -> None:
        """Shift a completed value."""
        if node.depth > MAX_DEPTH:
            raise errors.NestingTooDeep(MAX_DEPTH, node.position)
        self._entries.append(Entry('operand', node, node.position))

    def push_unary(self, token: lexical.Token) -> None:
        """Shift a prefix operator."""
        self._entries.append(Entry('unary', token.value, token.start))

    def push_binary(self, token: lexical.Token) -> None:
        """Shift an infix operator."""
        self._entries.append(Entry('binary', token.value, token.start))

    @property
    def pending(self) -> typing.Optional[Entry]:
        """The operator that would apply to the topmost operand, if any."""
        if len(self._entries) > 1:
            return self._entries[-2]

    def reduce(self) -> None:
        """Replace the topmost operation with a single operand."""
        right = self._pop('operand')
        operator = self._pop('unary', 'binary')
        if operator.tag == 'unary':
            node = Unary(operator.item, right.item, operator.position)
        else:
            left = self._pop('operand')
            node = Binary(operator.item, left.item, right.item)
        self.push_operand(node)

    def result(self) -> Node:
        """Reduce all operations and return the only remaining operand."""
        while self.pending:
            self.reduce()
        return self._pop('operand').item

    def _pop(self, *tags: str) -> Entry:
        """Remove the topmost entry, which must have one of `tags`."""
        if not self._entries:
            raise errors.ExpectedValue()
        entry = self._entries[-1]
        if entry.tag not in tags:
            if 'operand' in tags:
                raise errors.ExpectedValue(entry.position)
            raise errors.ExpectedOperator(entry.position)
        return self._entries.pop()

    def __len__(self) -> int:
        return len(self._entries)

    def __str__(self) -> str:
        return ' '.join(str(entry.item) for entry in self._entries)


class State(iterables.ReprStrMixin):
    """The mutable parsing state of a single (sub-)expression."""

    __slots__ = ('stack', 'completed', 'depth')

    def __init__(
        self,
        stack: Stack=None,
        completed: bool=False,
        depth: int=0,
    ) -> None:
        self.stack = Stack() if stack is None else stack
        self.completed = completed
        """True if the last shifted entry was a complete value."""
        self.depth = depth
        """The number of groups and calls that enclose this expression."""

    def __str__(self) -> str:
        return (
            f"stack=[{self.stack}], completed={self.completed},"
            f" depth={self.depth}"
        )


class Parser:
    """An operator-precedence parser for unit-aware expressions.

    Parameters
    ----------
    registry : `~metric.Registry`, optional
        The registry in which to resolve the unit suffixes of literals.
        Defaults to the process-wide registry.

    Examples
    --------
    >>> parser = Parser()
    >>> print(parser.parse('2 + 3*4'))
    (2 + (3 * 4))
    >>> print(parser.parse('10kg * 9.8m/s^2'))
    (10kg * 9.8m/s^2)
    """

    def __init__(self, registry: metric.Registry=None) -> None:
        self.registry = metric.registry() if registry is None else registry

    def parse(self, string: str) -> Node:
        """Parse `string` into an expression tree.

        Raises
        ------
        `~errors.EarlyEndOfInput`
            If the string is empty or ends while a value is still required.

        `~errors.ExpectedOperator`
            If a complete value is followed by something other than an
            operator.

        `~errors.UnmatchedSeparator`
            If there is a ')' without a corresponding '('.

        `~errors.NestingTooDeep`
            If the tree would be deeper than `MAX_DEPTH`.
        """
        scanner = lexical.Scanner(string)
        if scanner.exhausted:
            raise errors.EarlyEndOfInput(0)
        tree = self._parse_expression(scanner)
        if not scanner.exhausted:
            position = scanner.start
            if scanner.try_separator(Separator.CLOSE):
                raise errors.UnmatchedSeparator(position)
            raise errors.ExpectedOperator(position)
        logger.debug("parsed %r as %s", string, tree)
        return tree

    def _parse_expression(
        self,
        scanner: lexical.Scanner,
        depth: int=0,
    ) -> Node:
        """Parse up to the first token that is not part of an operation."""
        if depth > MAX_DEPTH:
            raise errors.NestingTooDeep(MAX_DEPTH, scanner.start)
        state = State(depth=depth)
        self._shift_value(scanner, state)
        while True:
            token = self._next_operator(scanner, state)
            while state.stack.pending and not self._shifts(token, state):
                state.stack.reduce()
            if token is None:
                return state.stack.result()
            state.stack.push_binary(token)
            state.completed = False
            self._shift_value(scanner, state)

    def _next_operator(
        self,
        scanner: lexical.Scanner,
        state: State,
    ) -> typing.Optional[lexical.Token]:
        """Consume the binary operator after a complete value, if any."""
        if not state.completed:
            raise errors.ExpectedValue(scanner.start)
        return scanner.try_operator()

    def _shifts(
        self,
        token: typing.Optional[lexical.Token],
        state: State,
    ) -> bool:
        """True if `token` binds tighter than the pending operator."""
        if token is None:
            return False
        current = precedence(token.value)
        pending = state.stack.pending.precedence
        if current == pending:
            return token.value in RIGHT_ASSOCIATIVE
        return current < pending

    def _shift_value(self, scanner: lexical.Scanner, state: State) -> None:
        """Shift any prefix operators and the value that follows them."""
        if state.completed:
            raise errors.ExpectedOperator(scanner.start)
        node = self._try_literal(scanner)
        while node is None and (
            token := scanner.try_operator(Operator.PLUS, Operator.MINUS)
        ):
            state.stack.push_unary(token)
            node = self._try_literal(scanner)
        if node is None:
            node = self._parse_primary(scanner, state.depth)
        state.stack.push_operand(node)
        state.completed = True

    def _try_literal(
        self,
        scanner: lexical.Scanner,
    ) -> typing.Optional[Literal]:
        """Consume a number and any adjacent unit suffix, if possible."""
        number = scanner.try_number()
        if number is None:
            return
        suffix = scanner.try_unit()
        text = number.text + (suffix.text if suffix else '')
        try:
            value = physical.Value.fromstring(text, self.registry)
        except errors.CalculationError as err:
            if err.position is None:
                err.position = number.start
            raise
        return Literal(text, value, number.start)

    def _parse_primary(self, scanner: lexical.Scanner, depth: int) -> Node:
        """Parse a group, a function call, or a variable.

        A word is the name of a function only if '(' follows it directly,
        so ``m (2)`` is a variable followed by a group.
        """
        start = scanner.start
        if scanner.try_separator(Separator.OPEN):
            inner = self._parse_expression(scanner, depth + 1)
            self._expect_close(scanner, Separator.CLOSE)
            return Group(inner, start)
        if word := scanner.try_word():
            if scanner.peek() == Separator.OPEN.value:
                scanner.advance()
                arguments = self._parse_arguments(scanner, depth + 1)
                return Function(word.text, arguments, start)
            return Variable(word.text, start)
        if scanner.exhausted:
            raise errors.EarlyEndOfInput(len(scanner.string))
        raise errors.ExpectedValue(start)

    def _parse_arguments(
        self,
        scanner: lexical.Scanner,
        depth: int,
    ) -> typing.List[Node]:
        """Parse comma-separated arguments through the closing ')'."""
        arguments = []
        if scanner.try_separator(Separator.CLOSE):
            return arguments
        while True:
            arguments.append(self._parse_expression(scanner, depth))
            found = self._expect_close(
                scanner, Separator.COMMA, Separator.CLOSE
            )
            if found.value == Separator.CLOSE:
                return arguments

    def _expect_close(
        self,
        scanner: lexical.Scanner,
        *allowed: Separator,
    ) -> lexical.Token:
        """Consume one of the `allowed` separators or raise an error."""
        if token := scanner.try_separator(*allowed):
            return token
        if scanner.exhausted:
            raise errors.EarlyEndOfInput(len(scanner.string))
        raise errors.ExpectedSeparator(
            [str(s) for s in allowed],
            scanner.start,
        )


def parse(string: str, registry: metric.Registry=None) -> Node:
    """Parse `string` with a new `Parser`."""
    return Parser(registry).parse(string)
