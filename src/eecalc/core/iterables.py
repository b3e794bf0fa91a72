import collections
import collections.abc
import typing


class _Attributes(collections.abc.Mapping):
    """Read-only access to an object's attributes by name.

    Callable attributes are called without arguments, so a format template
    may name either a property or a zero-argument method.
    """

    def __init__(self, target: typing.Any) -> None:
        self._target = target

    def __getitem__(self, key: str):
        try:
            value = getattr(self._target, key)
        except AttributeError:
            raise KeyError(key) from None
        return value() if callable(value) else value

    def __iter__(self):
        return iter(dir(self._target))

    def __len__(self) -> int:
        return len(dir(self._target))


class Templates(collections.UserDict):
    """Format templates for `__str__` and `__repr__`.

    An empty template means the default representation.
    """

    _keys = ('__str__', '__repr__')

    def __init__(self) -> None:
        super().__init__(dict.fromkeys(self._keys, ''))

    def __setitem__(self, key: str, template: str) -> None:
        if key not in self._keys:
            raise KeyError(
                f"Templates exist only for {', '.join(self._keys)}"
            ) from None
        self.data[key] = template

    def render(self, key: str, target: typing.Any) -> str:
        """Fill in the named template from attributes of `target`."""
        return self.data[key].format_map(_Attributes(target))


class ReprStrMixin:
    """A mixin class that formats `__str__` and `__repr__` from templates.

    A subclass may assign a template such as ``"{number} {unit}"`` to
    ``self.display['__str__']`` or override `__str__` directly. The default
    `__repr__` wraps the string form in the class name, qualified by its
    module within this package (e.g., ``core.metric.Unit(m)``).
    """

    _display: typing.Optional[Templates] = None

    @property
    def display(self) -> Templates:
        """The format templates of this instance."""
        if self._display is None:
            self._display = Templates()
        return self._display

    def __str__(self) -> str:
        return self.display.render('__str__', self)

    def __repr__(self) -> str:
        inner = self.display.render('__repr__', self) or str(self)
        module = self.__module__.replace('eecalc.', '', 1)
        return f"{module}.{type(self).__qualname__}({inner})"
