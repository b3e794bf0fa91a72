import collections.abc
import typing


_KT = typing.TypeVar('_KT')
_VT = typing.TypeVar('_VT')


class Group(collections.abc.Set, typing.Generic[_KT]):
    """A group of associated aliases."""

    __slots__ = ('_aliases',)

    def __init__(self, *a: typing.Union[_KT, typing.Iterable[_KT]]) -> None:
        aliases = []
        for arg in a:
            if isinstance(arg, (Group, tuple, list, set, frozenset)):
                aliases.extend(arg)
            else:
                aliases.append(arg)
        if not aliases:
            raise TypeError("At least one alias is required") from None
        self._aliases = tuple(dict.fromkeys(aliases))

    def __iter__(self):
        return iter(self._aliases)

    def __len__(self) -> int:
        return len(self._aliases)

    def __contains__(self, key) -> bool:
        return key in self._aliases

    def __hash__(self) -> int:
        """Compute the hash of the underlying alias set."""
        return hash(frozenset(self._aliases))

    @property
    def primary(self) -> _KT:
        """The first alias given at creation."""
        return self._aliases[0]

    def __str__(self) -> str:
        """A simplified representation of this instance."""
        return ' | '.join(str(k) for k in self._aliases)

    def __repr__(self) -> str:
        """An unambiguous representation of this instance."""
        return f"aliased.Group({', '.join(repr(k) for k in self._aliases)})"


class Mapping(collections.abc.Mapping, typing.Generic[_KT, _VT]):
    """A read-only mapping class that supports aliased keys.

    Examples
    --------
    Create an instance from a standard `dict` with strings or tuples of strings
    as keys.

    >>> amap = aliased.Mapping({'m': 1, ('V', 'v'): 2})
    >>> amap
    aliased.Mapping('m': 1, 'V | v': 2)

    The caller may access an individual item by any one (but only one) of its
    valid aliases.

    >>> amap['V']
    2
    >>> amap['v']
    2
    >>> amap[('V', 'v')]
    ...
    KeyError: ('V', 'v')

    Iterating produces de-aliased keys, and the length counts every alias.

    >>> list(amap)
    ['m', 'V', 'v']
    >>> len(amap)
    3

    Users may access all aliases for a given key via the `alias` method.

    >>> amap.alias('v')
    aliased.Group('V', 'v')

    Notes
    -----
    Creating an instance in which two groups share an alias raises a
    `KeyError`, since the shared alias would be ambiguous.
    """

    def __init__(
        self,
        mapping: typing.Union[
            typing.Mapping[typing.Union[_KT, typing.Tuple[_KT, ...]], _VT],
            typing.Iterable[typing.Tuple[typing.Any, _VT]],
        ]=None,
    ) -> None:
        if isinstance(mapping, Mapping):
            items = mapping._groups.items()
        elif isinstance(mapping, collections.abc.Mapping):
            items = mapping.items()
        else:
            items = mapping or ()
        self._groups: typing.Dict[Group, _VT] = {}
        self._flat: typing.Dict[_KT, Group] = {}
        for key, value in items:
            group = Group(key)
            for alias in group:
                if alias in self._flat:
                    raise KeyError(
                        f"{alias!r} is already an alias"
                        f" for {str(self._flat[alias])!r}"
                    ) from None
                self._flat[alias] = group
            self._groups[group] = value

    def __getitem__(self, key: _KT) -> _VT:
        """Look up a value by any one of its aliases."""
        try:
            group = self._flat[key]
        except (KeyError, TypeError):
            raise KeyError(key) from None
        return self._groups[group]

    def __iter__(self) -> typing.Iterator[_KT]:
        return iter(self._flat)

    def __len__(self) -> int:
        return len(self._flat)

    def alias(self, key: _KT) -> Group:
        """The full group of aliases that includes `key`."""
        try:
            return self._flat[key]
        except KeyError:
            raise KeyError(key) from None

    def groups(self) -> typing.List[Group]:
        """The alias groups, in the order of creation."""
        return list(self._groups)

    @property
    def flat(self) -> typing.Dict[_KT, _VT]:
        """The equivalent de-aliased `dict`."""
        return {k: self._groups[g] for k, g in self._flat.items()}

    def __str__(self) -> str:
        """A simplified representation of this object."""
        return ', '.join(
            f"'{group}': {value!r}" for group, value in self._groups.items()
        )

    def __repr__(self) -> str:
        """An unambiguous representation of this object."""
        return f"aliased.Mapping({self})"


class MutableMapping(Mapping[_KT, _VT]):
    """An aliased mapping that accepts new groups of aliases.

    Assigning to a tuple of keys creates a new group; assigning to a single
    existing alias updates the value of its group.

    >>> amap = aliased.MutableMapping()
    >>> amap['N', 'n'] = 'newton'
    >>> amap['n']
    'newton'
    >>> amap['N', 'newton'] = 'again'
    ...
    KeyError: "'N' is already an alias for 'N | n'"
    """

    def __setitem__(self, key, value: _VT) -> None:
        if not isinstance(key, tuple) and key in self._flat:
            self._groups[self._flat[key]] = value
            return
        group = Group(key)
        for alias in group:
            if alias in self._flat:
                raise KeyError(
                    f"{alias!r} is already an alias"
                    f" for {str(self._flat[alias])!r}"
                ) from None
        for alias in group:
            self._flat[alias] = group
        self._groups[group] = value

    def __repr__(self) -> str:
        """An unambiguous representation of this object."""
        return f"aliased.MutableMapping({self})"
