"""
Bound arguments: the immutable result of Arguments.bind().

A Bound is both
- the ordered token list handed to git (iterate it, or call to_list()), and
- a closed field table with one read-only accessor per declared option and
  operand, under its primary name.

Field tables are generated once per schema by shape(): it derives a Bound
subclass whose class body holds one property per field (plus an is_<name>()
predicate for flag options). Attribute access to anything else, aliases
included, raises AttributeError. Names that would shadow the Bound API (see
RESERVED_NAMES) get no accessor but stay reachable through bound["name"].

    >>> bound = ARGS.bind("branch1", force=True)
    >>> ["git", "branch", *bound]
    ['git', 'branch', '--force', 'branch1']
    >>> bound.force, bound.is_force(), bound["branch_names"]
    (True, True, ('branch1',))
"""
from types import MappingProxyType

from .utils import *


class Bound:
    """
    Frozen snapshot of one successful bind.

    Instances are created by Arguments.bind() through a shape()-derived
    subclass; they cannot be mutated once constructed.
    """
    __slots__ = ("_tokens", "_fields", "_execution_options")
    __fields__ = ()

    def __init__(self, tokens, fields, execution_options=MappingProxyType({}), /):
        object.__setattr__(self, "_tokens", tuple(tokens))
        object.__setattr__(self, "_fields", MappingProxyType(dict(fields)))
        object.__setattr__(self, "_execution_options", MappingProxyType(dict(execution_options)))

    def __setattr__(self, name, value, /):
        raise AttributeError(f"{type(self).__name__!r} object is immutable")

    def __delattr__(self, name, /):
        raise AttributeError(f"{type(self).__name__!r} object is immutable")

    def __iter__(self):
        return iter(self._tokens)

    def __len__(self):
        return len(self._tokens)

    def __getitem__(self, name, /):
        """
        Field lookup by primary name; None for undeclared names.
        """
        return self._fields.get(name)

    def __contains__(self, name, /):
        return name in self._fields

    def __eq__(self, other, /):
        if isinstance(other, Bound):
            return self._tokens == other._tokens and self._fields == other._fields
        if isinstance(other, list | tuple):
            return list(self._tokens) == list(other)
        return NotImplemented

    def __hash__(self):
        return hash(self._tokens)

    def __repr__(self):
        return f"bound({list(self._tokens)!r})"

    def __rich_repr__(self):
        yield "tokens", list(self._tokens)
        yield "fields", dict(self._fields)
        if self._execution_options:
            yield "execution_options", dict(self._execution_options)

    def to_list(self):
        return list(self._tokens)

    def fields(self):
        return self._fields

    def keys(self):
        return self._fields.keys()

    def get(self, name, default=None, /):
        return self._fields.get(name, default)

    @property
    def execution_options(self):
        """
        Non-None execution-only option values, forwarded to the execution context.
        """
        return self._execution_options


RESERVED_NAMES = frozenset(dir(Bound))
"""
Names no field accessor may take: everything a Bound instance already answers to.
"""


def _accessor(name, /):
    @rename(name)
    def getter(self):
        return self._fields[name]
    return property(getter)


def _predicate(name, /):
    @rename("is_" + name)
    def predicate(self):
        return bool(self._fields[name])
    return predicate


def shape(fields, predicates=(), /, name="Bound"):
    """
    Build the Bound subclass for one schema.

    Parameters
    - fields: primary names of every option and operand, in declaration order.
    - predicates: names of flag options that also get an is_<name>() method.
    - name: class name, used in repr and error messages.
    """
    namespace = {"__slots__": (), "__fields__": tuple(fields)}
    for field in fields:
        if field not in RESERVED_NAMES:
            namespace[field] = _accessor(field)
    for field in predicates:
        if (predicate := "is_" + field) not in RESERVED_NAMES and predicate not in namespace:
            namespace[predicate] = _predicate(field)
    return type(name, (Bound,), namespace)


__all__ = (
    "Bound",
    "RESERVED_NAMES",
    "shape",
)
