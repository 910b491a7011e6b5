"""
gitbind utilities (internal helpers, carefully exposed)

Scope
- Small building blocks shared by the options, arguments and bound layers.

Overview
- UnsetType / Unset
  • Singleton sentinel for "not provided" when None is a meaningful caller value
    (an operand explicitly bound to None is not the same as an omitted one).
  • Falsey, printable as "Unset", non-subclassable.

- coalesce(value, default=None)
  • Replace Unset with a concrete default; None/0/""/[] are preserved.

- rename(callable, name) / @rename("name")
  • Assign stable __name__/__qualname__ to generated accessors.

- snapshot(value)
  • Deep immutable copy of a caller value (tuples, read-only mappings).

- mirror("attr")
  • Read-only property over a private backing field (self._attr) returning
    immutable views for containers.

- optionize(name) / negate(flag) / symbolize(name) / enumerate_names(names)
  • Name-to-flag derivation and the ":name" notation used in every message.

Quick examples
    >>> optionize("dry_run")
    '--dry-run'
    >>> optionize("f")
    '-f'
    >>> negate("-f")
    '--no-f'
    >>> enumerate_names(["patch", "stat"])
    ':patch, :stat'
"""
import builtins
import functools
from collections.abc import Mapping, Sequence, Set
from types import MappingProxyType
from typing import final


@final
class UnsetType:
    """
    Sentinel type representing a value that was not provided.

    Characteristics
    - Boolean-false, distinct from None.
    - repr(Unset) -> "Unset".
    - Singleton: UnsetType() always yields the same instance.
    """

    def __or__(self, other, /):
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    def __ror__(self, other, /):
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __reduce__(self):
        return "Unset"

    def __init_subclass__(cls, **options):
        raise TypeError("type 'UnsetType' is not an acceptable base type")


def coalesce(object, default=None, /):
    """
    Resolve the Unset sentinel to a concrete default.

    Falsey values such as None, 0, "" or [] are returned unchanged; only
    Unset is replaced.

    Examples
    - coalesce("HEAD", "main") -> "HEAD"
    - coalesce(Unset, "main")  -> "main"
    - coalesce(None, "main")   -> None
    """
    return object if object is not Unset else default


def rename(*parameters):
    """
    Set a stable __name__/__qualname__ on a callable, or return a decorator
    that will do so later.

    Forms
    - rename(callable, name) -> callable
    - rename(name) -> decorator
    """
    match len(parameters):
        case 2:
            callable, name = parameters
            if not builtins.callable(callable):
                raise TypeError("rename() first argument must be callable")
            if not isinstance(name, str):
                raise TypeError("rename() second argument must be a string")
            try:
                callable.__qualname__ = name
                callable.__name__ = name
            except (AttributeError, TypeError):
                raise TypeError("rename() first argument must be a updatable callable") from None
            return callable
        case 1:
            name, = parameters
            if not isinstance(name, str):
                raise TypeError("@rename() argument must be a string")

            def wrapper(callable):
                if not builtins.callable(callable):
                    raise TypeError("@rename() must be applied to a callable")
                return rename(callable, name)

            return rename(wrapper, "rename")
        case _:
            raise TypeError("rename takes 1 to 2 arguments but %d were given" % len(parameters))


def _freeze(object):
    """
    Return an immutable view of a backing value.

    - Sequence (non-string) → tuple
    - Mapping               → MappingProxyType
    - Set                   → frozenset
    - anything else         → as-is
    """
    if isinstance(object, Sequence) and not isinstance(object, str | bytes):
        return tuple(object)
    elif isinstance(object, Mapping):
        return MappingProxyType(object)
    elif isinstance(object, Set):
        return frozenset(object)
    return object


def snapshot(object, /):
    """
    Deep immutable copy of a caller value: lists and tuples become tuples,
    mappings become read-only copies, sets become frozensets. Scalars are
    returned as-is.
    """
    if isinstance(object, list | tuple):
        return tuple(map(snapshot, object))
    elif isinstance(object, Mapping):
        return MappingProxyType({key: snapshot(value) for key, value in object.items()})
    elif isinstance(object, Set):
        return frozenset(object)
    return object


def mirror(name, /):
    """
    Define a read-only property that mirrors the private attribute "_{name}".

    Containers are returned as immutable views so definitions cannot be
    mutated through their public API after the schema is frozen.
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    @rename(name)
    def getter(self):
        return _freeze(getattr(self, "_" + name))

    return property(getter)


@functools.cache
def optionize(name, /):
    """
    Derive the command-line flag for an argument name.

    Single-character names become single-dash short flags, everything else
    becomes a double-dash long flag. Underscores turn into hyphens.
    """
    if not isinstance(name, str) or not name:
        raise TypeError("optionize() argument must be a non-empty string")
    name = name.replace("_", "-")
    return "-" + name if len(name) == 1 else "--" + name


@functools.cache
def negate(flag, /):
    # negation is always the long form, even for short flags
    return "--no-" + flag.lstrip("-")


def isshort(flag, /):
    """
    Tell whether a rendered flag is a single-dash short flag ("-n").
    """
    return len(flag) == 2 and flag[0] == "-" and flag[1] != "-"


def symbolize(name, /):
    return ":" + str(name)


def enumerate_names(names, /, separator=", "):
    return separator.join(map(symbolize, names))


def typename(object, /):
    """
    Name of the type of object, as shown in bind-time messages.
    """
    return type(object).__name__


Unset = UnsetType()
"""
Sentinel for "not provided".

Used where None is a valid caller value, e.g. an operand explicitly bound to
None versus an operand that was never supplied.
"""


__all__ = (
    # Functions
    "coalesce",
    "rename",
    "mirror",
    "snapshot",
    "optionize",
    "negate",
    "isshort",
    "symbolize",
    "enumerate_names",
    "typename",

    # Types
    "UnsetType",

    # Constants
    "Unset",
)
