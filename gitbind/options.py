r"""
gitbind argument definitions (literals, option shapes and operands).

Overview
- Definitions
  • Literal: a fixed token emitted verbatim at its declared position.
  • FlagOption: presence flag, optionally negatable ("--no-x" on False).
  • ValueOption: "--flag value", "--flag=value" (inline) or bare "value"
    (as-operand), optionally repeatable.
  • FlagOrValueOption: bare flag on True, "--flag value" on a string.
  • KeyValueOption: "--flag key=value" once per pair.
  • CustomOption: value-to-token conversion delegated to a Renderer.
  • ExecutionOption: never rendered; forwarded to the execution context.
  • Operand: positional slot filled by the allocator.

- Introspection & representation
  • ArgumentType metaclass provides stable __repr__/__rich_repr__ and exposes
    the fields declared in __introspectable__ as read-only properties.

Contract shared by every definition
- validate(value): bind-time checks for one resolved value (type, validator,
  shape). Raises a BindError subclass through trigger().
- render(value): list of string tokens for one resolved value. None always
  renders nothing.
- boundary(value): whether rendering this value emits a "--" separator, which
  protects every later operand from the option-like check.

Rendering rules
- Names are turned into flags by optionize(): one character gives "-x",
  longer names give "--long-name". An explicit flag= override is used verbatim.
- Inline values are joined with "=" for long flags and glued for short ones
  ("--abbrev=7", "-n3").
- Negation always uses the long form ("--no-x"), even for short flags.
"""
import builtins
import functools
import operator
import re
from collections.abc import Iterable, Mapping
from typing import Protocol, runtime_checkable

from .faults import *
from .utils import *

_SCALARS = (str, int, float, bool, type(None))


class ArgumentType(type):
    """
    Metaclass that turns definition classes into introspectable descriptors.

    Responsibilities
    - Derive __typename__ from the class name (camel-case split with
      underscores), e.g. FlagOrValueOption -> "flag_or_value_option". The
      typename is used in definition-time messages.
    - Expose selected fields as read-only properties using mirror() for all
      names listed in __introspectable__.
    - Provide stable __repr__/__rich_repr__ implementations.
    """
    __introspectable__ = ()
    __displayable__ = Unset

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"_", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            fields = ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            return f"{type(self).__typename__}({fields})"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


@runtime_checkable
class Renderer(Protocol):
    """
    Strategy turning a bound value into command-line tokens.

    render() may return None (no tokens), a single string, or an iterable of
    strings.
    """
    def render(self, value, /): ...


def ispresent(value, /):
    """
    Presence as used by conflict and requirement checks.

    A value is present unless it is None, False, an empty string or an empty
    collection.
    """
    if value is None or value is False:
        return False
    if isinstance(value, str | list | tuple | Mapping) and not value:
        return False
    return True


def _sanitize_names(cls, metadata, /):
    """
    Internal: validate the primary name and aliases of a named definition.

    Names must be non-empty identifiers; the first one is the primary name,
    the rest are aliases. Duplicates are rejected.
    """
    if not (names := metadata["names"]):
        raise TypeError(f"{cls.__typename__} must specify at least one name")

    sanitized = []
    for name in names:
        if not isinstance(name, str):
            raise TypeError(f"{cls.__typename__} names must be strings")
        elif not name.isidentifier():
            raise ValueError(f"{cls.__typename__} name {name!r} must be a valid identifier")
        elif name in sanitized:
            trigger(DuplicateNameError(f"duplicate argument name {symbolize(name)}"))
        sanitized.append(name)

    metadata["names"] = tuple(sanitized)
    metadata["name"] = sanitized[0]


def _sanitize_flag(cls, metadata, /, *, multiple=False):
    """
    Internal: resolve the flag(s) an option renders.

    - Unset derives the flag from the primary name.
    - A string is used verbatim.
    - A tuple/list of strings is only accepted when multiple is True (plain
      flags), and never for negatable flags.
    """
    name = symbolize(metadata["name"])
    match flag := metadata["flag"]:
        case UnsetType():
            metadata["flag"] = (optionize(metadata["name"]),)
        case str() if flag:
            metadata["flag"] = (flag,)
        case list() | tuple() if flag and all(isinstance(item, str) and item for item in flag):
            if not multiple:
                trigger(IncompatibleModifiersError(
                    f"arrays for flag: parameter are only supported for flag types ({name})"
                ))
            if metadata.get("negatable"):
                trigger(IncompatibleModifiersError(
                    f"arrays for flag: parameter cannot be combined with negatable: true ({name})"
                ))
            metadata["flag"] = tuple(flag)
        case _:
            raise TypeError(f"{cls.__typename__} 'flag' must be a non-empty string")


def _sanitize_checks(cls, metadata, /):
    """
    Internal: normalize type=/validator= and reject their combination.
    """
    type, validator = metadata.get("type", Unset), metadata.get("validator", Unset)
    if type is not Unset and validator is not Unset:
        trigger(IncompatibleModifiersError(
            f"cannot specify both type: and validator: for {symbolize(metadata['name'])}"
        ))
    if type is not Unset:
        types = tuple(type) if isinstance(type, list | tuple) else (type,)
        if not types or not all(isinstance(item, builtins.type) for item in types):
            raise TypeError(f"{cls.__typename__} 'type' must be a type or a tuple of types")
        metadata["type"] = types
    if validator is not Unset and not callable(validator):
        raise TypeError(f"{cls.__typename__} 'validator' must be callable")


def _inline(flag, value, /):
    return flag + str(value) if isshort(flag) else f"{flag}={value}"


class Literal(metaclass=ArgumentType):
    """
    Fixed token emitted at its declared position (e.g. "checkout", "--").
    """

    __introspectable__ = ("token",)

    def __init__(self, token, /):
        if not isinstance(token, str) or not token:
            raise TypeError(f"{type(self).__typename__} token must be a non-empty string")
        self._token = token

    def boundary(self, value=Unset, /):
        return self._token == "--"

    def render(self, value=Unset, /):
        return [self._token]


class Option(metaclass=ArgumentType):
    """
    Base of every named option shape.

    Subclasses declare __flagging__ (whether the option renders a flag token,
    which forbids it after a "--" boundary) and implement _check/_render.
    """

    __flagging__ = True
    __introspectable__ = (
        "name",
        "names",
        "required",
        "allow_nil",
    )

    def __init__(self, *names, required=False, allow_nil=Unset):
        metadata = {"names": names}
        _sanitize_names(type(self), metadata)
        self._names = metadata["names"]
        self._name = metadata["name"]
        self._required = bool(required)
        # None is accepted unless the option is required
        self._allow_nil = bool(coalesce(allow_nil, not required))
        self._type = Unset
        self._validator = Unset

    @property
    def flagging(self):
        return type(self).__flagging__

    @property
    def label(self):
        """
        Shape label used in bind-time messages (e.g. "negatable_flag").
        """
        return type(self).__typename__.removesuffix("_option")

    def validate(self, value, /):
        if value is None:
            return
        if self._type is not Unset:
            self._check_type(value)
        if self._validator is not Unset and not self._validator(value):
            trigger(InvalidValueError(f"Invalid value for option: {self._name}"))
        self._check(value)

    def _check_type(self, value, /):
        items = value if isinstance(value, list | tuple) and getattr(self, "_repeatable", False) else (value,)
        for item in items:
            if item is not None and not isinstance(item, self._type):
                trigger(InvalidTypeError(
                    f"The {symbolize(self._name)} option must be a "
                    f"{' or '.join(kind.__name__ for kind in self._type)}, but was a {typename(item)}"
                ))

    def _check(self, value, /):
        pass

    def boundary(self, value, /):
        return False

    def skipped(self, value, /):
        """
        Whether value renders nothing, whatever the shape.

        None and empty collections are always skipped; an empty string is
        skipped unless the option declares allow_empty=True.
        """
        if value is None:
            return True
        if isinstance(value, str):
            return not value and not getattr(self, "_allow_empty", False)
        return isinstance(value, list | tuple | Mapping) and not value

    def render(self, value, /):
        if self.skipped(value):
            return []
        return self._render(value)

    def _render(self, value, /):
        raise NotImplementedError


class FlagOption(Option):
    """
    Presence flag: emitted when the value is truthy.

    With negatable=True the value must be a bool and False renders the
    negated long form. A tuple flag= renders several tokens at once, e.g.
    ("--amend", "--no-edit").
    """

    __introspectable__ = Option.__introspectable__ + (
        "flag",
        "negatable",
        "type",
        "validator",
    )

    def __init__(self, *names, flag=Unset, negatable=False, type=Unset, validator=Unset, **options):
        super().__init__(*names, **options)
        metadata = {"name": self._name, "flag": flag, "negatable": bool(negatable), "type": type, "validator": validator}
        _sanitize_flag(builtins.type(self), metadata, multiple=True)
        _sanitize_checks(builtins.type(self), metadata)
        self._flag = metadata["flag"]
        self._negatable = metadata["negatable"]
        self._type = metadata["type"]
        self._validator = metadata["validator"]

    @property
    def label(self):
        return "negatable_flag" if self._negatable else "flag"

    def _check(self, value, /):
        if self._negatable and not isinstance(value, bool):
            trigger(InvalidValueError(
                f"{self.label} expects a boolean value, got {value!r} ({typename(value)})"
            ))

    def _render(self, value, /):
        if value is False and self._negatable:
            return [negate(self._flag[0])]
        return list(self._flag) if value else []


class ValueOption(Option):
    """
    Option carrying a value.

    Forms
    - default:    "--flag", "value"
    - inline:     "--flag=value" ("-nvalue" for short flags)
    - as_operand: "value" (no flag), optionally preceded once by separator

    Modifiers
    - repeatable: a list renders one entry per element.
    - allow_empty: an empty string renders ("--message=" / "--message", "")
      instead of being skipped.
    """

    __introspectable__ = Option.__introspectable__ + (
        "flag",
        "inline",
        "as_operand",
        "repeatable",
        "allow_empty",
        "separator",
        "type",
    )

    def __init__(
            self,
            *names,
            flag=Unset,
            inline=False,
            as_operand=False,
            repeatable=False,
            allow_empty=False,
            separator=Unset,
            type=Unset,
            validator=Unset,
            **options
    ):
        super().__init__(*names, **options)
        name = symbolize(self._name)
        if inline and as_operand:
            trigger(IncompatibleModifiersError(f"inline: and as_operand: cannot both be true for {name}"))
        if separator is not Unset and not as_operand:
            trigger(IncompatibleModifiersError(f"separator: is only valid with as_operand: true for {name}"))
        if separator is not Unset and (not isinstance(separator, str) or not separator):
            raise TypeError(f"{builtins.type(self).__typename__} 'separator' must be a non-empty string")

        metadata = {"name": self._name, "flag": flag, "type": type, "validator": validator}
        _sanitize_flag(builtins.type(self), metadata)
        _sanitize_checks(builtins.type(self), metadata)
        self._flag = metadata["flag"]
        self._type = metadata["type"]
        self._validator = metadata["validator"]
        self._inline = bool(inline)
        self._as_operand = bool(as_operand)
        self._repeatable = bool(repeatable)
        self._allow_empty = bool(allow_empty)
        self._separator = coalesce(separator)

    @property
    def flagging(self):
        return not self._as_operand

    @property
    def label(self):
        if self._as_operand:
            return "value_as_operand"
        return "inline_value" if self._inline else "value"

    def _check(self, value, /):
        if not isinstance(value, list | tuple):
            return
        if not self._repeatable:
            trigger(InvalidValueError(
                f"{self.label} {symbolize(self._name)} requires repeatable: true to accept a list"
            ))
        if any(item is None for item in value):
            trigger(InvalidValueError(f"nil values are not allowed in {self.label} {symbolize(self._name)}"))

    def _values(self, value, /):
        if isinstance(value, list | tuple):
            return [str(item) for item in value]
        if value == "" and not self._allow_empty:
            return []
        return [str(value)]

    def boundary(self, value, /):
        return self._separator == "--" and value is not None and bool(self._values(value))

    def _render(self, value, /):
        values = self._values(value)
        if not values:
            return []
        if self._as_operand:
            return ([self._separator] if self._separator else []) + values
        flag, = self._flag
        if self._inline:
            return [_inline(flag, item) for item in values]
        return [token for item in values for token in (flag, item)]


class FlagOrValueOption(Option):
    """
    True renders the bare flag, a string renders the flag with its value.

    False renders nothing, or the negated flag when negatable=True. Any other
    value type is rejected at bind time.
    """

    __introspectable__ = Option.__introspectable__ + (
        "flag",
        "inline",
        "negatable",
        "type",
    )

    def __init__(self, *names, flag=Unset, inline=False, negatable=False, type=Unset, validator=Unset, **options):
        super().__init__(*names, **options)
        metadata = {"name": self._name, "flag": flag, "type": type, "validator": validator}
        _sanitize_flag(builtins.type(self), metadata)
        _sanitize_checks(builtins.type(self), metadata)
        self._flag = metadata["flag"]
        self._type = metadata["type"]
        self._validator = metadata["validator"]
        self._inline = bool(inline)
        self._negatable = bool(negatable)

    @property
    def label(self):
        return "_".join(filter(None, (
            "negatable" if self._negatable else "",
            "flag_or",
            "inline" if self._inline else "",
            "value",
        )))

    def _check_type(self, value, /):
        if not isinstance(value, bool):
            super()._check_type(value)

    def _check(self, value, /):
        if not isinstance(value, bool | str):
            trigger(InvalidValueError(
                f"Invalid value for {self.label}: {value!r} ({typename(value)}); expected True, False, or a str"
            ))

    def _render(self, value, /):
        flag, = self._flag
        if value is True:
            return [flag]
        if value is False:
            return [negate(flag)] if self._negatable else []
        if value == "":
            return []
        return [_inline(flag, value)] if self._inline else [flag, value]


class KeyValueOption(Option):
    """
    Renders the flag once per key/value pair ("--trailer", "Key=value").

    Accepted inputs
    - dict: {key: value}; a list value expands to one pair per element.
    - list of pairs: [(key, value), ...]; a flat (key, value) pair is accepted.
    A None value renders the key alone.
    """

    __introspectable__ = Option.__introspectable__ + (
        "flag",
        "inline",
        "key_separator",
    )

    def __init__(self, *names, flag=Unset, inline=False, key_separator="=", **options):
        super().__init__(*names, **options)
        if not isinstance(key_separator, str) or not key_separator:
            raise TypeError(f"{builtins.type(self).__typename__} 'key_separator' must be a non-empty string")
        metadata = {"name": self._name, "flag": flag}
        _sanitize_flag(builtins.type(self), metadata)
        self._flag = metadata["flag"]
        self._inline = bool(inline)
        self._key_separator = key_separator

    def _pairs(self, value, /):
        name = symbolize(self._name)
        pairs = []

        match value:
            case Mapping():
                for key, item in value.items():
                    items = item if isinstance(item, list | tuple) else (item,)
                    pairs.extend((key, element) for element in items)
            case list() | tuple() if value and not any(isinstance(item, list | tuple) for item in value):
                if len(value) != 2:
                    trigger(InvalidValueError("key_value array input must be a [key, value] pair or array of pairs"))
                pairs.append(tuple(value))
            case list() | tuple():
                for pair in value:
                    if not isinstance(pair, list | tuple) or not pair:
                        trigger(InvalidValueError(
                            "key_value array input must be a [key, value] pair or array of pairs"
                        ))
                    if len(pair) > 2:
                        trigger(InvalidValueError(f"key_value {name} pair {tuple(pair)!r} has too many elements"))
                    pairs.append((pair[0], pair[1] if len(pair) == 2 else None))
            case _:
                trigger(InvalidValueError(f"key_value option must be a dict or list, got {typename(value)}"))

        for key, item in pairs:
            if key is None or str(key) == "":
                trigger(InvalidValueError(f"key_value {name} requires a non-empty key"))
            if self._key_separator in str(key):
                trigger(InvalidValueError(
                    f"key_value {name} key {str(key)!r} cannot contain the separator {self._key_separator!r}"
                ))
            if not isinstance(item, _SCALARS):
                trigger(InvalidValueError(
                    f"key_value {name} value must be a scalar (str, int, float, bool or None), got {typename(item)}"
                ))

        return pairs

    def _check(self, value, /):
        self._pairs(value)

    def _render(self, value, /):
        flag, = self._flag
        tokens = []
        for key, item in self._pairs(value):
            entry = str(key) if item is None else f"{key}{self._key_separator}{item}"
            tokens.extend([_inline(flag, entry)] if self._inline else [flag, entry])
        return tokens


class CustomOption(Option):
    """
    Option whose tokens come from a caller-supplied Renderer (or callable).
    """

    __introspectable__ = Option.__introspectable__ + ("renderer",)

    def __init__(self, *names, renderer, **options):
        super().__init__(*names, **options)
        if not isinstance(renderer, Renderer) and not callable(renderer):
            raise TypeError(f"{builtins.type(self).__typename__} 'renderer' must be callable or provide render()")
        self._renderer = renderer

    def _render(self, value, /):
        render = self._renderer.render if isinstance(self._renderer, Renderer) else self._renderer
        match tokens := render(value):
            case None:
                return []
            case str():
                return [tokens]
            case Iterable():
                return [str(token) for token in tokens if token is not None]
            case _:
                return [str(tokens)]


class ExecutionOption(Option):
    """
    Never rendered; its value is forwarded to the execution context
    (e.g. timeout, chdir).
    """

    __flagging__ = False

    def _render(self, value, /):
        return []


class Operand(metaclass=ArgumentType):
    """
    Positional slot.

    - required: a value must be allocated (unless default is given).
    - repeatable: absorbs a variable number of values, at most one per schema.
    - default: used when no value is allocated.
    - separator: emitted before the operand's values when there are any.
    - allow_nil: an explicit None satisfies required while rendering nothing.
    - skip_cli: allocated and exposed, but never rendered (stdin-fed values).
    """

    __introspectable__ = (
        "name",
        "required",
        "repeatable",
        "default",
        "separator",
        "allow_nil",
        "skip_cli",
    )

    def __init__(
            self,
            name,
            /,
            required=False,
            repeatable=False,
            default=Unset,
            separator=Unset,
            allow_nil=False,
            skip_cli=False
    ):
        metadata = {"names": (name,)}
        _sanitize_names(type(self), metadata)
        if separator is not Unset and (not isinstance(separator, str) or not separator):
            raise TypeError(f"{type(self).__typename__} 'separator' must be a non-empty string")
        self._name = metadata["name"]
        self._required = bool(required)
        self._repeatable = bool(repeatable)
        self._default = default
        self._separator = coalesce(separator)
        self._allow_nil = bool(allow_nil)
        self._skip_cli = bool(skip_cli)

    @property
    def strict(self):
        """
        Strictly required: required and without a default.
        """
        return self._required and self._default is Unset

    def resolve(self, value, /):
        """
        Resolve an allocated raw value (possibly Unset) to the bound value.
        """
        if self._repeatable:
            values = tuple(coalesce(value, ()))
            return values if values else _tuplify(coalesce(self._default, ()))
        return coalesce(value) if value is not Unset and value is not None else coalesce(self._default)

    def _values(self, value, /):
        if value is None or self._skip_cli:
            return []
        if isinstance(value, list | tuple):
            return [str(item) for item in value]
        return [str(value)]

    def boundary(self, value, /):
        return self._separator == "--" and bool(self._values(value))

    def render(self, value, /):
        if not (values := self._values(value)):
            return []
        return ([self._separator] if self._separator else []) + values


def _tuplify(value, /):
    return tuple(value) if isinstance(value, list | tuple) else (value,)


__all__ = (
    "Renderer",
    "Literal",
    "Option",
    "FlagOption",
    "ValueOption",
    "FlagOrValueOption",
    "KeyValueOption",
    "CustomOption",
    "ExecutionOption",
    "Operand",
    "ispresent",
)
