"""
gitbind faults (definition, bind and execution errors) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every fault the
  argument engine can raise. Codes are grouped by domain so logs and searches
  stay predictable.
- ArgumentsException: base type that carries message + options and knows how to
  render itself through rich.
- DefinitionError / BindError: the two families raised by the engine. Both are
  ValueError subclasses, so generic callers keep working.
- CommandFailedError: raised by commands when git exits outside the accepted
  exit-status range.
- trigger(): central entry point used by the engine to surface any fault.

Message contract
- Messages identify arguments by their declared (primary) name in ":name"
  notation, e.g. "cannot specify :patch and :stat". Callers may match on them,
  so their wording is stable.

Integration
- In library use (the default), trigger() raises the fault.
- In shell mode (shell=True), the fault is printed to stderr via rich and the
  process exits with status 1 (or returns, when deferred=True).
"""
import sys
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes used across the engine (stable identifiers).

    grouping (by high-level domain)
    - definition (211xx)
      • DUPLICATE_NAME, DUPLICATE_REPEATABLE, OPTION_AFTER_SEPARATOR,
        INCOMPATIBLE_MODIFIERS, UNKNOWN_ARGUMENT, FROZEN_ARGUMENTS,
        MISSING_ARGUMENTS, INVALID_EXIT_STATUS, MALFORMED_CONSTRAINT
    - options at bind time (221xx)
      • UNSUPPORTED_OPTIONS, CONFLICTING_ALIASES, MISSING_OPTIONS, NIL_OPTIONS,
        INVALID_TYPE, INVALID_VALUE
    - operands at bind time (2212x)
      • MISSING_OPERAND, NIL_OPERAND, UNEXPECTED_OPERANDS, OPTION_LIKE_OPERAND
    - constraints at bind time (2213x)
      • CONFLICTING_ARGUMENTS, MISSING_REQUIREMENT
    - execution (231xx)
      • COMMAND_FAILED
    """
    # --- definition errors (211xx) ---
    DUPLICATE_NAME              = 21101
    DUPLICATE_REPEATABLE        = 21102
    OPTION_AFTER_SEPARATOR      = 21103
    INCOMPATIBLE_MODIFIERS      = 21104
    UNKNOWN_ARGUMENT            = 21105
    FROZEN_ARGUMENTS            = 21106
    MISSING_ARGUMENTS           = 21107
    INVALID_EXIT_STATUS         = 21108
    MALFORMED_CONSTRAINT        = 21109

    # --- option errors (221xx) ---
    UNSUPPORTED_OPTIONS         = 22101
    CONFLICTING_ALIASES         = 22102
    MISSING_OPTIONS             = 22103
    NIL_OPTIONS                 = 22104
    INVALID_TYPE                = 22105
    INVALID_VALUE               = 22106

    # --- operand errors (2212x) ---
    MISSING_OPERAND             = 22121
    NIL_OPERAND                 = 22122
    UNEXPECTED_OPERANDS         = 22123
    OPTION_LIKE_OPERAND         = 22124

    # --- constraint errors (2213x) ---
    CONFLICTING_ARGUMENTS       = 22131
    MISSING_REQUIREMENT         = 22132

    # --- execution errors (231xx) ---
    COMMAND_FAILED              = 23101

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


class ArgumentsException(Exception):
    """
    base for every fault raised by gitbind.

    subclasses pin their defaults through the class-level __defaults__ mapping
    (code, title, hint); per-raise options override them.
    """
    __defaults__ = MappingProxyType({})

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType({
            "colorful": True,
            "fancy": False,
        } | dict(type(self).__defaults__) | options)

    def __str__(self):
        return self.message if self.message is not Unset else ""

    @property
    def code(self):
        return self.options.get("code")

    def __rich__(self):
        main = __import__("__main__")

        styles = defaultdict(str, {
            # header parts
            "prog-name": "bold #E6E6F0",
            "code": "bold #00E5FF",
            "error-title": "bold #FF4DA6",

            # body
            "error-message": "#C8C8D0",
            "hint-arrow": "#9CE19C dim",
            "hint": "italic #9CE19C",
        } | getattr(main, "__styles__", {}))

        def styler(style):
            return styles[style] if self.options["colorful"] else ""

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            if isinstance(fragment, Text):
                return fragment
            if not self.options["colorful"]:
                return Text(str(fragment))
            return Text(str(fragment), style)

        code = self.options.get("code")
        prog = text(getattr(main, "__prog__", "gitbind"), styler("prog-name"))

        header = Text.assemble(
            "[ ",
            prog,
            " | ",
            text(code.normalize() if isinstance(code, FaultCode) else code, styler("code")),
            " | ",
            text(str(self.options.get("title", "error")).title(), styler("error-title")),
            " ]"
        )
        message = text(str(self), styler("error-message"))
        hint = Text.assemble(text(" → ", styler("hint-arrow")), text(self.options.get("hint"), styler("hint")))

        if self.options["fancy"]:
            return Panel(Group(message, hint), title=header, title_align="left")

        return Group(header, message, hint)

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            raise self from None
        console.print(self)
        if self.options.get("deferred", False):
            return
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class DefinitionError(ArgumentsException, ValueError):
    __defaults__ = MappingProxyType({
        "title": "malformed arguments definition",
        "hint": "fix the command's argument declarations",
    })


class BindError(ArgumentsException, ValueError):
    __defaults__ = MappingProxyType({
        "title": "invalid arguments",
        "hint": "check the values passed to the command",
    })


# --- definition errors ---
class DuplicateNameError(DefinitionError):
    __defaults__ = MappingProxyType({
        "code": FaultCode.DUPLICATE_NAME,
        "title": "duplicate name",
        "hint": "every option, alias and operand needs a distinct name",
    })


class DuplicateRepeatableError(DefinitionError):
    __defaults__ = MappingProxyType({
        "code": FaultCode.DUPLICATE_REPEATABLE,
        "title": "duplicate repeatable",
        "hint": "declare at most one repeatable operand",
    })


class OptionAfterSeparatorError(DefinitionError):
    __defaults__ = MappingProxyType({
        "code": FaultCode.OPTION_AFTER_SEPARATOR,
        "title": "option after separator",
        "hint": "declare options before the '--' boundary",
    })


class IncompatibleModifiersError(DefinitionError):
    __defaults__ = MappingProxyType({
        "code": FaultCode.INCOMPATIBLE_MODIFIERS,
        "title": "incompatible modifiers",
        "hint": "drop one of the conflicting keyword arguments",
    })


class UnknownArgumentError(DefinitionError):
    __defaults__ = MappingProxyType({
        "code": FaultCode.UNKNOWN_ARGUMENT,
        "title": "unknown argument",
        "hint": "constraints may only reference declared options and operands",
    })


class FrozenArgumentsError(DefinitionError):
    __defaults__ = MappingProxyType({
        "code": FaultCode.FROZEN_ARGUMENTS,
        "title": "frozen arguments",
        "hint": "declarations must happen inside define()",
    })


class MissingArgumentsError(DefinitionError):
    __defaults__ = MappingProxyType({
        "code": FaultCode.MISSING_ARGUMENTS,
        "title": "missing arguments",
        "hint": "declare an 'arguments' schema on the command class",
    })


class InvalidExitStatusError(DefinitionError):
    __defaults__ = MappingProxyType({
        "code": FaultCode.INVALID_EXIT_STATUS,
        "title": "invalid exit status",
        "hint": "use a non-empty range of integers",
    })


class MalformedConstraintError(DefinitionError):
    __defaults__ = MappingProxyType({
        "code": FaultCode.MALFORMED_CONSTRAINT,
        "title": "malformed constraint",
        "hint": "conflicts needs two or more names, requires_one_of at least one",
    })


# --- bind errors ---
class UnsupportedOptionsError(BindError):
    __defaults__ = MappingProxyType({
        "code": FaultCode.UNSUPPORTED_OPTIONS,
        "title": "unsupported options",
        "hint": "remove the options this command does not declare",
    })


class ConflictingAliasesError(BindError):
    __defaults__ = MappingProxyType({
        "code": FaultCode.CONFLICTING_ALIASES,
        "title": "conflicting aliases",
        "hint": "pass each option under a single name",
    })


class MissingOptionsError(BindError):
    __defaults__ = MappingProxyType({
        "code": FaultCode.MISSING_OPTIONS,
        "title": "missing options",
        "hint": "pass every required option",
    })


class NilOptionsError(BindError):
    __defaults__ = MappingProxyType({
        "code": FaultCode.NIL_OPTIONS,
        "title": "nil options",
        "hint": "required options need a value other than None",
    })


class InvalidTypeError(BindError):
    __defaults__ = MappingProxyType({
        "code": FaultCode.INVALID_TYPE,
        "title": "invalid type",
        "hint": "pass a value of the declared type",
    })


class InvalidValueError(BindError):
    __defaults__ = MappingProxyType({
        "code": FaultCode.INVALID_VALUE,
        "title": "invalid value",
        "hint": "pass a value the argument accepts",
    })


class MissingOperandError(BindError):
    __defaults__ = MappingProxyType({
        "code": FaultCode.MISSING_OPERAND,
        "title": "missing operand",
        "hint": "pass a value for every required operand",
    })


class NilOperandError(BindError):
    __defaults__ = MappingProxyType({
        "code": FaultCode.NIL_OPERAND,
        "title": "nil operand",
        "hint": "repeatable operands cannot contain None",
    })


class UnexpectedOperandsError(BindError):
    __defaults__ = MappingProxyType({
        "code": FaultCode.UNEXPECTED_OPERANDS,
        "title": "unexpected operands",
        "hint": "pass fewer positional values",
    })


class OptionLikeOperandError(BindError):
    __defaults__ = MappingProxyType({
        "code": FaultCode.OPTION_LIKE_OPERAND,
        "title": "option-like operand",
        "hint": "values starting with '-' would be read as options by git",
    })


class ConflictingArgumentsError(BindError):
    __defaults__ = MappingProxyType({
        "code": FaultCode.CONFLICTING_ARGUMENTS,
        "title": "conflicting arguments",
        "hint": "pass only one of the mutually exclusive arguments",
    })


class MissingRequirementError(BindError):
    __defaults__ = MappingProxyType({
        "code": FaultCode.MISSING_REQUIREMENT,
        "title": "missing requirement",
        "hint": "pass at least one argument of the group",
    })


# --- execution errors ---
class CommandFailedError(ArgumentsException):
    """
    raised when git exits with a status outside the command's accepted range.

    the captured result (tokens, status, stdout, stderr) is kept on .result.
    """
    __defaults__ = MappingProxyType({
        "code": FaultCode.COMMAND_FAILED,
        "title": "command failed",
        "hint": "inspect the captured stderr",
    })

    @property
    def result(self):
        return self.options.get("result")


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see ArgumentsException).
    - options are merged into the fault via __replace__(**options) before triggering.
    - by default the fault is raised; with shell=True it is rendered via rich instead.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    fault.__replace__(**options).__trigger__()


__all__ = (
    "ArgumentsException",
    "DefinitionError",
    "BindError",
    "DuplicateNameError",
    "DuplicateRepeatableError",
    "OptionAfterSeparatorError",
    "IncompatibleModifiersError",
    "UnknownArgumentError",
    "FrozenArgumentsError",
    "MissingArgumentsError",
    "InvalidExitStatusError",
    "MalformedConstraintError",
    "UnsupportedOptionsError",
    "ConflictingAliasesError",
    "MissingOptionsError",
    "NilOptionsError",
    "InvalidTypeError",
    "InvalidValueError",
    "MissingOperandError",
    "NilOperandError",
    "UnexpectedOperandsError",
    "OptionLikeOperandError",
    "ConflictingArgumentsError",
    "MissingRequirementError",
    "CommandFailedError",
    "FaultCode",
    "trigger",
)
