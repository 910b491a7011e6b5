"""
gitbind argument schemas: declaration DSL and the bind pipeline.

Overview
- Arguments collects, in one ordered sequence, the literals, options and
  operands a git command accepts, plus declaration-level constraints
  (conflicts, requires_one_of, requires, allowed_values).
- define() runs a declaration function against a fresh Arguments and freezes it.
- Arguments.bind(*positionals, **options) validates a call and returns an
  immutable Bound (see gitbind.bound).

Definition-time rules (DefinitionError)
- Names (primary and aliases, options and operands alike) are unique.
- At most one operand is repeatable.
- No flag-rendering option may follow a "--" boundary (a literal "--", or an
  operand / as-operand value option whose separator is "--").
- Constraints may only reference declared names.
- Frozen schemas accept no further declarations.

Bind pipeline (BindError, first failure wins)
1. unsupported option keys
2. more than one alias of the same option
3. aliases normalized to primary names
4. required options missing, then options bound to None that do not allow it
5. per-option type, validator, shape and allowed-value checks
6. operand allocation and its checks (gitbind.allocator)
7. operands before an active "--" boundary that look like options
8. conflict groups
9. requires_one_of / requires groups

Quick example:
    >>> from gitbind import define
    >>> @define
    ... def ARGS(a):
    ...     a.value_option("message", inline=True)
    ...     a.operand("paths", repeatable=True, separator="--")
    ...
    >>> ARGS.bind("a.txt", "b.txt", message="fix").to_list()
    ['--message=fix', '--', 'a.txt', 'b.txt']
"""
import logging
from collections.abc import Iterable

from . import bound as _bound
from .allocator import *
from .faults import *
from .options import *
from .options import ArgumentType
from .utils import *

LOGGER = logging.getLogger(__name__)


class Arguments(metaclass=ArgumentType):
    """
    Ordered registry of literal, option and operand definitions.

    Declarations return the registry itself so they can be chained. The
    schema is meant to be frozen once (define() does it) and then shared by
    any number of bind() calls; binding never mutates it.
    """

    __introspectable__ = (
        "definitions",
        "aliases",
        "exclusions",
        "requirements",
        "choices",
        "frozen",
    )
    __displayable__ = (
        "definitions",
        "exclusions",
        "requirements",
        "choices",
    )

    def __init__(self):
        self._definitions = []
        self._aliases = {}
        self._options = {}
        self._operands = {}
        self._exclusions = []
        self._requirements = []
        self._choices = {}
        self._boundary = False
        self._frozen = False
        self._shape = None

    # --- declarations ---

    def literal(self, token, /):
        return self._register(Literal(token))

    def flag_option(self, *names, **options):
        return self._register(FlagOption(*names, **options))

    def value_option(self, *names, **options):
        return self._register(ValueOption(*names, **options))

    def flag_or_value_option(self, *names, **options):
        return self._register(FlagOrValueOption(*names, **options))

    def key_value_option(self, *names, **options):
        return self._register(KeyValueOption(*names, **options))

    def custom_option(self, *names, renderer, **options):
        return self._register(CustomOption(*names, renderer=renderer, **options))

    def execution_option(self, *names, **options):
        return self._register(ExecutionOption(*names, **options))

    def operand(self, name, /, **options):
        return self._register(Operand(name, **options))

    def conflicts(self, *names):
        """
        Declare names of which at most one may be present in a call.
        """
        self._ensure_mutable(names)
        if len(names) < 2:
            trigger(MalformedConstraintError("conflicting groups must have at least two elements"))
        self._exclusions.append(self._resolve(names, "conflicts"))
        return self

    def requires_one_of(self, *names, when=Unset):
        """
        Declare names of which at least one must be present.

        With when=, the group only applies when that argument is present.
        """
        self._ensure_mutable(names)
        if not names:
            trigger(MalformedConstraintError("requirement groups must have at least one element"))
        group = self._resolve(names, "requires_one_of")
        if when is not Unset:
            when, = self._resolve((when,), "requires_one_of")
        self._requirements.append((group, when))
        return self

    def requires(self, name, /, *, when=Unset):
        return self.requires_one_of(name, when=when)

    def allowed_values(self, name, /, values):
        """
        Restrict a value, flag-or-value or operand argument to a fixed set.
        """
        self._ensure_mutable((name,))
        primary, = self._resolve((name,), "allowed_values")
        definition = self._options.get(primary) or self._operands[primary]
        if not isinstance(definition, ValueOption | FlagOrValueOption | Operand):
            trigger(IncompatibleModifiersError(
                f"allowed_values is only supported for value, flag_or_value and operand arguments "
                f"({symbolize(primary)})"
            ))
        if not isinstance(values, Iterable) or isinstance(values, str) or not (values := tuple(values)):
            raise TypeError("allowed_values expects a non-empty collection of values")
        self._choices[primary] = values
        return self

    def freeze(self):
        """
        Lock the schema and build its Bound field table.
        """
        if not self._frozen:
            self._shape = self._derive()
            self._frozen = True
        return self

    # --- registration ---

    def _ensure_mutable(self, names):
        if self._frozen:
            trigger(FrozenArgumentsError(
                f"arguments are frozen; cannot add {enumerate_names(names) or 'declarations'}"
            ))

    def _register(self, definition, /):
        match definition:
            case Literal():
                self._ensure_mutable((definition.token,))
            case Option():
                self._ensure_mutable((definition.name,))
                if definition.flagging and self._boundary:
                    trigger(OptionAfterSeparatorError(
                        f"option {symbolize(definition.name)} cannot be defined after a '--' separator "
                        f"boundary; its flags would be treated as operands by git"
                    ))
                for name in definition.names:
                    self._claim(name)
                self._aliases |= dict.fromkeys(definition.names, definition.name)
                self._options[definition.name] = definition
            case Operand():
                self._ensure_mutable((definition.name,))
                if definition.repeatable:
                    for other in self._operands.values():
                        if other.repeatable:
                            trigger(DuplicateRepeatableError(
                                f"only one repeatable operand is allowed; {symbolize(other.name)} is already "
                                f"repeatable, cannot add {symbolize(definition.name)}"
                            ))
                self._claim(definition.name)
                self._operands[definition.name] = definition

        self._definitions.append(definition)

        # "--" rendered here turns every later token into a plain value for git
        if self._establishes_boundary(definition):
            self._boundary = True

        LOGGER.debug("declared %r", definition)
        return self

    def _claim(self, name, /):
        if name in self._aliases or name in self._operands:
            trigger(DuplicateNameError(f"duplicate argument name {symbolize(name)}"))

    @staticmethod
    def _establishes_boundary(definition, /):
        match definition:
            case Literal():
                return definition.token == "--"
            case Operand():
                return definition.separator == "--" and not definition.skip_cli
            case ValueOption():
                return definition.as_operand and definition.separator == "--"
        return False

    def _resolve(self, names, constraint, /):
        resolved = []
        for name in names:
            if name in self._aliases:
                resolved.append(self._aliases[name])
            elif name in self._operands:
                resolved.append(name)
            else:
                trigger(UnknownArgumentError(f"unknown argument {symbolize(name)} in {constraint}"))
        return tuple(resolved)

    def _derive(self):
        fields = [
            definition.name for definition in self._definitions
            if isinstance(definition, Option | Operand)
        ]
        predicates = [name for name, option in self._options.items() if isinstance(option, FlagOption)]
        return _bound.shape(fields, predicates)

    # --- binding ---

    def bind(self, *positionals, **options):
        """
        Validate a call against the schema and render its tokens.

        Parameters
        - positionals: operand values, allocated with method-binding semantics.
          A single list argument is flattened once.
        - options: option values keyed by primary name or alias.

        Returns
        - Bound: the immutable token list and field table.

        Raises
        - BindError (one of its subclasses) on the first failing check.
        """
        values = self._check_options(options)
        operands = self._check_operands(positionals)

        fields = {}
        for definition in self._definitions:
            match definition:
                case FlagOption():
                    fields[definition.name] = snapshot(values.get(definition.name, False))
                case Option():
                    fields[definition.name] = snapshot(values.get(definition.name))
                case Operand():
                    fields[definition.name] = snapshot(operands[definition.name])

        self._check_option_like(values, operands)
        self._check_conflicts(fields)
        self._check_requirements(fields)

        tokens = []
        for definition in self._definitions:
            match definition:
                case Literal():
                    tokens.extend(definition.render())
                case Option():
                    tokens.extend(definition.render(values.get(definition.name)))
                case Operand():
                    tokens.extend(definition.render(operands[definition.name]))

        execution_options = {
            name: snapshot(values[name]) for name, option in self._options.items()
            if isinstance(option, ExecutionOption) and values.get(name) is not None
        }

        bound = (self._shape or self._derive())(tokens, fields, execution_options)
        LOGGER.debug("bound %r", bound)
        return bound

    def _check_options(self, options, /):
        if unsupported := [name for name in options if name not in self._aliases]:
            trigger(UnsupportedOptionsError(f"Unsupported options: {enumerate_names(unsupported)}"))

        given = {}
        for name in options:
            given.setdefault(self._aliases[name], []).append(name)
        for names in given.values():
            if len(names) > 1:
                trigger(ConflictingAliasesError(f"Conflicting options: {enumerate_names(names, ' and ')}"))

        values = {self._aliases[name]: value for name, value in options.items()}

        if missing := [name for name, option in self._options.items() if option.required and name not in values]:
            trigger(MissingOptionsError(f"Required options not provided: {enumerate_names(missing)}"))
        if nils := [
            name for name, option in self._options.items()
            if name in values and values[name] is None and not option.allow_nil
        ]:
            trigger(NilOptionsError(f"Required options cannot be nil: {enumerate_names(nils)}"))

        for name, option in self._options.items():
            if name not in values:
                continue
            option.validate(values[name])
            if option.skipped(values[name]):
                continue
            self._check_choices(name, values[name], exempt=bool if isinstance(option, FlagOrValueOption) else ())

        return values

    def _check_operands(self, positionals, /):
        operands = tuple(self._operands.values())
        resolved = check(operands, allocate(operands, positionals))
        for name, value in resolved.items():
            self._check_choices(name, value)
        return resolved

    def _check_choices(self, name, value, /, exempt=()):
        if (choices := self._choices.get(name)) is None or value is None:
            return
        for item in value if isinstance(value, list | tuple) else (value,):
            if exempt and isinstance(item, exempt):
                continue
            if item not in choices:
                trigger(InvalidValueError(
                    f"Invalid value for {symbolize(name)}: {item!r}; "
                    f"expected one of {', '.join(map(repr, choices))}"
                ))

    def _check_option_like(self, values, operands, /):
        protected = False
        for definition in self._definitions:
            match definition:
                case Literal():
                    protected |= definition.boundary()
                case ValueOption():
                    protected |= definition.boundary(values.get(definition.name))
                case Operand():
                    value = operands[definition.name]
                    protected |= definition.boundary(value)
                    if protected or definition.skip_cli:
                        continue
                    items = value if isinstance(value, tuple) else (value,)
                    offending = [item for item in items if isinstance(item, str) and item.startswith("-")]
                    if not offending:
                        continue
                    if definition.repeatable:
                        trigger(OptionLikeOperandError(
                            f"operand {symbolize(definition.name)} contains option-like values: "
                            + ", ".join(f"'{item}'" for item in offending)
                        ))
                    trigger(OptionLikeOperandError(
                        f"operand {symbolize(definition.name)} value '{offending[0]}' looks like a command-line option"
                    ))

    def _check_conflicts(self, fields, /):
        for group in self._exclusions:
            if len(present := [name for name in group if ispresent(fields[name])]) > 1:
                trigger(ConflictingArgumentsError(f"cannot specify {enumerate_names(present, ' and ')}"))

    def _check_requirements(self, fields, /):
        for group, when in self._requirements:
            if when is not Unset and not ispresent(fields[when]):
                continue
            if any(ispresent(fields[name]) for name in group):
                continue
            if len(group) == 1:
                message = f"{symbolize(group[0])} is required"
            else:
                message = f"at least one of {enumerate_names(group)} must be provided"
            if when is not Unset:
                message += f" when {symbolize(when)} is provided"
            trigger(MissingRequirementError(message))


def define(declare, /):
    """
    Build and freeze an Arguments schema from a declaration function.

    The function receives the fresh registry as its only argument. Usable as a
    decorator, including on a method named "arguments" inside a Command body.
    """
    if not callable(declare):
        raise TypeError("define() argument must be callable")
    arguments = Arguments()
    declare(arguments)
    return arguments.freeze()


__all__ = (
    "Arguments",
    "define",
)
