"""
Operand allocation: mapping positional values onto named operand slots.

The rules follow method-parameter binding semantics (as in `def f(a, b=1, *c, d)`):

- Without a repeatable operand, only as many values as there are operands are
  considered; anything beyond that is surplus. Inside that window the trailing
  run of strictly-required operands (required, no default) is reserved from
  the end, and the leading run is filled left to right. Optional slots in the
  leading run only take a value when more values remain than there are
  strictly-required slots still waiting after them.

- With one repeatable operand, the strictly-required operands after it are
  reserved from the end of the input, the operands before it are filled with
  the leading rule, and the repeatable takes whatever lies in between. A
  strictly-required repeatable keeps one value back from the optional
  operands before it.

Values are never converted here; an explicit None occupies a slot like any
other value. Resolution to defaults and the post-allocation checks live in
check().

    >>> from gitbind.options import Operand
    >>> allocation = allocate(
    ...     (Operand("sources", repeatable=True, required=True), Operand("destination", required=True)),
    ...     ("a", "b", "dst"),
    ... )
    >>> allocation.slots["sources"], allocation.slots["destination"], allocation.consumed
    (['a', 'b'], 'dst', 3)
"""
import logging
from types import MappingProxyType
from typing import NamedTuple

from .faults import *
from .utils import *

LOGGER = logging.getLogger(__name__)


class Allocation(NamedTuple):
    """
    Result of allocate().

    - slots: operand name -> allocated raw value (Unset when nothing was allocated;
      a list for the repeatable operand).
    - consumed: how many non-None input values were assigned to a slot.
    - surplus: the non-None input values no slot could absorb, in input order.
    """
    slots: MappingProxyType
    consumed: int
    surplus: tuple


def flatten(values, /):
    """
    Flatten a single list/tuple argument once: bind(["a", "b"]) == bind("a", "b").
    """
    if len(values) == 1 and isinstance(values[0], list | tuple):
        return list(values[0])
    return list(values)


def _fill(operands, window, slots, /, reserved=0):
    """
    Fill operands left to right from window, keeping optional slots for surplus only.

    reserved counts values owed to slots after the window (a strictly-required
    repeatable). Returns the number of values taken from the start of window.
    """
    position = 0
    for index, operand in enumerate(operands):
        remaining = len(window) - position
        waiting = reserved + sum(1 for later in operands[index + 1:] if later.strict)
        if remaining > 0 and (operand.strict or remaining > waiting):
            slots[operand.name] = window[position]
            position += 1
        else:
            slots[operand.name] = Unset
    return position


def _without_repeatable(operands, values, slots, /):
    window = values[:len(operands)]

    trailing = 0
    for operand in reversed(operands):
        if not operand.strict:
            break
        trailing += 1

    reserved = min(trailing, len(window))
    split = len(window) - reserved
    leading = operands[:len(operands) - trailing]

    taken = _fill(leading, window[:split], slots)
    _fill(operands[len(operands) - trailing:], window[split:], slots)

    return window[taken:split] + values[len(operands):]


def _with_repeatable(operands, index, values, slots, /):
    pre, repeatable, post = operands[:index], operands[index], operands[index + 1:]

    reserved = min(sum(1 for operand in post if operand.strict), len(values))
    split = len(values) - reserved

    taken = _fill(pre, values[:split], slots, reserved=int(repeatable.strict))
    slots[repeatable.name] = values[taken:split]
    _fill(post, values[split:], slots)

    return []


def allocate(operands, values, /):
    """
    Allocate positional values to operands (pure; never raises).

    Parameters
    - operands: sequence of Operand definitions, in declaration order.
    - values: caller-supplied positional values (a lone list is flattened once).

    Returns
    - Allocation
    """
    operands, values = tuple(operands), flatten(values)
    slots = {}

    repeatables = [index for index, operand in enumerate(operands) if operand.repeatable]
    if repeatables:
        surplus = _with_repeatable(operands, repeatables[0], values, slots)
    else:
        surplus = _without_repeatable(operands, values, slots)

    consumed = 0
    for value in slots.values():
        if isinstance(value, list):
            consumed += sum(1 for item in value if item is not None)
        elif value is not Unset and value is not None:
            consumed += 1

    allocation = Allocation(
        MappingProxyType(slots),
        consumed,
        tuple(value for value in surplus if value is not None),
    )
    LOGGER.debug("allocated %d of %d positional value(s): %r", consumed, len(values), dict(slots))
    return allocation


def check(operands, allocation, /):
    """
    Run the post-allocation checks and resolve every slot to its bound value.

    Checks, per operand in declaration order
    - a strictly-required single operand must receive a value; an explicit None
      only satisfies it when allow_nil is set.
    - a strictly-required repeatable operand must receive at least one value.
    - a repeatable operand may not mix None with other values.
    Then surplus input values are rejected.

    Returns
    - dict: operand name -> resolved value (defaults applied, tuples for
      repeatable operands).
    """
    resolved = {}

    for operand in operands:
        value = allocation.slots.get(operand.name, Unset)

        if operand.repeatable:
            items = list(coalesce(value, []))
            if items and all(item is None for item in items):
                items = []
            if any(item is None for item in items):
                trigger(NilOperandError(
                    f"nil values are not allowed in repeatable positional argument: {operand.name}"
                ))
            if operand.strict and not items:
                trigger(MissingOperandError(f"at least one value is required for {operand.name}"))
            resolved[operand.name] = operand.resolve(items)
            continue

        if operand.strict and (value is Unset or (value is None and not operand.allow_nil)):
            trigger(MissingOperandError(f"{operand.name} is required"))
        resolved[operand.name] = operand.resolve(value)

    if allocation.surplus:
        trigger(UnexpectedOperandsError(
            f"Unexpected positional arguments: {', '.join(map(str, allocation.surplus))}"
        ))

    return resolved


__all__ = (
    "Allocation",
    "allocate",
    "check",
    "flatten",
)
