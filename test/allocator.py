# python
"""
Operand allocation behavioral tests.

Scope
- Validate allocate() without a repeatable operand (window, trailing
  required run, optional slots only taking spare values).
- Validate allocate() with a repeatable operand (pre, repeatable, post).
- Validate check(): nil handling, required operands, surplus values,
  defaults resolution.

Conventions
- Test method names follow CamelCase per project convention.
- Operands are built directly; the Arguments registry is not involved.
"""

from __future__ import annotations

import unittest
from unittest import TestCase

from gitbind.allocator import allocate, check, flatten
from gitbind.faults import MissingOperandError, NilOperandError, UnexpectedOperandsError
from gitbind.options import Operand
from gitbind.utils import Unset


def slots(operands, *values):
    return dict(allocate(operands, values).slots)


class TestFlatten(TestCase):
    """Behavioral tests for flatten()."""

    def testSingleListIsFlattenedOnce(self):
        self.assertEqual(flatten((["a", ["b"]],)), ["a", ["b"]])

    def testSeveralValuesAreKept(self):
        self.assertEqual(flatten(("a", "b")), ["a", "b"])

    def testSingleScalar(self):
        self.assertEqual(flatten(("a",)), ["a"])


class TestWithoutRepeatable(TestCase):
    """Behavioral tests for allocation without a repeatable operand."""

    def setUp(self):
        self.optional = Operand("commit")
        self.required = Operand("path", required=True)

    def testRequiredTakesPrecedence(self):
        self.assertEqual(slots((self.optional, self.required), "x"), {"commit": Unset, "path": "x"})

    def testOptionalFilledWhenSpareValue(self):
        self.assertEqual(slots((self.optional, self.required), "x", "y"), {"commit": "x", "path": "y"})

    def testValuesBeyondOperandsAreSurplus(self):
        allocation = allocate((self.optional, self.required), ("x", "y", "z"))
        self.assertEqual(allocation.surplus, ("z",))
        self.assertEqual(allocation.consumed, 2)

    def testOptionalsFillLeftToRight(self):
        self.assertEqual(
            slots((Operand("commit1"), Operand("commit2")), "HEAD"),
            {"commit1": "HEAD", "commit2": Unset},
        )

    def testOptionalBetweenRequiredSkippedWhenShort(self):
        operands = (Operand("a", required=True), Operand("b"), Operand("c", required=True))
        self.assertEqual(slots(operands, "1", "2"), {"a": "1", "b": Unset, "c": "2"})
        self.assertEqual(slots(operands, "1", "2", "3"), {"a": "1", "b": "2", "c": "3"})

    def testDefaultedRequiredIsNotReserved(self):
        operands = (Operand("a"), Operand("b", required=True, default="HEAD"))
        self.assertEqual(slots(operands, "1"), {"a": "1", "b": Unset})

    def testNoneOccupiesSlotButIsNotConsumed(self):
        allocation = allocate((self.optional,), (None,))
        self.assertIsNone(allocation.slots["commit"])
        self.assertEqual(allocation.consumed, 0)

    def testNoneSurplusIsDropped(self):
        self.assertEqual(allocate((self.optional,), ("x", None)).surplus, ())

    def testNoOperands(self):
        allocation = allocate((), ("x",))
        self.assertEqual(dict(allocation.slots), {})
        self.assertEqual(allocation.surplus, ("x",))


class TestWithRepeatable(TestCase):
    """Behavioral tests for allocation around a repeatable operand."""

    def setUp(self):
        self.operands = (
            Operand("commit"),
            Operand("paths", repeatable=True),
            Operand("destination", required=True),
        )

    def testRequiredPostReservedFirst(self):
        self.assertEqual(slots(self.operands, "1"), {"commit": Unset, "paths": [], "destination": "1"})

    def testRepeatableTakesMiddle(self):
        self.assertEqual(
            slots(self.operands, "1", "2", "3", "4"),
            {"commit": "1", "paths": ["2", "3"], "destination": "4"},
        )

    def testListInputIsFlattened(self):
        self.assertEqual(
            slots(self.operands, ["1", "2", "3"]),
            {"commit": "1", "paths": ["2"], "destination": "3"},
        )

    def testNothingIsSurplus(self):
        allocation = allocate((Operand("paths", repeatable=True),), ("a", "b", "c"))
        self.assertEqual(allocation.slots["paths"], ["a", "b", "c"])
        self.assertEqual(allocation.surplus, ())
        self.assertEqual(allocation.consumed, 3)

    def testRequiredRepeatableKeepsValueFromOptionalBefore(self):
        operands = (Operand("commit", default="HEAD"), Operand("paths", repeatable=True, required=True))
        allocation = allocate(operands, ("f.txt",))
        self.assertEqual(dict(allocation.slots), {"commit": Unset, "paths": ["f.txt"]})
        self.assertEqual(check(operands, allocation), {"commit": "HEAD", "paths": ("f.txt",)})
        self.assertEqual(slots(operands, "main", "f.txt"), {"commit": "main", "paths": ["f.txt"]})

    def testOptionalBeforeRepeatableSkippedWhenShort(self):
        operands = (
            Operand("a", required=True),
            Operand("b", default="d"),
            Operand("c", repeatable=True, default=["."]),
            Operand("d", required=True),
        )
        allocation = allocate(operands, ("1", "2"))
        self.assertEqual(dict(allocation.slots), {"a": "1", "b": Unset, "c": [], "d": "2"})
        self.assertEqual(allocation.consumed, 2)
        self.assertEqual(check(operands, allocation), {"a": "1", "b": "d", "c": (".",), "d": "2"})


class TestCheck(TestCase):
    """Behavioral tests for check()."""

    def run_check(self, operands, *values):
        return check(operands, allocate(operands, values))

    def testResolvesDefaultsAndTuples(self):
        operands = (Operand("commit", default="HEAD"), Operand("paths", repeatable=True))
        self.assertEqual(self.run_check(operands), {"commit": "HEAD", "paths": ()})
        self.assertEqual(self.run_check(operands, "main", "a"), {"commit": "main", "paths": ("a",)})

    def testMissingRequiredSingle(self):
        with self.assertRaises(MissingOperandError) as context:
            self.run_check((Operand("path", required=True),))
        self.assertEqual(str(context.exception), "path is required")

    def testNoneDoesNotSatisfyRequired(self):
        with self.assertRaises(MissingOperandError):
            self.run_check((Operand("path", required=True),), None)

    def testNoneSatisfiesRequiredWithAllowNil(self):
        self.assertEqual(self.run_check((Operand("tree_ish", required=True, allow_nil=True),), None), {"tree_ish": None})

    def testMissingRequiredRepeatable(self):
        with self.assertRaises(MissingOperandError) as context:
            self.run_check((Operand("paths", repeatable=True, required=True),))
        self.assertEqual(str(context.exception), "at least one value is required for paths")

    def testAllNoneRepeatableIsEmpty(self):
        self.assertEqual(self.run_check((Operand("paths", repeatable=True),), None, None), {"paths": ()})

    def testMixedNoneRepeatableRejected(self):
        with self.assertRaises(NilOperandError) as context:
            self.run_check((Operand("paths", repeatable=True),), "a", None)
        self.assertEqual(str(context.exception), "nil values are not allowed in repeatable positional argument: paths")

    def testSurplusRejected(self):
        with self.assertRaises(UnexpectedOperandsError) as context:
            self.run_check((Operand("path", required=True),), "a", "b", "c")
        self.assertEqual(str(context.exception), "Unexpected positional arguments: b, c")

    def testRequiredCheckedBeforeSurplus(self):
        with self.assertRaises(MissingOperandError):
            self.run_check((Operand("a", required=True), Operand("b", required=True)), None, "x", "y")


if __name__ == "__main__":
    unittest.main()
