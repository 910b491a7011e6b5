# python
"""
Utilities behavioral tests.

Scope
- Validate the Unset sentinel: singleton, falsey, printable, picklable, final.
- Validate coalesce/rename/mirror/snapshot helpers.
- Validate name-to-flag derivation (optionize, negate, isshort) and the
  ":name" notation helpers used in every message.

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import pickle
import unittest
from types import MappingProxyType
from unittest import TestCase

from gitbind.utils import (
    Unset,
    UnsetType,
    coalesce,
    enumerate_names,
    isshort,
    mirror,
    negate,
    optionize,
    rename,
    snapshot,
    symbolize,
    typename,
)


class TestUnset(TestCase):
    """Behavioral tests for the Unset sentinel."""

    def testUnsetIsSingleton(self):
        self.assertIs(UnsetType(), Unset)

    def testUnsetIsFalsey(self):
        self.assertFalse(Unset)

    def testUnsetRepr(self):
        self.assertEqual(repr(Unset), "Unset")

    def testUnsetSurvivesPickling(self):
        self.assertIs(pickle.loads(pickle.dumps(Unset)), Unset)

    def testUnsetTypeCannotBeSubclassed(self):
        with self.assertRaises(TypeError):
            type("Derived", (UnsetType,), {})

    def testUnsetDistinctFromNone(self):
        self.assertIsNot(Unset, None)


class TestCoalesce(TestCase):
    """Behavioral tests for coalesce()."""

    def testCoalesceKeepsValue(self):
        self.assertEqual(coalesce("HEAD", "main"), "HEAD")

    def testCoalesceReplacesUnset(self):
        self.assertEqual(coalesce(Unset, "main"), "main")

    def testCoalesceDefaultsToNone(self):
        self.assertIsNone(coalesce(Unset))

    def testCoalescePreservesFalseyValues(self):
        for value in (None, 0, "", [], False):
            with self.subTest(value=value):
                self.assertIs(coalesce(value, "x"), value)


class TestRenameAndMirror(TestCase):
    """Behavioral tests for rename() and mirror()."""

    def testRenameDirectForm(self):
        def function():
            pass
        self.assertEqual(rename(function, "renamed").__name__, "renamed")
        self.assertEqual(function.__qualname__, "renamed")

    def testRenameDecoratorForm(self):
        @rename("decorated")
        def function():
            pass
        self.assertEqual(function.__name__, "decorated")

    def testRenameRejectsNonString(self):
        with self.assertRaises(TypeError):
            rename(len, 1)

    def testRenameRejectsTooManyArguments(self):
        with self.assertRaises(TypeError):
            rename(len, "a", "b")

    def testMirrorFreezesContainers(self):
        class Holder:
            items = mirror("items")
            table = mirror("table")
            token = mirror("token")

            def __init__(self):
                self._items = ["a", "b"]
                self._table = {"k": "v"}
                self._token = "--"

        holder = Holder()
        self.assertEqual(holder.items, ("a", "b"))
        self.assertIsInstance(holder.table, MappingProxyType)
        self.assertEqual(holder.token, "--")
        with self.assertRaises(AttributeError):
            holder.items = ()

    def testMirrorRejectsNonString(self):
        with self.assertRaises(TypeError):
            mirror(1)

    def testSnapshotCopiesNestedContainers(self):
        source = {"paths": ["a", ("b", ["c"])], "tags": {"x"}}
        copied = snapshot(source)
        source["paths"].append("d")
        source["extra"] = 1
        self.assertIsInstance(copied, MappingProxyType)
        self.assertEqual(dict(copied), {"paths": ("a", ("b", ("c",))), "tags": frozenset({"x"})})
        self.assertEqual(snapshot("HEAD"), "HEAD")
        self.assertIsNone(snapshot(None))


class TestFlagNames(TestCase):
    """Behavioral tests for flag derivation and message notation."""

    def testOptionizeLongName(self):
        self.assertEqual(optionize("dry_run"), "--dry-run")

    def testOptionizeShortName(self):
        self.assertEqual(optionize("f"), "-f")

    def testOptionizeRejectsEmpty(self):
        with self.assertRaises(TypeError):
            optionize("")

    def testNegateLongFlag(self):
        self.assertEqual(negate("--verify"), "--no-verify")

    def testNegateShortFlagUsesLongForm(self):
        self.assertEqual(negate("-f"), "--no-f")

    def testIsShort(self):
        self.assertTrue(isshort("-n"))
        self.assertFalse(isshort("--n"))
        self.assertFalse(isshort("--abbrev"))

    def testSymbolize(self):
        self.assertEqual(symbolize("force"), ":force")

    def testEnumerateNames(self):
        self.assertEqual(enumerate_names(["patch", "stat"]), ":patch, :stat")
        self.assertEqual(enumerate_names(["patch", "stat"], " and "), ":patch and :stat")

    def testTypename(self):
        self.assertEqual(typename(1), "int")
        self.assertEqual(typename("x"), "str")


if __name__ == "__main__":
    unittest.main()
