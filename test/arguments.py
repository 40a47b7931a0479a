"""
Arguments module behavioral tests (kinds, descriptors, factories).

Scope
- Validate the kind variants: structural equality, immutability, match/case binding.
- Validate Argument construction: spellings, kind-dependent rules, per-value checks,
  presentation metadata and their normalization.
- Validate __replace__ (re-validated copies), switches and the factories.

Conventions
- Test method names follow CamelCase per project convention.
- Descriptors are built through the public API only (Argument and the factories).
"""

from __future__ import annotations

import unittest
from unittest import TestCase

from helmsman import (
    Argument,
    Kind,
    Flag,
    Count,
    Value,
    Append,
    Nargs,
    Map,
    Unset,
    takes_value,
    flag,
    count,
    value,
    append,
    nargs,
    mapping,
    positional,
)


class TestKinds(TestCase):
    """Behavioral tests for the kind variants."""

    def testVariantsCompareStructurally(self):
        self.assertEqual(Flag(), Flag())
        self.assertEqual(Nargs(2), Nargs(2))
        self.assertNotEqual(Nargs(2), Nargs(3))
        self.assertNotEqual(Flag(), Count())
        self.assertEqual(hash(Nargs(2)), hash(Nargs(2)))

    def testBaseKindCannotBeInstantiated(self):
        with self.assertRaises(TypeError):
            Kind()

    def testVariantsAreImmutable(self):
        with self.assertRaises(AttributeError):
            Nargs(2).count = 3

    def testNargsRejectsNonPositiveCounts(self):
        with self.assertRaises(ValueError):
            Nargs(0)
        with self.assertRaises(TypeError):
            Nargs(True)
        with self.assertRaises(TypeError):
            Nargs("2")

    def testMatchBindsNargsCount(self):
        match Nargs(3):
            case Nargs(count):
                self.assertEqual(count, 3)
            case _:
                self.fail("Nargs did not match its own class pattern")

    def testTakesValue(self):
        self.assertFalse(takes_value(Flag()))
        self.assertFalse(takes_value(Count()))
        for kind in (Value(), Append(), Nargs(1), Map()):
            self.assertTrue(takes_value(kind))

    def testReprShowsFields(self):
        self.assertEqual(repr(Nargs(2)), "Nargs(2)")
        self.assertEqual(repr(Map()), "Map()")


class TestArgument(TestCase):
    """Behavioral tests for Argument descriptors."""

    def testDefaultsAreNormalized(self):
        a = Argument("output", "output")
        self.assertEqual(a.kind, Value())
        self.assertIsNone(a.short)
        self.assertEqual(a.aliases, ())
        self.assertIsNone(a.descr)
        self.assertIsNone(a.position)
        self.assertIs(a.default, Unset)
        self.assertFalse(a.positional)

    def testNameMustBeIdentifierLike(self):
        with self.assertRaises(ValueError):
            Argument("", "x")
        with self.assertRaises(ValueError):
            Argument("1st", "x")
        with self.assertRaises(TypeError):
            Argument(5, "x")

    def testLongMustBeBare(self):
        with self.assertRaises(ValueError):
            Argument("verbose", "--verbose")
        with self.assertRaises(ValueError):
            Argument("verbose", "verb=ose")

    def testShortMustBeOneAlphanumeric(self):
        with self.assertRaises(ValueError):
            Argument("verbose", short="vv")
        with self.assertRaises(ValueError):
            Argument("verbose", short="-")

    def testAliasesDuplicatesRejected(self):
        with self.assertRaises(ValueError):
            Argument("output", "output", aliases=("out", "out"))
        with self.assertRaises(ValueError):
            Argument("output", "output", aliases=("output",))

    def testAliasesBecomeTuple(self):
        a = Argument("output", "output", aliases=["out", "destination"])
        self.assertEqual(a.aliases, ("out", "destination"))

    def testNamedArgumentNeedsSpelling(self):
        with self.assertRaises(TypeError):
            Argument("output")

    def testPositionalMustBeValueWithoutSpellings(self):
        with self.assertRaises(TypeError):
            Argument("file", "file", positional=True)
        with self.assertRaises(TypeError):
            Argument("file", kind=Count(), positional=True)
        with self.assertRaises(TypeError):
            Argument("file", positional=True, persistent=True)

    def testNegatableRequiresFlagWithLong(self):
        with self.assertRaises(TypeError):
            Argument("output", "output", negatable=True)
        with self.assertRaises(TypeError):
            Argument("color", short="c", kind=Flag(), negatable=True)

    def testChoicesRules(self):
        with self.assertRaises(ValueError):
            Argument("mode", "mode", choices=["fast", "fast"])
        with self.assertRaises(TypeError):
            Argument("mode", "mode", choices="fast")
        with self.assertRaises(TypeError):
            Argument("force", "force", kind=Flag(), choices=["yes"])
        a = Argument("mode", "mode", choices={"fast"})
        self.assertEqual(a.choices, ("fast",))

    def testRangeRules(self):
        self.assertEqual(Argument("jobs", "jobs", range=[1, 8]).range, (1, 8))
        self.assertEqual(Argument("jobs", "jobs", range=(0, None)).range, (0, None))
        with self.assertRaises(ValueError):
            Argument("jobs", "jobs", range=(8, 1))
        with self.assertRaises(ValueError):
            Argument("jobs", "jobs", range=(None, None))
        with self.assertRaises(TypeError):
            Argument("jobs", "jobs", range=("a", 1))
        with self.assertRaises(TypeError):
            Argument("jobs", "jobs", kind=Count(), range=(1, 2))

    def testDelimiterRules(self):
        with self.assertRaises(ValueError):
            Argument("tags", "tags", kind=Append(), delimiter="")
        with self.assertRaises(TypeError):
            Argument("point", "point", kind=Nargs(2), delimiter=",")
        self.assertEqual(Argument("tags", "tags", kind=Append(), delimiter=",").delimiter, ",")

    def testPresentationStringsTrimmedAndNonEmpty(self):
        a = Argument("output", "output", descr="  where to write  ", metavar="PATH")
        self.assertEqual(a.descr, "where to write")
        self.assertEqual(a.metavar, "PATH")
        with self.assertRaises(ValueError):
            Argument("output", "output", deprecated="   ")

    def testPositionOnlyForPositionals(self):
        with self.assertRaises(TypeError):
            Argument("output", "output", position=0)

    def testArgumentIsImmutable(self):
        a = value("output")
        with self.assertRaises(AttributeError):
            a.name = "other"

    def testReplaceReturnsValidatedCopy(self):
        a = value("output")
        b = a.__replace__(default="json", short="o")
        self.assertIsNot(a, b)
        self.assertEqual(b.default, "json")
        self.assertEqual(b.short, "o")
        self.assertIs(a.default, Unset)
        with self.assertRaises(TypeError):
            a.__replace__(negatable=True)
        with self.assertRaises(TypeError):
            a.__replace__(bogus=1)

    def testSwitchesListEverySpelling(self):
        a = flag("color", short="c", aliases=("colour",), negatable=True)
        self.assertEqual(a.switches, ("--color", "-c", "--colour", "--no-color"))
        self.assertEqual(a.longs, ("color", "colour"))

    def testReprMentionsTypename(self):
        self.assertTrue(repr(value("output")).startswith("argument("))
        self.assertIn(("name", "output"), list(value("output").__rich_repr__()))


class TestFactories(TestCase):
    """Behavioral tests for the descriptor factories."""

    def testNamedFactoriesDefaultLongToName(self):
        for factory, kind in (
                (flag, Flag()),
                (count, Count()),
                (value, Value()),
                (append, Append()),
                (mapping, Map()),
        ):
            a = factory("thing", short="t")
            self.assertEqual(a.long, "thing")
            self.assertEqual(a.short, "t")
            self.assertEqual(a.kind, kind)

    def testFactoryLongOverride(self):
        self.assertEqual(value("output_path", long="output").long, "output")

    def testNargsFactory(self):
        a = nargs("point", 2)
        self.assertEqual(a.kind, Nargs(2))

    def testPositionalFactory(self):
        a = positional("file", choices=("a", "b"))
        self.assertTrue(a.positional)
        self.assertIsNone(a.long)
        self.assertEqual(a.switches, ())


if __name__ == "__main__":
    unittest.main()
