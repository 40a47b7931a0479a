"""
Validator behavioral tests (constraint checking after a scan).

Scope
- Validate each rule: required, positional count, mutually exclusive, one-required,
  required-together and conditional requirements.
- Validate the fixed rule order and that rules compose independently.
- Validate that defaults never count as presence while synchronized values do.

Conventions
- Test method names follow CamelCase per project convention.
- Constraints are exercised through Command.parse unless the test targets validate().
"""

from __future__ import annotations

import unittest
from unittest import TestCase

from helmsman import Command, ParseResult, FaultCode, flag, value, positional, validate
from helmsman.faults import (
    MissingRequiredError,
    TooManyPositionalsError,
    MutuallyExclusiveError,
    OneRequiredError,
    RequiredTogetherError,
    ConditionalRequirementError,
)


class TestRequired(TestCase):
    """Behavioral tests for required arguments and positional counts."""

    def testMissingRequiredOption(self):
        tool = Command("tool", value("name", required=True))
        with self.assertRaises(MissingRequiredError) as context:
            tool.parse([])
        self.assertEqual(context.exception.options["name"], "name")
        self.assertEqual(context.exception.code, FaultCode.MISSING_REQUIRED)
        self.assertEqual(tool.parse(["--name", "x"]).value("name"), "x")

    def testDefaultSatisfiesRequired(self):
        tool = Command("tool", value("name", required=True, default="anonymous"))
        self.assertEqual(tool.parse([]).value("name"), "anonymous")

    def testMissingRequiredPositional(self):
        tool = Command("tool", positional("file", required=True))
        with self.assertRaises(MissingRequiredError):
            tool.parse([])

    def testTooManyPositionals(self):
        tool = Command("tool", positional("file"))
        with self.assertRaises(TooManyPositionalsError) as context:
            tool.parse(["a", "b", "c"])
        self.assertEqual(context.exception.options["expected"], 1)
        self.assertEqual(context.exception.options["got"], 3)
        self.assertIn("second position", str(context.exception))

    def testRequiredCheckedBeforeGroups(self):
        tool = Command("tool", value("name", required=True), flag("json"), flag("yaml"), exclusive=[("json", "yaml")])
        with self.assertRaises(MissingRequiredError):
            tool.parse(["--json", "--yaml"])


class TestGroups(TestCase):
    """Behavioral tests for the set-based rules."""

    def testMutuallyExclusive(self):
        tool = Command("tool", flag("json"), flag("yaml"), flag("xml"), exclusive=[("json", "yaml", "xml")])
        with self.assertRaises(MutuallyExclusiveError) as context:
            tool.parse(["--json", "--yaml"])
        self.assertEqual(context.exception.options["members"], ("json", "yaml"))
        self.assertTrue(tool.parse(["--xml"]).flag("xml"))
        self.assertFalse(tool.parse([]).flag("json"))

    def testNegatedFlagCountsAsPresent(self):
        tool = Command("tool", flag("color", negatable=True), flag("plain"), exclusive=[("color", "plain")])
        with self.assertRaises(MutuallyExclusiveError):
            tool.parse(["--no-color", "--plain"])

    def testOneRequired(self):
        tool = Command("tool", flag("json"), flag("yaml"), one_required=[("json", "yaml")])
        with self.assertRaises(OneRequiredError) as context:
            tool.parse([])
        self.assertEqual(context.exception.options["members"], ("json", "yaml"))
        result = tool.parse(["--json", "--yaml"])
        self.assertTrue(result.flag("json") and result.flag("yaml"))

    def testExactlyOneByComposition(self):
        tool = Command(
            "tool",
            flag("json"),
            flag("yaml"),
            exclusive=[("json", "yaml")],
            one_required=[("json", "yaml")],
        )
        with self.assertRaises(OneRequiredError):
            tool.parse([])
        with self.assertRaises(MutuallyExclusiveError):
            tool.parse(["--json", "--yaml"])
        self.assertTrue(tool.parse(["--yaml"]).flag("yaml"))

    def testSeveralSetsAreCheckedIndependently(self):
        tool = Command(
            "tool",
            flag("a"),
            flag("b"),
            flag("c"),
            flag("d"),
            exclusive=[("a", "b"), ("c", "d")],
            one_required=[("a", "b"), ("c", "d")],
        )
        result = tool.parse(["--a", "--c"])
        self.assertTrue(result.flag("a") and result.flag("c"))
        with self.assertRaises(MutuallyExclusiveError) as context:
            tool.parse(["--a", "--c", "--d"])
        self.assertEqual(context.exception.options["members"], ("c", "d"))
        with self.assertRaises(OneRequiredError) as context:
            tool.parse(["--a"])
        self.assertEqual(context.exception.options["members"], ("c", "d"))
        with self.assertRaises(OneRequiredError) as context:
            tool.parse(["--d"])
        self.assertEqual(context.exception.options["members"], ("a", "b"))

    def testRequiredTogether(self):
        tool = Command("tool", value("username"), value("password"), together=[("username", "password")])
        with self.assertRaises(RequiredTogetherError) as context:
            tool.parse(["--username", "admin"])
        self.assertEqual(context.exception.options["missing"], ("password",))
        self.assertEqual(tool.parse([]).value("username"), None)
        self.assertEqual(tool.parse(["--username", "a", "--password", "b"]).value("password"), "b")

    def testDefaultsDoNotCountAsPresent(self):
        tool = Command(
            "tool",
            value("username", default="root"),
            value("password"),
            together=[("username", "password")],
        )
        self.assertEqual(tool.parse([]).value("username"), "root")

    def testConditionalRequirement(self):
        tool = Command("tool", flag("encrypt"), value("key"), conditionals=[("key", "encrypt")])
        with self.assertRaises(ConditionalRequirementError) as context:
            tool.parse(["--encrypt"])
        self.assertEqual(context.exception.options["target"], "key")
        self.assertEqual(context.exception.options["condition"], "encrypt")
        self.assertEqual(tool.parse(["--key", "k"]).value("key"), "k")

    def testSyncedChildValueSatisfiesParentRule(self):
        tool = Command(
            "tool",
            value("output", persistent=True),
            value("format"),
            one_required=[("output", "format")],
            subcommands=[Command("search", positional("query"))],
        )
        result = tool.parse(["search", "--output", "x", "q"])
        self.assertEqual(result.value("output"), "x")
        with self.assertRaises(OneRequiredError):
            tool.parse(["search", "q"])


class TestValidateDirect(TestCase):
    """Direct calls to validate()."""

    def testEmptyResultPassesWithoutConstraints(self):
        tool = Command("tool", flag("force"))
        self.assertIsNone(validate(tool, tool.arguments, ParseResult("tool"), ("tool",)))

    def testEmptyResultFailsOneRequired(self):
        tool = Command("tool", flag("a"), flag("b"), one_required=[("a", "b")])
        with self.assertRaises(OneRequiredError) as context:
            validate(tool, tool.arguments, ParseResult("tool"), ("tool",))
        self.assertEqual(context.exception.path, ("tool",))


if __name__ == "__main__":
    unittest.main()
