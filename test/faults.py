"""
Faults module behavioral tests (codes, payloads, rendering, triggering).

Scope
- Validate FaultCode normalization and getdoc() host hooks.
- Validate CommandException options (read-only), __replace__ and str().
- Validate trigger(): raising by default, printing in shell mode, warnings.
- Validate RegistrationConflictError shape.

Conventions
- Test method names follow CamelCase per project convention.
- Host hooks in __main__ are patched with unittest.mock, never left behind.
"""

from __future__ import annotations

import __main__
import unittest
from unittest import TestCase, mock

from rich.console import Group
from rich.panel import Panel

from helmsman import faults
from helmsman.faults import (
    FaultCode,
    CommandException,
    UnknownOptionError,
    RegistrationConflictError,
    DeprecatedArgumentWarning,
    trigger,
    getdoc,
)


class TestFaultCodes(TestCase):
    """Behavioral tests for FaultCode and documentation lookup."""

    def testCodesAreStable(self):
        self.assertEqual(FaultCode.UNKNOWN_OPTION, 11111)
        self.assertEqual(FaultCode.AMBIGUOUS_PREFIX, 11112)
        self.assertEqual(FaultCode.REGISTRATION_CONFLICT, 13101)

    def testNormalizeDefaultsToNumber(self):
        with mock.patch.object(__main__, "__codes__", {}, create=True):
            self.assertEqual(FaultCode.UNKNOWN_OPTION.normalize(), "11111")

    def testNormalizeUsesHostMapping(self):
        with mock.patch.object(__main__, "__codes__", {FaultCode.UNKNOWN_OPTION: "E-OPT"}, create=True):
            self.assertEqual(FaultCode.UNKNOWN_OPTION.normalize(), "E-OPT")

    def testGetdoc(self):
        with mock.patch.object(__main__, "__docs__", {FaultCode.MISSING_VALUE: "pass a value"}, create=True):
            self.assertEqual(getdoc(FaultCode.MISSING_VALUE), "pass a value")
            self.assertIsNone(getdoc(FaultCode.UNKNOWN_OPTION))
        with self.assertRaises(TypeError):
            getdoc(11114)


class TestCommandException(TestCase):
    """Behavioral tests for parse faults."""

    def setUp(self):
        self.fault = UnknownOptionError(
            "unknown option '--nope' at first position",
            code=FaultCode.UNKNOWN_OPTION,
            title="unknown option",
            hint="run 'tool --help' to see all available options",
            path=("tool",),
        )

    def testMessageAndProperties(self):
        self.assertEqual(str(self.fault), "unknown option '--nope' at first position")
        self.assertEqual(self.fault.code, FaultCode.UNKNOWN_OPTION)
        self.assertEqual(self.fault.path, ("tool",))
        self.assertIsInstance(self.fault, CommandException)

    def testOptionsAreReadOnly(self):
        with self.assertRaises(TypeError):
            self.fault.options["code"] = None

    def testReplaceMergesOptions(self):
        other = self.fault.__replace__(path=("tool", "run"))
        self.assertIsInstance(other, UnknownOptionError)
        self.assertEqual(other.path, ("tool", "run"))
        self.assertEqual(other.message, self.fault.message)
        self.assertEqual(self.fault.path, ("tool",))

    def testTriggerRaisesByDefault(self):
        with self.assertRaises(UnknownOptionError):
            trigger(self.fault)

    def testTriggerPrintsInShellMode(self):
        with faults.console.capture() as capture:
            trigger(self.fault, shell=True)
        output = capture.get()
        self.assertIn("unknown option '--nope' at first position", output)
        self.assertIn("11111", output)

    def testTriggerRejectsPlainObjects(self):
        with self.assertRaises(TypeError):
            trigger(ValueError("nope"))

    def testRenderingShapes(self):
        self.assertIsInstance(self.fault.__rich__(), Group)
        self.assertIsInstance(self.fault.__replace__(fancy=True).__rich__(), Panel)


class TestWarningsAndRegistration(TestCase):
    """Behavioral tests for warnings and registration conflicts."""

    def testWarningTriggerWarns(self):
        warning = DeprecatedArgumentWarning("'--old' is deprecated", code=FaultCode.DEPRECATED_ARGUMENT)
        with self.assertWarns(DeprecatedArgumentWarning):
            trigger(warning)

    def testRegistrationConflictError(self):
        error = RegistrationConflictError("clash", names=["a", "b"])
        self.assertIsInstance(error, ValueError)
        self.assertEqual(error.names, ("a", "b"))
        self.assertEqual(error.code, FaultCode.REGISTRATION_CONFLICT)


if __name__ == "__main__":
    unittest.main()
