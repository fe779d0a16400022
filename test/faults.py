"""
Fault taxonomy and rendering tests.

Scope
- Validate messages, codes and attributes of every fault.
- Validate rich rendering (header, message, hint), option overrides and report().
- Validate copy/pickle support and the process entry point's exit status.

Conventions
- Test method names follow CamelCase per project convention.
- Rendering is captured with a rich Console writing to a StringIO.
"""

from __future__ import annotations

import contextlib
import copy
import io
import logging
import os
import pickle
import tempfile
import unittest
from unittest import TestCase, mock

from rich.console import Console
from rich.logging import RichHandler

from stega import faults
from stega.__main__ import main
from stega.faults import (
    CommandNotFoundError,
    FaultCode,
    InvalidFlagValueError,
    MissingFlagError,
    StegaError,
    SubcommandNotFoundError,
    ValidationError,
    report,
)


def render(renderable):
    console = Console(file=io.StringIO(), width=120, color_system=None)
    console.print(renderable)
    return console.file.getvalue()


class TestFaults(TestCase):
    """Messages, codes and attributes."""

    def testMessages(self):
        self.assertEqual(str(MissingFlagError("name")), "Missing required flag: --name")
        self.assertEqual(str(InvalidFlagValueError("count", "number")), "Invalid value for flag --count: expected a number.")
        self.assertEqual(str(CommandNotFoundError("nope")), 'Command "nope" not found.')
        self.assertEqual(str(SubcommandNotFoundError("child")), 'Subcommand "child" not found.')
        self.assertEqual(str(ValidationError("greet", "boom")), "Failed to load plugin greet: boom")

    def testHierarchyAndCodes(self):
        for fault, code in (
            (MissingFlagError("name"), FaultCode.MISSING_FLAG),
            (InvalidFlagValueError("count", "number"), FaultCode.INVALID_FLAG_VALUE),
            (CommandNotFoundError("nope"), FaultCode.UNKNOWN_COMMAND),
            (SubcommandNotFoundError("child"), FaultCode.UNKNOWN_SUBCOMMAND),
            (ValidationError("greet", "boom"), FaultCode.PLUGIN_VALIDATION),
        ):
            with self.subTest(fault=type(fault).__name__):
                self.assertIsInstance(fault, StegaError)
                self.assertEqual(fault.code, code)

    def testAttributes(self):
        self.assertEqual(MissingFlagError("name", "string").flag, "name")
        self.assertEqual(CommandNotFoundError("nope").command, "nope")
        self.assertEqual(SubcommandNotFoundError("child").subcommand, "child")
        fault = ValidationError("greet", "boom")
        self.assertEqual((fault.plugin, fault.reason), ("greet", "boom"))


class TestRendering(TestCase):
    """rich rendering and report()."""

    def testHeaderMessageAndHint(self):
        output = render(CommandNotFoundError("nope"))
        self.assertIn("[ stega — 11101 | Unknown Command ]", output)
        self.assertIn('Command "nope" not found.', output)
        self.assertIn("run 'help' to list the available commands", output)

    def testOptionsOverrideRendering(self):
        fault = copy.replace(MissingFlagError("name"), prog="tool", hint="try harder")
        output = render(fault)
        self.assertIn("[ tool — 11111 | Missing Flag ]", output)
        self.assertIn("try harder", output)

    def testFancyPanel(self):
        output = render(copy.replace(CommandNotFoundError("nope"), fancy=True))
        self.assertIn("╭", output)

    def testReportWritesToStderr(self):
        stderr = io.StringIO()
        with mock.patch.object(faults, "console", Console(file=stderr, width=120, color_system=None)):
            report(ValueError("plain failure"))
        self.assertIn("Unexpected Error", stderr.getvalue())
        self.assertIn("plain failure", stderr.getvalue())


class TestCopying(TestCase):
    """copy, replace and pickle keep the fault state."""

    def testPickleRoundTrip(self):
        fault = pickle.loads(pickle.dumps(MissingFlagError("name", "string", hint="x")))
        self.assertIsInstance(fault, MissingFlagError)
        self.assertEqual(fault.message, "Missing required flag: --name")
        self.assertEqual(fault.flag, "name")
        self.assertEqual(fault.options["hint"], "x")

    def testReplaceLeavesOriginalUntouched(self):
        original = CommandNotFoundError("nope")
        replaced = copy.replace(original, colorful=False)
        self.assertNotIn("colorful", original.options)
        self.assertFalse(replaced.options["colorful"])
        self.assertEqual(replaced.command, "nope")


class TestEntryPoint(TestCase):
    """stega.__main__.main maps faults to exit status 1."""

    def setUp(self):
        logger = logging.getLogger("stega")
        handlers, level = list(logger.handlers), logger.level

        def restore():
            logger.handlers[:] = handlers
            logger.setLevel(level)

        self.addCleanup(restore)
        directory = self.enterContext(tempfile.TemporaryDirectory())
        self.enterContext(mock.patch.dict(os.environ, {"STEGA_CONFIG": os.path.join(directory, "config.json")}))

    def testFaultExitsWithOne(self):
        stderr = io.StringIO()
        with (
            mock.patch.object(faults, "console", Console(file=stderr, width=120, color_system=None)),
            contextlib.redirect_stdout(io.StringIO()) as stdout,
        ):
            self.assertEqual(main(["nope"]), 1)
        self.assertIn('Command "nope" not found.', stderr.getvalue())
        self.assertIn("Available Commands:", stdout.getvalue())

    def testSuccessExitsWithZero(self):
        with contextlib.redirect_stdout(io.StringIO()) as stdout:
            self.assertEqual(main(["help"]), 0)
        self.assertIn("Available Commands:", stdout.getvalue())
        self.assertTrue(any(isinstance(handler, RichHandler) for handler in logging.getLogger("stega").handlers))


if __name__ == "__main__":
    unittest.main()
