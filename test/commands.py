"""
Command model and registry tests.

Scope
- Validate Option and Command construction (names, aliases, types, defaults).
- Validate the @command decorator forms and subcommand attachment.
- Validate Registry semantics (last write wins, alias lookup, removal, order).

Conventions
- Test method names follow CamelCase per project convention.
- Tests use the public API (command, Command, Option, Registry).
"""

from __future__ import annotations

import unittest
from unittest import TestCase

from stega import Command, FlagType, Option, Registry, command
from stega.utils import Unset


def noop(args):
    pass


class TestOption(TestCase):
    """Option schema validation."""

    def testDefaults(self):
        option = Option("name")
        self.assertEqual(option.name, "name")
        self.assertIsNone(option.alias)
        self.assertEqual(option.type, FlagType.STRING)
        self.assertFalse(option.required)
        self.assertIs(option.default, Unset)
        self.assertFalse(option.has_default)

    def testFalseIsAValidDefault(self):
        option = Option("verbose", "v", "boolean", default=False)
        self.assertTrue(option.has_default)
        self.assertIs(option.default, False)

    def testRequiredIgnoresDefault(self):
        self.assertFalse(Option("name", required=True, default="x").has_default)

    def testArrayDefaultIsCopied(self):
        option = Option("tags", type="array", default=["a"])
        option.default.append("b")
        self.assertEqual(option.default, ["a"])

    def testAliasMustBeOneCharacter(self):
        with self.assertRaises(ValueError):
            Option("name", alias="nm")

    def testUnknownTypeRaises(self):
        with self.assertRaises(ValueError):
            Option("name", type="integer")

    def testEmptyNameRaises(self):
        with self.assertRaises(ValueError):
            Option("  ")

    def testMatchesNameAndAlias(self):
        option = Option("name", "n")
        self.assertTrue(option.matches("name"))
        self.assertTrue(option.matches("n"))
        self.assertFalse(option.matches("x"))

    def testRepr(self):
        self.assertTrue(repr(Option("name", "n")).startswith("option(name='name'"))


class TestCommand(TestCase):
    """Command construction and decorator forms."""

    def testDescrDefaultsToDocstring(self):
        def greet(args):
            """Say hello."""

        self.assertEqual(Command("greet", greet).descr, "Say hello.")

    def testDuplicateOptionNamesRaise(self):
        with self.assertRaises(ValueError):
            Command("tool", noop, options=[Option("name", "n"), Option("number", "n")])

    def testActionMustBeCallable(self):
        with self.assertRaises(TypeError):
            Command("tool", "not callable")

    def testBareDecoratorUsesFunctionName(self):
        @command
        def make_thing(args):
            pass

        self.assertIsInstance(make_thing, Command)
        self.assertEqual(make_thing.name, "make-thing")

    def testNamedDecorator(self):
        @command("hello", options=[Option("name", "n")])
        def greet(args):
            pass

        self.assertEqual(greet.name, "hello")
        self.assertEqual([option.name for option in greet.options], ["name"])

    def testDirectForm(self):
        tool = command(noop, "tool", aliases=["t"])
        self.assertEqual(tool.name, "tool")
        self.assertEqual(tool.aliases, ("t",))

    def testSubcommandAttachment(self):
        parent = Command("parent")

        @parent.command
        def child(args):
            pass

        @parent.command("other")
        def ignored(args):
            pass

        self.assertIs(parent.subcommand("child"), child)
        self.assertEqual([subcommand.name for subcommand in parent.subcommands], ["child", "other"])
        self.assertIsNone(parent.subcommand("missing"))

    def testSubcommandsAreCommandsInAttachOrder(self):
        child = Command("child", noop)
        parent = Command("parent", subcommands=[child])
        self.assertEqual(parent.subcommands, (child,))

        other = parent.attach(Command("other", noop))
        self.assertEqual(parent.subcommands, (child, other))
        self.assertTrue(all(isinstance(subcommand, Command) for subcommand in parent.subcommands))

    def testSubcommandAliasLookup(self):
        parent = Command("parent", subcommands=[Command("child", noop, aliases=["c"])])
        self.assertEqual(parent.subcommand("c").name, "child")


class TestRegistry(TestCase):
    """In-memory command registry."""

    def setUp(self):
        self.registry = Registry()

    def testRegisterAndFind(self):
        self.registry.register(tool := Command("tool", noop))
        self.assertIs(self.registry.find("tool"), tool)
        self.assertIsNone(self.registry.find("missing"))

    def testFindByAlias(self):
        self.registry.register(tool := Command("tool", noop, aliases=["t"]))
        self.assertIs(self.registry.find("t"), tool)

    def testLastWriteWinsAndKeepsPosition(self):
        first, second = Command("a", noop), Command("b", noop)
        replacement = Command("a", noop, descr="replacement")
        for item in (first, second, replacement):
            self.registry.register(item)
        self.assertEqual([item.name for item in self.registry.commands()], ["a", "b"])
        self.assertIs(self.registry.find("a"), replacement)

    def testRemove(self):
        self.registry.register(Command("tool", noop))
        self.assertTrue(self.registry.remove("tool"))
        self.assertFalse(self.registry.remove("tool"))
        self.assertNotIn("tool", self.registry)

    def testClear(self):
        self.registry.register(Command("tool", noop))
        self.registry.clear()
        self.assertEqual(len(self.registry), 0)

    def testRegisterRejectsNonCommands(self):
        with self.assertRaises(TypeError):
            self.registry.register({"name": "tool"})


if __name__ == "__main__":
    unittest.main()
