"""
Configuration loader tests and their effect on CLI.run.

Scope
- Validate JSON loading, the missing-file fallback and environment overrides.
- Validate that CLI.run applies configuration (defaults, plugin-dirs, plugins autoload).

Conventions
- Test method names follow CamelCase per project convention.
- Files are written to a temporary directory per test.
"""

from __future__ import annotations

import contextlib
import io
import json
import logging
import tempfile
import textwrap
import unittest
from pathlib import Path
from unittest import IsolatedAsyncioTestCase

from stega import CLI, Command, Option
from stega.config import ConfigLoader
from stega.faults import ValidationError


class ConfigCase(IsolatedAsyncioTestCase):
    def setUp(self):
        self.root = Path(self.enterContext(tempfile.TemporaryDirectory()))
        self.path = self.root / "config.json"

    def store(self, config):
        self.path.write_text(json.dumps(config), encoding="utf-8")
        return self.path


class TestConfigLoader(ConfigCase):
    async def testMissingFileIsEmpty(self):
        self.assertEqual(await ConfigLoader(self.path).load(), {})

    async def testLoadsJsonObject(self):
        loader = ConfigLoader(self.store({"output": "json", "retries": 3}), environ={})
        self.assertEqual(await loader.load(), {"output": "json", "retries": 3})
        self.assertEqual(loader.get("retries"), 3)
        self.assertIn("output", loader)

    async def testEnvironmentOverridesKnownKeysOnly(self):
        loader = ConfigLoader(self.store({"output": "json"}), environ={"OUTPUT": "text", "OTHER": "x"})
        self.assertEqual(await loader.load(), {"output": "text"})

    async def testNonObjectRejected(self):
        self.path.write_text("[1, 2]", encoding="utf-8")
        with self.assertRaises(ValueError):
            await ConfigLoader(self.path).load()

    async def testInvalidJsonPropagates(self):
        self.path.write_text("{broken", encoding="utf-8")
        with self.assertRaises(json.JSONDecodeError):
            await ConfigLoader(self.path).load()


class TestRunWithConfiguration(ConfigCase):
    async def testConfiguredValueFeedsOptions(self):
        seen = []
        cli = CLI(self.store({"greeting": "hi"}))
        cli.register(Command("greet", lambda args: seen.append(args.flags), options=[Option("greeting", default="hello")]))

        await cli.run(["greet"])
        self.assertEqual(seen, [{"greeting": "hi"}])

    async def testPluginsAreAutoloaded(self):
        plugin = self.root / "tests" / "plugins" / "auto.py"
        plugin.parent.mkdir(parents=True)
        plugin.write_text(textwrap.dedent("""
            from stega import Command

            plugin = {
                "metadata": {"name": "auto", "version": "1.0.0"},
                "init": lambda cli: cli.register(Command("auto", lambda args: print("auto ran"))),
            }
        """), encoding="utf-8")
        cli = CLI(self.store({"plugins": [plugin.as_posix()]}))

        stdout = io.StringIO()
        with self.assertLogs("stega", logging.INFO), contextlib.redirect_stdout(stdout):
            await cli.run(["auto"])
        self.assertIn("auto ran", stdout.getvalue())

    async def testPluginDirsReplaceAllowList(self):
        plugin = self.root / "tests" / "plugins" / "auto.py"
        cli = CLI(self.store({"plugin-dirs": ["vendor/"], "plugins": [plugin.as_posix()]}))

        with self.assertLogs("stega", logging.DEBUG), self.assertRaises(ValidationError) as context:
            await cli.run(["help"])
        self.assertIn("Plugins must be in: vendor/", str(context.exception))


if __name__ == "__main__":
    unittest.main()
