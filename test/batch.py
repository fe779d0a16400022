"""
Batch command tests.

Scope
- Validate parallel and sequential execution, their log lines and ordering.
- Validate stop-at-first-failure, unknown command propagation and failure wrapping.

Conventions
- Test method names follow CamelCase per project convention.
- The batch command is registered directly (no plugin load) to isolate its behavior.
"""

from __future__ import annotations

import asyncio
import logging
import unittest
from unittest import IsolatedAsyncioTestCase

from stega import CLI, Command, CommandNotFoundError
from stega.plugins.batch import batch


class TestBatch(IsolatedAsyncioTestCase):
    def setUp(self):
        self.cli = CLI(skip_config=True)
        self.cli.register(batch)
        self.events = []

    def track(self, name, delay=0.0, *, fails=False):
        async def action(args):
            self.events.append(f"{name}:start")
            await asyncio.sleep(delay)
            if fails:
                raise RuntimeError(f"{name} failed")
            self.events.append(f"{name}:end")

        self.cli.register(Command(name, action))

    async def testParallelRunsConcurrently(self):
        self.track("cmd1", 0.02)
        self.track("cmd2")

        with self.assertLogs("stega", logging.INFO) as logs:
            await self.cli.run_command(["batch", "--commands=cmd1,cmd2", "--parallel"])

        self.assertIn("INFO:stega:Executing 2 command(s) in parallel", logs.output)
        self.assertIn("INFO:stega:Batch execution completed successfully", logs.output)
        self.assertEqual(sorted(self.events), ["cmd1:end", "cmd1:start", "cmd2:end", "cmd2:start"])
        self.assertLess(self.events.index("cmd2:end"), self.events.index("cmd1:end"))

    async def testSequentialRunsInOrder(self):
        self.track("cmd1", 0.02)
        self.track("cmd2")

        with self.assertLogs("stega", logging.INFO) as logs:
            await self.cli.run_command(["batch", "-c", "cmd1,cmd2"])

        self.assertIn("INFO:stega:Executing 2 command(s) sequentially", logs.output)
        self.assertEqual(self.events, ["cmd1:start", "cmd1:end", "cmd2:start", "cmd2:end"])

    async def testSequentialStopsAtFirstFailure(self):
        self.track("cmd1", fails=True)
        self.track("cmd2")

        with self.assertLogs("stega", logging.ERROR), self.assertRaises(RuntimeError) as context:
            await self.cli.run_command(["batch", "--commands", "cmd1,cmd2"])

        self.assertEqual(str(context.exception), "Batch execution failed: cmd1 failed")
        self.assertEqual(self.events, ["cmd1:start"])

    async def testParallelFailureIsWrapped(self):
        self.track("cmd1", fails=True)
        self.track("cmd2")

        with self.assertLogs("stega", logging.ERROR), self.assertRaises(RuntimeError) as context:
            await self.cli.run_command(["batch", "--commands=cmd1,cmd2", "-p"])

        self.assertEqual(str(context.exception), "Batch execution failed: cmd1 failed")
        self.assertIn("cmd2:end", self.events)

    async def testUnknownCommandPropagates(self):
        self.track("cmd1")

        with self.assertLogs("stega", logging.ERROR), self.assertRaises(CommandNotFoundError) as context:
            await self.cli.run_command(["batch", "--commands=cmd1,ghost", "--parallel"])

        self.assertEqual(context.exception.message, 'Command "ghost" not found.')

    async def testCommandsFlagIsRequired(self):
        with self.assertLogs("stega", logging.ERROR), self.assertRaises(Exception) as context:
            await self.cli.run_command(["batch"])
        self.assertEqual(str(context.exception), "Missing required flag: --commands")

    async def testEmptyListRejected(self):
        with self.assertLogs("stega", logging.ERROR), self.assertRaises(ValueError):
            await self.cli.run_command(["batch", "--commands= , "])


if __name__ == "__main__":
    unittest.main()
