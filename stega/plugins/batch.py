"""
batch: run several registered commands in one invocation.

    stega batch --commands=build,test            # sequentially, stop at the first failure
    stega batch -c build,test --parallel         # concurrently on the event loop

Shipped as a plugin (registry specifier "@stega/batch", or the local path
"plugins/batch.py") whose init registers the command.
"""
import asyncio

from stega.commands import Args, Command, Option
from stega.faults import CommandNotFoundError
from stega.utils import awaited


async def _execute(cli, name, /):
    if (command := cli.find_command(name)) is None:
        cli.logger.error(f'Command "{name}" not found.')
        raise CommandNotFoundError(name)
    if command.action is None:
        raise ValueError(f'Command "{name}" is not invocable')
    await awaited(command.action(Args([command.name], {}, cli)))


async def run_batch(args, /):
    names = [name.strip() for name in args.flags["commands"].split(",") if name.strip()]
    parallel = args.flags.get("parallel") is True
    if not names:
        raise ValueError("No valid commands provided for batch execution")

    cli = args.cli
    cli.logger.info(f"Executing {len(names)} command(s) {"in parallel" if parallel else "sequentially"}")

    try:
        if parallel:
            results = await asyncio.gather(*(_execute(cli, name) for name in names), return_exceptions=True)
            if failures := [result for result in results if isinstance(result, BaseException)]:
                raise next((failure for failure in failures if isinstance(failure, CommandNotFoundError)), failures[0])
        else:
            for name in names:
                await _execute(cli, name)
    except CommandNotFoundError:
        raise
    except Exception as error:
        raise RuntimeError(f"Batch execution failed: {error}") from error

    cli.logger.info("Batch execution completed successfully")


batch = Command(
    "batch",
    run_batch,
    descr="Execute multiple commands in sequence or parallel",
    options=[
        Option("commands", "c", "string", required=True, descr="Comma-separated list of commands to execute"),
        Option("parallel", "p", "boolean", default=False, descr="Execute commands in parallel"),
    ],
)


class BatchPlugin:
    metadata = {
        "name": "batch",
        "version": "1.0.0",
        "descr": "Run several commands in one invocation",
    }

    @staticmethod
    def init(cli):
        cli.register(batch)

    @staticmethod
    def unload(cli):
        cli.unregister(batch.name)


plugin = BatchPlugin()


__all__ = (
    "plugin",
    "batch",
    "run_batch",
)
