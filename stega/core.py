"""
Stega CLI core: the dispatcher.

Scope
- CLI: owns a command Registry, an ordered middleware chain, a PluginLoader, a logger and
  the loaded configuration; turns argv into an executed command.

Dispatch (run_command)
1. [] or ["help", ...] → general help (or "help <command> [<subcommand> ...]") and return.
2. argv[0] resolves in the registry (name or alias); unknown → CommandNotFoundError.
3. Leading non-flag tokens walk subcommands while the current command has any;
   unknown → SubcommandNotFoundError.
4. Remaining tokens are flags:
   • --name=value | --name value | --name          (long form)
   • -a=value | -a value | -a | -abc               (alias form, grouped aliases)
   • --                                            (everything after it is an operand)
   Known options convert through stega.flags.convert; unknown flags stay raw strings (or
   True). A boolean flag consumes a following literal true/false/1/0.
   An undeclared --help/-h renders the resolved command's help and returns.
5. Missing required options (argv and configuration) → MissingFlagError.
6. Absent optional options: configuration value, then the declared default.
7. Args(command=path, flags, cli=self, operands).
8. Middleware, in registration order, each awaited.
9. The action, awaited when it returns an awaitable.

Failure semantics
- Dispatch faults (steps 2-6) print the general help to stdout, then propagate.
- Every failure is logged as "Command execution failed: <message>" and re-raised unchanged.
- The core never exits the process (see stega.__main__).
"""
import json
import logging
import re
import sys
from collections import deque

from rich.console import Console

from .commands import *
from .config import ConfigLoader
from .faults import *
from .flags import FlagType, convert
from .help import Help
from .logs import level_of, logger as default_logger
from .plugins.loader import PluginLoader
from .utils import *

_NEGATIVE = re.compile(r"-\d+(?:\.\d*)?(?:[eE][-+]?\d+)?")
_LITERALS = frozenset(("true", "false", "1", "0"))

_DISPATCH_FAULTS = (
    CommandNotFoundError,
    SubcommandNotFoundError,
    MissingFlagError,
    InvalidFlagValueError,
)


def _is_flag(token, /):
    return token.startswith("-") and token != "-" and not _NEGATIVE.fullmatch(token)


class CLI:
    """
    the dispatcher.

    parameters
    - config_path: str | Unset, JSON configuration file read by run() (default "./config.json").
    - skip_config: bool, never read a configuration file.
    - logger: object with debug/info/warning/error (default: the "stega" logger).
    - loader: PluginLoader (default: a fresh one).
    - registry: Registry (default: a fresh one).
    - prog: str, program name used in help output.
    """

    def __init__(self, config_path=Unset, /, *, skip_config=False, logger=Unset, loader=Unset, registry=Unset, prog="stega"):
        self.registry = Registry() if registry is Unset else registry
        self.loader = PluginLoader() if loader is Unset else loader
        self.logger = coalesce(logger, default_logger)
        self.config_loader = None if skip_config else ConfigLoader(coalesce(config_path, "./config.json"))
        self.config = {}
        self.prog = prog
        self.console = Console(highlight=False)
        self._middleware = []
        self._ready = False
        self._register_builtins()

    # registry

    def register(self, command, /):
        self.registry.register(command)
        return command

    def unregister(self, name, /):
        return self.registry.remove(name)

    def find_command(self, name, /):
        return self.registry.find(name)

    def commands(self):
        return self.registry.commands()

    def use(self, middleware, /):
        """
        append a middleware (args, command) -> None | Awaitable[None] to the chain.
        """
        if not callable(middleware):
            raise TypeError("use() argument must be callable")
        self._middleware.append(middleware)
        return middleware

    # plugins

    async def load_plugin(self, path, /):
        await self.loader.load_plugin(path, self)

    async def load_plugins(self, paths, /):
        for path in paths:
            await self.loader.load_plugin(path, self)

    async def unload_plugin(self, name, /):
        await self.loader.unload_plugin(name, self)

    def get_loaded_plugins(self):
        return self.loader.get_loaded_plugins()

    def list_plugins(self):
        return self.loader.list_plugins()

    def mark_as_ready(self):
        self._ready = True

    @property
    def ready(self):
        return self._ready

    async def wait_for_ready(self):
        """
        await every pending plugin initialization; returns the ready flag.
        """
        for task in self.loader.pending():
            await task
        return self._ready

    # output

    def format_output(self, data, /):
        match self.config.get("output", "text"):
            case "json":
                return json.dumps(data, indent=2, default=str)
            case _:
                return str(data)

    def show_help(self, command=None, path=(), /):
        Help(self.registry.commands(), command, path, prog=self.prog).print(self.console)

    # entry points

    async def run(self, argv=Unset, /):
        """
        load configuration, autoload configured plugins, then dispatch argv (default sys.argv[1:]).
        """
        if self.config_loader is not None:
            self.config = await self.config_loader.load()

        if dirs := self.config.get("plugin-dirs"):
            self.loader.allowed = tuple(_listed(dirs))
        if level := self.config.get("log-level"):
            self._set_level(level)
        if plugins := self.config.get("plugins"):
            await self.load_plugins(_listed(plugins))

        await self.run_command(sys.argv[1:] if argv is Unset else argv)

    async def run_command(self, argv, /):
        """
        parse argv and execute the resolved command.
        """
        try:
            await self._dispatch(list(argv))
        except Exception as error:
            self.logger.error(f"Command execution failed: {error}")
            raise

    async def _dispatch(self, argv, /):
        if not argv or argv[0] == "help":
            return self._help(argv[1:])

        try:
            resolved = self._resolve(argv)
        except _DISPATCH_FAULTS:
            self.show_help()
            raise

        if resolved is None:
            return
        command, path, flags, operands = resolved

        args = Args(path, flags, self, operands)
        for middleware in self._middleware:
            await awaited(middleware(args, command))
        await awaited(command.action(args))

    def _help(self, tokens, /):
        if not tokens:
            return self.show_help()

        command, path = self.registry.find(tokens[0]), []
        for token in tokens[1:]:
            if command is None:
                break
            path.append(command.name)
            command = command.subcommand(token)
        if command is None:
            self.logger.warning(f'Command "{" ".join(tokens)}" not found.')
            return self.show_help()
        self.show_help(command, (*path, command.name))

    def _resolve(self, argv, /):
        if _is_flag(argv[0]):
            self.show_help()
            return None

        if (command := self.registry.find(argv[0])) is None:
            raise CommandNotFoundError(argv[0])

        path, tokens = [command.name], deque(argv[1:])
        while tokens and command.subcommands and not _is_flag(tokens[0]):
            if (child := command.subcommand(tokens[0])) is None:
                raise SubcommandNotFoundError(tokens[0])
            command = child
            path.append(command.name)
            tokens.popleft()

        flags, operands, requested = self._parse(command, tokens)
        if requested or command.action is None:
            self.show_help(command, path)
            return None

        self._complete(command, flags)
        return command, path, flags, tuple(operands)

    def _parse(self, command, tokens, /):
        flags, operands, requested = {}, [], False

        while tokens:
            token = tokens.popleft()
            if token == "--":
                operands.extend(tokens)
                break
            if not _is_flag(token):
                operands.append(token)
                continue

            if token.startswith("--"):
                keys, _, value = token[2:].partition("=")
                keys, value = [keys], (value if "=" in token else Unset)
            else:
                body, _, value = token[1:].partition("=")
                keys, value = list(body), (value if "=" in token else Unset)

            for index, key in enumerate(keys):
                last = index == len(keys) - 1
                if command.option(key) is None and key in ("help", "h"):
                    requested = True
                    continue
                self._assign(command, flags, key, value if last else Unset, tokens if last else deque())

        return flags, operands, requested

    def _assign(self, command, flags, key, value, tokens, /):
        if (option := command.option(key)) is None:
            flags[key] = True if value is Unset else value
            return

        if option.type == FlagType.BOOLEAN:
            if value is Unset:
                value = tokens.popleft() if tokens and tokens[0] in _LITERALS else "true"
        elif value is Unset:
            if not tokens or _is_flag(tokens[0]):
                raise InvalidFlagValueError(option.name, option.type)
            value = tokens.popleft()

        converted = self._convert(option, value)
        if option.type == FlagType.ARRAY and isinstance(flags.get(option.name), list):
            converted = flags[option.name] + converted
        flags[option.name] = converted

    def _convert(self, option, value, /):
        if not isinstance(value, str):
            return value
        try:
            return convert(value, option.type)
        except ValueError:
            raise InvalidFlagValueError(option.name, option.type) from None

    def _complete(self, command, flags, /):
        for option in command.options:
            if option.name in flags:
                continue
            if option.name in self.config:
                flags[option.name] = self._convert(option, self.config[option.name])
            elif option.required:
                raise MissingFlagError(option.name, option.type)
            elif option.has_default:
                flags[option.name] = option.default

        # only a declared option reconfigures logging; unknown flags stay inert
        if command.option("log-level") is not None and isinstance(level := flags.get("log-level"), str):
            try:
                self._set_level(level)
            except ValueError:
                raise InvalidFlagValueError("log-level", "log level") from None

    def _set_level(self, level, /):
        if isinstance(self.logger, logging.Logger):
            self.logger.setLevel(level_of(level))

    # built-ins

    def _register_builtins(self):
        plugin = Command("plugin", descr="Plugin management commands")

        @plugin.command(options=[Option("path", "p", required=True, descr="Path to plugin")])
        async def load(args):
            """Load a plugin"""
            await self.load_plugin(args.flags["path"])

        @plugin.command(options=[Option("name", "n", required=True, descr="Plugin name")])
        async def unload(args):
            """Unload a plugin"""
            await self.unload_plugin(args.flags["name"])

        @plugin.command("list")
        def listing(args):
            """List loaded plugins"""
            if not (plugins := self.list_plugins()):
                self.console.print("No plugins loaded", markup=False)
                return
            self.console.print("Loaded plugins:", markup=False)
            for metadata in plugins:
                self.console.print(f"- {metadata.name} v{metadata.version}: {metadata.descr or ""}", markup=False)

        self.register(plugin)


def _listed(value, /):
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    return list(value)


__all__ = (
    "CLI",
)
