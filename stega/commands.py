"""
Stega command layer: declare commands, their options, and the registry holding them.

What this module provides
- Option: the schema of one flag (name, single-character alias, type, required, default).
- Command: a named, invocable unit with options, nested subcommands and aliases.
  A command may be directly invocable (has an action) and act as a namespace for
  subcommands at the same time.
- Args: the parsed invocation handed to an action (command path, flags, cli, operands).
- Registry: the in-memory store of top-level commands.
- command(...): create a Command from a callable, or a decorator that does so.

Quick start
    from stega import CLI, Option, command

    @command(options=[Option("name", alias="n", required=True)])
    async def greet(args):
        \"\"\"Say hello.\"\"\"
        print(f"hello {args.flags['name']}")

    @greet.command
    def loudly(args):
        print(f"HELLO {args.flags.get('name', 'WORLD').upper()}")

    cli = CLI()
    cli.register(greet)

Design notes
- Names are stored verbatim; lookups match a name or any of its aliases.
- Registration at the same scope silently replaces an existing name (last write wins).
- Actions receive a single Args value and may return an awaitable.
"""
import collections
import copy
import inspect
import re

from .flags import FlagType
from .utils import *

_NAME = re.compile(r"[^\W_](?:[\w.:-]*\w)?")


Args = collections.namedtuple("Args", ("command", "flags", "cli", "operands"), defaults=((),))
Args.__doc__ = """
parsed invocation passed to a command's action.

fields
- command: list[str], the resolved command path (e.g. ["parent", "child"]).
- flags: dict[str, FlagValue], converted values with defaults substituted.
- cli: the dispatcher that ran the command (register more commands, log, find commands).
- operands: tuple[str, ...], stray positional tokens and everything after "--".
"""


def _sanitize_name(cls, name, /, *, field="name"):
    if not isinstance(name, str):
        raise TypeError(f"{cls.__typename__} {field!r} must be a string")
    if not (name := name.strip()):
        raise ValueError(f"{cls.__typename__} {field!r} cannot be empty")
    if not _NAME.fullmatch(name):
        raise ValueError(f"{cls.__typename__} {field!r} must be a valid name, got {name!r}")
    return name


def _sanitize_descr(cls, descr, /):
    if descr is Unset or descr is None:
        return None
    if not isinstance(descr, str):
        raise TypeError(f"{cls.__typename__} 'descr' must be a string")
    return descr.strip() or None


class Option(metaclass=SpecType):
    """
    Schema of a single command-line flag.

    Parameters
    - name: str
      Long name, matched as --name. Also the key under which the value lands in Args.flags.
    - alias: str | Unset
      Single-character shorthand, matched as -a.
    - type: FlagType | str
      One of "boolean", "string", "number", "array" (default "string").
    - required: bool
      Absence at dispatch raises MissingFlagError; a default is ignored for required options.
    - default: FlagValue | Unset
      Substituted when the flag is absent from argv and configuration.
    - descr: str | Unset
      Short help text.
    """

    __introspectable__ = (
        "name",
        "alias",
        "type",
        "required",
        "descr",
    )

    __displayable__ = (
        "name",
        "alias",
        "type",
        "required",
        "default",
        "descr",
    )

    def __init__(self, name, /, alias=Unset, type=FlagType.STRING, *, required=False, default=Unset, descr=Unset):
        cls = self.__class__
        self._name = _sanitize_name(cls, name)

        if alias is not Unset:
            if not isinstance(alias, str) or len(alias) != 1 or not (alias.isalnum() or alias == "?"):
                raise ValueError(f"{cls.__typename__} 'alias' must be a single character")
        self._alias = coalesce(alias)

        try:
            self._type = FlagType(type)
        except ValueError:
            raise ValueError(f"{cls.__typename__} 'type' must be one of {', '.join(map(str, FlagType))}") from None

        self._required = bool(required)
        self._default = default
        self._descr = _sanitize_descr(cls, descr)

    @property
    def default(self):
        """
        The declared default (Unset when none); containers are copied per access.
        """
        return copy.copy(self._default)

    @property
    def has_default(self):
        return not self._required and self._default is not Unset

    def matches(self, key, /):
        """
        True when key is this option's name or alias.
        """
        return key == self._name or (self._alias is not None and key == self._alias)


class Command(metaclass=SpecType):
    """
    A named, invocable unit of the CLI.

    Parameters
    - name: str
      Unique within its scope (registry or parent's subcommands).
    - action: Callable[[Args], None | Awaitable[None]] | Unset
      The handler. Commands without an action render their own help when dispatched.
    - descr: str | Unset
      Short description (defaults to the action's docstring).
    - options: Iterable[Option]
      Flag schema; option names and aliases must be unique within the command.
    - subcommands: Iterable[Command]
      Nested commands, attached in order.
    - aliases: Iterable[str]
      Alternative names resolved like the name.

    Lifecycle
    - Created by caller code (built-ins, plugin init hooks, decorators), inserted into a
      Registry through CLI.register, looked up during dispatch, optionally removed by a
      plugin's unload hook.
    """

    __introspectable__ = (
        "name",
        "descr",
        "options",
        "subcommands",
        "aliases",
    )

    __displayable__ = (
        "name",
        "descr",
        "options",
        "subcommands",
    )

    def __init__(self, name, /, action=Unset, *, descr=Unset, options=(), subcommands=(), aliases=()):
        cls = type(self)
        self._name = _sanitize_name(cls, name)

        if action is not Unset and not callable(action):
            raise TypeError(f"{cls.__typename__} 'action' must be callable")
        self._action = coalesce(action)

        if descr is Unset and action is not Unset:
            descr = inspect.getdoc(action) or Unset
        self._descr = _sanitize_descr(cls, descr)

        self._options = []
        seen = set()
        for option in options:
            if not isinstance(option, Option):
                raise TypeError(f"{cls.__typename__} 'options' must be an iterable of options")
            for key in filter(None, (option.name, option.alias)):
                if key in seen:
                    raise ValueError(f"{cls.__typename__} option name {key!r} is already in use")
                seen.add(key)
            self._options.append(option)

        self._aliases = []
        for alias in aliases:
            alias = _sanitize_name(cls, alias, field="aliases")
            if alias == self._name or alias in self._aliases:
                raise ValueError(f"{cls.__typename__} alias {alias!r} is already in use")
            self._aliases.append(alias)

        self._subcommands = {}
        for subcommand in subcommands:
            self.attach(subcommand)

    @property
    def action(self):
        return self._action

    @property
    def subcommands(self):
        """
        Attached subcommands, in attach order (look them up by token with subcommand()).
        """
        return tuple(self._subcommands.values())

    def attach(self, subcommand, /):
        """
        Attach a subcommand under this command (last write wins on the same name).

        Returns the attached subcommand, so it can be used inline.
        """
        if not isinstance(subcommand, Command):
            raise TypeError(f"{type(self).__typename__} 'subcommands' must be an iterable of commands")
        self._subcommands[subcommand.name] = subcommand
        return subcommand

    def command(self, source=Unset, /, *args, **kwargs):
        """
        Create a subcommand under this command; same forms as the module-level command().

        - @parent.command
        - @parent.command("name", options=[...])
        - parent.command(callback, "name")
        """
        factory = command(source, *args, **kwargs)
        if isinstance(factory, Command):
            return self.attach(factory)

        @rename("command")
        def wrapper(source, /):
            return self.attach(factory(source))
        return wrapper

    def matches(self, token, /):
        """
        True when token is this command's name or one of its aliases.
        """
        return token == self._name or token in self._aliases

    def subcommand(self, token, /):
        """
        Return the subcommand matching token (name or alias), or None.
        """
        if (found := self._subcommands.get(token)) is not None:
            return found
        return next((child for child in self._subcommands.values() if child.matches(token)), None)

    def option(self, key, /):
        """
        Return the option whose name or alias is key, or None.
        """
        return next((option for option in self._options if option.matches(key)), None)


def _dashed(name, /):
    return name.strip("_").replace("_", "-")


def command(source=Unset, /, *args, **kwargs):
    """
    Create a Command from a callable, or return a decorator to build it later.

    Invocation modes
    - Direct:     greet = command(func, "greet", options=[...])
    - Named:      @command("greet", options=[...])
    - Decorator:  @command(options=[...])  or bare @command

    When no name is given, the callable's __name__ is used with underscores as hyphens.
    """
    if isinstance(source, str):
        name, source = source, Unset
    else:
        name = kwargs.pop("name", Unset)
        if args and isinstance(args[0], str):
            name, *args = args

    @rename("command")
    def wrapper(callback, /):
        if not callable(callback):
            raise TypeError("@command() must be applied to a callable")
        return Command(coalesce(name, _dashed(getattr(callback, "__name__", ""))), callback, *args, **kwargs)

    return wrapper(source) if source is not Unset else wrapper


class Registry:
    """
    In-memory store of top-level commands, keyed by name in insertion order.

    Subcommand resolution is the dispatcher's job; lookups here are top-level only.
    """

    def __init__(self):
        self._commands = {}

    def register(self, command, /):
        """
        Insert command by name. An existing name is replaced silently and keeps its
        original position (last write wins).
        """
        if not isinstance(command, Command):
            raise TypeError("register() argument must be a command")
        self._commands[command.name] = command

    def find(self, name, /):
        """
        Return the top-level command whose name or alias is name, or None.
        """
        if (found := self._commands.get(name)) is not None:
            return found
        return next((command for command in self._commands.values() if command.matches(name)), None)

    def remove(self, name, /):
        """
        Delete a top-level command by name; True when something was removed.
        """
        return self._commands.pop(name, None) is not None

    def clear(self):
        self._commands.clear()

    def commands(self):
        """
        Registered commands, insertion order.
        """
        return tuple(self._commands.values())

    def __contains__(self, name, /):
        return self.find(name) is not None

    def __len__(self):
        return len(self._commands)

    def __iter__(self):
        return iter(self.commands())


__all__ = (
    "Args",
    "Option",
    "Command",
    "command",
    "Registry",
)
