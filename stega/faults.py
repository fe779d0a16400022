"""
Stega faults (errors) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every user-facing failure.
  Codes are grouped by domain to keep messages consistent and logs searchable.
- StegaError: base type carrying a message plus options (hint, code, title) that
  knows how to render itself with rich.
- MissingFlagError / InvalidFlagValueError / CommandNotFoundError /
  SubcommandNotFoundError: dispatch faults raised by the CLI core.
- ValidationError: uniform wrapper for any failure while loading a plugin.
- report(): render a fault on stderr (used by the process entry point).

Contract
- The message of every fault is fixed copy; tests and callers assert on it.
- The core never exits the process; the embedding entry point decides how a fault
  becomes an exit status.
"""
import copy
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset, coalesce

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes used across the cli (stable identifiers).

    grouping (by high-level domain)
    - routing (1110x)
      • UNKNOWN_COMMAND, UNKNOWN_SUBCOMMAND
    - flags (1111x)
      • MISSING_FLAG, INVALID_FLAG_VALUE
    - plugins (1120x)
      • PLUGIN_VALIDATION
    - unclassified (1199x)
      • UNEXPECTED

    spacing leaves room for future additions without reshuffling existing codes.
    """
    # --- routing errors (11xxx) ---
    UNKNOWN_COMMAND             = 11101
    UNKNOWN_SUBCOMMAND          = 11102

    # --- flag errors (11xxx) ---
    MISSING_FLAG                = 11111
    INVALID_FLAG_VALUE          = 11112

    # --- plugin errors (11xxx) ---
    PLUGIN_VALIDATION           = 11201

    # --- anything else (11xxx) ---
    UNEXPECTED                  = 11999


def _switch(name):
    return f"--{name}"


class StegaError(Exception):
    """
    base class of every fault raised by the toolkit.

    attributes
    - message: the fixed, user-facing copy (also str(error)).
    - options: read-only mapping with rendering context (code, title, hint, prog).
    """
    code = FaultCode.UNEXPECTED
    title = "unexpected error"

    def __init__(self, message, /, **options):
        assert isinstance(message, str)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    def __rich__(self):
        main = __import__("__main__")

        styles = defaultdict(str, {
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "error-title": "bold #FF4DA6",  # friendly pinky title

            # body
            "error-message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",  # gentle green arrow
            "hint": "italic #9CE19C",  # gentle green hint text
        } | getattr(main, "__styles__", {}))

        colorful = self.options.get("colorful", True)

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            return Text(str(fragment), styles[style] if colorful else "")

        header = Text.assemble(
            "[ ",
            text(self.options.get("prog", "stega"), "prog-name"),
            " — ",
            text(str(self.options.get("code", self.code).value), "code"),
            " | ",
            text(self.options.get("title", self.title).title(), "error-title"),
            " ]"
        )
        message = text(self.message, "error-message")
        renders = [message]
        if hint := self.options.get("hint", self.hint()):
            renders.append(Text.assemble(text(" → ", "hint-arrow"), text(hint, "hint")))

        if self.options.get("fancy", False):
            return Panel(Group(*renders), title=header, title_align="left")
        return Group(header, *renders)

    def hint(self):
        """
        one actionable sentence shown under the message; subclasses override.
        """
        return None

    def __reduce__(self):
        # subclasses take their own positional arguments; rebuild from state instead.
        return _rebuild, (type(self), {**self.__dict__, "options": dict(self.options)})

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        fault = copy.copy(self)
        fault.options = MappingProxyType({**self.options, **overrides})
        return fault


def _rebuild(cls, state, /):
    fault = cls.__new__(cls)
    fault.__dict__.update(state, options=MappingProxyType(state["options"]))
    fault.args = (state["message"],)
    return fault


class MissingFlagError(StegaError):
    code = FaultCode.MISSING_FLAG
    title = "missing flag"

    def __init__(self, name, type=Unset, /, **options):
        super().__init__(f"Missing required flag: {_switch(name)}", **options)
        self.flag = name
        self.type = coalesce(type)

    def hint(self):
        return f"pass {_switch(self.flag)}=<value> or give the option a default"


class InvalidFlagValueError(StegaError):
    code = FaultCode.INVALID_FLAG_VALUE
    title = "invalid flag value"

    def __init__(self, name, type, /, **options):
        super().__init__(f"Invalid value for flag {_switch(name)}: expected a {type}.", **options)
        self.flag = name
        self.type = str(type)

    def hint(self):
        return f"give {_switch(self.flag)} a {self.type} value, e.g. {_switch(self.flag)}=<{self.type}>"


class CommandNotFoundError(StegaError):
    code = FaultCode.UNKNOWN_COMMAND
    title = "unknown command"

    def __init__(self, name, /, **options):
        super().__init__(f'Command "{name}" not found.', **options)
        self.command = name

    def hint(self):
        return "run 'help' to list the available commands"


class SubcommandNotFoundError(StegaError):
    code = FaultCode.UNKNOWN_SUBCOMMAND
    title = "unknown subcommand"

    def __init__(self, name, /, **options):
        super().__init__(f'Subcommand "{name}" not found.', **options)
        self.subcommand = name

    def hint(self):
        return "run 'help <command>' to list its subcommands"


class ValidationError(StegaError):
    """
    uniform wrapper for every plugin loading failure.

    the message always reads "Failed to load plugin <name>: <reason>", where <name>
    is the short name derived from the requested path and <reason> is the message of
    the underlying failure (kept as __cause__).
    """
    code = FaultCode.PLUGIN_VALIDATION
    title = "plugin validation"

    def __init__(self, plugin, reason, /, **options):
        super().__init__(f"Failed to load plugin {plugin}: {reason}", **options)
        self.plugin = plugin
        self.reason = reason

    def hint(self):
        return "check the plugin path, its metadata and that its dependencies are loaded first"


def report(fault, /, **options):
    """
    render a fault on stderr.

    StegaError instances render through their __rich__ hook (options are merged via
    copy.replace); any other exception is shown as an unexpected error.
    """
    if not isinstance(fault, StegaError):
        fault = StegaError(str(fault) or type(fault).__name__)
    console.print(copy.replace(fault, **options))


__all__ = (
    "FaultCode",
    "StegaError",
    "MissingFlagError",
    "InvalidFlagValueError",
    "CommandNotFoundError",
    "SubcommandNotFoundError",
    "ValidationError",
    "report",
)
