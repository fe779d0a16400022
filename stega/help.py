"""
Stega help rendering.

Scope
- Help(commands, command=None, path=(), prog="stega"): a rich renderable describing
  either every top-level command (general help) or one command in detail.

Sections
- General help
  • "Available Commands:" then one "  <name>  <descr>" line per top-level command
    (registration order), then a pointer to "help <command>".
- Command help
  • "Command: <path>", the description, "Options:" (switches, metavar, required/default
    markers), "Subcommands:", "Aliases:" and a "Usage:" line.

Customization
- Define a mapping named __styles__ in __main__ to override any palette entry:
  heading, command-name, option-name, metavar, marker, descr, usage.
- colorful=False strips every style (format() always returns plain text).
"""
from collections import defaultdict

from rich.console import Console, Group
from rich.text import Text

from .utils import Unset, coalesce


class Help:
    """
    help renderable for the whole registry or a single command.

    parameters
    - commands: Iterable[Command], top-level commands in registration order.
    - command: Command | None, the command to describe (None → general help).
    - path: Sequence[str], the resolved command path, used in headings and usage.
    - prog: str, program name shown in usage lines.
    """

    def __init__(self, commands, /, command=None, path=(), *, prog="stega", colorful=True):
        self.commands = tuple(commands)
        self.command = command
        self.path = tuple(path) or ((command.name,) if command is not None else ())
        self.prog = prog
        self.colorful = colorful

    def __rich__(self):
        styles = defaultdict(str, {
            "heading": "bold #FFFFFF",
            "command-name": "bold #36C5F0",
            "option-name": "bold #00E6FF",
            "metavar": "bold #FFD600",
            "marker": "#FF4D94",
            "descr": "#9CA3AF",
            "usage": "bold #22C55E",
        } | getattr(__import__("__main__"), "__styles__", {}))

        def text(fragment, style=""):
            return Text(str(fragment), styles[style] if self.colorful else "")

        if self.command is None:
            return Group(*self._general(text))
        return Group(*self._detailed(text))

    def _general(self, text):
        yield text("Available Commands:", "heading")
        width = max((len(command.name) for command in self.commands), default=0)
        for command in self.commands:
            yield Text.assemble("  ", text(command.name.ljust(width), "command-name"), "  ", text(command.descr or "", "descr"))
        yield Text("")
        yield Text.assemble("Use '", text(f"{self.prog} help <command>", "usage"), "' for more information about a command.")

    def _detailed(self, text):
        command = self.command

        yield Text.assemble(text("Command:", "heading"), " ", text(" ".join(self.path), "command-name"))
        if command.descr:
            yield Text("")
            yield text(command.descr, "descr")

        if command.options:
            yield Text("")
            yield text("Options:", "heading")
            switches = [
                ", ".join(filter(None, (option.alias and f"-{option.alias}", f"--{option.name}")))
                + ("" if option.type == "boolean" else f" <{option.type}>")
                for option in command.options
            ]
            width = max(map(len, switches))
            for switch, option in zip(switches, command.options):
                line = Text.assemble("  ", text(switch.ljust(width), "option-name"))
                if option.descr:
                    line.append_text(Text.assemble("  ", text(option.descr, "descr")))
                if option.required:
                    line.append_text(Text.assemble(" ", text("(required)", "marker")))
                elif option.has_default:
                    line.append_text(Text.assemble(" ", text(f"(default: {_shown(option.default)})", "marker")))
                yield line

        if subcommands := command.subcommands:
            yield Text("")
            yield text("Subcommands:", "heading")
            width = max(len(subcommand.name) for subcommand in subcommands)
            for subcommand in subcommands:
                yield Text.assemble("  ", text(subcommand.name.ljust(width), "command-name"), "  ", text(subcommand.descr or "", "descr"))

        if command.aliases:
            yield Text("")
            yield Text.assemble(text("Aliases:", "heading"), " ", text(", ".join(command.aliases), "command-name"))

        yield Text("")
        yield text("Usage:", "heading")
        yield Text.assemble("  ", text(self.usage(), "usage"))

    def usage(self):
        """
        one-line usage, e.g. "stega parent <subcommand> [options]".
        """
        usage = " ".join((self.prog, *self.path))
        if self.command is None:
            return f"{usage} <command> [options]"
        if self.command.subcommands:
            usage += " <subcommand>"
        if self.command.options:
            usage += " [options]"
        return usage

    def format(self):
        """
        render to plain text (no styles, no markup).
        """
        console = Console(width=120, no_color=True, highlight=False, color_system=None)
        with console.capture() as capture:
            console.print(self, markup=False)
        return capture.get()

    def print(self, console=Unset):
        """
        print to stdout (or the given console).
        """
        coalesce(console, Console(highlight=False)).print(self, markup=False)


def _shown(value):
    match value:
        case bool():
            return str(value).lower()
        case list() | tuple():
            return ",".join(map(str, value))
        case _:
            return value


__all__ = (
    "Help",
)
