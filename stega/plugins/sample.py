"""
Sample plugin: registers "plugincmd".
"""
from stega.commands import Command
from stega.plugins.plugin import Plugin, PluginMetadata


def plugincmd(args):
    """Command added by sample plugin"""
    print("Plugin command executed.")


plugin = Plugin(
    PluginMetadata("Sample Plugin", "1.0.0", "Demonstrates a plugin that adds a command"),
    lambda cli: cli.register(Command("plugincmd", plugincmd)),
    lambda cli: cli.unregister("plugincmd"),
)


__all__ = (
    "plugin",
)
