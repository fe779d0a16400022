"""
Static plugin registry: specifier → lazily imported module.

"jsr:<specifier>" paths are looked up here; the first name in the module's __all__ is the plugin.
"""
import collections
import importlib

RegistryEntry = collections.namedtuple("RegistryEntry", ("module", "version"))


def load(entry, /):
    return importlib.import_module(entry.module)


PLUGIN_REGISTRY = {
    "@stega/batch": RegistryEntry("stega.plugins.batch", "1.0.0"),
    "@stega/sample": RegistryEntry("stega.plugins.sample", "1.0.0"),
}


__all__ = (
    "RegistryEntry",
    "PLUGIN_REGISTRY",
)
