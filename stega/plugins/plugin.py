"""
Stega plugin model and shape validation.

Scope
- PluginMetadata: name, version, descr, dependencies.
- Plugin: metadata plus the init(cli) hook and an optional unload(cli) hook.
- inspect_plugin(object): explicit shape check returning Accepted(plugin) or Rejected(reason).

Accepted shapes
- Plugin instances (returned unchanged).
- Mappings with "metadata" (mapping or PluginMetadata) and a callable "init".
- Any object exposing the same names as attributes (a module namespace, a class, an instance).
  Metadata itself may be a mapping or an object; "description" is accepted for "descr".

Notes
- Only metadata.name (non-empty string), metadata.version (string) and a callable init are
  required; everything else defaults.
- Hooks may be plain or coroutine functions.
"""
import collections
from collections.abc import Iterable, Mapping

from ..utils import *

Accepted = collections.namedtuple("Accepted", ("plugin",))
Rejected = collections.namedtuple("Rejected", ("reason",))


class PluginMetadata(metaclass=SpecType):
    """
    Descriptive data of a plugin.

    Parameters
    - name: str, unique among loaded plugins.
    - version: str (may be empty).
    - descr: str | Unset.
    - dependencies: Iterable[str], plugin names that must be loaded first.
    """

    __introspectable__ = (
        "name",
        "version",
        "descr",
        "dependencies",
    )

    def __init__(self, name, version, /, descr=Unset, dependencies=()):
        cls = type(self)
        if not isinstance(name, str) or not name.strip():
            raise ValueError(f"{cls.__typename__} 'name' must be a non-empty string")
        if not isinstance(version, str):
            raise TypeError(f"{cls.__typename__} 'version' must be a string")
        if descr is not Unset and descr is not None and not isinstance(descr, str):
            raise TypeError(f"{cls.__typename__} 'descr' must be a string")
        if isinstance(dependencies, str) or not isinstance(dependencies, Iterable):
            raise TypeError(f"{cls.__typename__} 'dependencies' must be an iterable of strings")

        self._name = name.strip()
        self._version = version
        self._descr = coalesce(descr)
        self._dependencies = []
        for dependency in dependencies:
            if not isinstance(dependency, str):
                raise TypeError(f"{cls.__typename__} 'dependencies' must be an iterable of strings")
            self._dependencies.append(dependency)


class Plugin(metaclass=SpecType):
    """
    A loadable extension of the command set.

    Parameters
    - metadata: PluginMetadata
    - init: Callable[[CLI], None | Awaitable[None]], registers commands/middleware; called
      exactly once per successful load.
    - unload: Callable[[CLI], None | Awaitable[None]] | Unset, reverses init.
    """

    __introspectable__ = (
        "metadata",
        "init",
        "unload",
    )

    __displayable__ = (
        "metadata",
    )

    def __init__(self, metadata, init, /, unload=Unset):
        cls = type(self)
        if not isinstance(metadata, PluginMetadata):
            raise TypeError(f"{cls.__typename__} 'metadata' must be plugin metadata")
        if not callable(init):
            raise TypeError(f"{cls.__typename__} 'init' must be callable")
        if unload is not Unset and unload is not None and not callable(unload):
            raise TypeError(f"{cls.__typename__} 'unload' must be callable")

        self._metadata = metadata
        self._init = init
        self._unload = coalesce(unload)

    @property
    def name(self):
        return self._metadata.name


def _field(object, name, default=Unset, /):
    if isinstance(object, Mapping):
        return object.get(name, default)
    return getattr(object, name, default)


def inspect_plugin(object, /):
    """
    Check that object has the plugin shape and normalize it.

    Returns Accepted(Plugin) or Rejected(reason); never raises for malformed input.
    """
    if isinstance(object, Plugin):
        return Accepted(object)
    if object is None or isinstance(object, (str, bytes, int, float)):
        return Rejected("plugin must be an object")

    metadata = _field(object, "metadata")
    if metadata is Unset or metadata is None:
        return Rejected("missing metadata")
    if not isinstance(metadata, PluginMetadata):
        name, version = _field(metadata, "name"), _field(metadata, "version")
        if not isinstance(name, str) or not name.strip():
            return Rejected("missing metadata.name")
        if not isinstance(version, str):
            return Rejected("missing metadata.version")
        descr = _field(metadata, "descr", None)
        if descr is None:
            descr = _field(metadata, "description", None)
        dependencies = _field(metadata, "dependencies", None) or ()
        try:
            metadata = PluginMetadata(name, version, descr, dependencies)
        except (TypeError, ValueError) as error:
            return Rejected(str(error))

    init = _field(object, "init")
    if not callable(init):
        return Rejected("missing init function")

    unload = _field(object, "unload", None)
    if unload is not None and not callable(unload):
        return Rejected("unload must be a function")

    return Accepted(Plugin(metadata, init, unload if unload is not None else Unset))


__all__ = (
    "PluginMetadata",
    "Plugin",
    "Accepted",
    "Rejected",
    "inspect_plugin",
)
