"""
Stega plugin loader.

Lifecycle of one load_plugin(path, cli) call
  unresolved → sourced → fetched/imported → validated → dependency-checked → initializing → loaded
  (any step may end in failed; unload_plugin moves loaded → removed)

Steps
1. validate_path: the path must sit in an allow-listed directory ("plugins/", "tests/plugins/",
   "tests/fixtures/" by default). Applies to local paths and to the path of remote URLs;
   registry specifiers are checked against PLUGIN_REGISTRY instead.
2. parse_source / resolve_source:
   - remote → the URL unchanged
   - registry → "https://jsr.io/<specifier>"
   - local → restricted to plugins/ or tests/plugins/, resolved against the search roots
     (the stega package directory, then the working directory) into a file:// URL.
3. load_module: registry import, importlib file import, or jsDelivr fetch + exec.
4. inspect_plugin: Accepted(plugin) or "Invalid plugin: missing required fields in <path>".
5. already loaded → warning and return; missing dependency → "Missing dependency: <name>".
6. the plugin is stored in `loaded` and its init task in `loading` before the task is awaited.

Every failure surfaces as ValidationError("Failed to load plugin <short>: <message>").

Notes
- Loads of the same plugin name serialize on a per-name asyncio.Lock.
- A failing init is not rolled back: the plugin stays listed.
- Remote plugins run with full interpreter privileges; the allow-list is not a sandbox.
"""
import asyncio
import hashlib
import importlib.util
import os
import sys
import types
from collections import defaultdict
from pathlib import Path, PurePosixPath
from urllib.parse import urlsplit
from urllib.request import url2pathname

import httpx

from ..faults import ValidationError
from ..utils import *
from . import registry as _registry
from .plugin import Accepted, Rejected, inspect_plugin
from .sources import (
    REGISTRY_URL,
    LocalSource,
    RegistrySource,
    RemoteSource,
    cdn_url,
    normalize,
    parse_remote,
    parse_source,
    short_name,
)

ALLOWED_DIRS = (
    "plugins/",
    "tests/plugins/",
    "tests/fixtures/",
)

LOCAL_DIRS = (
    "plugins/",
    "tests/plugins/",
)

DEFAULT_TIMEOUT = 10.0


class PluginLoader:
    """
    resolves, imports, validates and initializes plugins; owns the loaded/loading state.

    parameters
    - allowed: Iterable[str], allow-listed directories (see ALLOWED_DIRS).
    - registry: Mapping[str, RegistryEntry], the static registry (see PLUGIN_REGISTRY).
    - roots: Iterable[path-like], search roots for relative local paths.
    - timeout: float, seconds allowed for a remote fetch.
    - transport: httpx.AsyncBaseTransport | None, used for remote fetches (tests mock it).
    """

    def __init__(self, *, allowed=ALLOWED_DIRS, registry=Unset, roots=Unset, timeout=DEFAULT_TIMEOUT, transport=None):
        self.allowed = tuple(allowed)
        self.registry = coalesce(registry, _registry.PLUGIN_REGISTRY)
        self.roots = tuple(map(Path, coalesce(roots, (Path(__file__).resolve().parent.parent, Path.cwd()))))
        self.timeout = timeout
        self.transport = transport
        self.loaded = {}
        self.loading = {}
        self._locks = defaultdict(asyncio.Lock)

    async def load_plugin(self, path, cli, /):
        name = short_name(path)
        try:
            cli.logger.debug(f"Loading plugin from path: {path}")
            self.validate_path(path)

            resolved = self.resolve_source(parse_source(path))
            cli.logger.debug(f"Loading plugin from URL: {resolved}")

            match inspect_plugin(await self.load_module(resolved)):
                case Accepted(plugin):
                    pass
                case Rejected(reason):
                    cli.logger.debug(f"Rejected plugin {path}: {reason}")
                    raise ValueError(f"Invalid plugin: missing required fields in {path}")

            async with self._locks[plugin.name]:
                if plugin.name in self.loaded:
                    cli.logger.warning(f"Plugin '{plugin.name}' is already loaded")
                    return

                for dependency in plugin.metadata.dependencies:
                    if dependency not in self.loaded:
                        raise LookupError(f"Missing dependency: {dependency}")

                task = asyncio.ensure_future(self._initialize(plugin, cli))
                self.loading[plugin.name] = task
                self.loaded[plugin.name] = plugin
                await task
                cli.logger.debug(f"Plugin {plugin.name} fully loaded")
        except Exception as error:
            raise ValidationError(name, str(error) or type(error).__name__) from error

    async def _initialize(self, plugin, cli, /):
        try:
            cli.logger.debug(f"Initializing plugin: {plugin.name}")
            await awaited(plugin.init(cli))
            cli.logger.info(f"Loaded plugin: {plugin.name} v{plugin.metadata.version}")
            cli.mark_as_ready()
        except Exception as error:
            cli.logger.error(f"Plugin initialization failed: {error}")
            raise

    def validate_path(self, path, /):
        match parse_source(path):
            case RegistrySource():
                return
            case RemoteSource(url):
                location = urlsplit(url).path
            case LocalSource(location):
                pass

        location = normalize(location).lower()
        if not any(directory.lower() in location for directory in self.allowed):
            raise PermissionError(f"Invalid plugin path: {path}. Plugins must be in: {", ".join(self.allowed)}")

    def resolve_source(self, source, /):
        match source:
            case RemoteSource(url):
                return url
            case RegistrySource(specifier):
                return f"{REGISTRY_URL}{specifier}"
            case LocalSource(path):
                if not any(directory in path for directory in LOCAL_DIRS):
                    raise PermissionError("Local plugins must be in plugins/ or tests/plugins/ directory")
                candidate = self._locate(path)
                if "/plugins/" not in candidate.as_posix():
                    raise PermissionError("Local plugins must be in plugins/ or tests/plugins/ directory")
                return candidate.as_uri()
            case _:
                raise TypeError(f"unsupported plugin source {source!r}")

    def _locate(self, path, /):
        if (path := Path(path)).is_absolute():
            return path.resolve()
        candidates = [(root / path).resolve() for root in self.roots]
        return next((candidate for candidate in candidates if candidate.is_file()), candidates[-1])

    async def load_module(self, resolved, /):
        """
        import the module behind a resolved source and return its plugin export.
        """
        parts = urlsplit(resolved)
        match parts.scheme, parts.netloc:
            case "https", "jsr.io":
                specifier = resolved.removeprefix(REGISTRY_URL)
                if (entry := self.registry.get(specifier)) is None:
                    raise LookupError(f"Unknown registry module: {specifier}")
                module = _registry.load(entry)
                exports = getattr(module, "__all__", ())
                if not exports:
                    raise LookupError("No default export found")
                return getattr(module, exports[0])
            case "file", _:
                return _export(self._import(Path(url2pathname(parts.path))))
            case "http" | "https", _:
                if (origin := parse_remote(resolved)) is None:
                    raise ValueError("Unsupported plugin source")
                return _export(await self._fetch(origin))
            case _:
                raise ValueError("Unsupported plugin source")

    def _import(self, path, /):
        digest = hashlib.sha1(os.fsencode(path)).hexdigest()[:12]
        module_name = f"stega_plugin_{path.stem.replace("-", "_")}_{digest}"
        # one module per file: a repeated load reuses it without re-running its body
        if (module := sys.modules.get(module_name)) is not None:
            return module
        try:
            spec = importlib.util.spec_from_file_location(module_name, path)
            if spec is None or spec.loader is None:
                raise ImportError(f"not a python module: {path.name}")
            module = importlib.util.module_from_spec(spec)
            sys.modules[spec.name] = module
            spec.loader.exec_module(module)
        except Exception as error:
            sys.modules.pop(module_name, None)
            raise ImportError(f"Unable to load plugin from {path}: {error}") from error
        return module

    async def _fetch(self, origin, /):
        url = cdn_url(origin)
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            response = await client.get(url)
        if not response.is_success:
            raise ConnectionError(f"Failed to fetch plugin from {url}: {response.reason_phrase}")

        module = types.ModuleType(f"stega_remote_{PurePosixPath(origin.path).stem.replace("-", "_")}")
        module.__file__ = url
        try:
            exec(compile(response.text, url, "exec"), module.__dict__)
        except Exception as error:
            raise ImportError(f"Unable to load plugin from {url}: {error}") from error
        return module

    async def unload_plugin(self, name, cli, /):
        if (plugin := self.loaded.get(name)) is None:
            cli.logger.warning(f"Plugin '{name}' not found")
            return

        if plugin.unload is not None:
            await awaited(plugin.unload(cli))
        self.loaded.pop(name, None)
        self.loading.pop(name, None)
        cli.logger.info(f"Unloaded plugin: {name}")

    async def wait(self, name, /):
        """
        await the recorded init task of a plugin (no-op when unknown).
        """
        if (task := self.loading.get(name)) is not None:
            await task

    def pending(self):
        return tuple(task for task in self.loading.values() if not task.done())

    def get_loaded_plugins(self):
        return list(self.loaded.values())

    def list_plugins(self):
        return [plugin.metadata for plugin in self.loaded.values()]


def _export(module, /):
    if (plugin := getattr(module, "plugin", None)) is None:
        raise LookupError("No default export found")
    return plugin


__all__ = (
    "ALLOWED_DIRS",
    "PluginLoader",
)
