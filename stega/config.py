"""
Stega configuration.

Scope
- ConfigLoader(path="./config.json"): read a JSON object from disk, then let environment
  variables override keys the file already declares.

Rules
- A missing file yields an empty configuration; any other read or decode error propagates.
- The file must hold a JSON object; keys are kept as written.
- Environment override is case-insensitive on the variable name (OUTPUT overrides "output")
  and only applies to keys already present; overriding values are raw strings.

Keys understood by the CLI
- "<option-name>": value used when a flag is absent from argv (before the option default).
- "output": "json" | "text", consumed by CLI.format_output.
- "log-level": level name for stega.logs.setup.
- "plugins": list of plugin paths autoloaded by CLI.run.
- "plugin-dirs": list of allow-listed plugin directories.
"""
import json
import os
from types import MappingProxyType


class ConfigLoader:
    """
    json + environment configuration source.

    attributes
    - path: str, the file read by load().
    - config: read-only view of the last loaded configuration.
    """

    def __init__(self, path="./config.json", /, *, environ=None):
        self.path = os.fspath(path)
        self._environ = environ
        self._config = {}

    @property
    def config(self):
        return MappingProxyType(self._config)

    async def load(self):
        """
        (re)load the configuration and return it as a plain dict.
        """
        try:
            with open(self.path, encoding="utf-8") as file:
                config = json.load(file)
        except FileNotFoundError:
            config = {}

        if not isinstance(config, dict):
            raise ValueError(f"configuration in {self.path} must be a JSON object")

        environ = os.environ if self._environ is None else self._environ
        for key, value in environ.items():
            if (key := key.lower()) in config:
                config[key] = value

        self._config = config
        return dict(config)

    def get(self, key, default=None, /):
        return self._config.get(key, default)

    def __contains__(self, key, /):
        return key in self._config


__all__ = (
    "ConfigLoader",
)
