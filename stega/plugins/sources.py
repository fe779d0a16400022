"""
Stega plugin sources: classify the string handed to the loader, and recognize remote origins.

Sources (tagged, matched structurally by the loader)
- LocalSource(path):          anything that is not a URL or a registry specifier ("file://" stripped).
- RegistrySource(specifier):  "jsr:@scope/name" → specifier "@scope/name".
- RemoteSource(url):          "http://" or "https://".

Remote origins
- GitHubOrigin(owner, repo, path, ref)
  • https://github.com/<owner>/<repo>/blob/<ref>/<path>
  • https://raw.githubusercontent.com/<owner>/<repo>/<ref>/<path>
- JsDelivrOrigin(owner, repo, path, ref)
  • https://cdn.jsdelivr.net/gh/<owner>/<repo>[@<ref>]/<path>

Both origins are fetched through the jsDelivr GitHub CDN (see cdn_url()).
"""
import collections
from urllib.parse import unquote, urlsplit

LocalSource = collections.namedtuple("LocalSource", ("path",))
RegistrySource = collections.namedtuple("RegistrySource", ("specifier",))
RemoteSource = collections.namedtuple("RemoteSource", ("url",))

GitHubOrigin = collections.namedtuple("GitHubOrigin", ("owner", "repo", "path", "ref"), defaults=(None,))
JsDelivrOrigin = collections.namedtuple("JsDelivrOrigin", ("owner", "repo", "path", "ref"), defaults=(None,))

REGISTRY_URL = "https://jsr.io/"
CDN_URL = "https://cdn.jsdelivr.net/gh/"


def normalize(path, /):
    """
    forward slashes only.
    """
    return path.replace("\\", "/")


def parse_source(path, /):
    """
    classify a plugin path by prefix: http(s) → remote, jsr: → registry, else local.
    """
    if not isinstance(path, str):
        raise TypeError("plugin path must be a string")
    if path.startswith(("https://", "http://")):
        return RemoteSource(path)
    if path.startswith("jsr:"):
        return RegistrySource(path.removeprefix("jsr:"))
    return LocalSource(normalize(path).removeprefix("file://"))


def parse_remote(url, /):
    """
    recognize a GitHub or jsDelivr URL; None for any other host or an incomplete path.
    """
    parts = urlsplit(url)
    segments = [unquote(segment) for segment in parts.path.split("/") if segment]

    match parts.hostname, segments:
        case "github.com", [owner, repo, "blob" | "raw", ref, *path] if path:
            return GitHubOrigin(owner, repo, "/".join(path), ref)
        case "github.com", [owner, repo, *path] if path:
            return GitHubOrigin(owner, repo, "/".join(path))
        case "raw.githubusercontent.com", [owner, repo, ref, *path] if path:
            return GitHubOrigin(owner, repo, "/".join(path), ref)
        case "cdn.jsdelivr.net", ["gh", owner, repository, *path] if path:
            repo, _, ref = repository.partition("@")
            return JsDelivrOrigin(owner, repo, "/".join(path), ref or None)
        case _:
            return None


def cdn_url(origin, /):
    """
    the jsDelivr URL serving an origin's file.
    """
    match origin:
        case GitHubOrigin(owner, repo, path, ref) | JsDelivrOrigin(owner, repo, path, ref):
            return f"{CDN_URL}{owner}/{repo}{f"@{ref}" if ref else ""}/{path}"
        case _:
            raise TypeError(f"unsupported origin {origin!r}")


def short_name(path, /):
    """
    last path segment without its extension ("tests/plugins/greet.py" → "greet").
    """
    name = normalize(str(path)).rstrip("/").rpartition("/")[2].rpartition(":")[2]
    for suffix in (".py", ".ts", ".js"):
        name = name.removesuffix(suffix)
    return name or "unknown"


__all__ = (
    "LocalSource",
    "RegistrySource",
    "RemoteSource",
    "GitHubOrigin",
    "JsDelivrOrigin",
    "parse_source",
    "parse_remote",
    "cdn_url",
    "short_name",
)
