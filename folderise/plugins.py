"""Plugins: loading, middleman hooks and ``{{@name}}`` token resolution.

Tokens stay raw in cached pages and are resolved on every serve. Resolution is
positional: the i-th token in the page gets the i-th result, so two tokens for
the same plugin run it twice and each keep their own result.
"""

from __future__ import annotations

import importlib
import logging
import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Iterable, Mapping, Protocol

from folderise.config import PluginSpec
from folderise.tasks import settle

logger = logging.getLogger(__name__)

TOKEN_RE = re.compile(r"\{\{@(\w+)\}\}")
PLUGIN_FACTORY = "setup"


class Plugin(Protocol):
    def execute(self) -> str: ...


@dataclass(frozen=True)
class PluginToken:
    name: str
    start: int
    end: int


def load_plugins(specs: Iterable[PluginSpec]) -> Mapping[str, Plugin]:
    """Import every configured plugin module and build its plugin object.

    A module must expose ``setup(options)``. Plugins that fail to load are
    logged and left out, so their tokens render as not installed.
    """
    plugins: dict[str, Plugin] = {}
    for spec in specs:
        try:
            module = importlib.import_module(spec.name)
            factory = getattr(module, PLUGIN_FACTORY)
            plugins[spec.key] = factory(spec.options)
        except Exception:
            logger.exception("Could not load plugin %s", spec.name)
            continue
        logger.info("Loaded plugin %s as {{@%s}}", spec.name, spec.key)
    return MappingProxyType(plugins)


def scan_tokens(html: str) -> list[PluginToken]:
    return [PluginToken(m.group(1), m.start(), m.end()) for m in TOKEN_RE.finditer(html)]


def _token_call(name: str, plugins: Mapping[str, Plugin]) -> Callable[[], Any]:
    plugin = plugins.get(name)
    if plugin is None:
        return lambda: f"{name} is not installed"
    return plugin.execute


def resolve_plugin_tokens(
    html: str,
    plugins: Mapping[str, Plugin],
    *,
    timeout: float | None = None,
) -> str:
    tokens = scan_tokens(html)
    if not tokens:
        return html

    outcomes = settle(
        [_token_call(token.name, plugins) for token in tokens],
        timeout=timeout,
        thread_name_prefix="folderise-plugin",
    )
    results: list[str] = []
    for token, outcome in zip(tokens, outcomes):
        if outcome.ok:
            results.append(str(outcome.value))
        else:
            logger.warning("Plugin %s failed: %s", token.name, outcome.error)
            results.append(f"{token.name} failed: {outcome.error}")

    parts: list[str] = []
    cursor = 0
    for token, result in zip(tokens, results):
        parts.append(html[cursor:token.start])
        parts.append(result)
        cursor = token.end
    parts.append(html[cursor:])
    return "".join(parts)


def run_middlemen(
    plugins: Mapping[str, Plugin],
    request: Any,
    response: Any,
    *,
    timeout: float | None = None,
) -> None:
    """Call every plugin's optional ``middleman(request, response)`` hook."""
    hooks: list[tuple[str, Callable[[Any, Any], Any]]] = []
    for name, plugin in plugins.items():
        hook = getattr(plugin, "middleman", None)
        if callable(hook):
            hooks.append((name, hook))
    outcomes = settle(
        [lambda hook=hook: hook(request, response) for _, hook in hooks],
        timeout=timeout,
        thread_name_prefix="folderise-middleman",
    )
    for (name, _), outcome in zip(hooks, outcomes):
        if not outcome.ok:
            logger.warning("Middleman of %s failed: %s", name, outcome.error)
