"""
Plugin loader: import built-in plugin modules from plugins/ and collect the
'plugin' instance (or instantiate the 'Plugin' class) each one defines.
"""

from __future__ import annotations

import importlib
import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from plugins.base import FrameAnalysisPlugin

logger = logging.getLogger(__name__)

# Built-in plugin module names (no .py)
_BUILTIN_PLUGINS = ("emotion_detector",)


def _load_plugin_from_module(module_name: str) -> FrameAnalysisPlugin | None:
    module = importlib.import_module(f"plugins.{module_name}")
    if hasattr(module, "plugin"):
        return getattr(module, "plugin")
    if hasattr(module, "Plugin"):
        return getattr(module, "Plugin")()
    logger.warning("Module plugins.%s defines no plugin", module_name)
    return None


def discover_plugins() -> list[FrameAnalysisPlugin]:
    """Load the built-in plugins, skipping duplicates by plugin_id."""
    loaded: list[FrameAnalysisPlugin] = []
    seen_ids: set[str] = set()
    for name in _BUILTIN_PLUGINS:
        p = _load_plugin_from_module(name)
        if p is not None and p.plugin_id and p.plugin_id not in seen_ids:
            loaded.append(p)
            seen_ids.add(p.plugin_id)
    return loaded
