"""Plugin adapter: registers the relay handler with the host."""
from .badge import METHOD_NAME, PLUGIN_NAME, BadgePlugin, create_plugin, normalize_data
from .host import InMemoryPluginHost, MethodSpec, PluginAPI

__all__ = [
    "METHOD_NAME",
    "PLUGIN_NAME",
    "BadgePlugin",
    "create_plugin",
    "normalize_data",
    "InMemoryPluginHost",
    "MethodSpec",
    "PluginAPI",
]
