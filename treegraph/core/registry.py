"""
Plugin registry for easing curves.

Provides decorators and registries for the plugin system:
- @register_easing("name") - Register an easing function
- EasingRegistry.get("name") - Get easing function by name
"""

from typing import Dict, Optional, List, Callable

EasingFn = Callable[[float], float]


class PluginRegistry:
    """
    Base registry for named plugins.

    Subclass this for specific plugin types.
    """

    _plugins: Dict[str, Callable] = {}
    _plugin_type: str = "plugin"

    @classmethod
    def register(cls, name: str) -> Callable[[Callable], Callable]:
        """
        Decorator to register a plugin callable.

        Usage:
            @MyRegistry.register("plugin_name")
            def my_plugin(t):
                ...
        """
        def decorator(plugin: Callable) -> Callable:
            cls._plugins[name.lower()] = plugin
            plugin._registry_name = name.lower()
            return plugin
        return decorator

    @classmethod
    def get(cls, name: str) -> Optional[Callable]:
        """Get a plugin by name."""
        return cls._plugins.get(name.lower())

    @classmethod
    def list_names(cls) -> List[str]:
        """Get list of all registered plugin names."""
        return list(cls._plugins.keys())

    @classmethod
    def has(cls, name: str) -> bool:
        """Check if a plugin is registered."""
        return name.lower() in cls._plugins

    @classmethod
    def require(cls, name: str) -> Callable:
        """
        Get a plugin by name or fail loudly.

        Raises:
            KeyError: If plugin not found
        """
        plugin = cls.get(name)
        if plugin is None:
            available = ', '.join(cls.list_names())
            raise KeyError(
                f"Unknown {cls._plugin_type} '{name}'. "
                f"Available: {available}"
            )
        return plugin


class EasingRegistry(PluginRegistry):
    """Registry for viewport transition easing curves."""
    _plugins: Dict[str, Callable] = {}
    _plugin_type: str = "easing"


def register_easing(name: str) -> Callable[[EasingFn], EasingFn]:
    """
    Decorator to register an easing curve.

    Usage:
        @register_easing("cubic-in-out")
        def cubic_in_out(t):
            ...
    """
    return EasingRegistry.register(name)
