"""Factory for creating provider instances.

Decouples provider selection from provider implementation. The app uses this
factory to instantiate providers by name, without importing concrete providers.
"""

from __future__ import annotations

from typing import Any

from tasklink.contracts.provider import Provider
from tasklink.providers.todoist import TodoistProvider

# Registry mapping provider names to their classes
_REGISTRY: dict[str, type[Provider]] = {
    "todoist": TodoistProvider,
}


def register(name: str, provider_cls: type[Provider]) -> None:
    """Register a provider class by name."""
    _REGISTRY[name] = provider_cls


def create_provider(name: str, **kwargs: Any) -> Provider:
    """Create a provider instance by name.

    The returned provider is an async context manager::

        async with create_provider("todoist", token=token) as provider:
            task = await provider.fetch_task("123")

    Raises:
        ValueError: If the provider name is not registered.
    """
    if name not in _REGISTRY:
        available = ", ".join(sorted(_REGISTRY)) or "(none registered)"
        raise ValueError(f"Unknown provider: {name!r}. Available: {available}")
    return _REGISTRY[name](**kwargs)
