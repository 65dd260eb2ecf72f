"""Provider implementations and factory."""

from tasklink.providers.factory import create_provider, register
from tasklink.providers.todoist import TodoistProvider

__all__ = ["TodoistProvider", "create_provider", "register"]
