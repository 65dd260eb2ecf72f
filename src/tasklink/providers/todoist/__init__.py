"""Todoist provider package."""

from tasklink.providers.todoist.provider import TodoistProvider

__all__ = ["TodoistProvider"]
