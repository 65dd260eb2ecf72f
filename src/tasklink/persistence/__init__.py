"""Persistence helpers shared by the app and CLI."""

from tasklink.persistence.snapshot import PluginData, PluginDataStore, restore, save_snapshot, snapshot

__all__ = ["PluginData", "PluginDataStore", "restore", "save_snapshot", "snapshot"]
