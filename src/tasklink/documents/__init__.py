"""Document host adapters."""

from tasklink.documents.markdown import Document, MarkdownFile, replace_line
from tasklink.documents.watcher import DocumentWatcher

__all__ = ["Document", "DocumentWatcher", "MarkdownFile", "replace_line"]
