"""Checklist change detection."""

from tasklink.detector.detector import ChangeDetector
from tasklink.detector.inserter import TaskBlockExpander
from tasklink.detector.parser import (
    ExistingTask,
    NewTaskRequest,
    ParsedLine,
    TaskBlock,
    Unmanaged,
    build_tags,
    find_task_blocks,
    iter_checklist_lines,
    linked_task_ids,
    parse_checklist_line,
    render_created_line,
    render_task_line,
)

__all__ = [
    "ChangeDetector",
    "ExistingTask",
    "NewTaskRequest",
    "ParsedLine",
    "TaskBlock",
    "TaskBlockExpander",
    "Unmanaged",
    "build_tags",
    "find_task_blocks",
    "iter_checklist_lines",
    "linked_task_ids",
    "parse_checklist_line",
    "render_created_line",
    "render_task_line",
]
