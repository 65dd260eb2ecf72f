"""Checklist line parsing.

Pure text functions: classify a markdown checklist line as a tracked remote
task, a request to create one, or something tasklink does not manage, and
locate the ```` ```todoist ```` blocks that expand into linked lines.
"""

from __future__ import annotations

import datetime
import re
from collections.abc import Iterator
from dataclasses import dataclass

_CHECKLIST_RE = re.compile(r"^(?P<prefix>\s*(?:[-*+]|\d+[.)])\s+\[(?P<mark>[ xX])\])(?:\s+|$)(?P<body>.*)$")
_TASK_ID_RE = re.compile(r"\(\*(?P<id>[^*()\s]+)\*\)\s*$")
_WHITESPACE_RE = re.compile(r"\s+")
_FENCE_RE = re.compile(r"^\s*(?P<fence>`{3,}|~{3,})\s*(?P<info>\S*)")
_FILTER_RE = re.compile(r"^\s*filter:\s*(?P<query>.*?)\s*$")

TASK_BLOCK_INFO = "todoist"


@dataclass(frozen=True, slots=True)
class ExistingTask:
    task_id: str
    checked: bool


@dataclass(frozen=True, slots=True)
class NewTaskRequest:
    content: str
    checked: bool


@dataclass(frozen=True, slots=True)
class Unmanaged:
    checked: bool


ParsedLine = ExistingTask | NewTaskRequest | Unmanaged


@dataclass(frozen=True, slots=True)
class TaskBlock:
    """A fenced ``todoist`` block; *start* and *end* are the fence line numbers."""

    start: int
    end: int
    query: str | None = None


def _tag_pattern(tag: str) -> re.Pattern[str]:
    return re.compile(rf"(?<!\S){re.escape(tag)}(?!\S)")


def _collapse(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()


def _closes_fence(line: str, fence: str) -> bool:
    match = _FENCE_RE.match(line)
    if match is None or match.group("info"):
        return False
    closing = match.group("fence")
    return closing[0] == fence[0] and len(closing) >= len(fence)


def parse_checklist_line(line: str, *, tracked_tag: str) -> ParsedLine | None:
    """Classify *line*; ``None`` when it is not a checklist item at all."""
    match = _CHECKLIST_RE.match(line.rstrip("\r\n"))
    if match is None:
        return None
    checked = match.group("mark") in {"x", "X"}
    body = match.group("body")

    id_match = _TASK_ID_RE.search(body)
    if id_match is not None:
        return ExistingTask(task_id=id_match.group("id"), checked=checked)

    pattern = _tag_pattern(tracked_tag)
    if pattern.search(body) is None:
        return Unmanaged(checked=checked)

    content = _collapse(pattern.sub(" ", body))
    if not content:
        return Unmanaged(checked=checked)
    return NewTaskRequest(content=content, checked=checked)


def iter_checklist_lines(text: str) -> Iterator[tuple[int, str]]:
    """Yield ``(line_number, line)`` for each checklist line, zero-based.

    Lines inside fenced code blocks are examples, not tasks, and are skipped.
    """
    fence: str | None = None
    for number, line in enumerate(text.splitlines()):
        if fence is not None:
            if _closes_fence(line, fence):
                fence = None
            continue
        opening = _FENCE_RE.match(line)
        if opening is not None:
            fence = opening.group("fence")
        elif _CHECKLIST_RE.match(line):
            yield number, line


def linked_task_ids(text: str) -> set[str]:
    """Ids of every linked checklist line in *text*."""
    ids: set[str] = set()
    for _, line in iter_checklist_lines(text):
        id_match = _TASK_ID_RE.search(line)
        if id_match is not None:
            ids.add(id_match.group("id"))
    return ids


def find_task_blocks(text: str) -> list[TaskBlock]:
    """Locate closed ```` ```todoist ```` fences in *text*.

    A ``filter: <query>`` line inside a block sets its query; blocks without
    one get ``query=None`` and use the caller's default.
    """
    blocks: list[TaskBlock] = []
    fence: str | None = None
    start = 0
    query: str | None = None
    is_task_block = False
    for number, line in enumerate(text.splitlines()):
        if fence is None:
            opening = _FENCE_RE.match(line)
            if opening is not None:
                fence = opening.group("fence")
                start = number
                query = None
                is_task_block = opening.group("info") == TASK_BLOCK_INFO
            continue
        if _closes_fence(line, fence):
            if is_task_block:
                blocks.append(TaskBlock(start=start, end=number, query=query))
            fence = None
        elif is_task_block:
            filter_match = _FILTER_RE.match(line)
            if filter_match is not None and filter_match.group("query"):
                query = filter_match.group("query")
    return blocks


def build_tags(project_name: str | None, labels: list[str], *, tag_prefix: str = "#todoist") -> list[str]:
    """Derive document tags from a remote project name and labels.

    Whitespace inside names becomes ``-`` so each tag stays a single token.
    """
    tags: list[str] = []
    name = _WHITESPACE_RE.sub("-", (project_name or "").strip())
    tags.append(f"{tag_prefix}/{name}" if name else tag_prefix)
    for label in labels:
        slug = _WHITESPACE_RE.sub("-", label.strip())
        if slug:
            tags.append(f"{tag_prefix}/{slug}")
    return list(dict.fromkeys(tags))


def render_created_line(line: str, *, tracked_tag: str, tags: list[str], task_id: str) -> str:
    """Rewrite a tracked line after its remote task has been created.

    Only the tracked tag and the blank before it are removed; the rest of the
    text keeps its spacing.
    """
    match = _CHECKLIST_RE.match(line.rstrip("\r\n"))
    if match is None:
        raise ValueError(f"not a checklist line: {line!r}")
    body = re.sub(rf"[ \t]*(?<!\S){re.escape(tracked_tag)}(?!\S)", "", match.group("body")).strip()
    parts = [part for part in (body, *tags, f"(*{task_id}*)") if part]
    return f"{match.group('prefix')} {' '.join(parts)}"


def render_task_line(
    content: str,
    *,
    task_id: str,
    tags: list[str],
    due: datetime.date | None = None,
    today: datetime.date | None = None,
) -> str:
    """Render an open remote task as a linked checklist line."""
    parts = [_collapse(content), *tags]
    if due is not None:
        overdue = today is not None and due < today
        parts.append(f"(🗓️ {due.isoformat()} - **OVERDUE**)" if overdue else f"(🗓️ {due.isoformat()})")
    parts.append(f"(*{task_id}*)")
    return f"- [ ] {' '.join(part for part in parts if part)}"
