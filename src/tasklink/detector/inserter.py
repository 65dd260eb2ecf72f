"""Expands ```` ```todoist ```` blocks into linked checklist lines."""

from __future__ import annotations

import datetime
import logging

from tasklink.contracts.config import DEFAULT_TASK_FILTER
from tasklink.contracts.provider import Provider
from tasklink.contracts.task import RemoteTask
from tasklink.detector.detector import fetch_project_name_or_none
from tasklink.detector.parser import (
    TaskBlock,
    build_tags,
    find_task_blocks,
    linked_task_ids,
    render_task_line,
)
from tasklink.documents.markdown import Document
from tasklink.engine.notices import NoticeSink, NullNoticeSink

_LOG = logging.getLogger(__name__)


def _line_ending(line: str) -> str:
    return line[len(line.rstrip("\r\n")) :]


class TaskBlockExpander:
    """Replaces task blocks with the open remote tasks matching their filter.

    A block's own ``filter:`` line wins over the query passed to
    :meth:`expand`, which wins over the configured default. Tasks already
    linked somewhere in the document are not inserted twice, and a block
    whose filter matches nothing is left in place.
    """

    def __init__(
        self,
        provider: Provider,
        *,
        tag_prefix: str = "#todoist",
        default_query: str = DEFAULT_TASK_FILTER,
        notices: NoticeSink | None = None,
    ) -> None:
        self._provider = provider
        self._tag_prefix = tag_prefix
        self._default_query = default_query
        self._notices: NoticeSink = notices or NullNoticeSink()

    async def expand(
        self,
        document: Document,
        *,
        query: str | None = None,
        today: datetime.date | None = None,
    ) -> int:
        """Expand every task block in *document*; returns the number of inserted tasks."""
        text = document.read()
        blocks = find_task_blocks(text)
        if not blocks:
            return 0
        today = today or datetime.date.today()

        linked = linked_task_ids(text)
        replacements: list[tuple[TaskBlock, list[str]]] = []
        for block in blocks:
            block_query = block.query or query or self._default_query
            tasks = await self._provider.fetch_tasks_by_filter(block_query)
            rendered: list[str] = []
            for task in tasks:
                if task.id in linked:
                    continue
                linked.add(task.id)
                rendered.append(await self._render(task, today))
            if not rendered:
                _LOG.info("No new tasks match %r in %s", block_query, document.path)
                self._notices.notify(f"No new Todoist tasks match {block_query!r} in {document.path}")
                continue
            replacements.append((block, rendered))

        if not replacements:
            return 0
        if document.read() != text:
            _LOG.warning("%s changed while fetching tasks; blocks left in place", document.path)
            self._notices.notify(f"{document.path} was edited while fetching Todoist tasks; try again")
            return 0

        lines = text.splitlines(keepends=True)
        for block, rendered in reversed(replacements):
            newline = _line_ending(lines[block.start]) or "\n"
            last = rendered[-1] + _line_ending(lines[block.end])
            lines[block.start : block.end + 1] = [line + newline for line in rendered[:-1]] + [last]
        document.write("".join(lines))

        inserted = sum(len(rendered) for _, rendered in replacements)
        _LOG.info("Inserted %d task(s) into %s", inserted, document.path)
        return inserted

    async def _render(self, task: RemoteTask, today: datetime.date) -> str:
        project_name = await fetch_project_name_or_none(self._provider, task)
        tags = build_tags(project_name, task.labels, tag_prefix=self._tag_prefix)
        due = task.due.as_date() if task.due is not None else None
        return render_task_line(task.content, task_id=task.id, tags=tags, due=due, today=today)
