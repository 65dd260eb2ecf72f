"""Remote task contracts."""

from __future__ import annotations

import datetime

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class TaskDue(BaseModel):
    model_config = ConfigDict(extra="ignore")

    date: str

    def as_date(self) -> datetime.date | None:
        """The calendar day of the due date; ``None`` when unparseable."""
        try:
            return datetime.date.fromisoformat(self.date[:10])
        except ValueError:
            return None


class RemoteTask(BaseModel):
    """The subset of a remote task that tasklink reads."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    content: str = ""
    completed: bool = Field(default=False, validation_alias=AliasChoices("completed", "checked", "is_completed"))
    project_id: str | None = None
    labels: list[str] = Field(default_factory=list)
    due: TaskDue | None = None

    @field_validator("id", "project_id", mode="before")
    @classmethod
    def _coerce_id(cls, value: object) -> object:
        if isinstance(value, int):
            return str(value)
        return value
