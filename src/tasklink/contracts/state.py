"""Reconciliation state contracts."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

BASE_RETRY_DELAY = 5.0
MAX_RETRY_DELAY = 300.0

# 2**_MAX_EXPONENT * BASE_RETRY_DELAY is far beyond any sane cap.
_MAX_EXPONENT = 64


def compute_next_retry_delay(
    retry_attempts: int,
    *,
    base: float = BASE_RETRY_DELAY,
    cap: float = MAX_RETRY_DELAY,
) -> float:
    """Return the delay in seconds before the next retry.

    Exponential backoff ``min(base * 2**retry_attempts, cap)``. The exponent is
    clamped so arbitrarily large attempt counts stay cheap and never overflow.
    """
    if retry_attempts < 0:
        raise ValueError("retry_attempts must be non-negative")
    exponent = min(retry_attempts, _MAX_EXPONENT)
    return min(base * float(2**exponent), cap)


class StateChangeDecision(StrEnum):
    NO_SYNC = "no_sync"
    SYNC = "sync"


@dataclass(slots=True, eq=False)
class ReconciliationState:
    """Last known local state of one remote task.

    Attributes:
        task_id: Remote task id, unique within a store.
        checkbox_state: Last checkbox value observed in a document.
        synced: True when ``checkbox_state`` matched the remote at the last
            successful contact.
        retry_attempts: Consecutive failed attempts since the last success or
            the last local change.
        orphaned: The remote task was deleted upstream. Terminal.
    """

    task_id: str
    checkbox_state: bool
    synced: bool = False
    retry_attempts: int = 0
    orphaned: bool = False

    def next_retry_delay(self, *, base: float = BASE_RETRY_DELAY, cap: float = MAX_RETRY_DELAY) -> float:
        return compute_next_retry_delay(self.retry_attempts, base=base, cap=cap)

    def mark_synced(self) -> None:
        self.synced = True
        self.retry_attempts = 0


class PendingState(BaseModel):
    """Persisted record of an unsynced state."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    task_id: str = Field(alias="taskId", min_length=1)
    checkbox_state: bool = Field(alias="checkboxState")
    retry_attempts: int = Field(default=0, alias="retryAttempts", ge=0)

    @classmethod
    def from_state(cls, state: ReconciliationState) -> PendingState:
        return cls(
            task_id=state.task_id,
            checkbox_state=state.checkbox_state,
            retry_attempts=state.retry_attempts,
        )
