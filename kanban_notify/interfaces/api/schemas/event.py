"""Schemas for board mutations reported by the board service."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from kanban_notify.domain.entities import TaskSnapshot

from .notification import FanOutReportRead


class TaskSnapshotPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    board_id: str = Field(..., alias="boardId", min_length=1)
    board_name: str | None = Field(default=None, alias="boardName")
    assignee_id: str | None = Field(default=None, alias="assigneeId")
    creator_id: str | None = Field(default=None, alias="creatorId")
    status: str | None = None
    priority: str | None = None
    due_date: str | None = Field(default=None, alias="dueDate")
    collaborator_ids: list[str] = Field(default_factory=list, alias="collaboratorIds")

    def to_entity(self) -> TaskSnapshot:
        return TaskSnapshot(
            id=self.id,
            title=self.title,
            board_id=self.board_id,
            board_name=self.board_name,
            assignee_id=self.assignee_id,
            creator_id=self.creator_id,
            status=self.status,
            priority=self.priority,
            due_date=self.due_date,
            collaborator_ids=tuple(self.collaborator_ids),
        )


class TaskChangeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    before: TaskSnapshotPayload | None = None
    after: TaskSnapshotPayload
    actor_name: str | None = Field(default=None, alias="actorName")


class CommentEventRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    task: TaskSnapshotPayload
    text: str = Field(..., min_length=1)
    commenter_name: str = Field(..., alias="commenterName", min_length=1)


class EventDispatchResponse(BaseModel):
    """Number of events scheduled; reports are included when the caller waited."""

    scheduled: int
    reports: list[FanOutReportRead] | None = None


__all__ = [
    "CommentEventRequest",
    "EventDispatchResponse",
    "TaskChangeRequest",
    "TaskSnapshotPayload",
]
