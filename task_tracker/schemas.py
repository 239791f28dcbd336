from datetime import datetime
from typing import Any, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from .store import UNSET, TaskPatch


# Request bodies. Title emptiness and priority values are checked by TaskStore.
class TaskCreate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    priority: Optional[str] = None


class TaskUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    # any JSON value; TaskStore coerces it to bool
    completed: Any = None
    priority: Optional[str] = None

    def to_patch(self) -> TaskPatch:
        """Keep only the keys the client actually sent."""
        sent = self.model_fields_set
        return TaskPatch(
            **{name: getattr(self, name) if name in sent else UNSET for name in TaskPatch.FIELDS}
        )


class TaskResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: str = ""
    completed: bool
    priority: str
    created_at: datetime = Field(
        validation_alias=AliasChoices("created_at", "createdAt"), serialization_alias="createdAt"
    )
    updated_at: datetime = Field(
        validation_alias=AliasChoices("updated_at", "updatedAt"), serialization_alias="updatedAt"
    )


class TaskListResponse(BaseModel):
    success: bool = True
    data: List[TaskResponse]
    count: int


class TaskEnvelope(BaseModel):
    success: bool = True
    message: Optional[str] = None
    data: TaskResponse


class HealthResponse(BaseModel):
    success: bool = True
    message: str
    timestamp: datetime
