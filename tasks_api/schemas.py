# tasks_api/schemas.py

from pydantic import BaseModel, Field, field_validator, model_validator
from datetime import datetime, timezone
from typing import Dict, List, Optional
from enum import Enum


class TaskPriority(str, Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class TaskStatus(str, Enum):
    PENDING = "Pending"
    COMPLETED = "Completed"


class UserRole(str, Enum):
    USER = "user"
    ADMIN = "admin"


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive timestamps as UTC so comparisons never mix naive and aware values."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class TaskBase(BaseModel):
    title: str = Field(..., min_length=3, max_length=100, description="Task title")
    description: Optional[str] = Field(None, max_length=500, description="Task description")
    due_date: Optional[datetime] = Field(None, alias="dueDate", description="Task due date")
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM, description="Task priority")

    class Config:
        populate_by_name = True
        str_strip_whitespace = True

    @field_validator("due_date")
    @classmethod
    def _due_date_utc(cls, v):
        return as_utc(v)


class TaskCreate(TaskBase):
    pass


class TaskUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=3, max_length=100, description="Task title")
    description: Optional[str] = Field(None, max_length=500, description="Task description")
    due_date: Optional[datetime] = Field(None, alias="dueDate", description="Task due date")
    priority: Optional[TaskPriority] = Field(None, description="Task priority")
    status: Optional[TaskStatus] = Field(None, description="Task status")

    class Config:
        populate_by_name = True
        str_strip_whitespace = True

    @field_validator("due_date")
    @classmethod
    def _due_date_utc(cls, v):
        return as_utc(v)

    @model_validator(mode="after")
    def _required_fields_not_null(self):
        # title, priority and status can be changed but never cleared
        for name in ("title", "priority", "status"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self

    def changes(self) -> dict:
        """Fields the client actually sent, keyed by attribute name."""
        return self.model_dump(exclude_unset=True)


class Task(BaseModel):
    id: str
    title: str
    description: str = ""
    due_date: Optional[datetime] = Field(None, alias="dueDate")
    priority: TaskPriority = TaskPriority.MEDIUM
    status: TaskStatus = TaskStatus.PENDING
    user_id: str = Field(..., alias="user")
    created_at: datetime = Field(..., alias="createdAt")
    updated_at: datetime = Field(..., alias="updatedAt")

    class Config:
        from_attributes = True
        populate_by_name = True

    @field_validator("due_date", "created_at", "updated_at")
    @classmethod
    def _timestamps_utc(cls, v):
        return as_utc(v)

    @field_validator("description", mode="before")
    @classmethod
    def _description_default(cls, v):
        return v or ""


class Pagination(BaseModel):
    total: int
    page: int
    pages: int


class TaskList(BaseModel):
    tasks: List[Task]
    pagination: Pagination


class CompletionTrendDay(BaseModel):
    date: str
    completed: int
    total: int


class TaskAnalytics(BaseModel):
    priority_distribution: Dict[str, int] = Field(..., alias="priorityDistribution")
    status_distribution: Dict[str, int] = Field(..., alias="statusDistribution")
    completion_trend: List[CompletionTrendDay] = Field(..., alias="completionTrend")
    upcoming_deadlines: List[Task] = Field(..., alias="upcomingDeadlines")
    priority_by_status: Dict[str, Dict[str, int]] = Field(..., alias="priorityByStatus")
    overdue_tasks: int = Field(..., alias="overdueTasks")

    class Config:
        populate_by_name = True


class CurrentUser(BaseModel):
    id: str
    role: UserRole = UserRole.USER


class Message(BaseModel):
    message: str
