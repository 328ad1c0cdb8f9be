from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime

from .models import Role, TrainType, Priority, TrainStatus, TrainAction


class Identity(BaseModel):
    user_id: int
    role: Role
    email: Optional[str] = None


class TrainCreate(BaseModel):
    train_id: str = Field(min_length=1, max_length=20)
    type: TrainType
    scheduled_at: datetime
    section: str = Field(min_length=1, max_length=50)
    platform: Optional[str] = Field(default=None, max_length=10)
    priority: Priority


class TrainResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    train_id: str
    train_type: TrainType
    scheduled_at: datetime
    section: str
    platform: Optional[str] = None
    priority: Priority
    status: TrainStatus
    delay_minutes: int
    created_at: Optional[datetime] = None
    creator_id: Optional[int] = None


class TrainActionRequest(BaseModel):
    action: TrainAction


class TrainActionResponse(BaseModel):
    message: str
    train: TrainResponse


class SectionStatus(BaseModel):
    name: str
    status: str  # ACTIVE or CONGESTED
    train_count: int
    capacity: int
    utilization: int


class Suggestion(BaseModel):
    id: str
    train_id: str
    suggestion: str
    priority: Priority
    confidence: float = Field(ge=0, le=1)
    generated_at: datetime


class KPISnapshot(BaseModel):
    total_trains: int
    active_trains: int
    delayed_trains: int
    total_users: int
    average_delay: int
    throughput: int


class UserCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    email: str = Field(min_length=3, max_length=255)
    role: Role
    assigned_section: Optional[str] = Field(default=None, max_length=50)


class ControllerResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    assigned_section: str
    is_active: bool


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    role: Role
    created_at: Optional[datetime] = None
    controller: Optional[ControllerResponse] = None


class AuditLogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    action: str
    user_id: Optional[int] = None
    train_id: Optional[int] = None
    controller_id: Optional[int] = None
    details: Optional[str] = None
    timestamp: datetime


class AcceptSuggestionResponse(BaseModel):
    message: str
    suggestion_id: str
