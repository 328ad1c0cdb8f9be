import enum
from datetime import datetime

from sqlalchemy import Column, Integer, String, DateTime, Boolean, Text, ForeignKey, Enum
from sqlalchemy.orm import relationship

from .database import Base


class Role(str, enum.Enum):
    ADMIN = "ADMIN"
    CONTROLLER = "CONTROLLER"
    USER = "USER"


class TrainType(str, enum.Enum):
    PASSENGER = "PASSENGER"
    EXPRESS = "EXPRESS"
    FREIGHT = "FREIGHT"
    LOCAL = "LOCAL"


class Priority(str, enum.Enum):
    # Declaration order is the ranking: LOW < MEDIUM < HIGH < URGENT
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


class TrainStatus(str, enum.Enum):
    SCHEDULED = "SCHEDULED"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class TrainAction(str, enum.Enum):
    START = "START"
    HALT = "HALT"
    REROUTE = "REROUTE"


ACTIVE_STATUSES = (TrainStatus.SCHEDULED, TrainStatus.RUNNING)
TERMINAL_STATUSES = (TrainStatus.COMPLETED, TrainStatus.CANCELLED)


def _enum_column(enum_cls, **kwargs):
    return Column(Enum(enum_cls, native_enum=False, length=20), **kwargs)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    role = _enum_column(Role, nullable=False, default=Role.USER)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    controller = relationship("Controller", back_populates="user", uselist=False)
    trains = relationship("Train", back_populates="creator")


class Controller(Base):
    __tablename__ = "controllers"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)
    assigned_section = Column(String(50), nullable=False)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    user = relationship("User", back_populates="controller")


class Train(Base):
    __tablename__ = "trains"

    id = Column(Integer, primary_key=True, index=True)
    train_id = Column(String(20), unique=True, index=True, nullable=False)  # reporting number
    train_type = _enum_column(TrainType, nullable=False)
    scheduled_at = Column(DateTime, nullable=False)
    section = Column(String(50), index=True, nullable=False)
    platform = Column(String(10))
    priority = _enum_column(Priority, nullable=False, default=Priority.MEDIUM)
    status = _enum_column(TrainStatus, nullable=False, default=TrainStatus.SCHEDULED)
    delay_minutes = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=datetime.utcnow)
    creator_id = Column(Integer, ForeignKey("users.id"))

    # Relationships
    creator = relationship("User", back_populates="trains")


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    action = Column(String(30), nullable=False)  # CREATE_TRAIN, START, HALT, REROUTE, ...
    user_id = Column(Integer, ForeignKey("users.id"))
    train_id = Column(Integer, ForeignKey("trains.id"))
    controller_id = Column(Integer, ForeignKey("controllers.id"))
    details = Column(Text)
    timestamp = Column(DateTime, default=datetime.utcnow, index=True)
