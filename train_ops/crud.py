from contextlib import contextmanager
from datetime import datetime
from typing import Iterable, List, Optional
import logging

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from .errors import ConflictError, DependencyFailureError, InvalidInputError
from .models import AuditLog, Controller, Role, Train, TrainStatus, User

logger = logging.getLogger(__name__)

ORDER_CREATED_DESC = "created_desc"
ORDER_SCHEDULED_ASC = "scheduled_asc"


@contextmanager
def store_errors(db: Session, operation: str):
    """Roll back and surface store failures as DependencyFailure"""
    try:
        yield
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Data store failure during {operation}: {str(e)}")
        raise DependencyFailureError(f"Data store unavailable during {operation}") from e


def get_train(db: Session, record_id: int) -> Optional[Train]:
    return db.query(Train).filter(Train.id == record_id).first()


def get_train_by_number(db: Session, train_id: str) -> Optional[Train]:
    return db.query(Train).filter(Train.train_id == train_id).first()


def list_trains(
    db: Session,
    section: Optional[str] = None,
    statuses: Optional[Iterable[TrainStatus]] = None,
    order: str = ORDER_CREATED_DESC,
) -> List[Train]:
    query = db.query(Train)
    if section is not None:
        query = query.filter(Train.section == section)
    if statuses is not None:
        query = query.filter(Train.status.in_(list(statuses)))

    if order == ORDER_SCHEDULED_ASC:
        query = query.order_by(Train.scheduled_at.asc(), Train.id.asc())
    else:
        query = query.order_by(Train.created_at.desc(), Train.id.desc())
    return query.all()


def create_train(db: Session, **fields) -> Train:
    train = Train(**fields)
    db.add(train)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        if get_train_by_number(db, fields.get("train_id")) is not None:
            raise ConflictError(f"Train with ID {fields.get('train_id')} already exists") from e
        logger.warning(f"Train {fields.get('train_id')} rejected by the store: {str(e.orig)}")
        raise InvalidInputError("Train references a record that does not exist") from e
    db.refresh(train)
    return train


def update_train(db: Session, train: Train, **changes) -> Train:
    for key, value in changes.items():
        setattr(train, key, value)
    db.commit()
    db.refresh(train)
    return train


def get_user(db: Session, user_id: int) -> Optional[User]:
    return db.query(User).filter(User.id == user_id).first()


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == email).first()


def list_users(db: Session) -> List[User]:
    return db.query(User).order_by(User.created_at.desc(), User.id.desc()).all()


def count_users(db: Session) -> int:
    return db.query(func.count(User.id)).scalar()


def create_user(db: Session, name: str, email: str, role: Role,
                assigned_section: Optional[str] = None) -> User:
    user = User(name=name, email=email, role=role)
    db.add(user)
    try:
        db.flush()
        if role == Role.CONTROLLER:
            db.add(Controller(user_id=user.id, assigned_section=assigned_section))
        db.commit()
    except IntegrityError as e:
        db.rollback()
        if get_user_by_email(db, email) is not None:
            raise ConflictError(f"User already exists with email {email}") from e
        logger.warning(f"User {email} rejected by the store: {str(e.orig)}")
        raise InvalidInputError("User record rejected by the data store") from e
    db.refresh(user)
    return user


def get_controller_by_user(db: Session, user_id: int) -> Optional[Controller]:
    return db.query(Controller).filter(Controller.user_id == user_id).first()


def create_audit_entry(db: Session, action: str, user_id: Optional[int], details: str,
                       train_id: Optional[int] = None,
                       controller_id: Optional[int] = None) -> AuditLog:
    entry = AuditLog(
        action=action,
        user_id=user_id,
        train_id=train_id,
        controller_id=controller_id,
        details=details,
        timestamp=datetime.utcnow(),
    )
    db.add(entry)
    db.commit()
    return entry


def list_audit_entries(db: Session, limit: int = 100) -> List[AuditLog]:
    return (
        db.query(AuditLog)
        .order_by(AuditLog.timestamp.desc(), AuditLog.id.desc())
        .limit(limit)
        .all()
    )
