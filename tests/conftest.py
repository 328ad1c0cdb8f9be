from datetime import datetime, timedelta
import os

# Importing the app creates tables on the default engine; keep that off disk
os.environ["DATABASE_URL"] = "sqlite://"

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from train_ops.database import Base
from train_ops.models import Controller, Priority, Role, Train, TrainStatus, TrainType, User

BASE_TIME = datetime(2024, 1, 1, 6, 0, 0)


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def admin(db):
    user = User(name="Admin", email="admin@railoptima.in", role=Role.ADMIN)
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def controller_a(db):
    user = User(name="Controller A", email="ctl-a@railoptima.in", role=Role.CONTROLLER)
    db.add(user)
    db.flush()
    controller = Controller(user_id=user.id, assigned_section="Section A")
    db.add(controller)
    db.commit()
    return controller


def make_train(record_id=None, train_id="12004", train_type=TrainType.PASSENGER,
               section="Section A", priority=Priority.MEDIUM,
               status=TrainStatus.SCHEDULED, delay_minutes=0, offset_minutes=0):
    """Detached Train record for pure-function tests"""
    return Train(
        id=record_id,
        train_id=train_id,
        train_type=train_type,
        scheduled_at=BASE_TIME + timedelta(minutes=offset_minutes),
        section=section,
        priority=priority,
        status=status,
        delay_minutes=delay_minutes,
        created_at=BASE_TIME,
    )


def add_train(db, **kwargs):
    train = make_train(**kwargs)
    db.add(train)
    db.commit()
    db.refresh(train)
    return train
