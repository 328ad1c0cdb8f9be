"""
Train Registry: owns train records and the lifecycle state machine.

    START    SCHEDULED -> RUNNING                      delay unchanged
    HALT     RUNNING   -> SCHEDULED                    delay + 5
    REROUTE  SCHEDULED|RUNNING -> SCHEDULED, section -> alternate, delay + 10

COMPLETED and CANCELLED are terminal. Actions on one train are serialized
through a keyed lock on the record id; creation is serialized on the
business train id.
"""
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional
import logging

from sqlalchemy.orm import Session

from . import crud
from .audit import AuditSink
from .config import EngineConfig
from .errors import (
    ConflictError, ForbiddenError, InvalidInputError, InvalidTransitionError,
    NotFoundError, TrainOpsError,
)
from .locks import KeyedLock
from .metrics import record_train_action
from .models import TERMINAL_STATUSES, Train, TrainAction, TrainStatus
from .schemas import TrainCreate

logger = logging.getLogger(__name__)

HALT_DELAY_MINUTES = 5
REROUTE_DELAY_MINUTES = 10


@dataclass(frozen=True)
class Transition:
    changes: Dict[str, Any]
    description: str


def plan_transition(train, action: TrainAction, alternate_section: Optional[str]) -> Transition:
    """Compute the effect of an action without touching the store"""
    status = train.status
    delay = train.delay_minutes or 0

    if action == TrainAction.START:
        if status != TrainStatus.SCHEDULED:
            raise InvalidTransitionError(f"Train {train.train_id} cannot be started from {status.value}")
        return Transition(
            changes={"status": TrainStatus.RUNNING},
            description=f"Started train {train.train_id}",
        )

    if action == TrainAction.HALT:
        if status != TrainStatus.RUNNING:
            raise InvalidTransitionError(f"Train {train.train_id} is not running")
        return Transition(
            changes={"status": TrainStatus.SCHEDULED, "delay_minutes": delay + HALT_DELAY_MINUTES},
            description=f"Halted train {train.train_id}",
        )

    if action == TrainAction.REROUTE:
        if status in TERMINAL_STATUSES:
            raise InvalidTransitionError(f"Train {train.train_id} is {status.value} and cannot be rerouted")
        if alternate_section is None:
            raise InvalidTransitionError(f"No alternate section configured for {train.section}")
        return Transition(
            changes={
                "section": alternate_section,
                "delay_minutes": delay + REROUTE_DELAY_MINUTES,
                "status": TrainStatus.SCHEDULED,
            },
            description=f"Rerouted train {train.train_id} to {alternate_section}",
        )

    raise InvalidTransitionError(f"Invalid action {action}")


class TrainRegistry:
    def __init__(self, config: EngineConfig, audit_sink: Optional[AuditSink] = None):
        self.config = config
        self.audit_sink = audit_sink or AuditSink()
        self._action_locks = KeyedLock()
        self._creation_locks = KeyedLock()

    def create_train(self, db: Session, payload: TrainCreate, creator_id: Optional[int]) -> Train:
        train_id = payload.train_id.strip()
        if not train_id:
            raise InvalidInputError("Train ID is required")
        if not self.config.has_section(payload.section):
            raise InvalidInputError(f"Unknown section {payload.section}")

        with self._creation_locks.hold(train_id):
            with crud.store_errors(db, "create_train"):
                if crud.get_train_by_number(db, train_id):
                    logger.warning(f"Rejected duplicate train {train_id}")
                    raise ConflictError(f"Train with ID {train_id} already exists")

                train = crud.create_train(
                    db,
                    train_id=train_id,
                    train_type=payload.type,
                    scheduled_at=payload.scheduled_at,
                    section=payload.section,
                    platform=payload.platform,
                    priority=payload.priority,
                    status=TrainStatus.SCHEDULED,
                    delay_minutes=0,
                    creator_id=creator_id,
                )

        logger.info(f"Train {train_id} created in {train.section} by user {creator_id}")
        self.audit_sink.append(
            db,
            action="CREATE_TRAIN",
            actor_id=creator_id,
            train_id=train.id,
            details=f"Created new train {train_id} ({payload.type.value})",
        )
        return train

    def list_trains(
        self,
        db: Session,
        section: Optional[str] = None,
        statuses: Optional[Iterable[TrainStatus]] = None,
        order: str = crud.ORDER_CREATED_DESC,
    ) -> List[Train]:
        with crud.store_errors(db, "list_trains"):
            return crud.list_trains(db, section=section, statuses=statuses, order=order)

    def apply_action(
        self,
        db: Session,
        record_id: int,
        action: TrainAction,
        acting_section: str,
        actor_id: Optional[int] = None,
        controller_id: Optional[int] = None,
    ) -> Train:
        try:
            with self._action_locks.hold(record_id):
                with crud.store_errors(db, "apply_action"):
                    train = crud.get_train(db, record_id)
                    if train is None:
                        raise NotFoundError(f"Train {record_id} not found")
                    if train.section != acting_section:
                        raise ForbiddenError("Train not in your section")

                    transition = plan_transition(train, action, self.config.alternate_section(acting_section))
                    train = crud.update_train(db, train, **transition.changes)
        except TrainOpsError as e:
            record_train_action(action.value, "rejected")
            logger.warning(f"{action.value} on train {record_id} rejected: {e.message}")
            raise

        record_train_action(action.value, "applied")
        logger.info(transition.description)
        self.audit_sink.append(
            db,
            action=action.value,
            actor_id=actor_id,
            train_id=train.id,
            controller_id=controller_id,
            details=transition.description,
        )
        return train
