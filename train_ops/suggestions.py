"""
Suggestion Engine
Deterministic rule evaluation over the active trains of one section.

Per-train rules run in a fixed order, each producing at most one suggestion
per train. A section-wide rule runs last. Suggestions are never stored;
identifiers derive from the train record id and the rule index so that
re-querying the same snapshot yields the same ids.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from fractions import Fraction
from typing import List, Optional, Sequence
import logging

from sqlalchemy.orm import Session

from . import crud
from .config import EngineConfig
from .errors import InvalidInputError
from .models import ACTIVE_STATUSES, Priority, Train, TrainStatus, TrainType
from .schemas import Suggestion
from .utils import format_delay_message

logger = logging.getLogger(__name__)

SYSTEM_TRAIN_ID = "SYSTEM"


class TrainRule(ABC):
    """Base class for per-train suggestion rules."""

    index: int
    priority: Priority
    confidence: float

    @abstractmethod
    def matches(self, train: Train, section_trains: Sequence[Train]) -> bool:
        pass

    @abstractmethod
    def message(self, train: Train) -> str:
        pass

    def evaluate(self, train: Train, section_trains: Sequence[Train], now: datetime) -> Optional[Suggestion]:
        if not self.matches(train, section_trains):
            return None
        return Suggestion(
            id=f"suggestion_{train.id}_{self.index}",
            train_id=train.train_id,
            suggestion=self.message(train),
            priority=self.priority,
            confidence=self.confidence,
            generated_at=now,
        )


class DelayedHighPriorityRule(TrainRule):
    """HIGH priority train running more than 15 minutes late."""

    index = 1
    priority = Priority.HIGH
    confidence = 0.85
    delay_threshold = 15

    def matches(self, train, section_trains):
        return train.delay_minutes > self.delay_threshold and train.priority == Priority.HIGH

    def message(self, train):
        return (
            f"High-priority train {train.train_id} is {format_delay_message(train.delay_minutes)}. "
            f"Consider rerouting or priority adjustment."
        )


class UrgentNotStartedRule(TrainRule):
    """URGENT train still waiting to depart."""

    index = 2
    priority = Priority.URGENT
    confidence = 0.95

    def matches(self, train, section_trains):
        return train.status == TrainStatus.SCHEDULED and train.priority == Priority.URGENT

    def message(self, train):
        return f"Urgent train {train.train_id} is scheduled but not yet started. Recommend immediate departure."


class FreightUnderCongestionRule(TrainRule):
    """Freight in a busy section should yield to passenger traffic."""

    index = 3
    priority = Priority.MEDIUM
    confidence = 0.70
    busy_threshold = 5

    def matches(self, train, section_trains):
        return len(section_trains) > self.busy_threshold and train.train_type == TrainType.FREIGHT

    def message(self, train):
        return (
            f"Section congestion detected. Consider delaying freight train {train.train_id} "
            f"to prioritize passenger trains."
        )


DEFAULT_RULES = (DelayedHighPriorityRule(), UrgentNotStartedRule(), FreightUnderCongestionRule())


class SuggestionEngine:
    delay_rate_threshold = Fraction(3, 10)

    def __init__(self, config: EngineConfig, rules: Sequence[TrainRule] = DEFAULT_RULES):
        self.config = config
        self.rules = list(rules)

    def generate(self, section_trains: Sequence[Train], now: Optional[datetime] = None) -> List[Suggestion]:
        """Evaluate all rules against the active trains of one section"""
        now = now or datetime.utcnow()
        trains = [t for t in section_trains if t.status in ACTIVE_STATUSES]
        suggestions = []

        for train in trains:
            for rule in self.rules:
                suggestion = rule.evaluate(train, trains, now)
                if suggestion is not None:
                    suggestions.append(suggestion)

        system_suggestion = self._section_delay_rate(trains, now)
        if system_suggestion is not None:
            suggestions.append(system_suggestion)

        return suggestions

    def _section_delay_rate(self, trains: Sequence[Train], now: datetime) -> Optional[Suggestion]:
        delayed = sum(1 for t in trains if t.delay_minutes > 0)
        if delayed <= len(trains) * self.delay_rate_threshold:
            return None
        return Suggestion(
            id="system_suggestion_1",
            train_id=SYSTEM_TRAIN_ID,
            suggestion=(
                "High delay rate detected in your section. "
                "Consider reviewing scheduling and optimizing train intervals."
            ),
            priority=Priority.HIGH,
            confidence=0.90,
            generated_at=now,
        )

    def suggest_for_section(self, db: Session, section: str, now: Optional[datetime] = None) -> List[Suggestion]:
        if not self.config.has_section(section):
            raise InvalidInputError(f"Unknown section {section}")

        with crud.store_errors(db, "suggestions"):
            trains = crud.list_trains(
                db, section=section, statuses=ACTIVE_STATUSES, order=crud.ORDER_SCHEDULED_ASC
            )

        suggestions = self.generate(trains, now)
        logger.info(f"Generated {len(suggestions)} suggestions for {section} from {len(trains)} trains")
        return suggestions
