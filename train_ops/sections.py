from typing import List, Sequence
import logging

from sqlalchemy.orm import Session

from . import crud
from .config import EngineConfig
from .errors import InvalidInputError
from .models import ACTIVE_STATUSES, Train
from .schemas import SectionStatus
from .utils import percentage

logger = logging.getLogger(__name__)

STATUS_ACTIVE = "ACTIVE"
STATUS_CONGESTED = "CONGESTED"


class SectionMonitor:
    """Derives occupancy and congestion per section from a train snapshot"""

    def __init__(self, config: EngineConfig):
        self.config = config

    def classify(self, section_name: str, snapshot: Sequence[Train]) -> SectionStatus:
        if not self.config.has_section(section_name):
            raise InvalidInputError(f"Unknown section {section_name}")
        capacity = self.config.capacity_of(section_name)
        train_count = sum(
            1 for t in snapshot if t.section == section_name and t.status in ACTIVE_STATUSES
        )
        utilization = percentage(train_count, capacity)
        status = STATUS_CONGESTED if utilization > self.config.congestion_threshold else STATUS_ACTIVE

        return SectionStatus(
            name=section_name,
            status=status,
            train_count=train_count,
            capacity=capacity,
            utilization=utilization,
        )

    def classify_all(self, snapshot: Sequence[Train]) -> List[SectionStatus]:
        return [self.classify(name, snapshot) for name in self.config.section_names]

    def load_snapshot(self, db: Session) -> List[Train]:
        """One query for all active trains so every section sees the same state"""
        with crud.store_errors(db, "section_snapshot"):
            return crud.list_trains(db, statuses=ACTIVE_STATUSES)

    def classify_sections(self, db: Session) -> List[SectionStatus]:
        sections = self.classify_all(self.load_snapshot(db))
        congested = [s.name for s in sections if s.status == STATUS_CONGESTED]
        if congested:
            logger.info(f"Congested sections: {', '.join(congested)}")
        return sections
