from typing import Sequence
import logging

from sqlalchemy.orm import Session

from . import crud
from .metrics import update_train_metrics
from .models import ACTIVE_STATUSES, Train, TrainStatus
from .schemas import KPISnapshot
from .utils import percentage, round_half_up

logger = logging.getLogger(__name__)


def compute_kpi(trains: Sequence[Train], total_users: int) -> KPISnapshot:
    """Reduce a full train snapshot to system-wide operational metrics"""
    total_trains = len(trains)
    active_trains = sum(1 for t in trains if t.status in ACTIVE_STATUSES)
    delays = [t.delay_minutes for t in trains if t.delay_minutes > 0]
    completed = sum(1 for t in trains if t.status == TrainStatus.COMPLETED)

    return KPISnapshot(
        total_trains=total_trains,
        active_trains=active_trains,
        delayed_trains=len(delays),
        total_users=total_users,
        average_delay=round_half_up(sum(delays), len(delays)) if delays else 0,
        throughput=percentage(completed, total_trains),
    )


def load_kpi(db: Session) -> KPISnapshot:
    with crud.store_errors(db, "kpi"):
        trains = crud.list_trains(db)
        total_users = crud.count_users(db)

    kpi = compute_kpi(trains, total_users)
    update_train_metrics(kpi.active_trains, kpi.delayed_trains)
    logger.info(f"KPI computed over {kpi.total_trains} trains: throughput {kpi.throughput}%")
    return kpi
