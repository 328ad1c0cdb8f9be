from prometheus_client import REGISTRY

from train_ops.kpi import compute_kpi, load_kpi
from train_ops.models import TrainStatus

from conftest import add_train, make_train


def test_empty_registry():
    kpi = compute_kpi([], total_users=0)

    assert kpi.total_trains == 0
    assert kpi.active_trains == 0
    assert kpi.delayed_trains == 0
    assert kpi.average_delay == 0
    assert kpi.throughput == 0


def test_aggregates():
    trains = [
        make_train(record_id=1, train_id="A", status=TrainStatus.SCHEDULED, delay_minutes=5),
        make_train(record_id=2, train_id="B", status=TrainStatus.RUNNING, delay_minutes=10),
        make_train(record_id=3, train_id="C", status=TrainStatus.COMPLETED),
        make_train(record_id=4, train_id="D", status=TrainStatus.COMPLETED, delay_minutes=0),
        make_train(record_id=5, train_id="E", status=TrainStatus.CANCELLED),
        make_train(record_id=6, train_id="F", status=TrainStatus.COMPLETED),
    ]

    kpi = compute_kpi(trains, total_users=4)

    assert kpi.total_trains == 6
    assert kpi.total_users == 4
    assert kpi.active_trains == 2
    assert kpi.delayed_trains == 2
    assert kpi.average_delay == 8  # 7.5 rounds away from zero
    assert kpi.throughput == 50


def test_throughput_rounds_final_percentage():
    trains = [make_train(record_id=1, train_id="A", status=TrainStatus.COMPLETED)] + [
        make_train(record_id=i, train_id=f"T{i}") for i in range(2, 9)
    ]

    # 1 of 8 completed is 12.5%
    assert compute_kpi(trains, total_users=0).throughput == 13


def test_load_kpi_updates_gauges(db, admin):
    add_train(db, train_id="R1", status=TrainStatus.RUNNING, delay_minutes=15)
    add_train(db, train_id="S1")

    kpi = load_kpi(db)

    assert kpi.total_users == 1
    assert kpi.active_trains == 2
    assert kpi.average_delay == 15
    assert REGISTRY.get_sample_value("active_trains_total") == 2
    assert REGISTRY.get_sample_value("delayed_trains_total") == 1
