import pytest

from train_ops.config import EngineConfig, SectionConfig
from train_ops.errors import InvalidInputError
from train_ops.models import TrainStatus
from train_ops.sections import SectionMonitor

from conftest import add_train, make_train


@pytest.fixture
def monitor():
    return SectionMonitor(EngineConfig())


def active_trains(count, section="Section A"):
    return [make_train(record_id=i, train_id=f"T{i}", section=section) for i in range(count)]


def test_nine_of_ten_is_congested(monitor):
    status = monitor.classify("Section A", active_trains(9))

    assert status.train_count == 9
    assert status.capacity == 10
    assert status.utilization == 90
    assert status.status == "CONGESTED"


def test_eighty_percent_is_still_active(monitor):
    status = monitor.classify("Section A", active_trains(8))

    assert status.utilization == 80
    assert status.status == "ACTIVE"


def test_only_active_trains_in_section_count(monitor):
    snapshot = active_trains(2) + [
        make_train(record_id=10, train_id="D1", status=TrainStatus.COMPLETED),
        make_train(record_id=11, train_id="D2", status=TrainStatus.CANCELLED),
        make_train(record_id=12, train_id="D3", section="Section B", status=TrainStatus.RUNNING),
    ]

    status = monitor.classify("Section A", snapshot)

    assert status.train_count == 2
    assert status.utilization == 20


def test_utilization_rounds_half_up():
    monitor = SectionMonitor(EngineConfig(sections=[SectionConfig("Yard", capacity=8)]))

    status = monitor.classify("Yard", active_trains(5, section="Yard"))

    assert status.utilization == 63  # 62.5


def test_classify_all_follows_configured_order(monitor):
    sections = monitor.classify_all(active_trains(1, section="Section C"))

    assert [s.name for s in sections] == ["Section A", "Section B", "Section C", "Section D"]
    assert [s.train_count for s in sections] == [0, 0, 1, 0]


def test_classify_sections_is_repeatable(db, monitor):
    for i in range(9):
        add_train(db, train_id=f"A{i}", status=TrainStatus.RUNNING if i % 2 else TrainStatus.SCHEDULED)
    add_train(db, train_id="B1", section="Section B")

    first = monitor.classify_sections(db)
    second = monitor.classify_sections(db)

    assert [s.model_dump() for s in first] == [s.model_dump() for s in second]
    assert first[0].status == "CONGESTED"
    assert first[1].utilization == 10


def test_unknown_section_is_invalid_input(monitor):
    with pytest.raises(InvalidInputError):
        monitor.classify("Section Z", active_trains(1))
