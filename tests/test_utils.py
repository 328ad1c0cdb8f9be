import threading
import time

import pytest

from train_ops.config import EngineConfig, SectionConfig
from train_ops.locks import KeyedLock
from train_ops.utils import format_delay_message, percentage, round_half_up


def test_round_half_up():
    assert round_half_up(5, 2) == 3
    assert round_half_up(25, 10) == 3
    assert round_half_up(24, 10) == 2
    assert round_half_up(7) == 7


def test_percentage():
    assert percentage(9, 10) == 90
    assert percentage(1, 8) == 13
    assert percentage(3, 0) == 0


def test_format_delay_message():
    assert format_delay_message(0) == "on time"
    assert format_delay_message(20) == "delayed by 20 minutes"
    assert format_delay_message(135) == "delayed by 2h 15m"


def test_default_config():
    config = EngineConfig()

    assert config.section_names == ["Section A", "Section B", "Section C", "Section D"]
    assert all(config.capacity_of(name) == 10 for name in config.section_names)
    assert config.alternate_section("Section A") == "Section B"
    assert config.alternate_section("Section B") == "Section A"
    assert config.alternate_section("Section D") == "Section A"


def test_config_validation():
    with pytest.raises(ValueError):
        EngineConfig(sections=[SectionConfig("A"), SectionConfig("A")])
    with pytest.raises(ValueError):
        EngineConfig(sections=[SectionConfig("A", capacity=0)])
    with pytest.raises(ValueError):
        EngineConfig(sections=[SectionConfig("A"), SectionConfig("B")], reroute_map={"A": "Z"})
    with pytest.raises(ValueError):
        EngineConfig(sections=[SectionConfig("A"), SectionConfig("B")], reroute_map={"A": "A"})


def test_config_from_env(monkeypatch):
    monkeypatch.setenv("SECTIONS", "North, South, East")
    monkeypatch.setenv("SECTION_CAPACITY", "6")
    monkeypatch.setenv("SECTION_CAPACITIES", "East=12")
    monkeypatch.setenv("REROUTE_MAP", "North>South;South>East")

    config = EngineConfig.from_env()

    assert config.section_names == ["North", "South", "East"]
    assert config.capacity_of("North") == 6
    assert config.capacity_of("East") == 12
    assert config.alternate_section("South") == "East"
    assert config.alternate_section("East") is None


def test_keyed_lock_serializes_same_key():
    locks = KeyedLock()
    inside = []
    overlaps = []

    def worker():
        with locks.hold("12004"):
            inside.append(1)
            if len(inside) > 1:
                overlaps.append(len(inside))
            time.sleep(0.01)
            inside.pop()

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert overlaps == []
    assert locks.active_keys() == set()


def test_keyed_lock_different_keys_do_not_block():
    locks = KeyedLock()
    entered = threading.Event()

    with locks.hold("A"):
        def other():
            with locks.hold("B"):
                entered.set()

        t = threading.Thread(target=other)
        t.start()
        assert entered.wait(timeout=2)
        t.join()
