from constants import DAY_LENGTH, NIGHT_LENGTH
from market.conditions import AgentCondition, ConditionQueue
from market.game_phase import GamePhase, PhaseKind, Season


def test_day_counts_up_then_flips_to_night_of_same_cycle():
    phase = GamePhase.day(cycle=3, counter=0)
    for _ in range(DAY_LENGTH - 1):
        phase = phase.next()
        assert phase.is_day
    assert phase == GamePhase.day(3, DAY_LENGTH - 1)
    assert phase.next() == GamePhase.night(3, 0)


def test_night_flips_to_next_cycle_day():
    phase = GamePhase.night(cycle=3, counter=NIGHT_LENGTH - 1)
    assert phase.next() == GamePhase.day(4, 0)


def test_full_cycle_length():
    phase = GamePhase.day()
    for _ in range(DAY_LENGTH + NIGHT_LENGTH):
        phase = phase.next()
    assert phase == GamePhase.day(1, 0)


def test_clock():
    assert GamePhase.day(0, 0).time() == (6, 0)
    assert GamePhase.day(0, 5).time() == (7, 15)
    assert GamePhase.night(0, 0).time() == (22, 0)
    assert GamePhase.night(0, 8).time() == (0, 0)


def test_calendar():
    assert GamePhase.day(0, 0).day_of_year() == 1
    assert GamePhase.day(0, 0).season() == Season.SPRING
    assert GamePhase.day(90, 0).season() == Season.SUMMER
    assert GamePhase.day(364, 0).season() == Season.WINTER
    assert GamePhase.day(365, 0).day_of_year() == 1
    assert GamePhase.day(365, 0).year() == GamePhase.day(0, 0).year() + 1
    assert "06:00" in GamePhase.day(0, 0).formatted()


def test_calendar_year_ends_in_winter():
    assert GamePhase.day(0, 0).year() == 2024
    for cycle in range(360, 365):
        assert GamePhase.day(cycle, 0).season() == Season.WINTER
        assert GamePhase.day(cycle, 0).year() == 2024
    assert GamePhase.day(365, 0).season() == Season.SPRING
    assert GamePhase.day(365, 0).year() == 2025


def test_phase_serialization():
    phase = GamePhase.night(7, 12)
    data = phase.to_dict()
    assert data == {'kind': PhaseKind.NIGHT.value, 'cycle': 7, 'counter': 12}
    assert GamePhase.from_dict(data) == phase


def test_condition_queue_expiry():
    queue = ConditionQueue()
    queue.add(AgentCondition.ULTRA_VISION, 10)
    assert queue.contains(AgentCondition.ULTRA_VISION, 9)
    assert not queue.contains(AgentCondition.ULTRA_VISION, 10)
    assert queue.purge_expired(9) == 0
    assert queue.purge_expired(10) == 1
    assert len(queue) == 0


def test_condition_queue_serialization():
    queue = ConditionQueue()
    queue.add(AgentCondition.ULTRA_VISION, 4)
    data = queue.to_list(lambda c: c.value)
    assert data == [[4, "ultra_vision"]]
    restored = ConditionQueue.from_list(data, AgentCondition)
    assert restored.entries() == [(4, AgentCondition.ULTRA_VISION)]
