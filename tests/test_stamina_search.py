import pytest

from gardener.entities.hero import Hero
from gardener.models.attempt_search import OptimalAttemptSearch, linear_per_run, pair_stamina_profile
from gardener.models.stamina import (
    iteration_timing, quest_minutes_per_stamina, regen_seconds_per_stamina, stamina_per_day, suggest_fast_regen)
from gardener.models.yield_factor import hero_factor


def test_base_regeneration():
    assert stamina_per_day(1) == pytest.approx(72)
    assert regen_seconds_per_stamina(50, fast_regen=False) == 1200


def test_fast_regeneration_scales_with_level_down_to_floor():
    assert regen_seconds_per_stamina(20, fast_regen=True) == 1140
    assert regen_seconds_per_stamina(400, fast_regen=True) == 300
    assert stamina_per_day(400, fast_regen=True) == pytest.approx(288)


def test_quest_minutes_per_stamina():
    assert quest_minutes_per_stamina(True) == 10
    assert quest_minutes_per_stamina(False) == 12


def test_runs_per_day_non_increasing_in_attempts():
    runs = [iteration_timing(a, 12, 72).runs_per_day for a in range(10, 36)]
    assert all(later <= earlier for earlier, later in zip(runs, runs[1:]))


def test_runs_per_day_strictly_decreasing_when_quest_gated():
    timings = [iteration_timing(a, 12, 288) for a in range(10, 36)]
    assert all(timing.gating == "quest" for timing in timings)
    runs = [timing.runs_per_day for timing in timings]
    assert all(later < earlier for earlier, later in zip(runs, runs[1:]))


def test_regen_gated_timing():
    timing = iteration_timing(25, 12, 72)
    assert timing.gating == "regen"
    assert timing.iteration_minutes == pytest.approx(500)
    assert timing.runs_per_day == pytest.approx(2.88)


def test_search_keeps_smallest_attempts_on_flat_objective():
    search = OptimalAttemptSearch()
    best = search.search(linear_per_run(0.2), 72, 12)
    assert best.attempts == 10
    assert best.runs_per_day == pytest.approx(1440 / 200)
    assert best.primary_per_day == pytest.approx(0.2 * 10 * 1440 / 200)


def test_search_finds_maximum_of_increasing_objective():
    best = OptimalAttemptSearch().search(lambda attempts: (attempts ** 2, 0.0), 72, 12)
    assert best.attempts == 35


def test_fixed_range_evaluates_single_value():
    best = OptimalAttemptSearch(25, 25).search(linear_per_run(0.2), 72, 12)
    assert best.attempts == 25
    assert best.gating == "regen"


def test_measured_iteration_overrides_model():
    best = OptimalAttemptSearch().search(linear_per_run(0.2), 72, 12, measured_iteration_seconds=3600)
    assert best.gating == "measured"
    assert best.runs_per_day == pytest.approx(24)
    assert best.iteration_minutes == pytest.approx(60)


def test_invalid_range_is_rejected():
    with pytest.raises(ValueError):
        OptimalAttemptSearch(20, 10)
    with pytest.raises(ValueError):
        OptimalAttemptSearch(0, 10)


def test_pair_profile_uses_slower_member_and_shared_gene():
    fast = Hero(id=1, level=100, has_fast_regen=True, has_gardening_gene=True)
    slow = Hero(id=2, level=5, has_gardening_gene=False)
    stam_per_day, quest_minutes = pair_stamina_profile([fast, slow])
    assert stam_per_day == pytest.approx(72)
    assert quest_minutes == 12
    both_gene = pair_stamina_profile([fast, Hero(id=3, has_gardening_gene=True)])
    assert both_gene[1] == 10


def test_fast_regen_suggestions():
    heroes = [
        Hero(id=1, wisdom=50, vitality=50, level=100),
        Hero(id=2, wisdom=50, vitality=50, level=20),
        Hero(id=3, wisdom=10, vitality=10, level=100, has_fast_regen=True),
    ]
    factors = {hero.id: hero_factor(hero) for hero in heroes}
    suggestions = suggest_fast_regen(heroes, factors, attempts=25)
    assert [s.hero_id for s in suggestions] == [1]
    assert suggestions[0].improvement_pct == pytest.approx(33.3)
    assert suggestions[0].projected_runs_per_day == pytest.approx(3.84)
