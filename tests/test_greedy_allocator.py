import random

import pytest

from gardener.entities.hero import Hero
from gardener.entities.pet import Pet, PetBonusType
from gardener.entities.pool import LPPosition, Pool
from gardener.entities.snapshot import RewardToken
from gardener.models.attempt_search import OptimalAttemptSearch
from gardener.models.yield_factor import hero_factor
from gardener.results import PairingSource
from gardener.strategies.candidates import build_candidates
from gardener.strategies.greedy_allocator import ClaimedSet, GardenParams, GreedyPoolAllocator
from gardener.utils.diagnostics import DiagnosticKind
from gardener.utils.validate_allocation import validate_allocation


def test_end_to_end_per_run_yield(make_snapshot, six_heroes):
    allocator = GreedyPoolAllocator(GardenParams(FIXED_ATTEMPTS=25))
    portfolio = allocator.allocate(make_snapshot(six_heroes))

    assert len(portfolio.pools) == 1
    pool = portfolio.pools[0]
    assert pool.lp_share == pytest.approx(0.01)
    assert len(pool.pairs) == 3
    heroes = {hero.id: hero for hero in six_heroes}
    for pair in pool.pairs:
        assert pair.pairing.attempts == 25
        for slot in pair.slots:
            expected = 1_000_000 * 0.2 * 0.01 * hero_factor(heroes[slot.hero_id]) * 25 / 43200
            assert round(slot.primary_per_run, 4) == round(expected, 4)
            assert slot.secondary_per_run == 0


def test_all_heroes_assigned_once(make_snapshot, six_heroes):
    portfolio = GreedyPoolAllocator().allocate(make_snapshot(six_heroes))
    assigned = [slot.hero_id for pool in portfolio.pools for pair in pool.pairs for slot in pair.slots]
    assert sorted(assigned) == [1, 2, 3, 4, 5, 6]
    assert portfolio.heroes_used == 6
    assert portfolio.unassigned_hero_ids == []


@pytest.mark.parametrize("seed", [1, 7, 42, 2024])
def test_randomized_allocation_never_reuses_heroes_or_pets(make_snapshot, seed):
    rng = random.Random(seed)
    heroes = [
        Hero(id=i, wisdom=rng.randint(5, 80), vitality=rng.randint(5, 80), gardening=rng.randint(0, 250),
             level=rng.randint(1, 100), has_gardening_gene=rng.random() < 0.3, has_fast_regen=rng.random() < 0.2)
        for i in range(1, rng.randint(5, 40))
    ]
    pets = [
        Pet(id=100 + i, bonus_type=rng.choice(list(PetBonusType)), bonus_scalar=rng.randint(0, 60),
            is_fed=rng.random() < 0.8)
        for i in range(rng.randint(0, 15))
    ]
    pools = [
        Pool(id=pool_id, allocation_share=rng.uniform(0.01, 0.3), total_staked_raw=rng.uniform(1e5, 1e7),
             total_value_locked=rng.uniform(1e5, 5e6))
        for pool_id in range(1, rng.randint(2, 8))
    ]
    positions = [LPPosition(pool_id=pool.id, staked_raw=pool.total_staked_raw * rng.uniform(0.001, 0.05))
                 for pool in pools]
    params = GardenParams()
    portfolio = GreedyPoolAllocator(params).allocate(
        make_snapshot(heroes, pools=pools, positions=positions, pets=pets))

    hero_ids = [slot.hero_id for pool in portfolio.pools for pair in pool.pairs for slot in pair.slots]
    pet_ids = [slot.pet_id for pool in portfolio.pools for pair in pool.pairs for slot in pair.slots
               if slot.pet_id is not None]
    assert len(hero_ids) == len(set(hero_ids))
    assert len(pet_ids) == len(set(pet_ids))
    assert all(len(pool.pairs) <= params.PAIRS_PER_POOL for pool in portfolio.pools)
    assert set(hero_ids).isdisjoint(portfolio.unassigned_hero_ids)
    assert validate_allocation(portfolio, params.PAIRS_PER_POOL).result == 'pass'


def test_allocation_is_idempotent(make_snapshot, six_heroes):
    allocator = GreedyPoolAllocator()
    snapshot = make_snapshot(six_heroes, pets=[Pet(id=9, bonus_type=PetBonusType.POWER_SURGE, bonus_scalar=20)])
    assert allocator.allocate(snapshot).model_dump() == allocator.allocate(snapshot).model_dump()


def test_pet_is_claimed_once(make_snapshot, six_heroes):
    pet = Pet(id=9, bonus_type=PetBonusType.POWER_SURGE, bonus_scalar=50)
    portfolio = GreedyPoolAllocator().allocate(make_snapshot(six_heroes[:4], pets=[pet]))
    slots = [slot for pool in portfolio.pools for pair in pool.pairs for slot in pair.slots]
    assert [slot.pet_id for slot in slots if slot.pet_id is not None] == [9]
    assert portfolio.pets_used == 1


def test_degenerate_pool_is_excluded(make_snapshot, six_heroes):
    pools = [
        Pool(id=2, allocation_share=0.2, total_staked_raw=1_000_000, total_value_locked=500_000),
        Pool(id=13, allocation_share=0.5, total_staked_raw=0, total_value_locked=0),
    ]
    positions = [LPPosition(pool_id=2, staked_raw=10_000), LPPosition(pool_id=13, staked_raw=100)]
    portfolio = GreedyPoolAllocator().allocate(make_snapshot(six_heroes, pools=pools, positions=positions))
    assert [pool.pool_id for pool in portfolio.pools] == [2]
    degenerate = [d for d in portfolio.diagnostics if d.kind == DiagnosticKind.DEGENERATE_POOL]
    assert [d.subject for d in degenerate] == ["13"]


def test_single_hero_is_insufficient_inventory(make_snapshot):
    portfolio = GreedyPoolAllocator().allocate(make_snapshot([Hero(id=1, wisdom=10, vitality=10)]))
    assert portfolio.pools == []
    assert portfolio.unassigned_hero_ids == [1]
    assert [d.kind for d in portfolio.diagnostics] == [DiagnosticKind.INSUFFICIENT_INVENTORY]


def test_pool_cap_leaves_extra_heroes_unassigned(make_snapshot, six_heroes):
    heroes = six_heroes + [Hero(id=7, wisdom=1, vitality=1, gardening=0, level=1)]
    portfolio = GreedyPoolAllocator().allocate(make_snapshot(heroes))
    assert len(portfolio.pools[0].pairs) == 3
    assert portfolio.unassigned_hero_ids == [7]


def test_pool_without_position_needs_what_if(make_snapshot, six_heroes):
    snapshot = make_snapshot(six_heroes, positions=[])
    assert GreedyPoolAllocator().allocate(snapshot).pools == []

    portfolio = GreedyPoolAllocator(GardenParams(WHAT_IF=True)).allocate(snapshot)
    assert portfolio.pools[0].what_if
    assert portfolio.pools[0].lp_share == pytest.approx(0.0001)


def test_best_heroes_go_to_best_pool(make_snapshot):
    heroes = [
        Hero(id=1, wisdom=80, vitality=80, gardening=90),
        Hero(id=2, wisdom=70, vitality=70, gardening=80),
        Hero(id=3, wisdom=10, vitality=10, gardening=10),
        Hero(id=4, wisdom=5, vitality=5, gardening=5),
    ]
    pools = [
        Pool(id=1, allocation_share=0.1, total_staked_raw=1_000_000, total_value_locked=500_000),
        Pool(id=2, allocation_share=0.3, total_staked_raw=1_000_000, total_value_locked=500_000),
    ]
    portfolio = GreedyPoolAllocator(GardenParams(PAIRS_PER_POOL=1)).allocate(make_snapshot(heroes, pools=pools))
    by_pool = {pool.pool_id: set(pool.pairs[0].pairing.hero_ids) for pool in portfolio.pools}
    assert by_pool == {2: {1, 2}, 1: {3, 4}}
    assert [pool.pool_id for pool in portfolio.pools] == [2, 1]


def test_higher_yield_hero_takes_primary_role(make_snapshot):
    heroes = [Hero(id=1, wisdom=10, vitality=10), Hero(id=2, wisdom=80, vitality=80, gardening=90)]
    pair = GreedyPoolAllocator().allocate(make_snapshot(heroes)).pools[0].pairs[0]
    assert pair.pairing.primary_hero_id == 2
    assert pair.pairing.secondary_hero_id == 1
    assert pair.pairing.source == PairingSource.OPTIMIZER
    roles = {slot.hero_id: slot.role for slot in pair.slots}
    assert roles == {2: RewardToken.PRIMARY, 1: RewardToken.SECONDARY}


def test_pair_runs_bounded_by_slower_hero(make_snapshot):
    heroes = [Hero(id=1, wisdom=50, vitality=50, level=100, has_fast_regen=True), Hero(id=2, wisdom=40, vitality=40)]
    pair = GreedyPoolAllocator(GardenParams(FIXED_ATTEMPTS=25)).allocate(make_snapshot(heroes)).pools[0].pairs[0]
    assert pair.runs_per_day == pytest.approx(2.88)
    assert pair.gating == "regen"


def test_measured_iteration_time_overrides_pair_runs(make_snapshot):
    heroes = [Hero(id=1, wisdom=50, vitality=50), Hero(id=2, wisdom=40, vitality=40)]
    portfolio = GreedyPoolAllocator().allocate(make_snapshot(heroes), {frozenset({1, 2}): (25, 3600)})
    pair = portfolio.pools[0].pairs[0]
    assert pair.gating == "measured"
    assert pair.runs_per_day == pytest.approx(24)
    assert pair.pairing.iteration_time_seconds == 3600
    assert pair.pairing.attempts == 25


def test_claimed_set_is_immutable():
    candidate = build_candidates([Hero(id=1)], [], OptimalAttemptSearch())[0]
    empty = ClaimedSet()
    claimed = empty.claim(candidate)
    assert empty.hero_ids == frozenset()
    assert claimed.hero_ids == frozenset({1})
    assert not claimed.is_available(candidate)


def test_pool_is_filled_by_yield_in_that_pool(make_snapshot):
    # gene carriers rank higher globally, but hero 7's skill tier halves its divisor
    heroes = [Hero(id=i, wisdom=100, vitality=100, gardening=90, has_gardening_gene=True) for i in range(1, 7)]
    heroes.append(Hero(id=7, wisdom=100, vitality=100, gardening=100))
    portfolio = GreedyPoolAllocator().allocate(make_snapshot(heroes))

    pairs = portfolio.pools[0].pairs
    assert [pair.pairing.hero_ids for pair in pairs] == [[7, 1], [2, 3], [4, 5]]
    assert portfolio.unassigned_hero_ids == [6]
    assert pairs[0].pairing.primary_hero_id == 7


def test_within_pool_order_follows_divisor_not_adjusted_score(make_snapshot):
    heroes = [
        Hero(id=1, wisdom=60, vitality=60, gardening=50, has_gardening_gene=True),
        Hero(id=2, wisdom=55, vitality=55, gardening=100),
        Hero(id=3, wisdom=30, vitality=30),
    ]
    candidates = build_candidates(heroes, [], OptimalAttemptSearch())
    assert [candidate.hero_id for candidate in candidates] == [1, 2, 3]

    portfolio = GreedyPoolAllocator(GardenParams(PAIRS_PER_POOL=1)).allocate(make_snapshot(heroes))
    assert portfolio.pools[0].pairs[0].pairing.hero_ids == [2, 1]
    assert portfolio.unassigned_hero_ids == [3]
