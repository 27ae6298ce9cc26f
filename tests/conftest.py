import pytest

from gardener.entities.hero import Hero
from gardener.entities.pool import LPPosition, Pool, RewardFund, TokenPrices
from gardener.entities.snapshot import GardenSnapshot


def _snapshot(
        heroes,
        pools=None,
        positions=None,
        reward_fund=None,
        pets=(),
        prices=None,
        **evidence,
    ) -> GardenSnapshot:
    if pools is None:
        pools = (Pool(id=2, allocation_share=0.2, total_staked_raw=1_000_000, total_value_locked=500_000),)
    if positions is None:
        positions = tuple(LPPosition(pool_id=pool.id, staked_raw=pool.total_staked_raw * 0.01) for pool in pools)
    return GardenSnapshot(
        wallet="0xwallet",
        heroes=tuple(heroes),
        pools=tuple(pools),
        reward_fund=reward_fund or RewardFund(primary_balance=1_000_000, secondary_balance=0),
        pets=tuple(pets),
        positions=tuple(positions),
        prices=prices or TokenPrices(),
        **evidence,
    )


@pytest.fixture
def make_snapshot():
    return _snapshot


@pytest.fixture
def six_heroes():
    return [
        Hero(id=1, wisdom=50, vitality=50, gardening=0, level=5),
        Hero(id=2, wisdom=40, vitality=35, gardening=60, level=10),
        Hero(id=3, wisdom=30, vitality=30, gardening=90, level=12),
        Hero(id=4, wisdom=25, vitality=45, gardening=20, level=3),
        Hero(id=5, wisdom=60, vitality=20, gardening=80, level=7),
        Hero(id=6, wisdom=33, vitality=33, gardening=33, level=1),
    ]
