from pathlib import Path
from typing import Dict, Optional, Tuple

import pandas as pd

from gardener.entities.hero import Hero, normalize_hero_id
from gardener.entities.pet import Pet, PetBonusType
from gardener.entities.pool import LPPosition, Pool, RewardFund, TokenPrices
from gardener.entities.snapshot import (
    ActiveQuestRecord, ExpeditionRecord, GardenSnapshot, RewardClaim, RewardToken)
from planner.loader.snapshot_loader import SnapshotLoader


def _value(value, default=None):
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return default
    return value


def _int(value, default: Optional[int] = None) -> Optional[int]:
    value = _value(value)
    return default if value is None else int(value)


def _float(value, default: float = 0.0) -> float:
    value = _value(value)
    return default if value is None else float(value)


def _hero_ids(value) -> Tuple[int, ...]:
    # hero ids are stored as "id1;id2"
    value = _value(value, "")
    return tuple(normalize_hero_id(int(float(part))) for part in str(value).split(";") if part.strip())


def build_heroes(df: pd.DataFrame) -> Tuple[Hero, ...]:
    return tuple(
        Hero(
            id=normalize_hero_id(int(row['id'])),
            wisdom=_int(row['wisdom'], 0),
            vitality=_int(row['vitality'], 0),
            gardening=_int(row['gardening'], 0),
            level=_int(row['level'], 1),
            has_gardening_gene=bool(row['has_gardening_gene']),
            has_fast_regen=bool(row['has_fast_regen']),
            current_quest=_value(row['current_quest']),
        )
        for _, row in df.iterrows()
    )


def build_pets(df: pd.DataFrame) -> Tuple[Pet, ...]:
    pets = []
    for _, row in df.iterrows():
        bonus_type = _value(row.get('bonus_type'))
        if bonus_type is not None:
            bonus_type = PetBonusType(bonus_type)
        else:
            bonus_type = PetBonusType.from_bonus_id(_int(row['bonus_id'], 0), _int(row['egg_type'], 2))
        equipped_to = _int(row['equipped_to'])
        pets.append(Pet(
            id=int(row['id']),
            bonus_type=bonus_type,
            bonus_scalar=_float(row['bonus_scalar']),
            is_fed=bool(row['is_fed']),
            equipped_to=None if equipped_to is None else normalize_hero_id(equipped_to),
        ))
    return tuple(pets)


def build_pools(df: pd.DataFrame) -> Tuple[Pool, ...]:
    return tuple(
        Pool(
            id=int(row['id']),
            allocation_share=_float(row['allocation_share']),
            total_staked_raw=_float(row['total_staked_raw']),
            total_value_locked=_float(row['total_value_locked']),
            tokens=tuple(token for token in (_value(row['token0']), _value(row['token1'])) if token),
            name=_value(row['name']),
        )
        for _, row in df.iterrows()
    )


def build_expeditions(df: pd.DataFrame) -> Tuple[ExpeditionRecord, ...]:
    return tuple(
        ExpeditionRecord(
            expedition_id=int(row['expedition_id']),
            quest_id=int(row['quest_id']),
            hero_ids=_hero_ids(row['hero_ids']),
            level=_int(row['level'], 0),
            attempts=_int(row['attempts'], 0),
            quest_type=_int(row['quest_type'], -1),
            iteration_time=_int(row['iteration_time']),
            remaining_iterations=_int(row['remaining_iterations']),
        )
        for _, row in df.iterrows()
    )


def build_active_quests(df: pd.DataFrame) -> Tuple[ActiveQuestRecord, ...]:
    return tuple(
        ActiveQuestRecord(
            quest_id=int(row['quest_id']),
            hero_ids=_hero_ids(row['hero_ids']),
            attempts=_int(row['attempts'], 0),
            quest_address=_value(row['quest_address']),
            quest_type=_int(row['quest_type']),
            start_time=_int(row['start_time']),
            complete_at_time=_int(row['complete_at_time']),
        )
        for _, row in df.iterrows()
    )


def build_snapshot_from_frames(frames: Dict[str, pd.DataFrame], wallet: str | None = None) -> GardenSnapshot:
    """
    Build the engine snapshot from the loaded snapshot frames.

    Structurally invalid rows raise the entity exceptions.
    """
    wallet_df = frames['wallet']
    fund = frames['reward_fund'].iloc[0]
    prices_df = frames['prices']
    if wallet is None:
        wallet = str(wallet_df.iloc[0]['address']) if not wallet_df.empty else 'unknown'
    feeder = bool(wallet_df.iloc[0]['gravity_feeder']) if not wallet_df.empty else False

    return GardenSnapshot(
        wallet=wallet,
        heroes=build_heroes(frames['heroes']),
        pools=build_pools(frames['pools']),
        reward_fund=RewardFund(
            primary_balance=_float(fund['primary_balance']),
            secondary_balance=_float(fund['secondary_balance']),
        ),
        pets=build_pets(frames['pets']),
        positions=tuple(
            LPPosition(pool_id=int(row['pool_id']), staked_raw=_float(row['staked_raw']))
            for _, row in frames['positions'].iterrows()
        ),
        prices=TokenPrices() if prices_df.empty else TokenPrices(
            primary_usd=_float(prices_df.iloc[0]['primary_usd']),
            secondary_usd=_float(prices_df.iloc[0]['secondary_usd']),
        ),
        expeditions=build_expeditions(frames['expeditions']),
        active_quests=build_active_quests(frames['active_quests']),
        reward_claims=tuple(
            RewardClaim(hero_id=normalize_hero_id(int(row['hero_id'])), token=RewardToken(str(row['token']).lower()))
            for _, row in frames['reward_claims'].iterrows()
        ),
        pets_fed_by_feeder=feeder,
    )


def build_snapshot(data_path: str | Path, wallet: str | None = None) -> GardenSnapshot:
    frames = SnapshotLoader(data_path).read()
    return build_snapshot_from_frames(frames, wallet)
