import pytest

from gardener.constants import GARDENING_QUEST_ADDRESS
from gardener.entities.hero import Hero
from gardener.entities.snapshot import (
    ActiveQuestRecord, ExpeditionRecord, RewardClaim, RewardToken, WalletEvidence)
from gardener.pairing.detector import (
    ActiveQuestPairingStrategy, CurrentQuestPairingStrategy, ExpeditionPairingStrategy, PairingDetector)
from gardener.pairing.quest_decoder import decode_current_quest
from gardener.pairing.roles import assign_roles, roles_from_reward_history
from gardener.results import PairingSource, RoleSource

GARDEN_POOL_2 = "0x01050a0200000000000000000000000000000000"
GARDEN_POOL_10 = "0x01050a0a00000000000000000000000000000000"


def _expedition(hero_ids=(1, 2), level=10, attempts=25, quest_type=2, iteration_time=18000):
    return ExpeditionRecord(expedition_id=1, quest_id=11, hero_ids=hero_ids, level=level, attempts=attempts,
                            quest_type=quest_type, iteration_time=iteration_time)


@pytest.mark.parametrize("current_quest, quest_type, pool_id", [
    (GARDEN_POOL_2, "gardening", 2),
    (GARDEN_POOL_10, "gardening", 10),
    ("0x0106000000000000000000000000000000000000", "training", None),
    ("0x0105020000000000000000000000000000000000", "foraging", None),
    ("0x0105030000000000000000000000000000000000", "fishing", None),
    ("0x0105010000000000000000000000000000000000", "mining", None),
    ("0x0105090000000000000000000000000000000000", "expedition", None),
    ("0x0107000000000000000000000000000000000000", "other", None),
    ("0x0000000000000000000000000000000000000000", "none", None),
    (None, "none", None),
    ("0x0105", "unknown", None),
])
def test_decode_current_quest(current_quest, quest_type, pool_id):
    decoded = decode_current_quest(current_quest)
    assert decoded.quest_type == quest_type
    assert decoded.pool_id == pool_id
    assert decoded.is_gardening == (quest_type == "gardening")


def test_expedition_classification():
    strategy = ExpeditionPairingStrategy()
    assert strategy.is_gardening(_expedition())
    assert not strategy.is_gardening(_expedition(attempts=5))
    assert not strategy.is_gardening(_expedition(level=1))
    assert not strategy.is_gardening(_expedition(hero_ids=(1, 2, 3)))
    assert not strategy.is_gardening(_expedition(quest_type=0))


def test_expedition_tier_normalizes_ids_and_keeps_iteration_time():
    evidence = WalletEvidence(wallet="0x1", expeditions=(_expedition(hero_ids=(2_000_000_000_001, 2)),))
    pairing = ExpeditionPairingStrategy().detect(evidence)[0]
    assert pairing.hero_ids == [1, 2]
    assert pairing.pool_id == 2
    assert pairing.iteration_time_seconds == 18000
    assert pairing.source == PairingSource.EXPEDITION_API


def test_falls_back_to_active_quests_when_no_expeditions():
    evidence = WalletEvidence(
        wallet="0x1",
        heroes=(Hero(id=1), Hero(id=2)),
        active_quests=(ActiveQuestRecord(quest_id=5, hero_ids=(1, 2), attempts=20, quest_type=4),),
    )
    report = PairingDetector().detect(evidence)
    assert report.source == PairingSource.ACTIVE_QUESTS
    assert report.pairings[0].pool_id == 4
    assert report.pairings[0].attempts == 20


def test_active_quest_pool_from_current_quest_when_address_matches():
    evidence = WalletEvidence(
        wallet="0x1",
        heroes=(Hero(id=1, current_quest=GARDEN_POOL_10), Hero(id=2)),
        active_quests=(
            ActiveQuestRecord(quest_id=5, hero_ids=(1, 2), attempts=20, quest_address=GARDENING_QUEST_ADDRESS.upper()),
        ),
    )
    pairings = ActiveQuestPairingStrategy().detect(evidence)
    assert [p.pool_id for p in pairings] == [10]


def test_active_quest_skips_single_hero_and_non_gardening_quests():
    evidence = WalletEvidence(
        wallet="0x1",
        heroes=(Hero(id=1), Hero(id=2), Hero(id=3)),
        active_quests=(
            ActiveQuestRecord(quest_id=5, hero_ids=(3,), attempts=20, quest_type=4),
            ActiveQuestRecord(quest_id=6, hero_ids=(1, 2), attempts=5, quest_address="0xabc"),
        ),
    )
    assert ActiveQuestPairingStrategy().detect(evidence) == []


def test_current_quest_tier_pairs_by_pool_and_reports_leftover():
    heroes = (
        Hero(id=1, current_quest=GARDEN_POOL_2),
        Hero(id=2, current_quest=GARDEN_POOL_2),
        Hero(id=3, current_quest=GARDEN_POOL_2),
        Hero(id=4, current_quest="0x0106000000000000000000000000000000000000"),
    )
    report = PairingDetector().detect(WalletEvidence(wallet="0x1", heroes=heroes))
    assert report.source == PairingSource.CURRENT_QUEST
    assert [p.hero_ids for p in report.pairings] == [[1, 2]]
    assert report.pairings[0].attempts == 25
    assert report.unpaired_hero_ids == [3]
    assert report.pools == {2: report.pairings}


def test_current_quest_default_attempts_is_configurable():
    heroes = (Hero(id=1, current_quest=GARDEN_POOL_2), Hero(id=2, current_quest=GARDEN_POOL_2))
    pairings = CurrentQuestPairingStrategy(default_attempts=30).detect(WalletEvidence(wallet="0x1", heroes=heroes))
    assert pairings[0].attempts == 30


def test_expeditions_win_over_other_tiers():
    evidence = WalletEvidence(
        wallet="0x1",
        heroes=(Hero(id=1, current_quest=GARDEN_POOL_2), Hero(id=2, current_quest=GARDEN_POOL_2)),
        expeditions=(_expedition(),),
        active_quests=(ActiveQuestRecord(quest_id=5, hero_ids=(1, 2), attempts=20, quest_type=4),),
    )
    report = PairingDetector().detect(evidence)
    assert report.source == PairingSource.EXPEDITION_API
    assert len(report.pairings) == 1
    assert report.unpaired_hero_ids == []
    assert report.diagnostics == []


def test_no_evidence_reports_upstream_unavailable():
    report = PairingDetector().detect(WalletEvidence(wallet="0x1", heroes=(Hero(id=1),)))
    assert report.source is None
    assert report.pairings == []
    assert report.diagnostics[0].kind.value == "upstream_unavailable"


def test_reward_history_majority():
    claims = [
        RewardClaim(hero_id=1, token=RewardToken.PRIMARY),
        RewardClaim(hero_id=1, token=RewardToken.PRIMARY),
        RewardClaim(hero_id=1, token=RewardToken.SECONDARY),
        RewardClaim(hero_id=2, token=RewardToken.SECONDARY),
        RewardClaim(hero_id=3, token=RewardToken.PRIMARY),
        RewardClaim(hero_id=3, token=RewardToken.SECONDARY),
        RewardClaim(hero_id=1_000_000_000_004, token=RewardToken.SECONDARY),
    ]
    assert roles_from_reward_history(claims) == {
        1: RewardToken.PRIMARY,
        2: RewardToken.SECONDARY,
        4: RewardToken.SECONDARY,
    }


@pytest.mark.parametrize("history, expected", [
    ({1: RewardToken.SECONDARY, 2: RewardToken.PRIMARY}, (2, 1, RoleSource.REWARD_HISTORY_BOTH)),
    ({1: RewardToken.PRIMARY, 2: RewardToken.SECONDARY}, (1, 2, RoleSource.REWARD_HISTORY_BOTH)),
    ({1: RewardToken.SECONDARY}, (2, 1, RoleSource.REWARD_HISTORY_HERO1)),
    ({2: RewardToken.SECONDARY}, (1, 2, RoleSource.REWARD_HISTORY_HERO2)),
    ({2: RewardToken.PRIMARY}, (2, 1, RoleSource.REWARD_HISTORY_HERO2)),
    ({1: RewardToken.PRIMARY, 2: RewardToken.PRIMARY}, (1, 2, RoleSource.POSITION_HEURISTIC)),
    ({}, (1, 2, RoleSource.POSITION_HEURISTIC)),
    (None, (1, 2, RoleSource.POSITION_HEURISTIC)),
])
def test_assign_roles(history, expected):
    assert assign_roles([1, 2], history) == expected


def test_report_counts_verified_and_heuristic_roles():
    evidence = WalletEvidence(
        wallet="0x1",
        expeditions=(_expedition(hero_ids=(1, 2)), _expedition(hero_ids=(3, 4))),
        reward_claims=(RewardClaim(hero_id=2, token=RewardToken.PRIMARY),),
    )
    report = PairingDetector().detect(evidence)
    assert report.verified_roles == 1
    assert report.heuristic_roles == 1
    assert report.pairings[0].primary_hero_id == 2
    assert report.pairings[0].role_source == RoleSource.REWARD_HISTORY_HERO2


def test_reward_history_can_be_disabled():
    evidence = WalletEvidence(
        wallet="0x1",
        expeditions=(_expedition(hero_ids=(1, 2)),),
        reward_claims=(RewardClaim(hero_id=2, token=RewardToken.PRIMARY),),
    )
    report = PairingDetector(query_reward_history=False).detect(evidence)
    assert report.pairings[0].primary_hero_id == 1
    assert report.pairings[0].role_source == RoleSource.POSITION_HEURISTIC


def test_active_quest_in_pool_zero_is_gardening():
    evidence = WalletEvidence(
        wallet="0x1",
        heroes=(Hero(id=1), Hero(id=2)),
        active_quests=(ActiveQuestRecord(quest_id=5, hero_ids=(1, 2), attempts=25, quest_type=0),),
    )
    report = PairingDetector().detect(evidence)
    assert report.source == PairingSource.ACTIVE_QUESTS
    assert report.pairings[0].pool_id == 0
    assert not ExpeditionPairingStrategy().is_gardening(_expedition(quest_type=0))


def test_expedition_tier_skips_repeated_heroes():
    evidence = WalletEvidence(
        wallet="0x1",
        expeditions=(_expedition(hero_ids=(1, 2)), _expedition(hero_ids=(2, 3)), _expedition(hero_ids=(4, 5))),
    )
    pairings = ExpeditionPairingStrategy().detect(evidence)
    assert [pairing.hero_ids for pairing in pairings] == [[1, 2], [4, 5]]
