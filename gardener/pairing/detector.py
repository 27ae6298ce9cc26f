"""
Pairing Detector

Reconstructs which heroes currently garden together, trying evidence sources from the most to
the least reliable and stopping at the first one that finds any pair:

1. Expedition API records        -> source "expedition_api"
2. On-chain active quests        -> source "active_quests"
3. Heroes' currentQuest grouping -> source "currentQuest"

Roles come from reward claim history where available, else from quest order.
"""
import logging
from typing import Dict, List, Optional, Protocol, Sequence

from gardener.constants import (
    DEFAULT_ATTEMPTS, EXPEDITION_GARDENING_LEVEL, GARDEN_POOLS, GARDEN_QUEST_TYPES, GARDENING_QUEST_ADDRESS,
    MIN_ATTEMPTS)
from gardener.entities.hero import Hero, normalize_hero_id
from gardener.entities.snapshot import ActiveQuestRecord, ExpeditionRecord, WalletEvidence
from gardener.pairing.quest_decoder import decode_current_quest
from gardener.pairing.roles import assign_roles, roles_from_reward_history
from gardener.results import Pairing, PairingReport, PairingSource
from gardener.utils.diagnostics import DiagnosticKind, Diagnostics

log = logging.getLogger(__name__)


class PairingStrategy(Protocol):
    source: PairingSource

    def detect(self, evidence: WalletEvidence) -> List[Pairing]:
        ...


def _positional_pairing(hero_ids: Sequence[int], **fields) -> Pairing:
    return Pairing(hero_ids=list(hero_ids), primary_hero_id=hero_ids[0], secondary_hero_id=hero_ids[1], **fields)


def _gardening_pool(hero: Optional[Hero]) -> Optional[int]:
    if hero is None:
        return None
    decoded = decode_current_quest(hero.current_quest)
    return decoded.pool_id if decoded.is_gardening else None


class ExpeditionPairingStrategy:
    source = PairingSource.EXPEDITION_API

    @staticmethod
    def is_gardening(expedition: ExpeditionRecord) -> bool:
        # training runs share the shape but spend 5 stamina
        return (expedition.level == EXPEDITION_GARDENING_LEVEL
                and len(expedition.hero_ids) == 2
                and expedition.quest_type in GARDEN_QUEST_TYPES
                and expedition.attempts >= MIN_ATTEMPTS)

    def detect(self, evidence: WalletEvidence) -> List[Pairing]:
        pairings = []
        seen = set()
        for expedition in evidence.expeditions:
            if not self.is_gardening(expedition):
                continue
            hero_ids = [normalize_hero_id(hero_id) for hero_id in expedition.hero_ids]
            repeated = seen.intersection(hero_ids)
            if repeated:
                log.warning(f"Expedition {expedition.expedition_id} repeats heroes {sorted(repeated)}, skipping")
                continue
            seen.update(hero_ids)
            pairings.append(_positional_pairing(
                hero_ids,
                pool_id=expedition.quest_type,
                attempts=expedition.attempts,
                iteration_time_seconds=expedition.iteration_time,
                source=self.source,
                quest_id=expedition.quest_id,
                expedition_id=expedition.expedition_id,
            ))
        return pairings


class ActiveQuestPairingStrategy:
    source = PairingSource.ACTIVE_QUESTS

    @staticmethod
    def resolve_pool(quest: ActiveQuestRecord, evidence: WalletEvidence) -> tuple[bool, Optional[int]]:
        """Return (is gardening, pool id) for an active quest."""
        member_pools = [_gardening_pool(evidence.hero_by_id(hero_id)) for hero_id in quest.hero_ids]
        member_pool = next((pool_id for pool_id in member_pools if pool_id is not None), None)

        # active quests may run in pool 0, expeditions never do
        if quest.quest_type in GARDEN_POOLS:
            return True, quest.quest_type
        if quest.quest_address and quest.quest_address.lower() == GARDENING_QUEST_ADDRESS:
            return True, member_pool
        return member_pool is not None, member_pool

    def detect(self, evidence: WalletEvidence) -> List[Pairing]:
        pairings = []
        seen = set()
        for quest in evidence.active_quests:
            hero_ids = [normalize_hero_id(hero_id) for hero_id in quest.hero_ids]
            if len(hero_ids) < 2 or seen.intersection(hero_ids):
                continue
            is_gardening, pool_id = self.resolve_pool(quest, evidence)
            if not is_gardening:
                continue
            seen.update(hero_ids)
            pairings.append(_positional_pairing(
                hero_ids[:2],
                pool_id=pool_id,
                attempts=quest.attempts,
                source=self.source,
                quest_id=quest.quest_id,
            ))
        return pairings


class CurrentQuestPairingStrategy:
    source = PairingSource.CURRENT_QUEST

    def __init__(self, default_attempts: int = DEFAULT_ATTEMPTS):
        self.default_attempts = default_attempts

    @staticmethod
    def group_by_pool(heroes: Sequence[Hero]) -> Dict[int, List[int]]:
        groups: Dict[int, List[int]] = {}
        for hero in heroes:
            pool_id = _gardening_pool(hero)
            if pool_id is not None:
                groups.setdefault(pool_id, []).append(hero.id)
        return groups

    def detect(self, evidence: WalletEvidence) -> List[Pairing]:
        pairings = []
        for pool_id, hero_ids in sorted(self.group_by_pool(evidence.heroes).items()):
            for first, second in zip(hero_ids[0::2], hero_ids[1::2]):
                pairings.append(_positional_pairing(
                    [first, second],
                    pool_id=pool_id,
                    attempts=self.default_attempts,
                    source=self.source,
                ))
        return pairings


class PairingDetector:
    """
    Runs the pairing strategies in order and assigns roles to the first non-empty result.
    """

    def __init__(self, strategies: Optional[List[PairingStrategy]] = None, query_reward_history: bool = True,
                 default_attempts: int = DEFAULT_ATTEMPTS):
        self.strategies = strategies or [
            ExpeditionPairingStrategy(),
            ActiveQuestPairingStrategy(),
            CurrentQuestPairingStrategy(default_attempts),
        ]
        self.query_reward_history = query_reward_history

    def detect(self, evidence: WalletEvidence) -> PairingReport:
        diagnostics = Diagnostics()
        source, pairings = None, []
        for strategy in self.strategies:
            pairings = strategy.detect(evidence)
            if pairings:
                source = strategy.source
                break
            log.debug(f"No pairs from {strategy.source.value}, trying next source")

        if not evidence.expeditions and not evidence.active_quests:
            diagnostics.add(
                DiagnosticKind.UPSTREAM_UNAVAILABLE,
                "No expedition or active quest evidence, pairs inferred from currentQuest only",
                subject=evidence.wallet)

        history = roles_from_reward_history(evidence.reward_claims) if self.query_reward_history else None
        with_roles = []
        for pairing in pairings:
            primary, secondary, role_source = assign_roles(pairing.hero_ids, history)
            with_roles.append(pairing.model_copy(update={
                "primary_hero_id": primary,
                "secondary_hero_id": secondary,
                "role_source": role_source,
            }))

        paired = {hero_id for pairing in with_roles for hero_id in pairing.hero_ids}
        unpaired = sorted(
            hero.id for hero in evidence.heroes
            if _gardening_pool(hero) is not None and hero.id not in paired)

        report = PairingReport(
            wallet=evidence.wallet,
            source=source,
            pairings=with_roles,
            unpaired_hero_ids=unpaired,
            diagnostics=diagnostics.to_list(),
        )
        log.info(f"Detected {len(with_roles)} pairs via {source.value if source else 'no source'} "
                 f"({report.verified_roles} verified roles, {report.heuristic_roles} heuristic), "
                 f"{len(unpaired)} unpaired gardening heroes")
        return report
