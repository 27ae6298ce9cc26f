from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from gardener.entities.hero import Hero, normalize_hero_id
from gardener.entities.pet import Pet
from gardener.entities.pool import LPPosition, Pool, RewardFund, TokenPrices


class RewardToken(str, Enum):
    PRIMARY = "primary"
    SECONDARY = "secondary"


@dataclass(frozen=True)
class ExpeditionRecord:
    """
    An expedition with its associated quest, as reported by the expedition API.
    """
    expedition_id: int
    quest_id: int
    hero_ids: Tuple[int, ...]
    level: int
    attempts: int
    quest_type: int
    iteration_time: Optional[int] = None
    remaining_iterations: Optional[int] = None


@dataclass(frozen=True)
class ActiveQuestRecord:
    """
    An active quest read from the quest core contract.
    """
    quest_id: int
    hero_ids: Tuple[int, ...]
    attempts: int
    quest_address: Optional[str] = None
    quest_type: Optional[int] = None
    start_time: Optional[int] = None
    complete_at_time: Optional[int] = None


@dataclass(frozen=True)
class RewardClaim:
    hero_id: int
    token: RewardToken


@dataclass(frozen=True)
class WalletEvidence:
    """
    Everything the pairing detector may look at for one wallet.
    """
    wallet: str
    heroes: Tuple[Hero, ...] = ()
    expeditions: Tuple[ExpeditionRecord, ...] = ()
    active_quests: Tuple[ActiveQuestRecord, ...] = ()
    reward_claims: Tuple[RewardClaim, ...] = ()

    def hero_by_id(self, hero_id: int) -> Optional[Hero]:
        hero_id = normalize_hero_id(hero_id)
        for hero in self.heroes:
            if hero.id == hero_id:
                return hero
        return None


@dataclass(frozen=True)
class GardenSnapshot:
    """
    The in-memory snapshot assembled by the collaborator layer for one engine invocation.
    """
    wallet: str
    heroes: Tuple[Hero, ...]
    pools: Tuple[Pool, ...]
    reward_fund: RewardFund
    pets: Tuple[Pet, ...] = ()
    positions: Tuple[LPPosition, ...] = ()
    prices: TokenPrices = field(default_factory=TokenPrices)
    expeditions: Tuple[ExpeditionRecord, ...] = ()
    active_quests: Tuple[ActiveQuestRecord, ...] = ()
    reward_claims: Tuple[RewardClaim, ...] = ()
    pets_fed_by_feeder: bool = False

    @property
    def evidence(self) -> WalletEvidence:
        return WalletEvidence(
            wallet=self.wallet,
            heroes=self.heroes,
            expeditions=self.expeditions,
            active_quests=self.active_quests,
            reward_claims=self.reward_claims,
        )

    def positions_by_pool(self) -> Dict[int, LPPosition]:
        return {position.pool_id: position for position in self.positions}

    def heroes_by_id(self) -> Dict[int, Hero]:
        return {hero.id: hero for hero in self.heroes}

    def pets_by_id(self) -> Dict[int, Pet]:
        return {pet.id: pet for pet in self.pets}

    def equipped_pets(self) -> List[Pet]:
        return [pet for pet in self.pets if pet.equipped_to is not None]
