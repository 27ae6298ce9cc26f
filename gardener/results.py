from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from gardener.entities.snapshot import RewardToken
from gardener.utils.diagnostics import Diagnostic


class PairingSource(str, Enum):
    EXPEDITION_API = "expedition_api"
    ACTIVE_QUESTS = "active_quests"
    CURRENT_QUEST = "currentQuest"
    OPTIMIZER = "optimizer"

    @property
    def confidence(self) -> str:
        return {
            PairingSource.EXPEDITION_API: "verified",
            PairingSource.ACTIVE_QUESTS: "heuristic",
            PairingSource.CURRENT_QUEST: "fallback",
            PairingSource.OPTIMIZER: "projected",
        }[self]


class RoleSource(str, Enum):
    REWARD_HISTORY_BOTH = "reward_history_both"
    REWARD_HISTORY_HERO1 = "reward_history_hero1"
    REWARD_HISTORY_HERO2 = "reward_history_hero2"
    POSITION_HEURISTIC = "position_heuristic"
    YIELD_RANK = "yield_rank"

    @property
    def is_verified(self) -> bool:
        return self.value.startswith("reward_history")


class Pairing(BaseModel):
    hero_ids: List[int] = Field(description="Hero ids in quest order")
    primary_hero_id: int = Field(description="Hero earning the primary reward token")
    secondary_hero_id: int = Field(description="Hero earning the secondary reward token")
    pool_id: Optional[int] = Field(default=None, description="Garden pool id, None when it could not be resolved")
    attempts: int = Field(description="Stamina spent per run by each hero")
    iteration_time_seconds: Optional[float] = Field(default=None, description="Measured cycle length, when known")
    source: PairingSource = Field(description="Where the pairing was detected")
    role_source: RoleSource = Field(default=RoleSource.POSITION_HEURISTIC, description="How the roles were assigned")
    quest_id: Optional[int] = None
    expedition_id: Optional[int] = None

    def role_of(self, hero_id: int) -> Optional[RewardToken]:
        if hero_id == self.primary_hero_id:
            return RewardToken.PRIMARY
        if hero_id == self.secondary_hero_id:
            return RewardToken.SECONDARY
        return None

    @property
    def hero_key(self) -> frozenset:
        return frozenset(self.hero_ids)


class HeroSlot(BaseModel):
    hero_id: int
    pet_id: Optional[int] = None
    role: RewardToken
    hero_factor: float
    pet_multiplier: float
    has_gardening_gene: bool
    has_fast_regen: bool
    runs_per_day: float = Field(description="Runs per day of the hero on its own")
    primary_per_run: float
    secondary_per_run: float


class PairAllocation(BaseModel):
    pairing: Pairing
    slots: List[HeroSlot]
    runs_per_day: float = Field(description="Runs per day of the pair, bounded by its slower member")
    iteration_minutes: float
    gating: str = Field(description="'quest', 'regen' or 'measured'")
    primary_per_day: float
    secondary_per_day: float
    usd_per_day: float


class PoolAllocation(BaseModel):
    pool_id: int
    pool_name: str
    lp_share: float
    what_if: bool = Field(default=False, description="Whether a reference LP share was used")
    pairs: List[PairAllocation] = []
    primary_per_day: float = 0.0
    secondary_per_day: float = 0.0
    usd_per_day: float = 0.0
    total_runs_per_day: float = 0.0
    position_usd: float = 0.0
    apr: float = Field(default=0.0, description="Projected quest APR in percent of the position value")


class PortfolioAllocation(BaseModel):
    wallet: str
    pools: List[PoolAllocation] = []
    primary_per_day: float = 0.0
    secondary_per_day: float = 0.0
    usd_per_day: float = 0.0
    heroes_used: int = 0
    pets_used: int = 0
    unassigned_hero_ids: List[int] = []
    diagnostics: List[Diagnostic] = []

    @property
    def weekly_usd(self) -> float:
        return self.usd_per_day * 7

    @property
    def monthly_usd(self) -> float:
        return self.usd_per_day * 30

    @property
    def pairings(self) -> List[Pairing]:
        return [pair.pairing for pool in self.pools for pair in pool.pairs]


class StaminaRecommendation(BaseModel):
    hero_ids: List[int]
    pet_id: Optional[int] = None
    attempts: int
    runs_per_day: float
    iteration_minutes: float
    gating: str = Field(description="'quest', 'regen' or 'measured'")
    stamina_per_day: float


class PairingReport(BaseModel):
    wallet: str
    source: Optional[PairingSource] = Field(default=None, description="Tier that produced the pairings")
    pairings: List[Pairing] = []
    unpaired_hero_ids: List[int] = []
    diagnostics: List[Diagnostic] = []

    @property
    def pools(self) -> Dict[Optional[int], List[Pairing]]:
        grouped: Dict[Optional[int], List[Pairing]] = {}
        for pairing in self.pairings:
            grouped.setdefault(pairing.pool_id, []).append(pairing)
        return grouped

    @property
    def verified_roles(self) -> int:
        return sum(1 for pairing in self.pairings if pairing.role_source.is_verified)

    @property
    def heuristic_roles(self) -> int:
        return sum(1 for pairing in self.pairings if pairing.role_source == RoleSource.POSITION_HEURISTIC)


class Improvement(BaseModel):
    current_per_day: float = Field(description="Current daily yield, in USD or raw tokens without prices")
    optimized_per_day: float = Field(description="Optimized daily yield, same unit as current_per_day")
    absolute: float
    percentage: float = Field(description="Relative gain in percent, rounded to one decimal")
