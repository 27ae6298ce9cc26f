from dataclasses import dataclass
from typing import Optional, Tuple

from gardener.constants import GARDEN_POOLS
from gardener.entities.entity import GardenEntityException


class PoolEntityException(GardenEntityException):
    """
    Exception raised for errors in the Pool, RewardFund and LPPosition entities.
    """


@dataclass(frozen=True)
class Pool:
    """
    Garden pool metadata.

    Attributes:
        id (int): Pool id
        allocation_share (float): Fraction of the total reward emission routed to this pool (0-1)
        total_staked_raw (float): Total LP staked in the pool
        total_value_locked (float): Pool TVL in USD
        tokens (Tuple[str, str]): Token pair labels
        name (str | None): Display name, defaults to the known garden pool name
    """
    id: int
    allocation_share: float
    total_staked_raw: float
    total_value_locked: float
    tokens: Tuple[str, ...] = ()
    name: Optional[str] = None

    def __post_init__(self):
        if self.allocation_share < 0 or self.allocation_share > 1:
            raise PoolEntityException(f"Pool {self.id}: allocation share must be between 0 and 1")
        if self.total_staked_raw < 0 or self.total_value_locked < 0:
            raise PoolEntityException(f"Pool {self.id}: staked amount and TVL must be greater than or equal to 0")

    @property
    def display_name(self) -> str:
        return self.name or GARDEN_POOLS.get(self.id, f"Pool {self.id}")

    @property
    def is_degenerate(self) -> bool:
        return self.total_value_locked <= 0 or self.total_staked_raw <= 0


@dataclass(frozen=True)
class RewardFund:
    primary_balance: float = 0.0
    secondary_balance: float = 0.0

    def __post_init__(self):
        if self.primary_balance < 0 or self.secondary_balance < 0:
            raise PoolEntityException("Reward fund balances must be greater than or equal to 0")


@dataclass(frozen=True)
class LPPosition:
    pool_id: int
    staked_raw: float

    def __post_init__(self):
        if self.staked_raw < 0:
            raise PoolEntityException(f"Position in pool {self.pool_id}: staked amount must be greater than or equal to 0")

    def lp_share(self, pool: Pool) -> float:
        if pool.total_staked_raw <= 0:
            return 0.0
        return max(self.staked_raw / pool.total_staked_raw, 0.0)


@dataclass(frozen=True)
class TokenPrices:
    primary_usd: float = 0.0
    secondary_usd: float = 0.0

    @property
    def is_known(self) -> bool:
        return self.primary_usd > 0 or self.secondary_usd > 0

    def value(self, primary: float, secondary: float) -> float:
        # raw token total when no prices were supplied
        if not self.is_known:
            return primary + secondary
        return primary * self.primary_usd + secondary * self.secondary_usd

    def usd(self, primary: float, secondary: float) -> float:
        return primary * self.primary_usd + secondary * self.secondary_usd
