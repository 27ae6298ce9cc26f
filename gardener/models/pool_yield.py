"""
Pool Yield Scorer

Official gardening reward formula, applied once per reward token:

    perRun = fund * allocationShare * lpShare * heroFactor * petMultiplier * attempts
             / ((300 - 50 * geneBonus) * rewardModBase)

rewardModBase is 72 once the hero reaches 10 gardening skill points (raw 100), 144 below.
"""
from dataclasses import dataclass

from gardener.constants import (
    DIVISOR_BASE, DIVISOR_GENE_DISCOUNT, REWARD_MOD_BASE_SKILLED, REWARD_MOD_BASE_UNSKILLED,
    REWARD_MOD_SKILL_THRESHOLD, SKILL_SCALE)
from gardener.entities.pool import Pool, RewardFund


def reward_mod_base(gardening_raw: float) -> int:
    skill = gardening_raw / SKILL_SCALE
    return REWARD_MOD_BASE_SKILLED if skill >= REWARD_MOD_SKILL_THRESHOLD else REWARD_MOD_BASE_UNSKILLED


def reward_divisor(has_gardening_gene: bool, gardening_raw: float) -> int:
    gene_bonus = 1 if has_gardening_gene else 0
    return (DIVISOR_BASE - DIVISOR_GENE_DISCOUNT * gene_bonus) * reward_mod_base(gardening_raw)


def per_run_yield(
        fund_balance: float,
        allocation_share: float,
        lp_share: float,
        hero_factor: float,
        pet_multiplier: float,
        attempts: float,
        divisor: float,
        min_reward_per_stamina: float = 0.0,
    ) -> float:
    terms = (fund_balance, allocation_share, lp_share, hero_factor, pet_multiplier, attempts)
    if any(term <= 0 for term in terms) or divisor <= 0:
        return 0.0
    value = fund_balance * allocation_share * lp_share * hero_factor * pet_multiplier * attempts / divisor
    return max(value, min_reward_per_stamina * attempts)


@dataclass(frozen=True)
class RunYield:
    primary_per_run: float
    secondary_per_run: float
    divisor: int

    def per_day(self, runs_per_day: float) -> tuple[float, float]:
        return self.primary_per_run * runs_per_day, self.secondary_per_run * runs_per_day


class PoolYieldScorer:
    """
    Scores a hero/pet combination in a pool against the current reward fund.
    """

    def __init__(self, reward_fund: RewardFund, min_reward_per_stamina: float = 0.0):
        self._reward_fund = reward_fund
        self._min_reward_per_stamina = min_reward_per_stamina

    @property
    def reward_fund(self) -> RewardFund:
        return self._reward_fund

    def score(
            self,
            pool: Pool,
            lp_share: float,
            hero_factor: float,
            pet_multiplier: float,
            has_gardening_gene: bool,
            gardening_raw: float,
            attempts: float,
        ) -> RunYield:
        divisor = reward_divisor(has_gardening_gene, gardening_raw)
        lp_share = max(lp_share, 0.0)
        per_run = [
            per_run_yield(
                balance, pool.allocation_share, lp_share, hero_factor, pet_multiplier,
                attempts, divisor, self._min_reward_per_stamina)
            for balance in (self._reward_fund.primary_balance, self._reward_fund.secondary_balance)
        ]
        return RunYield(primary_per_run=per_run[0], secondary_per_run=per_run[1], divisor=divisor)
