"""
Greedy Pool Allocator

Assigns heroes and pets to garden pools, pool by pool:

1. Score every hero/pet candidate with adjustedScore = effectiveYieldFactor * runsPerDay
2. Pick the pool where the best unclaimed candidate earns the most, re-ranked after each pool
3. Fill it with up to PAIRS_PER_POOL * 2 unclaimed candidates ordered by their yield in that pool
4. Pair adjacent candidates and size their runs with the pair-level attempt search

The result is greedy, not globally optimal.
"""
import logging
from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Optional, Tuple

from gardener.constants import (
    DEFAULT_ATTEMPTS, GENE_SCORE_MULTIPLIER, MAX_ATTEMPTS, MIN_ATTEMPTS, PAIRS_PER_POOL, REFERENCE_LP_SHARE)
from gardener.entities.pool import Pool, TokenPrices
from gardener.entities.snapshot import GardenSnapshot, RewardToken
from gardener.models.attempt_search import AttemptRecommendation, OptimalAttemptSearch
from gardener.models.pool_yield import PoolYieldScorer, RunYield
from gardener.results import (
    HeroSlot, PairAllocation, Pairing, PairingSource, PoolAllocation, PortfolioAllocation, RoleSource)
from gardener.strategies.candidates import PairCandidate, build_candidates
from gardener.utils.diagnostics import DiagnosticKind, Diagnostics

log = logging.getLogger(__name__)


@dataclass
class GardenParams:
    """
    Parameters for configuring the garden engine.

    Attributes:
        PAIRS_PER_POOL (int): Maximum hero pairs sent to one pool (default: 3)
        MIN_ATTEMPTS (int): Lower bound of the run size search (default: 10)
        MAX_ATTEMPTS (int): Upper bound of the run size search (default: 35)
        DEFAULT_ATTEMPTS (int): Run size assumed when none is observed (default: 25)
        FIXED_ATTEMPTS (int | None): Evaluate this run size only instead of searching
        REFERENCE_LP_SHARE (float): LP share used for pools without a position in what-if mode
        WHAT_IF (bool): Score pools the wallet holds no position in
        GENE_SCORE_MULTIPLIER (float): Ranking boost for gardening gene carriers
        MIN_REWARD_PER_STAMINA (float): Per-stamina reward floor, 0 disables it
        QUERY_REWARD_HISTORY (bool): Use reward claims to assign pair roles
    """
    PAIRS_PER_POOL: int = PAIRS_PER_POOL
    MIN_ATTEMPTS: int = MIN_ATTEMPTS
    MAX_ATTEMPTS: int = MAX_ATTEMPTS
    DEFAULT_ATTEMPTS: int = DEFAULT_ATTEMPTS
    FIXED_ATTEMPTS: Optional[int] = None
    REFERENCE_LP_SHARE: float = REFERENCE_LP_SHARE
    WHAT_IF: bool = False
    GENE_SCORE_MULTIPLIER: float = GENE_SCORE_MULTIPLIER
    MIN_REWARD_PER_STAMINA: float = 0.0
    QUERY_REWARD_HISTORY: bool = True

    def attempt_search(self) -> OptimalAttemptSearch:
        if self.FIXED_ATTEMPTS:
            return OptimalAttemptSearch(self.FIXED_ATTEMPTS, self.FIXED_ATTEMPTS)
        return OptimalAttemptSearch(self.MIN_ATTEMPTS, self.MAX_ATTEMPTS)


@dataclass(frozen=True)
class ClaimedSet:
    """
    Heroes and pets already committed during one allocation pass.

    `claim` returns a new set; the receiver is left untouched.
    """
    hero_ids: FrozenSet[int] = frozenset()
    pet_ids: FrozenSet[int] = frozenset()

    def is_available(self, candidate: PairCandidate) -> bool:
        if candidate.hero_id in self.hero_ids:
            return False
        return candidate.pet_id is None or candidate.pet_id not in self.pet_ids

    def claim(self, candidate: PairCandidate) -> "ClaimedSet":
        pet_ids = self.pet_ids if candidate.pet_id is None else self.pet_ids | {candidate.pet_id}
        return ClaimedSet(hero_ids=self.hero_ids | {candidate.hero_id}, pet_ids=pet_ids)


@dataclass(frozen=True)
class ScoredPool:
    pool: Pool
    lp_share: float
    what_if: bool = False


def score_slot(scorer: PoolYieldScorer, scored_pool: ScoredPool, candidate: PairCandidate, attempts: int) -> RunYield:
    return scorer.score(
        scored_pool.pool,
        scored_pool.lp_share,
        candidate.hero_factor,
        candidate.pet_multiplier,
        candidate.has_gardening_gene,
        candidate.hero.gardening,
        attempts,
    )


def pool_value(scorer: PoolYieldScorer, prices: TokenPrices, scored_pool: ScoredPool, candidate: PairCandidate) -> float:
    run_yield = score_slot(scorer, scored_pool, candidate, candidate.recommendation.attempts)
    return prices.value(*run_yield.per_day(candidate.runs_per_day))


class GreedyPoolAllocator:
    """
    Greedy multi-pool allocation of heroes and pets for one wallet.
    """

    def __init__(self, params: GardenParams | None = None):
        self._params = params or GardenParams()
        self._search = self._params.attempt_search()

    @property
    def params(self) -> GardenParams:
        return self._params

    def eligible_pools(self, snapshot: GardenSnapshot, diagnostics: Diagnostics) -> List[ScoredPool]:
        """Resolve the LP share of every pool, dropping degenerate pools and pools without a position."""
        positions = snapshot.positions_by_pool()
        eligible = []
        for pool in sorted(snapshot.pools, key=lambda p: p.id):
            if pool.is_degenerate:
                diagnostics.add(
                    DiagnosticKind.DEGENERATE_POOL,
                    f"{pool.display_name} has no liquidity (TVL {pool.total_value_locked}, staked {pool.total_staked_raw})",
                    subject=pool.id)
                log.warning(f"Excluding degenerate pool {pool.id} ({pool.display_name})")
                continue
            position = positions.get(pool.id)
            lp_share = position.lp_share(pool) if position is not None else 0.0
            if lp_share > 0:
                eligible.append(ScoredPool(pool=pool, lp_share=lp_share))
            elif self._params.WHAT_IF:
                eligible.append(ScoredPool(pool=pool, lp_share=self._params.REFERENCE_LP_SHARE, what_if=True))
            else:
                log.debug(f"No LP position in pool {pool.id}, skipping")
        return eligible

    def scorer(self, snapshot: GardenSnapshot) -> PoolYieldScorer:
        return PoolYieldScorer(snapshot.reward_fund, self._params.MIN_REWARD_PER_STAMINA)

    def _best_value_in_pool(
            self,
            scorer: PoolYieldScorer,
            prices: TokenPrices,
            scored_pool: ScoredPool,
            candidates: List[PairCandidate],
            claimed: ClaimedSet,
        ) -> float:
        return max(
            (pool_value(scorer, prices, scored_pool, candidate) for candidate in candidates
             if claimed.is_available(candidate)),
            default=0.0)

    def _select_for_pool(
            self,
            scorer: PoolYieldScorer,
            prices: TokenPrices,
            scored_pool: ScoredPool,
            candidates: List[PairCandidate],
            claimed: ClaimedSet,
        ) -> List[PairCandidate]:
        # ordered by yield in this pool, divisor included
        ranked = sorted(
            (candidate for candidate in candidates if claimed.is_available(candidate)),
            key=lambda candidate: (-pool_value(scorer, prices, scored_pool, candidate),) + candidate.sort_key[1:],
        )
        cap = self._params.PAIRS_PER_POOL * 2
        selected: List[PairCandidate] = []
        for candidate in ranked:
            if len(selected) == cap:
                break
            if claimed.is_available(candidate):
                selected.append(candidate)
                claimed = claimed.claim(candidate)
        # pairs only, a leftover hero stays unassigned
        return selected[:len(selected) - len(selected) % 2]

    def _pair_allocation(
            self,
            scorer: PoolYieldScorer,
            prices: TokenPrices,
            scored_pool: ScoredPool,
            first: PairCandidate,
            second: PairCandidate,
            measured_iterations: Dict[FrozenSet[int], Tuple[int, float]],
        ) -> PairAllocation:
        def per_run(attempts: int) -> Tuple[float, float]:
            a = score_slot(scorer, scored_pool, first, attempts)
            b = score_slot(scorer, scored_pool, second, attempts)
            return a.primary_per_run + b.primary_per_run, a.secondary_per_run + b.secondary_per_run

        measured_attempts, measured = measured_iterations.get(frozenset((first.hero_id, second.hero_id)), (None, None))
        # a measured cycle length only holds for the run size it was observed with
        search = OptimalAttemptSearch(measured_attempts, measured_attempts) if measured else self._search
        recommendation: AttemptRecommendation = search.search_for_heroes(
            [first.hero, second.hero], per_run, measured_iteration_seconds=measured)
        attempts = recommendation.attempts

        slots = [(candidate, score_slot(scorer, scored_pool, candidate, attempts)) for candidate in (first, second)]
        values = [prices.value(run.primary_per_run, run.secondary_per_run) for _, run in slots]
        primary_index = 1 if values[1] > values[0] else 0

        hero_slots = []
        for index, (candidate, run_yield) in enumerate(slots):
            hero_slots.append(HeroSlot(
                hero_id=candidate.hero_id,
                pet_id=candidate.pet_id,
                role=RewardToken.PRIMARY if index == primary_index else RewardToken.SECONDARY,
                hero_factor=candidate.hero_factor,
                pet_multiplier=candidate.pet_multiplier,
                has_gardening_gene=candidate.has_gardening_gene,
                has_fast_regen=candidate.hero.has_fast_regen,
                runs_per_day=candidate.runs_per_day,
                primary_per_run=run_yield.primary_per_run,
                secondary_per_run=run_yield.secondary_per_run,
            ))

        primary_hero = slots[primary_index][0]
        secondary_hero = slots[1 - primary_index][0]
        pairing = Pairing(
            hero_ids=[first.hero_id, second.hero_id],
            primary_hero_id=primary_hero.hero_id,
            secondary_hero_id=secondary_hero.hero_id,
            pool_id=scored_pool.pool.id,
            attempts=attempts,
            iteration_time_seconds=measured,
            source=PairingSource.OPTIMIZER,
            role_source=RoleSource.YIELD_RANK,
        )
        return PairAllocation(
            pairing=pairing,
            slots=hero_slots,
            runs_per_day=recommendation.runs_per_day,
            iteration_minutes=recommendation.iteration_minutes,
            gating=recommendation.gating,
            primary_per_day=recommendation.primary_per_day,
            secondary_per_day=recommendation.secondary_per_day,
            usd_per_day=prices.usd(recommendation.primary_per_day, recommendation.secondary_per_day),
        )

    @staticmethod
    def pool_totals(pool_allocation: PoolAllocation, prices: TokenPrices, total_value_locked: float) -> PoolAllocation:
        primary = sum(pair.primary_per_day for pair in pool_allocation.pairs)
        secondary = sum(pair.secondary_per_day for pair in pool_allocation.pairs)
        usd = prices.usd(primary, secondary)
        position_usd = pool_allocation.lp_share * total_value_locked
        apr = usd * 365 / position_usd * 100 if position_usd > 0 else 0.0
        return pool_allocation.model_copy(update={
            "primary_per_day": primary,
            "secondary_per_day": secondary,
            "usd_per_day": usd,
            "total_runs_per_day": sum(pair.runs_per_day for pair in pool_allocation.pairs),
            "position_usd": position_usd,
            "apr": apr,
        })

    def allocate(
            self,
            snapshot: GardenSnapshot,
            measured_iterations: Optional[Dict[FrozenSet[int], Tuple[int, float]]] = None,
        ) -> PortfolioAllocation:
        """Allocate the wallet's heroes and pets across its garden pools.

        Args:
            snapshot (GardenSnapshot): Wallet snapshot
            measured_iterations (Dict[FrozenSet[int], Tuple[int, float]] | None): Observed (attempts,
                cycle seconds) of current pairs, keyed by their hero ids

        Returns:
            PortfolioAllocation: Pools with their pairs and totals, plus diagnostics
        """
        measured_iterations = measured_iterations or {}
        diagnostics = Diagnostics()
        scorer = self.scorer(snapshot)
        prices = snapshot.prices

        candidates = build_candidates(
            snapshot.heroes, snapshot.pets, self._search,
            fed_by_feeder=snapshot.pets_fed_by_feeder,
            gene_score_multiplier=self._params.GENE_SCORE_MULTIPLIER)
        remaining = self.eligible_pools(snapshot, diagnostics)
        log.info(f"Allocating {len(snapshot.heroes)} heroes, {len(snapshot.pets)} pets "
                 f"({len(candidates)} candidates) over {len(remaining)} pools")

        claimed = ClaimedSet()
        pool_allocations: List[PoolAllocation] = []
        while remaining:
            values = {sp.pool.id: self._best_value_in_pool(scorer, prices, sp, candidates, claimed) for sp in remaining}
            ranked = sorted(remaining, key=lambda sp: (-values[sp.pool.id], sp.pool.id))
            scored_pool = ranked[0]
            selected = self._select_for_pool(scorer, prices, scored_pool, candidates, claimed)
            if len(selected) < 2:
                for skipped in ranked:
                    diagnostics.add(
                        DiagnosticKind.INSUFFICIENT_INVENTORY,
                        f"Fewer than 2 unclaimed heroes left for {skipped.pool.display_name}",
                        subject=skipped.pool.id)
                    log.warning(f"Skipping pool {skipped.pool.id}: fewer than 2 unclaimed heroes")
                break
            if values[scored_pool.pool.id] <= 0:
                log.info(f"No remaining pool yields rewards, leaving {len(ranked)} pools empty")
                break

            pairs = []
            for first, second in zip(selected[0::2], selected[1::2]):
                claimed = claimed.claim(first).claim(second)
                pairs.append(self._pair_allocation(scorer, prices, scored_pool, first, second, measured_iterations))

            pool_allocation = PoolAllocation(
                pool_id=scored_pool.pool.id,
                pool_name=scored_pool.pool.display_name,
                lp_share=scored_pool.lp_share,
                what_if=scored_pool.what_if,
                pairs=pairs,
            )
            pool_allocations.append(self.pool_totals(pool_allocation, prices, scored_pool.pool.total_value_locked))
            log.debug(f"Pool {scored_pool.pool.id} takes heroes {[c.hero_id for c in selected]}")
            remaining = [sp for sp in remaining if sp.pool.id != scored_pool.pool.id]

        primary = sum(pool.primary_per_day for pool in pool_allocations)
        secondary = sum(pool.secondary_per_day for pool in pool_allocations)
        unassigned = sorted(hero.id for hero in snapshot.heroes if hero.id not in claimed.hero_ids)
        log.info(f"Assigned {len(claimed.hero_ids)} heroes to {len(pool_allocations)} pools, "
                 f"{len(unassigned)} heroes unassigned")

        return PortfolioAllocation(
            wallet=snapshot.wallet,
            pools=pool_allocations,
            primary_per_day=primary,
            secondary_per_day=secondary,
            usd_per_day=prices.usd(primary, secondary),
            heroes_used=len(claimed.hero_ids),
            pets_used=len(claimed.pet_ids),
            unassigned_hero_ids=unassigned,
            diagnostics=diagnostics.to_list(),
        )
