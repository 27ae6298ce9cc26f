import logging
from typing import Dict, List, Optional

from gardener.entities.pet import Pet
from gardener.entities.snapshot import GardenSnapshot, RewardToken
from gardener.models.attempt_search import OptimalAttemptSearch, pair_stamina_profile
from gardener.results import HeroSlot, PairAllocation, Pairing, PoolAllocation, PortfolioAllocation
from gardener.strategies.candidates import build_candidate
from gardener.strategies.greedy_allocator import GardenParams, GreedyPoolAllocator, ScoredPool, score_slot
from gardener.utils.diagnostics import DiagnosticKind, Diagnostics

log = logging.getLogger(__name__)


class CurrentPairingEvaluator:
    """
    Projects the daily yield of the pairs a wallet is running right now, with their observed run
    size and equipped pets, so it can be compared with the optimized allocation.
    """

    def __init__(self, params: GardenParams | None = None):
        self._params = params or GardenParams()
        self._allocator = GreedyPoolAllocator(self._params)

    def _scored_pool(self, pool_id: int, snapshot: GardenSnapshot, diagnostics: Diagnostics) -> Optional[ScoredPool]:
        pool = next((p for p in snapshot.pools if p.id == pool_id), None)
        if pool is None or pool.is_degenerate:
            diagnostics.add(DiagnosticKind.MISSING_REFERENCE, f"Pool {pool_id} missing or without liquidity", subject=pool_id)
            return None
        position = snapshot.positions_by_pool().get(pool_id)
        lp_share = position.lp_share(pool) if position is not None else 0.0
        if lp_share > 0:
            return ScoredPool(pool=pool, lp_share=lp_share)
        if self._params.WHAT_IF:
            return ScoredPool(pool=pool, lp_share=self._params.REFERENCE_LP_SHARE, what_if=True)
        diagnostics.add(DiagnosticKind.MISSING_REFERENCE, f"No LP position in pool {pool_id}", subject=pool_id)
        return None

    def evaluate_pairing(
            self,
            pairing: Pairing,
            scored_pool: ScoredPool,
            snapshot: GardenSnapshot,
            pets_by_hero: Dict[int, Pet],
        ) -> PairAllocation:
        heroes = snapshot.heroes_by_id()
        search = OptimalAttemptSearch(pairing.attempts, pairing.attempts)
        candidates = [
            build_candidate(heroes[hero_id], pets_by_hero.get(hero_id), search, snapshot.pets_fed_by_feeder,
                            self._params.GENE_SCORE_MULTIPLIER)
            for hero_id in pairing.hero_ids
        ]
        scorer = self._allocator.scorer(snapshot)
        runs = [score_slot(scorer, scored_pool, candidate, pairing.attempts) for candidate in candidates]

        def per_run(attempts: int):
            return sum(run.primary_per_run for run in runs), sum(run.secondary_per_run for run in runs)

        stam_per_day, quest_minutes = pair_stamina_profile([candidate.hero for candidate in candidates])
        recommendation = search.evaluate(
            pairing.attempts, per_run, stam_per_day, quest_minutes, pairing.iteration_time_seconds)

        slots = [
            HeroSlot(
                hero_id=candidate.hero_id,
                pet_id=candidate.pet_id,
                role=pairing.role_of(candidate.hero_id) or RewardToken.SECONDARY,
                hero_factor=candidate.hero_factor,
                pet_multiplier=candidate.pet_multiplier,
                has_gardening_gene=candidate.has_gardening_gene,
                has_fast_regen=candidate.hero.has_fast_regen,
                runs_per_day=candidate.runs_per_day,
                primary_per_run=run.primary_per_run,
                secondary_per_run=run.secondary_per_run,
            )
            for candidate, run in zip(candidates, runs)
        ]
        return PairAllocation(
            pairing=pairing,
            slots=slots,
            runs_per_day=recommendation.runs_per_day,
            iteration_minutes=recommendation.iteration_minutes,
            gating=recommendation.gating,
            primary_per_day=recommendation.primary_per_day,
            secondary_per_day=recommendation.secondary_per_day,
            usd_per_day=snapshot.prices.usd(recommendation.primary_per_day, recommendation.secondary_per_day),
        )

    def evaluate(self, pairings: List[Pairing], snapshot: GardenSnapshot) -> PortfolioAllocation:
        diagnostics = Diagnostics()
        heroes = snapshot.heroes_by_id()
        pets_by_hero = {}
        for pet in snapshot.equipped_pets():
            if pet.equipped_to not in heroes:
                diagnostics.add(
                    DiagnosticKind.MISSING_REFERENCE,
                    f"Pet {pet.id} is equipped to hero {pet.equipped_to} not in the snapshot",
                    subject=pet.id)
                log.warning(f"Ignoring pet {pet.id}: hero {pet.equipped_to} not found")
                continue
            pets_by_hero[pet.equipped_to] = pet

        pools: Dict[int, PoolAllocation] = {}
        for pairing in pairings:
            missing = [hero_id for hero_id in pairing.hero_ids if hero_id not in heroes]
            if missing:
                diagnostics.add(
                    DiagnosticKind.MISSING_REFERENCE,
                    f"Pair {pairing.hero_ids} references heroes {missing} not in the snapshot",
                    subject=pairing.hero_ids)
                log.warning(f"Skipping current pair {pairing.hero_ids}: heroes {missing} not found")
                continue
            if pairing.pool_id is None or pairing.attempts <= 0:
                diagnostics.add(
                    DiagnosticKind.MISSING_REFERENCE,
                    f"Pair {pairing.hero_ids} has no known pool or run size",
                    subject=pairing.hero_ids)
                continue
            scored_pool = self._scored_pool(pairing.pool_id, snapshot, diagnostics)
            if scored_pool is None:
                continue

            pair = self.evaluate_pairing(pairing, scored_pool, snapshot, pets_by_hero)
            pool = pools.setdefault(pairing.pool_id, PoolAllocation(
                pool_id=scored_pool.pool.id,
                pool_name=scored_pool.pool.display_name,
                lp_share=scored_pool.lp_share,
                what_if=scored_pool.what_if,
            ))
            pool.pairs.append(pair)

        pool_allocations = [
            GreedyPoolAllocator.pool_totals(pool, snapshot.prices, self._pool_tvl(snapshot, pool.pool_id))
            for _, pool in sorted(pools.items())
        ]
        primary = sum(pool.primary_per_day for pool in pool_allocations)
        secondary = sum(pool.secondary_per_day for pool in pool_allocations)
        used = {hero_id for pool in pool_allocations for pair in pool.pairs for hero_id in pair.pairing.hero_ids}
        return PortfolioAllocation(
            wallet=snapshot.wallet,
            pools=pool_allocations,
            primary_per_day=primary,
            secondary_per_day=secondary,
            usd_per_day=snapshot.prices.usd(primary, secondary),
            heroes_used=len(used),
            pets_used=sum(1 for hero_id in used if hero_id in pets_by_hero),
            unassigned_hero_ids=sorted(hero_id for hero_id in heroes if hero_id not in used),
            diagnostics=diagnostics.to_list(),
        )

    @staticmethod
    def _pool_tvl(snapshot: GardenSnapshot, pool_id: int) -> float:
        return next(pool.total_value_locked for pool in snapshot.pools if pool.id == pool_id)
