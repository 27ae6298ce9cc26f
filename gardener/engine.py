"""
Garden Engine

Single entry point over the yield models, the allocator and the pairing detector. One call per
wallet snapshot; the engine keeps no state between calls.
"""
import logging
from typing import List, Optional

from pydantic import BaseModel, Field

from gardener.entities.snapshot import GardenSnapshot
from gardener.models.attempt_search import pair_stamina_profile
from gardener.models.stamina import FastRegenSuggestion, suggest_fast_regen
from gardener.models.yield_factor import hero_factor, resolve_best_pet
from gardener.pairing.detector import PairingDetector
from gardener.results import Improvement, PairingReport, PortfolioAllocation, StaminaRecommendation
from gardener.strategies.candidates import build_candidate
from gardener.strategies.current_pairing import CurrentPairingEvaluator
from gardener.strategies.greedy_allocator import GardenParams, GreedyPoolAllocator
from gardener.utils.diagnostics import Diagnostic
from gardener.utils.validate_allocation import ValidationFeedback, validate_allocation, validate_pairing_roles

log = logging.getLogger(__name__)


class EngineResult(BaseModel):
    portfolio: PortfolioAllocation = Field(description="Optimized allocation of heroes and pets to pools")
    current: PortfolioAllocation = Field(description="Projected yield of the pairs running now")
    improvement: Optional[Improvement] = Field(default=None, description="Gain of the optimized allocation over the current one")
    recommendations: List[StaminaRecommendation] = Field(description="Run size per allocated pair and per idle hero")
    pairing_report: PairingReport
    fast_regen_suggestions: List[FastRegenSuggestion] = []
    validation: ValidationFeedback
    diagnostics: List[Diagnostic] = []


def calculate_improvement(current: float, optimized: float) -> Optional[Improvement]:
    if current <= 0:
        return None
    return Improvement(
        current_per_day=current,
        optimized_per_day=optimized,
        absolute=optimized - current,
        percentage=round((optimized - current) / current * 100, 1),
    )


class GardenEngine:
    """
    Optimizes a wallet's gardening setup and compares it with what the wallet runs today.
    """

    def __init__(self, params: GardenParams | None = None):
        self._params = params or GardenParams()
        self._allocator = GreedyPoolAllocator(self._params)
        self._detector = PairingDetector(
            query_reward_history=self._params.QUERY_REWARD_HISTORY,
            default_attempts=self._params.DEFAULT_ATTEMPTS,
        )
        self._current = CurrentPairingEvaluator(self._params)

    @property
    def params(self) -> GardenParams:
        return self._params

    def detect_pairings(self, snapshot: GardenSnapshot) -> PairingReport:
        return self._detector.detect(snapshot.evidence)

    def allocate(self, snapshot: GardenSnapshot, report: PairingReport | None = None) -> PortfolioAllocation:
        measured = {}
        if report is not None:
            measured = {
                pairing.hero_key: (pairing.attempts, pairing.iteration_time_seconds)
                for pairing in report.pairings if pairing.iteration_time_seconds and pairing.attempts > 0
            }
        return self._allocator.allocate(snapshot, measured)

    def recommendations(self, snapshot: GardenSnapshot, portfolio: PortfolioAllocation) -> List[StaminaRecommendation]:
        recommendations = []
        heroes = snapshot.heroes_by_id()
        for pool in portfolio.pools:
            for pair in pool.pairs:
                recommendations.append(StaminaRecommendation(
                    hero_ids=pair.pairing.hero_ids,
                    attempts=pair.pairing.attempts,
                    runs_per_day=pair.runs_per_day,
                    iteration_minutes=pair.iteration_minutes,
                    gating=pair.gating,
                    stamina_per_day=pair_stamina_profile([heroes[hero_id] for hero_id in pair.pairing.hero_ids])[0],
                ))

        search = self._params.attempt_search()
        claimed_pets = frozenset(slot.pet_id for pool in portfolio.pools for pair in pool.pairs
                                 for slot in pair.slots if slot.pet_id is not None)
        for hero_id in portfolio.unassigned_hero_ids:
            pet = resolve_best_pet(heroes[hero_id], snapshot.pets, claimed_pets, snapshot.pets_fed_by_feeder)
            if pet is not None:
                claimed_pets |= {pet.id}
            candidate = build_candidate(heroes[hero_id], pet, search, fed_by_feeder=snapshot.pets_fed_by_feeder)
            recommendation = candidate.recommendation
            recommendations.append(StaminaRecommendation(
                hero_ids=[hero_id],
                pet_id=None if pet is None else pet.id,
                attempts=recommendation.attempts,
                runs_per_day=recommendation.runs_per_day,
                iteration_minutes=recommendation.iteration_minutes,
                gating=recommendation.gating,
                stamina_per_day=recommendation.stamina_per_day,
            ))
        return recommendations

    def fast_regen_suggestions(self, snapshot: GardenSnapshot) -> List[FastRegenSuggestion]:
        factors = {hero.id: hero_factor(hero) for hero in snapshot.heroes}
        attempts = self._params.FIXED_ATTEMPTS or self._params.DEFAULT_ATTEMPTS
        return suggest_fast_regen(list(snapshot.heroes), factors, attempts)

    def validate(self, portfolio: PortfolioAllocation) -> ValidationFeedback:
        feedback = validate_allocation(portfolio, self._params.PAIRS_PER_POOL)
        if feedback.result == 'pass':
            feedback = validate_pairing_roles(portfolio)
        if feedback.result == 'fail':
            log.warning(f"Allocation validation failed: {feedback.feedback}")
        return feedback

    def run(self, snapshot: GardenSnapshot) -> EngineResult:
        """Run the full pass for one wallet.

        1. Detect the current pairs and their roles
        2. Allocate heroes and pets, reusing measured cycle lengths of current pairs
        3. Project the current pairs' yield and the improvement over it
        4. Collect run size recommendations and fast regeneration suggestions

        Args:
            snapshot (GardenSnapshot): Wallet snapshot assembled by the caller

        Returns:
            EngineResult: Allocation, current yield, recommendations and diagnostics
        """
        log.info(f"Running garden engine for {snapshot.wallet}: {len(snapshot.heroes)} heroes, "
                 f"{len(snapshot.pets)} pets, {len(snapshot.pools)} pools")
        report = self.detect_pairings(snapshot)
        portfolio = self.allocate(snapshot, report)
        current = self._current.evaluate(report.pairings, snapshot)

        prices = snapshot.prices
        improvement = calculate_improvement(
            prices.value(current.primary_per_day, current.secondary_per_day),
            prices.value(portfolio.primary_per_day, portfolio.secondary_per_day),
        )
        if improvement is not None:
            log.info(f"Optimized allocation changes daily yield by {improvement.percentage}%")

        return EngineResult(
            portfolio=portfolio,
            current=current,
            improvement=improvement,
            recommendations=self.recommendations(snapshot, portfolio),
            pairing_report=report,
            fast_regen_suggestions=self.fast_regen_suggestions(snapshot),
            validation=self.validate(portfolio),
            diagnostics=report.diagnostics + portfolio.diagnostics + current.diagnostics,
        )
