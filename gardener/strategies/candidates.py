from dataclasses import dataclass
from typing import Iterable, List, Optional

from gardener.constants import GENE_SCORE_MULTIPLIER
from gardener.entities.hero import Hero
from gardener.entities.pet import Pet
from gardener.models.attempt_search import AttemptRecommendation, OptimalAttemptSearch, linear_per_run
from gardener.models.pool_yield import reward_divisor
from gardener.models.yield_factor import combined_factor


@dataclass(frozen=True)
class PairCandidate:
    """
    A hero with an optional pet, scored before any pool is chosen.

    Attributes:
        hero (Hero): Hero entity
        pet (Pet | None): Pet considered for the hero, None for the no-pet candidate
        hero_factor (float): Gardening factor including any pet skill bonus
        pet_multiplier (float): Multiplicative pet bonus (1.0 without one)
        recommendation (AttemptRecommendation): Best run size for the hero on its own
        gene_score_multiplier (float): Ranking boost for heroes carrying the gardening gene
    """
    hero: Hero
    pet: Optional[Pet]
    hero_factor: float
    pet_multiplier: float
    recommendation: AttemptRecommendation
    gene_score_multiplier: float = GENE_SCORE_MULTIPLIER

    @property
    def hero_id(self) -> int:
        return self.hero.id

    @property
    def pet_id(self) -> Optional[int]:
        return None if self.pet is None else self.pet.id

    @property
    def has_gardening_gene(self) -> bool:
        return self.hero.has_gardening_gene

    @property
    def runs_per_day(self) -> float:
        return self.recommendation.runs_per_day

    @property
    def divisor(self) -> int:
        return reward_divisor(self.hero.has_gardening_gene, self.hero.gardening)

    @property
    def effective_yield_factor(self) -> float:
        gene = self.gene_score_multiplier if self.has_gardening_gene else 1.0
        return self.hero_factor * self.pet_multiplier * gene

    @property
    def adjusted_score(self) -> float:
        return self.effective_yield_factor * self.runs_per_day

    @property
    def sort_key(self) -> tuple:
        # best score first, then hero id, then the no-pet candidate before pet ids
        no_pet_first = (0, 0) if self.pet is None else (1, self.pet.id)
        return (-self.adjusted_score, self.hero.id, no_pet_first)


def is_viable_pet(pet: Pet, fed_by_feeder: bool = False) -> bool:
    return pet.has_gardening_bonus and (pet.is_fed or fed_by_feeder)


def build_candidate(
        hero: Hero,
        pet: Optional[Pet],
        search: OptimalAttemptSearch,
        fed_by_feeder: bool = False,
        gene_score_multiplier: float = GENE_SCORE_MULTIPLIER,
    ) -> PairCandidate:
    factor, multiplier = combined_factor(hero, pet, fed_by_feeder)
    recommendation = search.search_for_heroes([hero], linear_per_run(factor, multiplier))
    return PairCandidate(
        hero=hero,
        pet=pet,
        hero_factor=factor,
        pet_multiplier=multiplier,
        recommendation=recommendation,
        gene_score_multiplier=gene_score_multiplier,
    )


def build_candidates(
        heroes: Iterable[Hero],
        pets: Iterable[Pet],
        search: OptimalAttemptSearch,
        fed_by_feeder: bool = False,
        gene_score_multiplier: float = GENE_SCORE_MULTIPLIER,
    ) -> List[PairCandidate]:
    """Build one no-pet candidate per hero plus one per hero and viable pet, sorted best first.

    Args:
        heroes (Iterable[Hero]): Heroes of the wallet
        pets (Iterable[Pet]): Pets of the wallet
        search (OptimalAttemptSearch): Run size search used for per-hero runs/day
        fed_by_feeder (bool): Treat every pet as fed
        gene_score_multiplier (float): Ranking boost for gene carriers

    Returns:
        List[PairCandidate]: Candidates ordered by descending adjusted score
    """
    viable_pets = [pet for pet in pets if is_viable_pet(pet, fed_by_feeder)]
    candidates = []
    for hero in heroes:
        candidates.append(build_candidate(hero, None, search, fed_by_feeder, gene_score_multiplier))
        for pet in viable_pets:
            candidates.append(build_candidate(hero, pet, search, fed_by_feeder, gene_score_multiplier))
    return sorted(candidates, key=lambda candidate: candidate.sort_key)
