from dataclasses import dataclass
from typing import List

from gardener.constants import (
    BASE_REGEN_SECONDS, FAST_REGEN_SECONDS_PER_LEVEL, MIN_REGEN_SECONDS, MINUTES_PER_DAY,
    QUEST_MINUTES_PER_STAMINA, QUEST_MINUTES_PER_STAMINA_GENE, SECONDS_PER_DAY)
from gardener.entities.hero import Hero


def regen_seconds_per_stamina(level: int, fast_regen: bool = False) -> float:
    if not fast_regen:
        return BASE_REGEN_SECONDS
    return max(MIN_REGEN_SECONDS, BASE_REGEN_SECONDS - level * FAST_REGEN_SECONDS_PER_LEVEL)


def stamina_per_day(level: int, fast_regen: bool = False) -> float:
    return SECONDS_PER_DAY / regen_seconds_per_stamina(level, fast_regen)


def quest_minutes_per_stamina(has_gardening_gene: bool) -> int:
    return QUEST_MINUTES_PER_STAMINA_GENE if has_gardening_gene else QUEST_MINUTES_PER_STAMINA


def hero_stamina_per_day(hero: Hero, fast_regen: bool | None = None) -> float:
    return stamina_per_day(hero.level, hero.has_fast_regen if fast_regen is None else fast_regen)


@dataclass(frozen=True)
class IterationTiming:
    """
    Length of one farming cycle for a run size.

    The cycle ends when both the quest and the stamina recovery are done.
    """
    attempts: int
    quest_minutes: float
    regen_minutes: float

    @property
    def iteration_minutes(self) -> float:
        return max(self.quest_minutes, self.regen_minutes)

    @property
    def runs_per_day(self) -> float:
        return MINUTES_PER_DAY / self.iteration_minutes

    @property
    def gating(self) -> str:
        return "quest" if self.quest_minutes >= self.regen_minutes else "regen"


def iteration_timing(attempts: int, quest_minutes_per_stam: float, stam_per_day: float) -> IterationTiming:
    return IterationTiming(
        attempts=attempts,
        quest_minutes=attempts * quest_minutes_per_stam,
        regen_minutes=attempts / stam_per_day * MINUTES_PER_DAY,
    )


@dataclass(frozen=True)
class FastRegenSuggestion:
    hero_id: int
    current_runs_per_day: float
    projected_runs_per_day: float
    improvement_pct: float
    reason: str


def suggest_fast_regen(
        heroes: List[Hero],
        factors: dict,
        attempts: int,
        max_suggestions: int = 3,
        min_improvement_pct: float = 20.0,
    ) -> List[FastRegenSuggestion]:
    """
    Suggest heroes that would gain the most from a fast regeneration effect.

    Candidates are heroes without the effect whose factor beats the weakest hero that already
    has it by 10%. Only gains above `min_improvement_pct` runs/day are kept.
    """
    with_regen = [hero for hero in heroes if hero.has_fast_regen]
    floor = min((factors[hero.id] for hero in with_regen), default=0.0) * 1.1
    candidates = sorted(
        (hero for hero in heroes if not hero.has_fast_regen and factors[hero.id] > floor),
        key=lambda hero: (-factors[hero.id], hero.id),
    )[:max_suggestions]

    suggestions = []
    for hero in candidates:
        quest_minutes = quest_minutes_per_stamina(hero.has_gardening_gene)
        current = iteration_timing(attempts, quest_minutes, stamina_per_day(hero.level, False))
        projected = iteration_timing(attempts, quest_minutes, stamina_per_day(hero.level, True))
        improvement = (projected.runs_per_day / current.runs_per_day - 1) * 100
        if improvement > min_improvement_pct:
            suggestions.append(FastRegenSuggestion(
                hero_id=hero.id,
                current_runs_per_day=current.runs_per_day,
                projected_runs_per_day=projected.runs_per_day,
                improvement_pct=round(improvement, 1),
                reason=(f"Level {hero.level} hero with {hero.gardening_skill:.1f} gardening skill "
                        f"would gain {improvement:.0f}% runs/day with fast regeneration"),
            ))
    return suggestions
