"""
Optimal Attempt Search

Scans stamina-per-run values for the run size that maximizes daily yield. A farming cycle lasts
as long as the slower of quest execution and stamina recovery:

    iterationMinutes = max(attempts * questMinutesPerStamina, attempts / staminaPerDay * 1440)
    runsPerDay       = 1440 / iterationMinutes
    dailyYield       = (primaryPerRun + secondaryPerRun) * runsPerDay
"""
from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Tuple

from gardener.constants import MAX_ATTEMPTS, MIN_ATTEMPTS, MINUTES_PER_DAY
from gardener.entities.hero import Hero
from gardener.models.stamina import hero_stamina_per_day, iteration_timing, quest_minutes_per_stamina

PerRunFn = Callable[[int], Tuple[float, float]]


@dataclass(frozen=True)
class AttemptRecommendation:
    """
    Attributes:
        attempts (int): Stamina spent per run
        runs_per_day (float): Completed runs per day at this run size
        iteration_minutes (float): Cycle length in minutes
        gating (str): 'quest', 'regen' or 'measured'
        primary_per_day (float): Primary token per day
        secondary_per_day (float): Secondary token per day
        stamina_per_day (float): Stamina regenerated per day
    """
    attempts: int
    runs_per_day: float
    iteration_minutes: float
    gating: str
    primary_per_day: float
    secondary_per_day: float
    stamina_per_day: float

    @property
    def daily_yield(self) -> float:
        return self.primary_per_day + self.secondary_per_day


def linear_per_run(hero_factor: float, pet_multiplier: float = 1.0) -> PerRunFn:
    # pool independent yield units, used when ranking heroes before a pool is chosen
    return lambda attempts: (hero_factor * pet_multiplier * attempts, 0.0)


def pair_stamina_profile(heroes: Sequence[Hero], fast_regen: Optional[dict] = None) -> Tuple[float, int]:
    """Return (staminaPerDay, questMinutesPerStamina) for one hero or a pair.

    A pair regenerates at the pace of its slower member and only questing at gene speed
    when both heroes carry the gardening gene.
    """
    fast_regen = fast_regen or {}
    stam_per_day = min(hero_stamina_per_day(hero, fast_regen.get(hero.id)) for hero in heroes)
    quest_minutes = quest_minutes_per_stamina(all(hero.has_gardening_gene for hero in heroes))
    return stam_per_day, quest_minutes


class OptimalAttemptSearch:
    """
    Exhaustive integer scan over [min_attempts, max_attempts].

    Equal daily yields (within `tolerance`, relative) keep the smaller run size, so the result
    does not depend on floating point noise.
    """

    def __init__(self, min_attempts: int = MIN_ATTEMPTS, max_attempts: int = MAX_ATTEMPTS, tolerance: float = 1e-9):
        if min_attempts <= 0 or max_attempts < min_attempts:
            raise ValueError(f"Invalid attempts range [{min_attempts}, {max_attempts}]")
        self.min_attempts = min_attempts
        self.max_attempts = max_attempts
        self.tolerance = tolerance

    def evaluate(
            self,
            attempts: int,
            per_run: PerRunFn,
            stam_per_day: float,
            quest_minutes: float,
            measured_iteration_seconds: Optional[float] = None,
        ) -> AttemptRecommendation:
        if measured_iteration_seconds and measured_iteration_seconds > 0:
            iteration_minutes = measured_iteration_seconds / 60
            gating = "measured"
        else:
            timing = iteration_timing(attempts, quest_minutes, stam_per_day)
            iteration_minutes = timing.iteration_minutes
            gating = timing.gating
        runs_per_day = MINUTES_PER_DAY / iteration_minutes
        primary, secondary = per_run(attempts)
        return AttemptRecommendation(
            attempts=attempts,
            runs_per_day=runs_per_day,
            iteration_minutes=iteration_minutes,
            gating=gating,
            primary_per_day=primary * runs_per_day,
            secondary_per_day=secondary * runs_per_day,
            stamina_per_day=stam_per_day,
        )

    def search(
            self,
            per_run: PerRunFn,
            stam_per_day: float,
            quest_minutes: float,
            measured_iteration_seconds: Optional[float] = None,
        ) -> AttemptRecommendation:
        best: Optional[AttemptRecommendation] = None
        for attempts in range(self.min_attempts, self.max_attempts + 1):
            candidate = self.evaluate(attempts, per_run, stam_per_day, quest_minutes, measured_iteration_seconds)
            if best is None or candidate.daily_yield > best.daily_yield * (1 + self.tolerance):
                best = candidate
        return best

    def search_for_heroes(
            self,
            heroes: Sequence[Hero],
            per_run: PerRunFn,
            fast_regen: Optional[dict] = None,
            measured_iteration_seconds: Optional[float] = None,
        ) -> AttemptRecommendation:
        stam_per_day, quest_minutes = pair_stamina_profile(heroes, fast_regen)
        return self.search(per_run, stam_per_day, quest_minutes, measured_iteration_seconds)
