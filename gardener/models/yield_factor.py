"""
Yield Factor Model

Per-hero gardening factor and pet bonus resolution.

    heroFactor = 0.1 + (WIS + VIT) / 1222.22 + (GrdSkl + additionalSkill) / 244.44

where GrdSkl is the raw on-chain gardening value divided by 10. A Skilled Greenskeeper pet feeds
`additionalSkill`, a Power Surge pet multiplies the per-run yield. A pet never does both.
"""
from dataclasses import dataclass
from typing import Iterable, Optional

from gardener.constants import BASE_HERO_FACTOR, SKILL_DIVISOR, SKILL_SCALE, STAT_DIVISOR
from gardener.entities.hero import Hero
from gardener.entities.pet import Pet, PetBonusType


@dataclass(frozen=True)
class PetBonus:
    bonus_type: PetBonusType = PetBonusType.NONE
    multiplier: float = 1.0
    additional_skill: float = 0.0


NO_PET_BONUS = PetBonus()


def hero_factor(hero: Hero, additional_skill: float = 0.0) -> float:
    skill = hero.gardening / SKILL_SCALE + additional_skill
    return BASE_HERO_FACTOR + (hero.wisdom + hero.vitality) / STAT_DIVISOR + skill / SKILL_DIVISOR


def resolve_pet_bonus(pet: Optional[Pet], fed_by_feeder: bool = False) -> PetBonus:
    """Resolve the bonus a pet grants its hero.

    Args:
        pet (Pet | None): Pet equipped (or considered) for the hero
        fed_by_feeder (bool): Treat every pet as fed (gravity feeder active)

    Returns:
        PetBonus: Multiplicative or additive bonus, never both
    """
    if pet is None or not pet.has_gardening_bonus:
        return NO_PET_BONUS
    if not (pet.is_fed or fed_by_feeder):
        return PetBonus(bonus_type=pet.bonus_type)

    if pet.bonus_type == PetBonusType.SKILLED_GREENSKEEPER:
        return PetBonus(bonus_type=pet.bonus_type, additional_skill=pet.bonus_scalar / SKILL_SCALE)
    # power surge and the other gathering bonuses scale the yield directly
    return PetBonus(bonus_type=pet.bonus_type, multiplier=max(1 + pet.bonus_scalar / 100, 0.0))


def combined_factor(hero: Hero, pet: Optional[Pet], fed_by_feeder: bool = False) -> tuple[float, float]:
    """Return (heroFactor, petMultiplier) for a hero with an optional pet."""
    bonus = resolve_pet_bonus(pet, fed_by_feeder)
    return hero_factor(hero, bonus.additional_skill), bonus.multiplier


def resolve_best_pet(
        hero: Hero,
        pets: Iterable[Pet],
        claimed_pet_ids: frozenset = frozenset(),
        fed_by_feeder: bool = False,
    ) -> Optional[Pet]:
    """Pick the unclaimed pet maximizing heroFactor x petMultiplier for this hero.

    Returns None when no pet beats going without one. Ties keep the lower pet id.
    """
    base_factor, _ = combined_factor(hero, None)
    best_pet, best_value = None, base_factor
    for pet in sorted(pets, key=lambda p: p.id):
        if pet.id in claimed_pet_ids:
            continue
        factor, multiplier = combined_factor(hero, pet, fed_by_feeder)
        if factor * multiplier > best_value:
            best_pet, best_value = pet, factor * multiplier
    return best_pet
