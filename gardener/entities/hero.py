from dataclasses import dataclass
from typing import Optional

from gardener.constants import HERO_ID_REALM_PREFIXES, SKILL_SCALE
from gardener.entities.entity import GardenEntityException


class HeroEntityException(GardenEntityException):
    """
    Exception raised for errors in the Hero entity.
    """


def normalize_hero_id(hero_id: int) -> int:
    # strip the realm prefix carried by cross-realm hero ids
    hero_id = int(hero_id)
    for prefix in HERO_ID_REALM_PREFIXES:
        if hero_id >= prefix:
            return hero_id - prefix
    return hero_id


@dataclass(frozen=True)
class Hero:
    """
    Immutable snapshot of a hero as reported by the heroes-by-owner reader.

    Attributes:
        id (int): Hero id (realm prefix already stripped)
        wisdom (int): Wisdom stat
        vitality (int): Vitality stat
        gardening (int): Raw gardening skill as stored on chain (divide by 10 for skill points)
        level (int): Hero level
        has_gardening_gene (bool): Whether the hero carries the gardening profession gene
        has_fast_regen (bool): Whether a fast stamina regeneration effect is active
        current_quest (str | None): Raw currentQuest hex field, if known
    """
    id: int
    wisdom: int = 0
    vitality: int = 0
    gardening: int = 0
    level: int = 1
    has_gardening_gene: bool = False
    has_fast_regen: bool = False
    current_quest: Optional[str] = None

    def __post_init__(self):
        if self.wisdom < 0 or self.vitality < 0:
            raise HeroEntityException(f"Hero {self.id}: stats must be greater than or equal to 0")
        if self.gardening < 0:
            raise HeroEntityException(f"Hero {self.id}: gardening skill must be greater than or equal to 0")
        if self.level < 0:
            raise HeroEntityException(f"Hero {self.id}: level must be greater than or equal to 0")

    @property
    def gardening_skill(self) -> float:
        # skill points as used by the reward formulas
        return self.gardening / SKILL_SCALE
