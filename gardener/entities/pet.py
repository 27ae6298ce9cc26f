from dataclasses import dataclass
from enum import Enum
from typing import Optional

from gardener.constants import GARDENING_EGG_TYPE, POWER_SURGE_IDS, SKILLED_GREENSKEEPER_IDS
from gardener.entities.entity import GardenEntityException


class PetEntityException(GardenEntityException):
    """
    Exception raised for errors in the Pet entity.
    """


class PetBonusType(str, Enum):
    POWER_SURGE = "power_surge"
    SKILLED_GREENSKEEPER = "skilled_greenskeeper"
    OTHER = "other"
    NONE = "none"

    @classmethod
    def from_bonus_id(cls, bonus_id: int, egg_type: int = GARDENING_EGG_TYPE) -> "PetBonusType":
        """Map a raw on-chain gathering bonus id to its bonus type.

        Only gardening pets (egg type 2) carry a gardening bonus.
        """
        if egg_type != GARDENING_EGG_TYPE or not bonus_id:
            return cls.NONE
        if bonus_id in POWER_SURGE_IDS:
            return cls.POWER_SURGE
        if bonus_id in SKILLED_GREENSKEEPER_IDS:
            return cls.SKILLED_GREENSKEEPER
        return cls.OTHER


@dataclass(frozen=True)
class Pet:
    """
    Immutable snapshot of a pet as reported by the pets-by-owner reader.

    Attributes:
        id (int): Pet id
        bonus_type (PetBonusType): Gathering bonus archetype
        bonus_scalar (float): Gathering bonus magnitude in percent
        is_fed (bool): Whether the pet is currently fed
        equipped_to (int | None): Hero id the pet is equipped to, if any
    """
    id: int
    bonus_type: PetBonusType = PetBonusType.NONE
    bonus_scalar: float = 0.0
    is_fed: bool = True
    equipped_to: Optional[int] = None

    def __post_init__(self):
        if self.bonus_scalar < 0:
            raise PetEntityException(f"Pet {self.id}: bonus scalar must be greater than or equal to 0")
        if not isinstance(self.bonus_type, PetBonusType):
            raise PetEntityException(f"Pet {self.id}: unknown bonus type {self.bonus_type!r}")

    @property
    def has_gardening_bonus(self) -> bool:
        return self.bonus_type != PetBonusType.NONE and self.bonus_scalar > 0
