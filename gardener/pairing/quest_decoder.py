from dataclasses import dataclass
from typing import Optional

from gardener.constants import (
    EMPTY_QUEST, PROFESSION_CODE_FISHING, PROFESSION_CODE_FORAGING, PROFESSION_CODE_GARDENING,
    PROFESSION_CODE_MINING, QUEST_CODE_EXPEDITION, QUEST_CODE_TRAINING)

EXPEDITION_PROFESSIONS = {
    PROFESSION_CODE_FORAGING: "foraging",
    PROFESSION_CODE_FISHING: "fishing",
    PROFESSION_CODE_MINING: "mining",
}


@dataclass(frozen=True)
class DecodedQuest:
    quest_type: str
    pool_id: Optional[int] = None

    @property
    def is_gardening(self) -> bool:
        return self.quest_type == "gardening"


def decode_current_quest(current_quest: Optional[str]) -> DecodedQuest:
    """Decode a hero's currentQuest field.

    The field packs a quest code in byte 1, a profession code in byte 2 and, for gardening
    expeditions, the pool id in byte 3, e.g. "0x01050a02..." is gardening in pool 2.

    Args:
        current_quest (str | None): Hex string as reported for the hero

    Returns:
        DecodedQuest: Quest classification and the pool id for gardening quests
    """
    if not current_quest or current_quest.lower() == EMPTY_QUEST:
        return DecodedQuest("none")
    hex_digits = current_quest.lower().removeprefix("0x")
    if len(hex_digits) < 8:
        return DecodedQuest("unknown")
    try:
        quest_code, profession, pool_id = (int(hex_digits[i:i + 2], 16) for i in (2, 4, 6))
    except ValueError:
        return DecodedQuest("unknown")

    if quest_code == QUEST_CODE_EXPEDITION and profession == PROFESSION_CODE_GARDENING:
        return DecodedQuest("gardening", pool_id)
    if quest_code == QUEST_CODE_TRAINING:
        return DecodedQuest("training")
    if quest_code == QUEST_CODE_EXPEDITION:
        return DecodedQuest(EXPEDITION_PROFESSIONS.get(profession, "expedition"))
    return DecodedQuest("other")
