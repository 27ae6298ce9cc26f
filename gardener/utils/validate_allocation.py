from dataclasses import dataclass
from typing import Literal

from gardener.results import PortfolioAllocation


@dataclass
class ValidationFeedback:
    feedback: str
    result: Literal["pass", "fail"]


def validate_allocation(allocation: PortfolioAllocation, pairs_per_pool: int) -> ValidationFeedback:
    hero_ids = [slot.hero_id for pool in allocation.pools for pair in pool.pairs for slot in pair.slots]
    duplicated_heroes = sorted({hero_id for hero_id in hero_ids if hero_ids.count(hero_id) > 1})
    if duplicated_heroes:
        return ValidationFeedback(
            feedback=f'Heroes {duplicated_heroes} are assigned more than once.',
            result='fail'
        )
    pet_ids = [slot.pet_id for pool in allocation.pools for pair in pool.pairs for slot in pair.slots
               if slot.pet_id is not None]
    duplicated_pets = sorted({pet_id for pet_id in pet_ids if pet_ids.count(pet_id) > 1})
    if duplicated_pets:
        return ValidationFeedback(
            feedback=f'Pets {duplicated_pets} are assigned more than once.',
            result='fail'
        )
    for pool in allocation.pools:
        if len(pool.pairs) > pairs_per_pool:
            return ValidationFeedback(
                feedback=f'Pool {pool.pool_id} holds {len(pool.pairs)} pairs, more than the cap of {pairs_per_pool}.',
                result='fail'
            )
        for pair in pool.pairs:
            if pair.primary_per_day < 0 or pair.secondary_per_day < 0:
                return ValidationFeedback(
                    feedback=f'Pair {pair.pairing.hero_ids} in pool {pool.pool_id} has a negative yield.',
                    result='fail'
                )
    return ValidationFeedback(
        feedback='',
        result='pass'
    )


def validate_pairing_roles(allocation: PortfolioAllocation) -> ValidationFeedback:
    for pairing in allocation.pairings:
        if pairing.primary_hero_id == pairing.secondary_hero_id:
            return ValidationFeedback(
                feedback=f'Pair {pairing.hero_ids} uses hero {pairing.primary_hero_id} for both roles.',
                result='fail'
            )
        if {pairing.primary_hero_id, pairing.secondary_hero_id} != set(pairing.hero_ids):
            return ValidationFeedback(
                feedback=f'Roles of pair {pairing.hero_ids} reference heroes outside the pair.',
                result='fail'
            )
    return ValidationFeedback(
        feedback='',
        result='pass'
    )
