import logging
from collections import Counter
from typing import Dict, Iterable, Optional, Sequence, Tuple

from gardener.entities.hero import normalize_hero_id
from gardener.entities.snapshot import RewardClaim, RewardToken
from gardener.results import RoleSource

log = logging.getLogger(__name__)


def roles_from_reward_history(claims: Iterable[RewardClaim]) -> Dict[int, RewardToken]:
    """Majority vote of each hero's reward claims. Heroes without a majority are left out."""
    counts: Dict[int, Counter] = {}
    for claim in claims:
        counts.setdefault(normalize_hero_id(claim.hero_id), Counter())[claim.token] += 1

    roles = {}
    for hero_id, counter in counts.items():
        primary, secondary = counter[RewardToken.PRIMARY], counter[RewardToken.SECONDARY]
        if primary > secondary:
            roles[hero_id] = RewardToken.PRIMARY
        elif secondary > primary:
            roles[hero_id] = RewardToken.SECONDARY
        log.debug(f"Hero {hero_id}: {primary} primary / {secondary} secondary reward claims")
    return roles


def assign_roles(
        hero_ids: Sequence[int],
        history: Optional[Dict[int, RewardToken]] = None,
    ) -> Tuple[int, int, RoleSource]:
    """Decide which hero of a pair earns the primary token.

    Args:
        hero_ids (Sequence[int]): The two hero ids in quest order
        history (Dict[int, RewardToken] | None): Roles derived from reward claims

    Returns:
        Tuple[int, int, RoleSource]: (primary hero id, secondary hero id, how it was decided)
    """
    first, second = hero_ids[0], hero_ids[1]
    if history:
        first_role, second_role = history.get(first), history.get(second)
        if first_role and second_role and first_role != second_role:
            primary = first if first_role == RewardToken.PRIMARY else second
            return primary, second if primary == first else first, RoleSource.REWARD_HISTORY_BOTH
        if first_role and not second_role:
            primary = first if first_role == RewardToken.PRIMARY else second
            return primary, second if primary == first else first, RoleSource.REWARD_HISTORY_HERO1
        if second_role and not first_role:
            primary = second if second_role == RewardToken.PRIMARY else first
            return primary, first if primary == second else second, RoleSource.REWARD_HISTORY_HERO2
        if first_role and first_role == second_role:
            log.warning(f"Role conflict for pair {first}/{second}: both claim {first_role.value}, using position")
    return first, second, RoleSource.POSITION_HEURISTIC
