"""
Badge Catalog Service

Badges unlock by the number of archived challenges. The catalog is static;
"earned" is always recomputed from the current completion count.
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from services.challenge.constants import BadgeRarity
from services.challenge.models import Badge


ALL_BADGES: List[Badge] = [
    Badge(
        id="first_steps",
        name="First Steps",
        description="Completed your very first 2-week challenge! Every journey begins with a single step.",
        icon="figure.walk",
        unlock_count=1,
        rarity=BadgeRarity.BRONZE,
    ),
    Badge(
        id="building_momentum",
        name="Building Momentum",
        description="Two challenges down! You're proving that consistency is your superpower.",
        icon="arrow.up.right",
        unlock_count=2,
        rarity=BadgeRarity.BRONZE,
    ),
    Badge(
        id="habit_former",
        name="Habit Former",
        description="Three challenges completed! You're officially building lasting fitness habits.",
        icon="repeat.circle",
        unlock_count=3,
        rarity=BadgeRarity.SILVER,
    ),
    Badge(
        id="fitness_champion",
        name="Fitness Champion",
        description="Five challenges conquered! Your dedication is truly inspiring.",
        icon="trophy",
        unlock_count=5,
        rarity=BadgeRarity.SILVER,
    ),
    Badge(
        id="consistency_crown",
        name="Consistency Crown",
        description="Seven challenges! You've shown that consistency is the crown jewel of fitness.",
        icon="crown",
        unlock_count=7,
        rarity=BadgeRarity.GOLD,
    ),
    Badge(
        id="perfect_ten",
        name="Perfect Ten",
        description="Ten challenges completed! You've reached double digits and proven your commitment.",
        icon="10.circle",
        unlock_count=10,
        rarity=BadgeRarity.GOLD,
    ),
    Badge(
        id="fitness_legend",
        name="Fitness Legend",
        description="Fifteen challenges! You're writing your own fitness legend, one challenge at a time.",
        icon="star.circle",
        unlock_count=15,
        rarity=BadgeRarity.PLATINUM,
    ),
    Badge(
        id="ultimate_warrior",
        name="Ultimate Warrior",
        description="Twenty challenges! You've achieved ultimate warrior status with unmatched dedication.",
        icon="shield",
        unlock_count=20,
        rarity=BadgeRarity.LEGENDARY,
    ),
    Badge(
        id="unstoppable_force",
        name="Unstoppable Force",
        description="Twenty-five challenges! You are truly an unstoppable force of fitness excellence.",
        icon="bolt.circle",
        unlock_count=25,
        rarity=BadgeRarity.LEGENDARY,
    ),
]


@dataclass
class BadgeStats:
    """Badge collection summary for one completion count"""
    total_badges: int
    earned_count: int
    unearned_count: int
    completion_percentage: float  # earned / total, 0..1
    highest_rarity: Optional[BadgeRarity]
    next_badge: Optional[Badge]
    rarity_breakdown: Dict[BadgeRarity, int] = field(default_factory=dict)
    overall_progress: float = 0.0  # mean progress across all badges, 0..1


def get_badge(badge_id: str) -> Optional[Badge]:
    return next((b for b in ALL_BADGES if b.id == badge_id), None)


def earned_badges(completion_count: int) -> List[Badge]:
    return [b for b in ALL_BADGES if b.is_earned(completion_count)]


def unearned_badges(completion_count: int) -> List[Badge]:
    return [b for b in ALL_BADGES if not b.is_earned(completion_count)]


def next_badge_to_unlock(completion_count: int) -> Optional[Badge]:
    remaining = sorted(unearned_badges(completion_count), key=lambda b: b.unlock_count)
    return remaining[0] if remaining else None


def newly_earned_badges(previous_count: int, current_count: int) -> List[Badge]:
    """Badges earned at current_count that were not earned at previous_count."""
    before = {b.id for b in earned_badges(previous_count)}
    return [b for b in earned_badges(current_count) if b.id not in before]


def upcoming_badges(completion_count: int, threshold: int = 3) -> List[Badge]:
    return sorted(
        (b for b in unearned_badges(completion_count) if b.remaining_to_unlock(completion_count) <= threshold),
        key=lambda b: b.unlock_count,
    )


def get_badge_stats(completion_count: int) -> BadgeStats:
    earned = earned_badges(completion_count)
    total = len(ALL_BADGES)

    highest = max((b.rarity for b in earned), key=lambda r: r.sort_order, default=None)
    overall = sum(b.progress(completion_count) for b in ALL_BADGES) / total

    return BadgeStats(
        total_badges=total,
        earned_count=len(earned),
        unearned_count=total - len(earned),
        completion_percentage=len(earned) / total,
        highest_rarity=highest,
        next_badge=next_badge_to_unlock(completion_count),
        rarity_breakdown=dict(Counter(b.rarity for b in earned)),
        overall_progress=overall,
    )


def get_motivational_message(completion_count: int) -> str:
    next_badge = next_badge_to_unlock(completion_count)
    if next_badge is None:
        return "Incredible! You've earned all available badges! 🎉"
    remaining = next_badge.remaining_to_unlock(completion_count)
    plural = "" if remaining == 1 else "s"
    return f"Just {remaining} more challenge{plural} to unlock {next_badge.name}!"
