"""Utility functions for reward engine."""

from .reward_snapshot import (
    save_reward_snapshot,
    load_reward_snapshot,
    rewards_from_snapshot
)

__all__ = [
    "save_reward_snapshot",
    "load_reward_snapshot",
    "rewards_from_snapshot",
]
