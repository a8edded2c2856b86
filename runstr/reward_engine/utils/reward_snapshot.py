"""
Utilities for saving and loading reward snapshots.

A reward snapshot freezes the leaderboard and payouts of a run, so payouts
for a window can be audited and are not recomputed from relays that may
have changed since.
"""

import json
from pathlib import Path
from datetime import datetime
from typing import Dict, Optional, Tuple, Union
import bittensor as bt

from runstr.utils.config import SNAPSHOT_ROOT
from ..models.results import RewardResult


def save_reward_snapshot(
    label: str,
    snapshot_data: Dict,
    snapshot_dir: Optional[Union[str, Path]] = None
) -> str:
    """
    Save a reward snapshot for a run.

    Args:
        label: Run label, e.g. schedule name plus window dates
        snapshot_data: JSON-serializable run data (window, schedule,
            leaderboard, rewards)
        snapshot_dir: Target directory (default: SNAPSHOT_ROOT)

    Returns:
        Path to saved snapshot file
    """
    snapshot_dir = Path(snapshot_dir) if snapshot_dir is not None else SNAPSHOT_ROOT
    snapshot_dir.mkdir(parents=True, exist_ok=True)

    timestamp_str = datetime.now().strftime("%Y.%m.%d_%H.%M.%S")
    output_file = snapshot_dir / f"{label}_{timestamp_str}.json"

    with open(output_file, 'w') as f:
        json.dump(snapshot_data, f, indent=2)

    bt.logging.debug(f"Saved reward snapshot to {output_file}")

    return str(output_file)


def load_reward_snapshot(
    label: str,
    snapshot_dir: Optional[Union[str, Path]] = None
) -> Tuple[Dict, str]:
    """
    Load the reward snapshot for a run label.

    Returns the OLDEST snapshot file (first run for the label) as the
    canonical snapshot.

    Raises:
        FileNotFoundError: If no snapshot exists for this label
    """
    snapshot_dir = Path(snapshot_dir) if snapshot_dir is not None else SNAPSHOT_ROOT

    if not snapshot_dir.exists():
        raise FileNotFoundError(f"Reward snapshot directory {snapshot_dir} does not exist")

    matching_files = list(snapshot_dir.glob(f"{label}_*.json"))
    if not matching_files:
        raise FileNotFoundError(f"No reward snapshot found for '{label}' in {snapshot_dir}")

    oldest_file = min(matching_files, key=lambda f: (f.stat().st_mtime, f.name))

    bt.logging.debug(f"Loading reward snapshot from: {oldest_file}")

    with open(oldest_file, 'r') as f:
        data = json.load(f)

    return data, str(oldest_file)


def rewards_from_snapshot(snapshot_data: Dict) -> Dict[str, RewardResult]:
    """
    Rebuild per-participant rewards from a saved snapshot.

    Raises:
        ValueError: If the snapshot has no usable reward data
    """
    try:
        return {
            participant: RewardResult(**entry['reward'])
            for participant, entry in snapshot_data['participants'].items()
        }
    except (KeyError, TypeError, AttributeError) as e:
        raise ValueError(f"Reward snapshot has no usable rewards: {e!r}") from e
