import os
from dotenv import load_dotenv
from pathlib import Path
import bittensor as bt

env_path = Path(__file__).parents[1] / '.env'
load_dotenv(dotenv_path=env_path)

__version__ = "1.0.0"

# Cache Configuration
CACHE_ROOT = Path(os.getenv('RUNSTR_CACHE_ROOT', str(Path(__file__).resolve().parents[2] / "cache")))
CACHE_DIRS = {
    "records": os.path.join(CACHE_ROOT, "records"),
}
RECORD_CACHE_EXPIRY = 7 * 24 * 60 * 60  # 7 days in seconds

# Reward snapshots
SNAPSHOT_ROOT = Path(os.getenv('RUNSTR_SNAPSHOT_ROOT', str(Path(__file__).resolve().parents[1] / "reward_snapshots")))

# Relays
DEFAULT_RELAYS = "wss://relay.damus.io,wss://nos.lol,wss://relay.nostr.band"
RELAYS = [url.strip() for url in os.getenv('RUNSTR_RELAYS', DEFAULT_RELAYS).split(',') if url.strip()]

# Workout events (NIP-101e)
WORKOUT_EVENT_KIND = 1301
PROFILE_EVENT_KIND = 0

# Client identifiers accepted in 'client' / 'source' tags (empty = accept all clients)
CLIENT_IDENTIFIERS = [
    ident.strip().lower()
    for ident in os.getenv('RUNSTR_CLIENT_IDENTIFIERS', 'runstr').split(',')
    if ident.strip()
]

# Collection timeouts (seconds)
RELAY_FETCH_TIMEOUT = float(os.getenv('RELAY_FETCH_TIMEOUT', '30'))
COLLECTION_GLOBAL_TIMEOUT = float(os.getenv('COLLECTION_GLOBAL_TIMEOUT', '45'))
MAX_EVENTS_PER_RELAY = int(os.getenv('MAX_EVENTS_PER_RELAY', '5000'))

# Aggregation window
DEFAULT_WINDOW_DAYS = 7
INCREMENTAL_LOOKBACK_SECONDS = 6 * 60 * 60  # re-query 6 hours before the newest cached record

# Payouts
PAYOUT_API_URL = os.getenv('PAYOUT_API_URL', 'https://api.bitvora.com/v1')
PAYOUT_API_KEY = os.getenv('PAYOUT_API_KEY')
PAYOUT_TIMEOUT = float(os.getenv('PAYOUT_TIMEOUT', '30'))
PAYOUT_MEMO = os.getenv('PAYOUT_MEMO', 'RUNSTR weekly reward')
PAYOUT_LOG_DIR = os.getenv('PAYOUT_LOG_DIR', str(CACHE_ROOT))
PAYOUT_LOG_RETENTION_SIZE = 10 * 1024 * 1024  # 10MB

# Reward schedules (legacy flat rate vs. streak tiers + level bonuses)
LEGACY_SCHEDULE = {
    "name": "legacy",
    "mode": "legacy",
    "per_workout_sats": 50,
    "per_streak_day_sats": 50,
}

TIERED_SCHEDULE = {
    "name": "tiered",
    "mode": "tiered",
    "streak_tier_payout": {1: 20, 2: 40, 3: 60, 4: 80, 5: 100, 6: 120, 7: 140},
    "level_bonus": {1: 50},             # flat sats once a level is reached
    "level_streak_bonus": {2: 5},       # sats per streak day once a level is reached
    "tier_semantics": "tier",
}

BUILTIN_SCHEDULES = {
    "legacy": LEGACY_SCHEDULE,
    "tiered": TIERED_SCHEDULE,
}

# Log out all non-sensitive config variables
bt.logging.info(f"RELAYS: {RELAYS}")
bt.logging.info(f"CLIENT_IDENTIFIERS: {CLIENT_IDENTIFIERS}")
bt.logging.info(f"RELAY_FETCH_TIMEOUT: {RELAY_FETCH_TIMEOUT}s")
bt.logging.info(f"COLLECTION_GLOBAL_TIMEOUT: {COLLECTION_GLOBAL_TIMEOUT}s")
bt.logging.info(f"MAX_EVENTS_PER_RELAY: {MAX_EVENTS_PER_RELAY}")
bt.logging.info(f"DEFAULT_WINDOW_DAYS: {DEFAULT_WINDOW_DAYS}")
bt.logging.info(f"PAYOUT_API_URL: {PAYOUT_API_URL}")
