"""
Leaderboard and reward system for RUNSTR workout events.

Models, services and the orchestrator that turn collected workout events into
aggregates, XP levels, sats rewards and ranked leaderboards. Import the
orchestrator from runstr.reward_engine.orchestrator.
"""

__version__ = "1.0.0"
