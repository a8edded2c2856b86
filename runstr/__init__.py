"""Workout event aggregation, leaderboards and rewards for RUNSTR."""
