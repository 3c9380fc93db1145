"""Dramatiq actors of the reward engine. Run workers with `dramatiq jobs.tasks`."""

from jobs.broker import broker  # noqa: F401  (must be set before actors are declared)
from jobs.tasks.claim_event_sync import sync_claim_events
from jobs.tasks.reward_recalculation import recalculate_rewards

__all__ = ["broker", "recalculate_rewards", "sync_claim_events"]
