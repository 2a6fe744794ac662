"""Scheduled and event-driven automation."""

from .jobs import TenantDigest, daily_digest, expire_trials, process_stage_change

__all__ = ["TenantDigest", "daily_digest", "expire_trials", "process_stage_change"]
