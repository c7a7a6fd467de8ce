"""Persisted monitor state."""

from .state_store import RECORD_GROUPS, StateStore, StateStoreError, VoteBallot

__all__ = ["RECORD_GROUPS", "StateStore", "StateStoreError", "VoteBallot"]
