"""Per-tab badge indicator."""

from .state_machine import BadgeStateMachine

__all__ = ["BadgeStateMachine"]
