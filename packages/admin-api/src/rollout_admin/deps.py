"""Shared dependencies -- the rollout system handle."""
from __future__ import annotations

from fastapi import Request

from rollout.system import RolloutSystem


def get_system(request: Request) -> RolloutSystem:
    """Return the RolloutSystem created at application startup."""
    return request.app.state.system
