"""Control layer: bucketing, evaluation, store, mutations, audit, brands."""

from rollout.control.audit import AuditEntry, AuditTrail
from rollout.control.brands import BrandCanaryController, BrandState
from rollout.control.bucketing import bucket
from rollout.control.errors import (
    ConfirmationRequiredError,
    InvalidStateError,
    NotFoundError,
    RolloutError,
)
from rollout.control.flags import EvaluationContext, FeatureFlag, FlagKind, RolloutEvaluator
from rollout.control.plane import ControlPlane, MutationOutcome
from rollout.control.store import FlagStore

__all__ = [
    "AuditEntry",
    "AuditTrail",
    "BrandCanaryController",
    "BrandState",
    "ConfirmationRequiredError",
    "ControlPlane",
    "EvaluationContext",
    "FeatureFlag",
    "FlagKind",
    "FlagStore",
    "InvalidStateError",
    "MutationOutcome",
    "NotFoundError",
    "RolloutError",
    "RolloutEvaluator",
    "bucket",
]
