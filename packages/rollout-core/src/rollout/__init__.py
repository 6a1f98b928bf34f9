"""Safe rollout control for feature flags and brand canary switching."""

from rollout.config import RolloutSettings
from rollout.control.flags import EvaluationContext, FeatureFlag, FlagKind
from rollout.models import BrandRecord
from rollout.system import RolloutSystem

__all__ = [
    "BrandRecord",
    "EvaluationContext",
    "FeatureFlag",
    "FlagKind",
    "RolloutSettings",
    "RolloutSystem",
]
