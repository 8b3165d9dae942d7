from __future__ import annotations

from dataclasses import dataclass

from .config import FeatureAccess, Settings


@dataclass(slots=True, frozen=True)
class FeatureCheck:
    allowed: bool
    reason: str = ""


def check_feature(settings: Settings, feature: str, user_id: str, *, is_admin: bool = False) -> FeatureCheck:
    access = settings.feature_access(feature)
    label = feature.lower()
    if access is FeatureAccess.ENABLED:
        return FeatureCheck(allowed=True)
    if access is FeatureAccess.DISABLED:
        return FeatureCheck(allowed=False, reason=f"The {label} feature is currently disabled.")
    if str(user_id) in settings.admin_user_ids or is_admin:
        return FeatureCheck(allowed=True)
    return FeatureCheck(allowed=False, reason=f"The {label} feature is only available to administrators.")
