"""
Plan quota policy.

Maps a plan identifier to its seat and field ceilings. New plans are
added to PLAN_LIMITS only; orchestration code never branches on plan
names.
"""
from dataclasses import dataclass

from agrohub.config import settings
from agrohub.models.membership import RoleCode


@dataclass(frozen=True)
class PlanLimits:
    """Quota limits for a plan."""
    max_users: int
    max_fields: int


# Plan configurations
PLAN_LIMITS: dict[str, PlanLimits] = {
    "basico": PlanLimits(
        max_users=settings.PLAN_BASICO_MAX_USERS,
        max_fields=settings.PLAN_BASICO_MAX_FIELDS,
    ),
    "profesional": PlanLimits(
        max_users=settings.PLAN_PROFESIONAL_MAX_USERS,
        max_fields=settings.PLAN_PROFESIONAL_MAX_FIELDS,
    ),
    "enterprise": PlanLimits(
        max_users=settings.PLAN_ENTERPRISE_MAX_USERS,
        max_fields=settings.PLAN_ENTERPRISE_MAX_FIELDS,
    ),
}


def lowest_tier_plan() -> str:
    """Name of the most restrictive entry of the table."""
    return min(PLAN_LIMITS, key=lambda name: (PLAN_LIMITS[name].max_users, PLAN_LIMITS[name].max_fields))


def lowest_tier() -> PlanLimits:
    return PLAN_LIMITS[lowest_tier_plan()]


def resolve_plan(plan: str | None) -> str:
    """Canonical plan name; unknown plans resolve to the lowest tier."""
    key = (plan or "").strip().lower()
    return key if key in PLAN_LIMITS else lowest_tier_plan()


def plan_limits(plan: str | None) -> PlanLimits:
    """Limits for a plan; unknown plans get the lowest tier, never unlimited."""
    return PLAN_LIMITS[resolve_plan(plan)]


def available_plans() -> list[str]:
    return list(PLAN_LIMITS)


def is_countable_role(role: RoleCode | str) -> bool:
    """Countable roles consume a seat; the owner never does."""
    value = role.value if isinstance(role, RoleCode) else str(role)
    if value == RoleCode.OWNER.value:
        return False
    return value in settings.countable_roles
