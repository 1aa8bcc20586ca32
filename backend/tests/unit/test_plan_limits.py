"""
Unit tests for the plan quota policy.
"""
import pytest

from agrohub.models.membership import RoleCode
from agrohub.services.plan_limits import (
    PLAN_LIMITS,
    PlanLimits,
    available_plans,
    is_countable_role,
    lowest_tier,
    plan_limits,
    resolve_plan,
)


class TestPlanLimits:
    """Test plan to limits resolution."""

    def test_basico_limits(self):
        assert plan_limits("basico") == PlanLimits(max_users=10, max_fields=5)

    def test_profesional_limits(self):
        assert plan_limits("profesional") == PlanLimits(max_users=30, max_fields=20)

    def test_enterprise_limits(self):
        assert plan_limits("enterprise") == PlanLimits(max_users=100, max_fields=100)

    def test_plan_name_is_case_insensitive(self):
        assert plan_limits("  Profesional ") == PLAN_LIMITS["profesional"]

    @pytest.mark.parametrize("plan", ["platinum", "", None])
    def test_unknown_plan_gets_lowest_tier(self, plan):
        """Unknown plans never get unlimited quota."""
        assert plan_limits(plan) == lowest_tier()
        assert resolve_plan(plan) == "basico"

    def test_every_plan_allows_at_least_one_user(self):
        for name in available_plans():
            assert plan_limits(name).max_users >= 1

    def test_limits_are_immutable(self):
        with pytest.raises(AttributeError):
            PLAN_LIMITS["basico"].max_users = 1000


class TestCountableRoles:
    """Test which roles consume a seat."""

    def test_owner_is_never_counted(self):
        assert is_countable_role(RoleCode.OWNER) is False
        assert is_countable_role("owner") is False

    @pytest.mark.parametrize("role", ["admin", "campo", "empaque", "finanzas"])
    def test_member_roles_are_counted(self, role):
        assert is_countable_role(role) is True
        assert is_countable_role(RoleCode(role)) is True

    def test_unknown_role_is_not_counted(self):
        assert is_countable_role("visitor") is False
