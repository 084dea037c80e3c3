"""
Name: Field Policy Tests

Responsibilities:
  - Restricted user fields (role, salary, is_active) only for admin
  - Restricted employee fields only for manager and above
  - Unrestricted fields always pass
"""

import pytest
from bizops.identity.field_policy import (
    EMPLOYEE_FIELD_POLICY,
    USER_FIELD_POLICY,
    apply_field_policy,
    can_modify,
)
from bizops.identity.users import UserRole

pytestmark = pytest.mark.unit

_CHANGES = {"first_name": "Ana", "role": "manager", "salary": 1000, "is_active": False}


def test_admin_keeps_every_user_field():
    assert apply_field_policy(USER_FIELD_POLICY, _CHANGES, UserRole.ADMIN) == _CHANGES


@pytest.mark.parametrize("role", [UserRole.MANAGER, UserRole.EMPLOYEE, UserRole.CLIENT])
def test_non_admin_loses_restricted_user_fields(role):
    assert apply_field_policy(USER_FIELD_POLICY, _CHANGES, role) == {"first_name": "Ana"}


def test_manager_keeps_restricted_employee_fields():
    changes = {"position": "Lead", "hire_date": "2024-01-01", "salary": 10}
    assert apply_field_policy(EMPLOYEE_FIELD_POLICY, changes, UserRole.MANAGER) == changes


def test_employee_cannot_promote_itself():
    changes = {"phone": "123", "role": "admin", "hire_date": "2024-01-01"}
    assert apply_field_policy(EMPLOYEE_FIELD_POLICY, changes, UserRole.EMPLOYEE) == {
        "phone": "123"
    }


def test_can_modify_unlisted_field():
    assert can_modify(USER_FIELD_POLICY, "department", UserRole.CLIENT)
    assert not can_modify(USER_FIELD_POLICY, "role", UserRole.MANAGER)
