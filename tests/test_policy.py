"""
Unit tests for expense authorization rules
"""

import unittest
from types import SimpleNamespace

import support  # noqa: F401
from policy import (
    Principal,
    Role,
    can_delete,
    can_list_all,
    can_mutate,
    can_view,
)


class TestPolicy(unittest.TestCase):
    """Test ownership and admin checks"""

    def setUp(self):
        self.owner = Principal(id=1, username="alice", role=Role.USER)
        self.other = Principal(id=2, username="bob", role=Role.USER)
        self.admin = Principal(id=3, username="root", role=Role.ADMIN)
        self.records = [SimpleNamespace(owner_id=i) for i in (1, 2, 3, 42)]

    def test_member_mutates_only_own_records(self):
        for record in self.records:
            expected = record.owner_id == self.owner.id
            self.assertEqual(can_mutate(self.owner, record), expected)
            self.assertEqual(can_delete(self.owner, record), expected)
            self.assertEqual(can_view(self.owner, record), expected)

    def test_admin_may_touch_any_record(self):
        for record in self.records:
            self.assertTrue(can_mutate(self.admin, record))
            self.assertTrue(can_delete(self.admin, record))
            self.assertTrue(can_view(self.admin, record))

    def test_list_all_is_admin_only(self):
        self.assertTrue(can_list_all(self.admin))
        self.assertFalse(can_list_all(self.owner))

    def test_principal_roles(self):
        self.assertEqual(self.owner.roles, frozenset({"ROLE_USER"}))
        self.assertEqual(self.admin.roles, frozenset({"ROLE_ADMIN"}))
        self.assertTrue(self.admin.is_admin)
        self.assertFalse(self.other.is_admin)

    def test_from_member(self):
        member = SimpleNamespace(id=5, username="carol", role="ADMIN")
        principal = Principal.from_member(member)
        self.assertEqual(principal, Principal(id=5, username="carol", role=Role.ADMIN))


if __name__ == "__main__":
    unittest.main()
