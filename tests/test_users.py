"""Integration tests for user operations of the entity repository."""

import unittest
from unittest.mock import patch

from sqlalchemy import event
from sqlalchemy.exc import IntegrityError

from pizza_core.core.errors import ConflictError, InternalError, NotFoundError
from pizza_core.models import AuthSession, DinerOrder, OrderItem, User, UserRole
from pizza_core.schemas import (
    AdminRole,
    DinerRole,
    FranchiseeGrant,
    FranchiseeRole,
    NewOrderItem,
)
from pizza_core.services.sessions import SessionValidator

from support import RepositoryTestCase, make_token


class TestCreateAndAuthenticate(RepositoryTestCase):
    def test_create_user_defaults_to_diner(self) -> None:
        user = self.repo.create_user("pizza diner", "d@jwt.com", "diner")
        self.assertEqual(user.name, "pizza diner")
        self.assertEqual(user.roles, [DinerRole()])
        self.assertFalse(hasattr(user, "password_hash"))

    def test_secret_is_stored_hashed(self) -> None:
        self.repo.create_user("pizza diner", "d@jwt.com", "diner")
        with self.db.connection() as conn:
            stored = conn.execute(User.__table__.select().where(User.email == "d@jwt.com")).one()
        self.assertNotEqual(stored.password_hash, "diner")
        self.assertTrue(stored.password_hash.startswith("$2b$"))

    def test_authenticate_with_password(self) -> None:
        created = self.repo.create_user("pizza diner", "d@jwt.com", "diner")
        user = self.repo.authenticate_user("d@jwt.com", "diner")
        self.assertEqual(user.id, created.id)
        self.assertEqual(user.roles, [DinerRole()])

    def test_authenticate_without_password_looks_up(self) -> None:
        created = self.repo.create_user("pizza diner", "d@jwt.com", "diner")
        self.assertEqual(self.repo.authenticate_user("d@jwt.com").id, created.id)

    def test_wrong_password_is_not_found(self) -> None:
        self.repo.create_user("pizza diner", "d@jwt.com", "diner")
        with self.assertRaises(NotFoundError):
            self.repo.authenticate_user("d@jwt.com", "admin")

    def test_unknown_email_is_not_found(self) -> None:
        with self.assertRaises(NotFoundError):
            self.repo.authenticate_user("nobody@jwt.com", "diner")

    def test_get_user_by_id(self) -> None:
        created = self.repo.create_user("pizza diner", "d@jwt.com", "diner", [AdminRole()])
        user = self.repo.get_user_by_id(created.id)
        self.assertEqual(user.email, "d@jwt.com")
        self.assertEqual(user.roles, [AdminRole()])
        with self.assertRaises(NotFoundError):
            self.repo.get_user_by_id(created.id + 100)

    def test_duplicate_email_conflicts(self) -> None:
        self.repo.create_user("pizza diner", "d@jwt.com", "diner")
        with self.assertRaises(ConflictError):
            self.repo.create_user("other diner", "d@jwt.com", "other")
        self.assertEqual(self.count_rows(User, User.email == "d@jwt.com"), 1)

    def test_email_taken_after_check_conflicts(self) -> None:
        # Another registration commits the same email between the check and the insert.
        self.repo.create_user("pizza diner", "d@jwt.com", "diner")
        with patch("pizza_core.services.users._email_registered", return_value=False):
            with self.assertRaises(ConflictError) as ctx:
                self.repo.create_user("other diner", "d@jwt.com", "other")
        self.assertIsInstance(ctx.exception.__cause__, IntegrityError)
        self.assertEqual(self.count_rows(User), 2)
        self.assertEqual(self.count_rows(User, User.email == "d@jwt.com"), 1)


class TestCreateUserRoles(RepositoryTestCase):
    """Role rows are written with the user, atomically."""

    def test_franchisee_grant_resolves_franchise_name(self) -> None:
        self.repo.create_user("owner", "owner@jwt.com", "owner")
        franchise = self.repo.create_franchise("pizzaPocket", ["owner@jwt.com"])
        user = self.repo.create_user(
            "second owner",
            "f@jwt.com",
            "franchisee",
            [DinerRole(), FranchiseeGrant(franchise_name="pizzaPocket")],
        )
        self.assertEqual(
            user.roles, [DinerRole(), FranchiseeRole(franchise_id=franchise.id)]
        )

    def test_unknown_franchise_name_writes_nothing(self) -> None:
        users_before = self.count_rows(User)
        roles_before = self.count_rows(UserRole)
        with self.assertRaises(NotFoundError):
            self.repo.create_user(
                "owner",
                "owner@jwt.com",
                "owner",
                [DinerRole(), FranchiseeGrant(franchise_name="missing")],
            )
        self.assertEqual(self.count_rows(User), users_before)
        self.assertEqual(self.count_rows(UserRole), roles_before)

    def test_unknown_franchise_id_is_not_found(self) -> None:
        with self.assertRaises(NotFoundError):
            self.repo.create_user("owner", "owner@jwt.com", "owner", [FranchiseeRole(franchise_id=404)])
        self.assertEqual(self.count_rows(User, User.email == "owner@jwt.com"), 0)

    def test_admin_and_diner_rows_have_no_target(self) -> None:
        user = self.repo.create_user("both", "both@jwt.com", "both", [DinerRole(), AdminRole()])
        with self.db.connection() as conn:
            rows = conn.execute(
                UserRole.__table__.select().where(UserRole.user_id == user.id)
            ).all()
        self.assertEqual(sorted(row.role for row in rows), ["admin", "diner"])
        self.assertTrue(all(row.object_id is None for row in rows))


class TestUpdateUser(RepositoryTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.user = self.repo.create_user("pizza diner", "d@jwt.com", "diner")

    def test_updates_only_supplied_fields(self) -> None:
        updated = self.repo.update_user(self.user.id, name="renamed")
        self.assertEqual(updated.name, "renamed")
        self.assertEqual(updated.email, "d@jwt.com")
        self.repo.authenticate_user("d@jwt.com", "diner")

    def test_new_password_is_hashed(self) -> None:
        self.repo.update_user(self.user.id, password="n3w")
        self.repo.authenticate_user("d@jwt.com", "n3w")
        with self.assertRaises(NotFoundError):
            self.repo.authenticate_user("d@jwt.com", "diner")

    def test_email_change(self) -> None:
        self.repo.update_user(self.user.id, email="new@jwt.com")
        self.assertEqual(self.repo.authenticate_user("new@jwt.com", "diner").id, self.user.id)

    def test_no_fields_just_reloads(self) -> None:
        self.assertEqual(self.repo.update_user(self.user.id), self.user)

    def test_values_are_bound_not_interpolated(self) -> None:
        hostile = "x', email='admin@jwt.com"
        updated = self.repo.update_user(self.user.id, name=hostile)
        self.assertEqual(updated.name, hostile)
        self.assertEqual(updated.email, "d@jwt.com")

    def test_duplicate_email_propagates_storage_error(self) -> None:
        self.repo.create_user("other", "o@jwt.com", "other")
        with self.assertRaises(IntegrityError):
            self.repo.update_user(self.user.id, email="o@jwt.com")

    def test_unknown_user_is_not_found(self) -> None:
        with self.assertRaises(NotFoundError):
            self.repo.update_user(self.user.id + 100, name="ghost")


class TestDeleteUser(RepositoryTestCase):
    """delete_user removes the user and everything it owns, or nothing at all."""

    def setUp(self) -> None:
        super().setUp()
        self.sessions = SessionValidator(self.db)
        self.user = self.repo.create_user("pizza diner", "d@jwt.com", "diner")
        self.franchise = self.repo.create_franchise("pizzaPocket", ["d@jwt.com"])
        self.store = self.repo.create_store(self.franchise.id, "SLC")
        pizza = self.add_pizza()
        self.order = self.repo.create_order(
            self.user.id,
            self.franchise.id,
            self.store.id,
            [NewOrderItem(menu_id=pizza.id, description="Veggie", price=pizza.price)],
        )
        self.token = make_token(self.user.id)
        self.sessions.record_session(self.user.id, self.token)

    def test_cascade_leaves_no_orphans(self) -> None:
        self.repo.delete_user("d@jwt.com")

        with self.assertRaises(NotFoundError):
            self.repo.authenticate_user("d@jwt.com", "diner")
        self.assertEqual(self.count_rows(User, User.id == self.user.id), 0)
        self.assertEqual(self.count_rows(UserRole, UserRole.user_id == self.user.id), 0)
        self.assertEqual(self.count_rows(DinerOrder, DinerOrder.diner_id == self.user.id), 0)
        self.assertEqual(self.count_rows(OrderItem, OrderItem.order_id == self.order.id), 0)
        self.assertEqual(self.count_rows(AuthSession, AuthSession.user_id == self.user.id), 0)
        self.assertFalse(self.sessions.is_valid(self.token))

    def test_franchise_survives_its_admin(self) -> None:
        self.repo.delete_user("d@jwt.com")
        franchise = self.repo.get_franchise(self.franchise.id)
        self.assertEqual(franchise.admins, [])

    def test_other_users_untouched(self) -> None:
        other = self.repo.create_user("other", "o@jwt.com", "other")
        self.repo.delete_user("d@jwt.com")
        self.assertEqual(self.repo.get_user_by_id(other.id).email, "o@jwt.com")

    def test_unknown_email_is_noop(self) -> None:
        users_before = self.count_rows(User)
        self.repo.delete_user("nobody@jwt.com")
        self.assertEqual(self.count_rows(User), users_before)

    def test_failure_rolls_back_everything(self) -> None:
        def fail_on_role_delete(conn, cursor, statement, parameters, context, executemany):
            if statement.lstrip().upper().startswith("DELETE FROM USER_ROLES"):
                raise RuntimeError("disk on fire")

        event.listen(self.db.engine, "before_cursor_execute", fail_on_role_delete)
        try:
            with self.assertRaises(InternalError) as ctx:
                self.repo.delete_user("d@jwt.com")
        finally:
            event.remove(self.db.engine, "before_cursor_execute", fail_on_role_delete)

        self.assertIsInstance(ctx.exception.__cause__, RuntimeError)
        self.assertEqual(self.repo.authenticate_user("d@jwt.com", "diner").id, self.user.id)
        self.assertEqual(self.count_rows(DinerOrder, DinerOrder.diner_id == self.user.id), 1)
        self.assertEqual(self.count_rows(OrderItem, OrderItem.order_id == self.order.id), 1)
        self.assertTrue(self.sessions.is_valid(self.token))


class TestListUsers(RepositoryTestCase):
    def setUp(self) -> None:
        super().setUp()
        for i in range(3):
            self.repo.create_user(f"pizza diner {i}", f"d{i}@jwt.com", "diner")

    def test_pages_with_more_flag(self) -> None:
        users, more = self.repo.list_users(page=0, limit=2, name_filter="pizza diner*")
        self.assertEqual([u.email for u in users], ["d0@jwt.com", "d1@jwt.com"])
        self.assertTrue(more)
        users, more = self.repo.list_users(page=1, limit=2, name_filter="pizza diner*")
        self.assertEqual([u.email for u in users], ["d2@jwt.com"])
        self.assertFalse(more)

    def test_default_filter_includes_bootstrap_admin(self) -> None:
        users, more = self.repo.list_users()
        self.assertEqual(len(users), 4)
        self.assertFalse(more)
        self.assertEqual(users[0].roles, [AdminRole()])

    def test_filter_without_match(self) -> None:
        self.assertEqual(self.repo.list_users(name_filter="nobody*"), ([], False))


if __name__ == "__main__":
    unittest.main()
