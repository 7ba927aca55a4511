"""
Create a user (e.g. an admin to replace the bootstrap account). Run from project root:
  python -m pizza_core.scripts.create_user NAME EMAIL PASSWORD [role]
Example:
  python -m pizza_core.scripts.create_user "Pizza Admin" admin@example.com your-secure-password admin
"""
import argparse
import logging
import sys
from collections.abc import Sequence

from dotenv import load_dotenv

from pizza_core.core.config import get_settings
from pizza_core.core.errors import ConflictError
from pizza_core.core.security import (
    NAME_MAX_LEN,
    NAME_MIN_LEN,
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
)
from pizza_core.schemas import AdminRole, DinerRole
from pizza_core.services.repository import EntityRepository


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create a pizza ordering user.")
    parser.add_argument("name", help="Display name (1-255 chars)")
    parser.add_argument("email", help="Email used to log in")
    parser.add_argument("password", help="Password (1-128 chars)")
    parser.add_argument("role", nargs="?", default="diner", choices=["diner", "admin"])
    args = parser.parse_args(argv)

    name = args.name.strip()
    if not (NAME_MIN_LEN <= len(name) <= NAME_MAX_LEN):
        print("Invalid name length.", file=sys.stderr)
        return 1
    if "@" not in args.email:
        print("Invalid email.", file=sys.stderr)
        return 1
    if not (PASSWORD_MIN_LEN <= len(args.password) <= PASSWORD_MAX_LEN):
        print(f"Password must be {PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} characters.", file=sys.stderr)
        return 1

    role = AdminRole() if args.role == "admin" else DinerRole()
    with EntityRepository.from_settings(get_settings()) as repository:
        try:
            user = repository.create_user(name, args.email.strip(), args.password, [role])
        except ConflictError:
            print(f"User '{args.email}' already exists.", file=sys.stderr)
            return 1
    print(f"Created user '{user.email}' (id={user.id}) with role '{args.role}'.")
    return 0


if __name__ == "__main__":
    load_dotenv()
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%SZ",
    )
    sys.exit(main())
