"""
Create a pre-approved account (e.g. the first admin). Run from project root:
  python -m app.scripts.create_user EMAIL PASSWORD NAME [role]
Example:
  python -m app.scripts.create_user admin@example.com your-secure-password "Dojo Admin" admin
"""
import argparse
import sys

from app.core.database import SessionLocal
from app.models import Role
from app.services.credentials import register
from app.services.errors import EmailConflictError, InvalidInputError


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Create an auto-approved account (system seeding; bypasses the approval queue)."
    )
    parser.add_argument("email", help="Account email")
    parser.add_argument("password", help="Password (8-128 chars)")
    parser.add_argument("name", help="Display name (at least 2 chars)")
    parser.add_argument(
        "role",
        nargs="?",
        default=Role.ADMIN.value,
        choices=[r.value for r in Role],
    )
    args = parser.parse_args(argv)

    db = SessionLocal()
    try:
        account = register(
            db,
            args.email,
            args.password,
            args.name,
            args.role,
            auto_approve=True,
        )
        print(f"Created account '{account.email}' with role '{account.role}'.")
        return 0
    except EmailConflictError:
        print(f"Account '{args.email}' already exists.", file=sys.stderr)
        return 1
    except InvalidInputError as e:
        print(e.message, file=sys.stderr)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
