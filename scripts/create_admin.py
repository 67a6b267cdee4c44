"""Create an administrator account.

Usage: python scripts/create_admin.py NAME EMAIL PASSWORD
"""
import sys
from pathlib import Path

# Project root on the path so the script runs from a checkout
sys.path.insert(0, str(Path(__file__).parent.parent))

from gradebook.db import Base, SessionLocal, engine
from gradebook.errors import GradebookError
from gradebook import models  # noqa: F401
from gradebook.services.auth import AuthenticationGateway


def create_admin(name: str, email: str, password: str) -> int:
    Base.metadata.create_all(bind=engine)
    with SessionLocal() as db:
        try:
            admin = AuthenticationGateway(db).register_admin(name, email, password)
        except GradebookError as exc:
            print(f"Could not create admin: {exc.message}")
            return 1
    print(f"Admin created: {admin.email} (id={admin.id})")
    return 0


if __name__ == "__main__":
    if len(sys.argv) != 4:
        print(__doc__.strip())
        sys.exit(2)
    sys.exit(create_admin(*sys.argv[1:]))
