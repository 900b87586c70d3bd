import os

from sqlalchemy.orm import Session

from agency_admin.core.config import get_settings
from agency_admin.core.database import Database
from agency_admin.core.security import get_password_hash
from agency_admin.models.admin_user import AdminUser


def create_admin(db: Session, email: str, full_name: str, password: str) -> AdminUser | None:
    """Create an admin account; returns None when the email is already taken."""
    existing = db.query(AdminUser).filter(AdminUser.email == email).first()
    if existing:
        return None

    user = AdminUser(
        email=email,
        full_name=full_name,
        hashed_password=get_password_hash(password),
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def main() -> None:
    # Do not hardcode credentials in the repo. Use env vars for local bootstrap.
    admin_email = os.getenv("BOOTSTRAP_ADMIN_EMAIL")
    admin_password = os.getenv("BOOTSTRAP_ADMIN_PASSWORD")
    if not (admin_email and admin_password):
        print("Bootstrap skipped. Set BOOTSTRAP_ADMIN_EMAIL and BOOTSTRAP_ADMIN_PASSWORD to create an admin user.")
        return

    database = Database(get_settings().SQLALCHEMY_DATABASE_URI)
    database.create_all()
    db = database.session()
    try:
        if create_admin(db, admin_email, "Agency Admin", admin_password):
            print(f"Created admin: {admin_email}")
        else:
            print(f"Admin already exists: {admin_email}")
    finally:
        db.close()
        database.dispose()


if __name__ == "__main__":
    main()
