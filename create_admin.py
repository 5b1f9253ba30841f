import os
from app import create_app
from app.models import User
from app.models.enums import AccountStatus, UserRole
from app.extensions import db
from werkzeug.security import generate_password_hash

ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "admin@eventsync.local")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "admin123")


def create_admin_user(update=False):
    app = create_app()
    with app.app_context():
        # Check if admin already exists
        admin = User.query.filter_by(email=ADMIN_EMAIL).first()
        if not admin:
            admin = User(
                name="Admin",
                email=ADMIN_EMAIL,
                password=generate_password_hash(ADMIN_PASSWORD),
                role=UserRole.ADMIN,
                status=AccountStatus.APPROVED,
            )
            db.session.add(admin)
            db.session.commit()
            print("Admin user created successfully!")
        elif update:
            admin.password = generate_password_hash(ADMIN_PASSWORD)
            admin.role = UserRole.ADMIN
            admin.status = AccountStatus.APPROVED
            db.session.commit()
            print("Admin user updated successfully!")
        else:
            print("Admin user already exists!")


if __name__ == "__main__":
    create_admin_user(update=True)
