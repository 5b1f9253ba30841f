from typing import List, Optional
from sqlalchemy import case, update
from app.extensions import db
from app.models import User
from app.models.enums import AccountStatus, UserRole


class UserRepository:
    @staticmethod
    def sign_up(user):
        db.session.add(user)
        db.session.commit()
        return user

    @staticmethod
    def find_by_email(email):
        return User.query.filter_by(email=email).first()

    @staticmethod
    def find_by_id(user_id: int) -> Optional[User]:
        return db.session.get(User, user_id)

    @staticmethod
    def get_users(role: UserRole = None) -> List[User]:
        query = User.query
        if role is not None:
            query = query.filter(User.role == role)
        return query.order_by(User.created_at.asc()).all()

    @staticmethod
    def find_approved_students() -> List[User]:
        return User.query.filter(
            User.role == UserRole.STUDENT, User.status == AccountStatus.APPROVED
        ).all()

    @staticmethod
    def top_students(limit: int = 10) -> List[User]:
        return (
            User.query.filter(User.role == UserRole.STUDENT)
            .order_by(User.points.desc(), User.id.asc())
            .limit(limit)
            .all()
        )

    @staticmethod
    def add_points(user_id: int, delta: int) -> None:
        """Adjusts a user's points in place; the total never drops below zero."""
        stmt = (
            update(User)
            .where(User.id == user_id)
            .values(
                points=case(
                    (User.points + delta > 0, User.points + delta),
                    else_=0,
                )
            )
            .execution_options(synchronize_session=False)
        )
        db.session.execute(stmt)

    @staticmethod
    def delete(user: User):
        db.session.delete(user)
        db.session.flush()
