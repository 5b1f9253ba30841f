from app.extensions import db
from app.utils.dates import isoformat
from .enums import AccountStatus, UserRole


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False)
    password = db.Column(db.String(255), nullable=False)
    role = db.Column(db.Enum(UserRole), nullable=False, default=UserRole.STUDENT)
    status = db.Column(
        db.Enum(AccountStatus), nullable=False, default=AccountStatus.PENDING
    )
    department = db.Column(db.String(120), nullable=True)
    year = db.Column(db.Integer, nullable=True)
    club_id = db.Column(db.Integer, db.ForeignKey("clubs.id"), nullable=True)
    points = db.Column(db.Integer, nullable=False, default=0)
    updated_at = db.Column(
        db.TIMESTAMP(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )
    created_at = db.Column(
        db.TIMESTAMP(timezone=True), nullable=False, server_default=db.func.now()
    )

    @property
    def is_admin(self):
        return self.role == UserRole.ADMIN

    def __eq__(self, other: object) -> bool:
        if isinstance(other, User):
            return self.id == other.id
        return False

    def __hash__(self):
        return hash(self.id)

    def to_dict(self, exclude=None):
        data = {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role.value if self.role else None,
            "status": self.status.value if self.status else None,
            "department": self.department,
            "year": self.year,
            "club_id": self.club_id,
            "points": self.points,
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }
        for key in exclude or []:
            data.pop(key, None)
        return data

    def __repr__(self):
        return (
            f"User("
            f"id={self.id}, "
            f"email='{self.email}', "
            f"role={self.role}, "
            f"status={self.status}"
            f")"
        )
