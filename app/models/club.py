from app.extensions import db
from app.utils.dates import isoformat


class Club(db.Model):
    __tablename__ = "clubs"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    logo = db.Column(db.String(512), nullable=True)
    president = db.Column(db.String(120), nullable=True)
    president_id = db.Column(db.Integer, nullable=True)
    vice_president = db.Column(db.String(120), nullable=True)
    faculty_advisor = db.Column(db.String(120), nullable=True)
    phone_no = db.Column(db.String(20), nullable=True)
    member_count = db.Column(db.Integer, nullable=False, default=0)
    points = db.Column(db.Integer, nullable=False, default=0)
    tags = db.Column(db.JSON, nullable=False, default=list)
    created_at = db.Column(
        db.TIMESTAMP(timezone=True), nullable=False, server_default=db.func.now()
    )
    updated_at = db.Column(
        db.TIMESTAMP(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def contact_details(self):
        return {"president": self.president, "phone_no": self.phone_no}

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "logo": self.logo,
            "president": self.president,
            "president_id": self.president_id,
            "vice_president": self.vice_president,
            "faculty_advisor": self.faculty_advisor,
            "phone_no": self.phone_no,
            "member_count": self.member_count,
            "points": self.points,
            "tags": self.tags or [],
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }


class ClubMembership(db.Model):
    __tablename__ = "club_memberships"

    id = db.Column(db.Integer, primary_key=True)
    club_id = db.Column(db.Integer, db.ForeignKey("clubs.id"), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    joined_at = db.Column(
        db.TIMESTAMP(timezone=True), nullable=False, server_default=db.func.now()
    )

    __table_args__ = (
        db.UniqueConstraint("club_id", "user_id", name="uq_club_user_membership"),
    )

    def __repr__(self):
        return f"<ClubMembership club_id={self.club_id} user_id={self.user_id}>"
