from typing import List, Optional
from sqlalchemy import case, update
from app.extensions import db
from app.models import Club, ClubMembership


class ClubRepository:
    @staticmethod
    def get_clubs() -> List[Club]:
        return Club.query.order_by(Club.name.asc()).all()

    @staticmethod
    def get_club(club_id: int) -> Optional[Club]:
        return db.session.get(Club, club_id)

    @staticmethod
    def create_club(attrs) -> Club:
        club = Club(**attrs)
        db.session.add(club)
        db.session.flush()
        return club

    @staticmethod
    def find_membership(club_id: int, user_id: int) -> Optional[ClubMembership]:
        return ClubMembership.query.filter_by(club_id=club_id, user_id=user_id).first()

    @staticmethod
    def add_member(club_id: int, user_id: int) -> ClubMembership:
        membership = ClubMembership(club_id=club_id, user_id=user_id)
        db.session.add(membership)
        db.session.execute(
            update(Club)
            .where(Club.id == club_id)
            .values(member_count=Club.member_count + 1)
            .execution_options(synchronize_session=False)
        )
        db.session.flush()
        return membership

    @staticmethod
    def remove_member(membership: ClubMembership) -> None:
        db.session.delete(membership)
        db.session.execute(
            update(Club)
            .where(Club.id == membership.club_id)
            .values(
                member_count=case(
                    (Club.member_count > 1, Club.member_count - 1),
                    else_=0,
                )
            )
            .execution_options(synchronize_session=False)
        )
        db.session.flush()

    @staticmethod
    def add_points(club_id: int, delta: int) -> None:
        db.session.execute(
            update(Club)
            .where(Club.id == club_id)
            .values(points=Club.points + delta)
            .execution_options(synchronize_session=False)
        )

    @staticmethod
    def top_clubs(limit: int = 10) -> List[Club]:
        return Club.query.order_by(Club.points.desc(), Club.id.asc()).limit(limit).all()

    @staticmethod
    def find_memberships_for_user(user_id: int) -> List[ClubMembership]:
        return ClubMembership.query.filter_by(user_id=user_id).all()

    @staticmethod
    def find_by_president(user_id: int) -> List[Club]:
        return Club.query.filter_by(president_id=user_id).all()
