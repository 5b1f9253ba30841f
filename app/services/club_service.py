from flask import current_app
from app.exceptions import (
    MissingFieldsError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from app.models.enums import UserRole
from app.repositories import ClubRepository, UserRepository
from app.utils.transactions import atomic


class ClubService:
    @staticmethod
    def get_clubs():
        return ClubRepository.get_clubs()

    @staticmethod
    def get_club(club_id: int):
        club = ClubRepository.get_club(club_id)
        if not club:
            raise NotFoundError(f"Club with ID {club_id} not found")
        return club

    @staticmethod
    def create_club(data: dict, user_id: int):
        """Creates the club profile of a club account; its creator becomes the first member."""
        user = UserRepository.find_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        if user.role != UserRole.CLUB:
            raise UnauthorizedError("You must be logged in as a club to create a profile")
        if user.club_id:
            raise ValidationError("This account already has a club profile")

        missing = [f for f in ["name", "faculty_advisor"] if not data.get(f)]
        if missing:
            raise MissingFieldsError(missing)

        with atomic("Create club"):
            club = ClubRepository.create_club(
                {
                    "name": data["name"],
                    "description": data.get("description"),
                    "logo": data.get("logo"),
                    "president": data.get("president") or user.name,
                    "president_id": user.id,
                    "vice_president": data.get("vice_president"),
                    "faculty_advisor": data["faculty_advisor"],
                    "phone_no": data.get("phone_no"),
                    "tags": data.get("tags") or [],
                    "member_count": 0,
                    "points": 0,
                }
            )
            ClubRepository.add_member(club.id, user.id)
            user.club_id = club.id

        current_app.logger.info(f"Club {club.id} created by user {user_id}")
        return club

    @staticmethod
    def join_club(club_id: int, user_id: int):
        ClubService.get_club(club_id)
        if ClubRepository.find_membership(club_id, user_id):
            raise ValidationError("You are already a member of this club")
        with atomic("Join club", on_conflict=ValidationError("You are already a member of this club")):
            ClubRepository.add_member(club_id, user_id)
        current_app.logger.info(f"User {user_id} joined club {club_id}")
        return ClubService.get_club(club_id)

    @staticmethod
    def leave_club(club_id: int, user_id: int):
        club = ClubService.get_club(club_id)
        if club.president_id == user_id:
            raise ValidationError("The club president cannot leave the club")
        membership = ClubRepository.find_membership(club_id, user_id)
        if not membership:
            raise NotFoundError("You are not a member of this club")
        with atomic("Leave club"):
            ClubRepository.remove_member(membership)
        current_app.logger.info(f"User {user_id} left club {club_id}")
        return ClubService.get_club(club_id)
