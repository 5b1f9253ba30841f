from app.repositories import ClubRepository, UserRepository


class LeaderboardService:
    @staticmethod
    def get_leaderboards(limit: int = 10):
        students = UserRepository.top_students(limit)
        clubs = ClubRepository.top_clubs(limit)
        return {
            "students": [
                {"rank": i + 1, "id": s.id, "name": s.name, "department": s.department, "points": s.points}
                for i, s in enumerate(students)
            ],
            "clubs": [
                {"rank": i + 1, "id": c.id, "name": c.name, "points": c.points}
                for i, c in enumerate(clubs)
            ],
        }
