from flask_jwt_extended import get_jwt_identity


def current_user_id():
    """The authenticated user's id. Tokens carry it as a string."""
    identity = get_jwt_identity()
    return int(identity) if identity is not None else None
