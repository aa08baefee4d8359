import uuid


def generate_user_id() -> str:
    """
    Generate a 36-character identifier for primary keys.

    Used by SQLAlchemy as a column default, so it must work when called
    with zero arguments.
    """
    return str(uuid.uuid4())
