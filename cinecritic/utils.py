from beanie import PydanticObjectId
from bcrypt import checkpw, gensalt, hashpw
from bson.errors import InvalidId

from .exceptions import InvalidInput


def hash(password: str) -> str:
    return hashpw(password.encode("utf-8"), gensalt()).decode("utf-8")


def verify(plain_password: str, hashed_password: str) -> bool:
    return checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))


def parse_object_id(value, label: str = "id") -> PydanticObjectId:
    """Turn a path/body identifier into an ObjectId, raising InvalidInput when malformed."""
    if isinstance(value, PydanticObjectId):
        return value
    # ObjectId(None) would mint a fresh id
    if value is None or value == "":
        raise InvalidInput(f"{label} is required")
    try:
        return PydanticObjectId(value)
    except (InvalidId, TypeError):
        raise InvalidInput(f"Invalid {label}: {value!r}")
