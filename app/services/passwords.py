"""Password hashing (argon2 through passlib) and the strength policy."""
import re

from passlib.context import CryptContext
from passlib.exc import UnknownHashError

pwd = CryptContext(
    schemes=["argon2"],
    deprecated="auto",
)

MIN_PASSWORD_LENGTH = 8
# at least one lower, upper, digit and symbol from the allowed set
_STRENGTH = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&])[A-Za-z\d@$!%*?&]")


def is_strong_password(password: str) -> bool:
    return len(password) >= MIN_PASSWORD_LENGTH and bool(_STRENGTH.match(password))


def hash_password(password: str) -> str:
    return pwd.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    if not password_hash:
        return False
    try:
        return pwd.verify(password, password_hash)
    except (UnknownHashError, ValueError):
        return False


def needs_rehash(password_hash: str) -> bool:
    return pwd.needs_update(password_hash)
