"""
Password hashing utilities.
"""

from passlib.context import CryptContext

# New hashes use pbkdf2_sha256; bcrypt hashes from older stores still verify
pwd_context = CryptContext(schemes=["pbkdf2_sha256", "bcrypt"], deprecated="auto")

MIN_PASSWORD_LENGTH = 6


def hash_password(password: str) -> str:
    """
    Hash a password.

    Args:
        password: Plain text password

    Returns:
        Hashed password string

    Raises:
        ValueError: If the password is too short
    """
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")

    return pwd_context.hash(password)


def verify_password(password: str, hashed_password: str) -> bool:
    """
    Verify a password against a stored hash.

    Returns:
        True if password matches, False otherwise (including unknown hash formats)
    """
    if not password or not hashed_password:
        return False
    try:
        return pwd_context.verify(password, hashed_password)
    except ValueError:
        return False
