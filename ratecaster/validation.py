# ratecaster/validation.py
"""
Local argument checks. Everything here runs before any network call.
"""
from __future__ import annotations

from urllib.parse import urlparse

from web3 import Web3

from .categories import is_known_category
from .errors import ValidationError

MIN_STARS = 1
MAX_STARS = 5
MAX_NAME_LENGTH = 100
MAX_DESCRIPTION_LENGTH = 1000


def require_non_empty(value, field: str) -> str:
    if not isinstance(value, str) or not value:
        raise ValidationError(f"{field} must be non-empty")
    return value


def validate_star_rating(stars) -> int:
    if isinstance(stars, bool) or not isinstance(stars, int):
        raise ValidationError(f"Star rating must be an integer, got {stars!r}")
    if stars < MIN_STARS or stars > MAX_STARS:
        raise ValidationError(
            f"Star rating must be between {MIN_STARS} and {MAX_STARS}, got {stars}"
        )
    return stars


def validate_address(address, field: str = "address") -> str:
    if not isinstance(address, str) or not Web3.is_address(address):
        raise ValidationError(f"Invalid {field}: {address!r}")
    return Web3.to_checksum_address(address)


def is_http_url(value) -> bool:
    if not isinstance(value, str) or not value:
        return False
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def validate_dapp_fields(name, description, url, image_url, category_id) -> None:
    """Shared by registration and update."""
    if not isinstance(name, str) or not name or len(name) > MAX_NAME_LENGTH:
        raise ValidationError(
            f"Name must be non-empty and at most {MAX_NAME_LENGTH} characters"
        )
    if description is None:
        description = ""
    if not isinstance(description, str) or len(description) > MAX_DESCRIPTION_LENGTH:
        raise ValidationError(
            f"Description must be at most {MAX_DESCRIPTION_LENGTH} characters"
        )
    if not is_http_url(url):
        raise ValidationError("URL must be a valid HTTP/HTTPS URL")
    if not is_http_url(image_url):
        raise ValidationError("Image URL must be a valid HTTP/HTTPS URL")
    if not is_known_category(category_id):
        raise ValidationError(f"Invalid category ID: {category_id}")
