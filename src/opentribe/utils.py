from datetime import UTC, datetime

from opentribe.errors import ValidationError


def now() -> datetime:
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    """Return an aware UTC datetime, treating naive values as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def check_length(value: str, label: str, max_length: int, min_length: int = 0) -> None:
    """Raise ValidationError when the stripped value is outside [min_length, max_length]."""
    length = len(value.strip())
    if length < min_length:
        if min_length == 1:
            raise ValidationError(f"{label} cannot be empty")
        raise ValidationError(f"{label} must be at least {min_length} characters")
    if len(value) > max_length:
        raise ValidationError(f"{label} exceeds {max_length} characters")
