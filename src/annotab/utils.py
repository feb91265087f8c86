import math
import secrets
import string
import time
from datetime import UTC, datetime

from annotab.errors import ValidationError

_BASE36 = string.digits + string.ascii_lowercase


def now_ms() -> int:
    """Current time as epoch milliseconds."""
    return time.time_ns() // 1_000_000


def random_suffix(length: int = 5) -> str:
    return "".join(secrets.choice(_BASE36) for _ in range(length))


def generate_project_id() -> str:
    """Collision-resistant project id: clock timestamp plus random base36 suffix."""
    return f"proj-{now_ms()}-{random_suffix()}"


def to_epoch_ms(value: int | float | str) -> int:
    """Convert an epoch-ms number or an ISO-8601 string to epoch milliseconds."""
    if isinstance(value, bool) or (isinstance(value, float) and not math.isfinite(value)):
        raise ValidationError(f"Invalid timestamp: {value!r}")
    if isinstance(value, int | float):
        return int(value)
    text = value.strip()
    if text.lstrip("-").isdecimal():
        return int(text)
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError as e:
        raise ValidationError(f"Invalid timestamp: {value!r}") from e
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return int(parsed.timestamp() * 1000)
