"""ID generation and timestamp utilities."""

import uuid
from datetime import datetime, timezone


def generate_message_id() -> str:
    """Generate a unique message ID (UUID4)."""
    return str(uuid.uuid4())


def generate_system_id() -> str:
    """Generate an agent system ID (`system_` + 12 hex chars)."""
    return f"system_{uuid.uuid4().hex[:12]}"


def generate_session_id(system_id: str) -> str:
    """Generate a session ID scoped to a system."""
    return f"{system_id}:{uuid.uuid4()}"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def utc_timestamp() -> str:
    """Generate an ISO8601 UTC timestamp."""
    return utc_now().isoformat()


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO8601 timestamp, treating naive values as UTC."""
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
