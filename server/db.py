"""database initialization helpers."""

from server.system_db import init_db as init_system_db


def init_all() -> None:
    """initialize all sqlite tables."""
    init_system_db()
