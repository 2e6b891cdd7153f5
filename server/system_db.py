"""SQLite storage for agent system specifications."""

import os
import sqlite3
from pathlib import Path

from orchestra.models.agent_system import AgentSystemSpec
from orchestra.utils.identifiers import utc_timestamp

SYSTEM_DB_PATH = Path(os.getenv("ORCHESTRA_DB_PATH", "data/orchestra.db"))


def _connect() -> sqlite3.Connection:
    SYSTEM_DB_PATH.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(SYSTEM_DB_PATH)
    conn.row_factory = sqlite3.Row
    return conn


def init_db() -> None:
    with _connect() as conn:
        conn.execute(
            """
            create table if not exists agent_systems (
                system_id text primary key,
                spec_json text not null,
                status text not null,
                created_at text not null,
                updated_at text not null
            )
            """
        )
        conn.execute(
            "create index if not exists idx_agent_systems_status on agent_systems(status)"
        )
        conn.commit()


def upsert_system(system: AgentSystemSpec) -> None:
    """insert or update a system spec."""
    with _connect() as conn:
        conn.execute(
            """
            insert into agent_systems (system_id, spec_json, status, created_at, updated_at)
            values (?, ?, ?, ?, ?)
            on conflict(system_id) do update set
                spec_json = excluded.spec_json,
                status = excluded.status,
                updated_at = excluded.updated_at
            """,
            (
                system.id,
                system.model_dump_json(),
                system.status.value,
                system.metadata.created_at,
                utc_timestamp(),
            ),
        )
        conn.commit()


def get_system(system_id: str) -> AgentSystemSpec | None:
    with _connect() as conn:
        row = conn.execute(
            "select spec_json from agent_systems where system_id = ?",
            (system_id,),
        ).fetchone()
    if not row:
        return None
    return AgentSystemSpec.model_validate_json(row["spec_json"])


def list_systems(status: str | None = None) -> list[AgentSystemSpec]:
    with _connect() as conn:
        if status:
            rows = conn.execute(
                "select spec_json from agent_systems where status = ? order by created_at desc",
                (status,),
            ).fetchall()
        else:
            rows = conn.execute(
                "select spec_json from agent_systems order by created_at desc"
            ).fetchall()
    return [AgentSystemSpec.model_validate_json(row["spec_json"]) for row in rows]


def delete_system(system_id: str) -> None:
    with _connect() as conn:
        conn.execute("delete from agent_systems where system_id = ?", (system_id,))
        conn.commit()
