"""Session snapshot merging.

A snapshot tracks questionnaire-style progress:

    {"progress": {"answered": 3, "total_questions": 12, "current_question": 4},
     "partial_answers": {"q1": "..."}}

Merging never moves `progress.answered` backwards and never past the total.
"""

import json
import logging
from typing import Any

logger = logging.getLogger(__name__)


def snapshot_errors(snapshot: dict[str, Any] | None) -> list[str]:
    """list integrity problems in a snapshot."""
    if not snapshot:
        return ["snapshot is empty"]
    errors = []
    progress = snapshot.get("progress")
    if not isinstance(progress, dict):
        errors.append("missing progress field")
    else:
        answered = progress.get("answered")
        total = progress.get("total_questions")
        if not isinstance(answered, int) or answered < 0:
            errors.append("invalid progress.answered value")
        if total is not None and (not isinstance(total, int) or total < 0):
            errors.append("invalid progress.total_questions value")
        if isinstance(answered, int) and isinstance(total, int) and answered > total:
            errors.append("answered questions exceed total questions")
    partial = snapshot.get("partial_answers")
    if partial is not None and not isinstance(partial, dict):
        errors.append("invalid partial_answers field - must be object")
    return errors


def merge_snapshots(
    existing: dict[str, Any] | None, incoming: dict[str, Any] | None
) -> dict[str, Any]:
    """merge `incoming` into `existing`, preferring the higher progress."""
    if not incoming:
        return dict(existing or {})
    if not existing:
        return dict(incoming)

    merged = dict(existing)
    old_progress = existing.get("progress")
    new_progress = incoming.get("progress")

    if isinstance(new_progress, dict) and isinstance(old_progress, dict):
        old_answered = old_progress.get("answered") or 0
        new_answered = new_progress.get("answered") or 0
        total = new_progress.get("total_questions", old_progress.get("total_questions"))
        if new_answered < old_answered:
            logger.warning(
                "Ignoring snapshot progress rollback from %s to %s", old_answered, new_answered
            )
        elif isinstance(total, int) and new_answered > total:
            logger.warning("Ignoring snapshot progress %s beyond total %s", new_answered, total)
        else:
            merged["progress"] = {**old_progress, **new_progress}
    elif isinstance(new_progress, dict) and not snapshot_errors(incoming):
        merged["progress"] = new_progress

    new_answers = incoming.get("partial_answers")
    if isinstance(new_answers, dict):
        merged["partial_answers"] = {**(existing.get("partial_answers") or {}), **new_answers}

    for key, value in incoming.items():
        if key not in ("progress", "partial_answers"):
            merged[key] = value
    return merged


def snapshot_from_request(data: dict[str, Any]) -> dict[str, Any] | None:
    """extract the new snapshot from `snapshot_data` (maybe a JSON string) or `snapshot`."""
    raw = data.get("snapshot_data")
    if raw is None:
        raw = data.get("snapshot")
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Discarding unparseable snapshot_data")
            return None
    return raw if isinstance(raw, dict) else None
