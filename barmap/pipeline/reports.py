"""Run summary written next to the run log."""

from __future__ import annotations

from pathlib import Path

from barmap.common.fs import write_json
from barmap.common.time_utils import utc_timestamp_iso


def write_run_summary(
    run_meta_dir: Path,
    *,
    run_id: str,
    command: str,
    counters: dict,
    outputs: list[Path],
) -> Path:
    status = "success"
    if counters.get("failed", 0) > 0:
        status = "partial"

    summary_path = run_meta_dir / f"{run_id}.summary.json"
    payload = {
        "run_id": run_id,
        "command": command,
        "finished_at": utc_timestamp_iso(),
        "status": status,
        "counters": counters,
        "outputs": [str(path) for path in outputs],
    }
    write_json(summary_path, payload)
    return summary_path
