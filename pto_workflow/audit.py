from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

AUDIT_LOG = Path("data/audit_log.jsonl")


class AuditLogger:
    """Append-only JSON-lines record of handled trigger events."""

    def __init__(self, path: Path = AUDIT_LOG):
        self.path = path

    def record(self, outcome: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        entry = {**outcome, "logged_at": datetime.now().isoformat()}
        with self.path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(entry, default=str) + "\n")

    def entries(self, request_id: Optional[str] = None) -> List[Dict[str, Any]]:
        if not self.path.exists():
            return []
        with self.path.open("r", encoding="utf-8") as handle:
            records = [json.loads(line) for line in handle if line.strip()]
        if request_id is not None:
            records = [r for r in records if r.get("request_id") == request_id]
        return records
