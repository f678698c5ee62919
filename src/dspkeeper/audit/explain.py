from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path


@dataclass
class ExplainLog:
    """Append-only JSONL event log for reconcile passes.

    With ``path=None`` events are dropped, so library callers that do not
    care about the log can pass a bare ``ExplainLog()``.
    """

    path: Path | None = None
    component: str | None = None

    def emit(self, event: str, payload: dict | None = None) -> None:
        if self.path is None:
            return
        record = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "event": event,
            "payload": payload or {},
        }
        if self.component:
            record["component"] = self.component
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(record, ensure_ascii=False, sort_keys=True) + "\n")

    def bind(self, component: str) -> "ExplainLog":
        return ExplainLog(path=self.path, component=component)
