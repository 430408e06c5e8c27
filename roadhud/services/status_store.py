from dataclasses import dataclass, field
from datetime import datetime
from typing import List


@dataclass
class StatusStore:
    """Ring buffer of log lines; the HUD reads it through GET /status."""
    max_lines: int = 200
    logs: List[str] = field(default_factory=list)

    def log(self, msg: str):
        self.logs.append(f"{datetime.now():%H:%M:%S} {msg}")
        if len(self.logs) > self.max_lines:
            self.logs = self.logs[-self.max_lines:]

    def tail(self, n: int = 50) -> List[str]:
        return self.logs[-n:]
