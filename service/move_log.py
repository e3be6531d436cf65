"""Move logs in the format read by the offline trainer."""

import glob
import json
from typing import Dict, List


class MoveLog:
    def __init__(self) -> None:
        self.entries: List[Dict] = []

    def record(self, direction, valid: bool, prev: Dict, next: Dict) -> Dict:
        entry = {
            "type": "move",
            "direction": direction.name,
            "valid": bool(valid),
            "prev": prev,
            "next": next,
        }
        self.entries.append(entry)
        return entry

    def valid_entries(self) -> List[Dict]:
        return [e for e in self.entries if e.get("type") == "move" and e.get("valid")]

    def dump(self, path: str) -> None:
        with open(path, "w") as fh:
            json.dump(self.entries, fh)


def load_moves(pattern: str = "training_data/*.json") -> List[Dict]:
    """Collect the valid moves from every log file matching ``pattern``."""
    all_moves: List[Dict] = []
    for filepath in sorted(glob.glob(pattern)):
        with open(filepath, "r") as fh:
            logs = json.load(fh)
        all_moves.extend(e for e in logs if e.get("type") == "move" and e.get("valid"))
    return all_moves


__all__ = ["MoveLog", "load_moves"]
