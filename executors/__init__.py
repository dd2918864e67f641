"""Chat command executors; each returns a list of frames."""
from typing import Any, Dict, List


def text(message: str) -> Dict[str, Any]:
    return {"type": "text", "data": message}


def table(rows: List[Dict[str, Any]]) -> Dict[str, Any]:
    return {"type": "table", "data": rows}
