"""
Shared utility functions: JSONL I/O, sentinel decoding.
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

from drone_agent.models import INT256_MIN, READY_UNCHANGED


def append_jsonl(path: Path, obj: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a", encoding="utf-8") as f:
        f.write(json.dumps(obj, ensure_ascii=False) + "\n")


def decode_position(value: int, previous: Optional[int]) -> Optional[int]:
    return previous if value == INT256_MIN else value


def decode_ready(value: int, previous: Optional[bool]) -> Optional[bool]:
    if value == READY_UNCHANGED:
        return previous
    return bool(value)
