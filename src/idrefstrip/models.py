from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Dict


@dataclass
class TransformReport:
    elements: int = 0
    flagged_elements: int = 0   # elements carrying the trigger attribute
    text_forwarded: int = 0     # Characters/CData events written
    text_suppressed: int = 0    # Characters/CData events dropped
    chars_suppressed: int = 0
    max_depth: int = 0
    bytes_written: int = 0

    def as_dict(self) -> Dict[str, int]:
        return asdict(self)
