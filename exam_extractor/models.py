from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Tuple


class ParseMethod(str, Enum):
    """Which parse stage produced a set of results."""

    JSON = "json"
    FENCED_JSON = "fenced_json"
    RECOVERED = "recovered"
    LINES = "lines"


@dataclass(frozen=True)
class ExamResult:
    """One extracted lab measurement. `unit` is empty when not reported."""

    parameter: str
    value: str
    unit: str = ""

    def as_line(self) -> str:
        line = f"{self.parameter}: {self.value}"
        if self.unit:
            line += f" {self.unit}"
        return line

    def to_dict(self) -> Dict[str, str]:
        return {"parameter": self.parameter, "value": self.value, "unit": self.unit}


@dataclass(frozen=True)
class EncodedDocument:
    data: str  # base64
    mime_type: str
    size: int = 0


@dataclass(frozen=True)
class ExtractionResponse:
    results: Tuple[ExamResult, ...]
    raw_text: str
    parse_method: ParseMethod = ParseMethod.JSON
    model: str = field(default="", compare=False)

    @property
    def recovered(self) -> bool:
        return self.parse_method is ParseMethod.RECOVERED
