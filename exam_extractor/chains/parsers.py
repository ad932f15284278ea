"""
Parsers for the model's reply.

Schema mode goes through three stages, each tried only when the previous
one failed:

1. plain `json.loads`
2. `json.loads` after removing a surrounding ```json fence
3. `recover_exam_triples`, a regex scan for parameter/value/unit fields

Stage 3 is the degraded path. It is kept as its own public function and is
reported as `ParseMethod.RECOVERED` so a recovered parse is never mistaken
for a clean one.
"""
import re
import json
import logging
from typing import Any, List, NamedTuple, Optional

from exam_extractor.constants import EXAMS_KEY, MISSING_VALUE, UNKNOWN_PARAMETER
from exam_extractor.errors import UnprocessableContentError
from exam_extractor.models import ExamResult, ParseMethod

logger = logging.getLogger(__name__)

FENCED_BLOCK_RE = re.compile(r"```[A-Za-z0-9_-]*[ \t]*\r?\n?(.*?)```", re.DOTALL)
OPEN_FENCE_RE = re.compile(r"^\s*```[A-Za-z0-9_-]*[ \t]*\r?\n?")

# JSON string literal body, escapes allowed
_STR = r'"((?:[^"\\]|\\.)*)"'
_NUM = r"(-?\d+(?:[.,]\d+)*)"
# A closed {...} with no nested objects; braces inside strings are allowed
OBJECT_RE = re.compile(r'\{(?:[^{}"]|"(?:[^"\\]|\\.)*")*\}', re.DOTALL)
PARAMETER_RE = re.compile(r'"parameter"\s*:\s*' + _STR, re.DOTALL)
VALUE_RE = re.compile(r'"value"\s*:\s*(?:' + _STR + r"|" + _NUM + r")", re.DOTALL)
UNIT_RE = re.compile(r'"unit"\s*:\s*' + _STR, re.DOTALL)


class ParsedResults(NamedTuple):
    results: List[ExamResult]
    method: ParseMethod


def _as_text(x: Any) -> str:
    if x is None:
        return ""
    return str(x).strip()


def _to_result(item: Any) -> Optional[ExamResult]:
    if not isinstance(item, dict):
        return None
    parameter = _as_text(item.get("parameter"))
    value = _as_text(item.get("value"))
    if not parameter and not value:
        return None
    return ExamResult(parameter=parameter, value=value, unit=_as_text(item.get("unit")))


def _results_from_json(text: str) -> List[ExamResult]:
    data = json.loads(text)
    if isinstance(data, dict) and isinstance(data.get(EXAMS_KEY), list):
        items = data[EXAMS_KEY]
    elif isinstance(data, list):
        items = data
    else:
        raise ValueError(f"Expected an object with an '{EXAMS_KEY}' array")
    out = []
    for item in items:
        r = _to_result(item)
        if r is not None:
            out.append(r)
    return out


def strip_code_fence(text: str) -> str:
    """Return the body of the first ``` fenced block, or the text minus a dangling opener."""
    m = FENCED_BLOCK_RE.search(text)
    if m:
        return m.group(1).strip()
    return OPEN_FENCE_RE.sub("", text, count=1).strip()


def _unescape(s: str) -> str:
    try:
        return json.loads(f'"{s}"')
    except ValueError:
        return s


def recover_exam_triples(text: str) -> List[ExamResult]:
    """Best-effort scan of malformed or truncated JSON for parameter/value/unit fields.

    Only closed `{...}` records count, so a record cut off mid-way is dropped
    rather than returned with a made-up empty unit. Keys may come in any order.
    """
    out: List[ExamResult] = []
    for obj in OBJECT_RE.finditer(text):
        body = obj.group(0)
        pm = PARAMETER_RE.search(body)
        vm = VALUE_RE.search(body)
        if pm is None or vm is None:
            continue
        str_value, num_value = vm.groups()
        value = _unescape(str_value) if str_value is not None else num_value
        um = UNIT_RE.search(body)
        out.append(ExamResult(
            parameter=_unescape(pm.group(1)).strip(),
            value=(value or "").strip(),
            unit=_unescape(um.group(1)).strip() if um is not None else "",
        ))
    return out


def parse_structured_response(text: str) -> ParsedResults:
    """Parse a schema-constrained reply into results.

    Raises:
        UnprocessableContentError: If neither JSON stage works and recovery finds nothing.
    """
    text = text or ""
    try:
        return ParsedResults(_results_from_json(text), ParseMethod.JSON)
    except ValueError:
        pass

    unfenced = strip_code_fence(text)
    if unfenced != text.strip():
        try:
            return ParsedResults(_results_from_json(unfenced), ParseMethod.FENCED_JSON)
        except ValueError:
            pass

    recovered = recover_exam_triples(text)
    if not recovered:
        logger.error(f"Unparseable model response ({len(text)} chars)")
        raise UnprocessableContentError()
    logger.warning(f"Model JSON was malformed; recovered {len(recovered)} results by pattern")
    return ParsedResults(recovered, ParseMethod.RECOVERED)


def parse_line_response(text: str) -> List[ExamResult]:
    """Parse "Parameter: Value" lines; the split happens on the first colon only."""
    out: List[ExamResult] = []
    for line in (text or "").splitlines():
        if not line.strip():
            continue
        parameter, _, value = line.partition(":")
        out.append(ExamResult(
            parameter=parameter.strip() or UNKNOWN_PARAMETER,
            value=value.strip() or MISSING_VALUE,
        ))
    return out


def render_raw_text(results: List[ExamResult]) -> str:
    return "\n".join(r.as_line() for r in results)
