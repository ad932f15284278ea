"""
Single-flight submission of an upload to the extractor.

The page state is any mutable mapping (Streamlit's `st.session_state` in the
app, a plain dict in tests). `request_extraction` is the button's `on_click`
callback and raises the `in_flight` flag before the page is redrawn;
`run_extraction` then does the work on that rerun and always lowers it.
"""
import logging
from typing import Any, Callable, MutableMapping, Optional

from exam_extractor.chains.extract import extract_lab_data
from exam_extractor.config import Settings
from exam_extractor.errors import ExtractionError
from exam_extractor.ingestion.encoder import exceeds_size_limit, is_supported_upload
from exam_extractor.models import ExtractionResponse

logger = logging.getLogger(__name__)

UNSUPPORTED_MESSAGE = "Formato não suportado. Envie um PDF ou uma imagem."
UNREADABLE_MESSAGE = "Não foi possível ler o arquivo enviado."
OVERSIZE_NOTICE = "O arquivo tem mais de 10MB; a extração pode falhar ou demorar."

Extractor = Callable[..., ExtractionResponse]


def init_state(state: MutableMapping[str, Any]) -> None:
    for name, default in (
        ("result", None),
        ("error", None),
        ("file_name", None),
        ("notice", None),
        ("in_flight", False),
        ("ask_key", False),
    ):
        if name not in state:
            state[name] = default


def reset_results(state: MutableMapping[str, Any]) -> None:
    state["result"] = None
    state["error"] = None
    state["file_name"] = None
    state["notice"] = None


def request_extraction(state: MutableMapping[str, Any]) -> bool:
    """Mark an extraction as in flight. Returns False if one already is."""
    if state.get("in_flight"):
        logger.info("Extraction already in flight; ignoring repeated request")
        return False
    state["in_flight"] = True
    return True


def run_extraction(
    state: MutableMapping[str, Any],
    uploaded: Optional[Any],
    settings: Settings,
    extract: Extractor = extract_lab_data,
) -> Optional[ExtractionResponse]:
    """Run one extraction for `uploaded` and store the outcome in `state`.

    `uploaded` is a Streamlit `UploadedFile` or anything with `name`, `type`,
    `size` and the read methods `encode_document` accepts. The `in_flight`
    flag is cleared on every exit path.
    """
    try:
        if uploaded is None:
            return None
        reset_results(state)
        state["file_name"] = uploaded.name
        if not is_supported_upload(uploaded.name, getattr(uploaded, "type", None)):
            logger.warning(f"Rejected unsupported upload {uploaded.name}")
            state["error"] = ExtractionError(UNSUPPORTED_MESSAGE)
            return None
        if exceeds_size_limit(getattr(uploaded, "size", 0) or 0):
            state["notice"] = OVERSIZE_NOTICE
        try:
            res = extract(uploaded, settings=settings)
        except ExtractionError as e:
            logger.error(f"Extraction failed for {uploaded.name}: {e.kind.value}")
            state["error"] = e
            if e.requires_auth:
                state["ask_key"] = True
            return None
        except OSError as e:
            logger.error(f"Could not read {uploaded.name}: {e}")
            state["error"] = ExtractionError(UNREADABLE_MESSAGE)
            return None
        state["result"] = res
        return res
    finally:
        state["in_flight"] = False
