import asyncio
import logging
from typing import Any, Iterator, List, Optional

import httpx
from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage
from langchain_google_genai import ChatGoogleGenerativeAI

from exam_extractor.config import Settings, is_usable_api_key, load_settings
from exam_extractor.constants import EXAMS_RESPONSE_SCHEMA, MODE_LINES
from exam_extractor.errors import (
    AuthRequiredError,
    ErrorKind,
    ExtractionError,
    RemoteCallError,
)
from exam_extractor.ingestion.encoder import Source, encode_document
from exam_extractor.models import EncodedDocument, ExtractionResponse, ParseMethod
from .parsers import parse_line_response, parse_structured_response, render_raw_text
from .prompts import LINES_PROMPT, SCHEMA_PROMPT, SYSTEM_BASE

logger = logging.getLogger(__name__)

AUTH_STATUS_CODES = {401, 404}
AUTH_REASONS = {"API_KEY_INVALID"}
TIMEOUT_STATUS_CODES = {408, 504}
# google.api_core DeadlineExceeded carries 504 and is covered by the status check
TIMEOUT_ERRORS = (TimeoutError, httpx.TimeoutException)


def get_llm(settings: Settings) -> BaseChatModel:
    kwargs = {}
    if settings.mode != MODE_LINES:
        kwargs["response_mime_type"] = "application/json"
        kwargs["response_schema"] = EXAMS_RESPONSE_SCHEMA
    return ChatGoogleGenerativeAI(
        model=settings.model,
        google_api_key=settings.api_key,
        temperature=settings.temperature,
        top_p=settings.top_p,
        timeout=settings.timeout_seconds,
        max_retries=settings.max_retries,
        **kwargs,
    )


def build_messages(doc: EncodedDocument, mode: str) -> List[BaseMessage]:
    """System instruction plus one human turn holding the prompt and the inline document."""
    prompt = LINES_PROMPT if mode == MODE_LINES else SCHEMA_PROMPT
    block_type = "image" if doc.mime_type.startswith("image/") else "file"
    return [
        SystemMessage(content=SYSTEM_BASE),
        HumanMessage(content=[
            {"type": "text", "text": prompt},
            {
                "type": block_type,
                "source_type": "base64",
                "mime_type": doc.mime_type,
                "data": doc.data,
            },
        ]),
    ]


def _message_text(msg: Any) -> str:
    content = getattr(msg, "content", msg)
    if isinstance(content, str):
        return content
    parts = []
    for block in content or []:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts)


def _exception_chain(exc: BaseException) -> Iterator[BaseException]:
    seen = set()
    cur: Optional[BaseException] = exc
    while cur is not None and id(cur) not in seen:
        seen.add(id(cur))
        yield cur
        cur = cur.__cause__ or cur.__context__


def _status_code(exc: BaseException) -> Optional[int]:
    for attr in ("code", "status_code"):
        v = getattr(exc, attr, None)
        if isinstance(v, int) and not isinstance(v, bool):
            return int(v)
    resp = getattr(exc, "response", None)
    v = getattr(resp, "status_code", None)
    if isinstance(v, int):
        return v
    return None


def classify_remote_error(exc: BaseException) -> ErrorKind:
    """Map a failed model call to an error kind using status data, not message text.

    401 and 404 ("entity not found", e.g. a key bound to another project) and the
    Google `API_KEY_INVALID` reason mean the credential must be replaced.
    """
    for e in _exception_chain(exc):
        if getattr(e, "reason", None) in AUTH_REASONS:
            return ErrorKind.AUTH_REQUIRED
        if _status_code(e) in AUTH_STATUS_CODES:
            return ErrorKind.AUTH_REQUIRED
    return ErrorKind.REMOTE_FAILURE


def _is_timeout(exc: BaseException) -> bool:
    for e in _exception_chain(exc):
        if isinstance(e, TIMEOUT_ERRORS):
            return True
        if _status_code(e) in TIMEOUT_STATUS_CODES:
            return True
    return False


def _remote_error(exc: Exception, settings: Settings) -> ExtractionError:
    kind = classify_remote_error(exc)
    if kind is ErrorKind.AUTH_REQUIRED:
        return AuthRequiredError()
    if _is_timeout(exc):
        return RemoteCallError(
            f"O modelo não respondeu dentro de {settings.timeout_seconds:g} segundos. "
            "Tente novamente ou aumente GEMINI_TIMEOUT_SECONDS."
        )
    return RemoteCallError()


def _checked_settings(settings: Optional[Settings]) -> Settings:
    settings = settings if settings is not None else load_settings()
    if not is_usable_api_key(settings.api_key):
        logger.warning("Extraction requested without a usable API key")
        raise AuthRequiredError(kind=ErrorKind.API_KEY_MISSING)
    return settings


def _request_messages(doc: EncodedDocument, settings: Settings) -> List[BaseMessage]:
    logger.info(
        f"Extracting {doc.mime_type} ({doc.size} bytes) with {settings.model} in {settings.mode} mode"
    )
    return build_messages(doc, settings.mode)


def _finish(text: str, settings: Settings) -> ExtractionResponse:
    if settings.mode == MODE_LINES:
        results = parse_line_response(text)
        logger.info(f"Parsed {len(results)} results from lines")
        return ExtractionResponse(
            results=tuple(results),
            raw_text=text,
            parse_method=ParseMethod.LINES,
            model=settings.model,
        )
    parsed = parse_structured_response(text)
    logger.info(f"Parsed {len(parsed.results)} results ({parsed.method.value})")
    return ExtractionResponse(
        results=tuple(parsed.results),
        raw_text=render_raw_text(parsed.results),
        parse_method=parsed.method,
        model=settings.model,
    )


def extract_lab_data(
    file: Source,
    settings: Optional[Settings] = None,
    llm: Optional[BaseChatModel] = None,
) -> ExtractionResponse:
    """Extract parameter/value/unit records from a lab-report PDF or image.

    Args:
        file: Path, bytes, or file-like upload.
        settings: Model and credential settings; read from the environment when omitted.
        llm: Optional chat model to use instead of building a Gemini client.

    Raises:
        AuthRequiredError: No usable key (kind API_KEY_MISSING, no call is made)
            or the key was rejected (kind AUTH_REQUIRED).
        RemoteCallError: The model call failed for any other reason.
        UnprocessableContentError: The reply could not be parsed, even by recovery.
        OSError: The file could not be read.
    """
    settings = _checked_settings(settings)
    messages = _request_messages(encode_document(file), settings)
    try:
        model = llm if llm is not None else get_llm(settings)
        reply = model.invoke(messages)
    except Exception as e:
        logger.error(f"Gemini extraction failed: {type(e).__name__}: {e}")
        raise _remote_error(e, settings) from e
    return _finish(_message_text(reply), settings)


async def aextract_lab_data(
    file: Source,
    settings: Optional[Settings] = None,
    llm: Optional[BaseChatModel] = None,
) -> ExtractionResponse:
    """Awaitable variant of `extract_lab_data` with the same contract.

    The file is read in a worker thread so the event loop is not blocked.
    """
    settings = _checked_settings(settings)
    doc = await asyncio.to_thread(encode_document, file)
    messages = _request_messages(doc, settings)
    try:
        model = llm if llm is not None else get_llm(settings)
        reply = await model.ainvoke(messages)
    except Exception as e:
        logger.error(f"Gemini extraction failed: {type(e).__name__}: {e}")
        raise _remote_error(e, settings) from e
    return _finish(_message_text(reply), settings)
