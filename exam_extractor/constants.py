"""
Centralized constants for the extraction pipeline and the upload form.
These are imported by the client, the parsers and the Streamlit page so
that field names, limits and defaults are not guessed in multiple places.
"""
from __future__ import annotations

from typing import Dict, List

# Result record fields, in display order
RESULT_COLS: List[str] = ["parameter", "value", "unit"]

# Top-level array returned by the model in schema mode
EXAMS_KEY: str = "exams"

# Fallbacks used by the line-oriented parser
UNKNOWN_PARAMETER: str = "Desconhecido"
MISSING_VALUE: str = "N/A"

# Credential sanity check: shorter keys are treated as absent
MIN_API_KEY_LENGTH: int = 6
API_KEY_ENV_VARS: List[str] = ["API_KEY", "GEMINI_API_KEY", "GOOGLE_API_KEY"]

# Model defaults
DEFAULT_MODEL: str = "gemini-2.5-pro"
DEFAULT_TEMPERATURE: float = 0.1
DEFAULT_TOP_P: float = 0.95
DEFAULT_TIMEOUT_SECONDS: float = 90.0
DEFAULT_MAX_RETRIES: int = 1

# Extraction modes
MODE_SCHEMA: str = "schema"
MODE_LINES: str = "lines"
EXTRACTION_MODES: List[str] = [MODE_SCHEMA, MODE_LINES]

# Upload form
MAX_UPLOAD_BYTES: int = 10 * 1024 * 1024
UPLOAD_TYPES: List[str] = ["pdf", "png", "jpg", "jpeg", "webp", "heic", "heif"]
PDF_MIME: str = "application/pdf"
FALLBACK_MIME: str = "application/octet-stream"

# JSON schema handed to the model in schema mode
EXAMS_RESPONSE_SCHEMA: Dict = {
    "type": "object",
    "properties": {
        EXAMS_KEY: {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "parameter": {"type": "string"},
                    "value": {"type": "string"},
                    "unit": {"type": "string"},
                },
                "required": RESULT_COLS,
            },
        },
    },
    "required": [EXAMS_KEY],
}
