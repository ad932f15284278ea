"""
Errors raised by the extraction pipeline.

Every failure the caller can see is an `ExtractionError` carrying an
`ErrorKind`. The Streamlit page only needs two branches: `requires_auth`
(reopen the key prompt) and everything else (show the message).
"""
from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    API_KEY_MISSING = "API_KEY_MISSING"
    AUTH_REQUIRED = "AUTH_REQUIRED"
    REMOTE_FAILURE = "REMOTE_FAILURE"
    CONTENT_UNPROCESSABLE = "CONTENT_UNPROCESSABLE"


DEFAULT_MESSAGES = {
    ErrorKind.API_KEY_MISSING: "Nenhuma chave de API configurada. Informe a chave do Gemini para continuar.",
    ErrorKind.AUTH_REQUIRED: "A autenticação falhou. Por favor, conecte sua chave novamente.",
    ErrorKind.REMOTE_FAILURE: "Falha ao processar o documento. Verifique sua conexão ou permissões da chave.",
    ErrorKind.CONTENT_UNPROCESSABLE: "Não foi possível interpretar a resposta do modelo para este documento.",
}


class ExtractionError(Exception):
    kind: ErrorKind = ErrorKind.REMOTE_FAILURE

    def __init__(self, message: Optional[str] = None, kind: Optional[ErrorKind] = None):
        if kind is not None:
            self.kind = kind
        super().__init__(message or DEFAULT_MESSAGES[self.kind])

    @property
    def message(self) -> str:
        return str(self)

    @property
    def requires_auth(self) -> bool:
        return self.kind in (ErrorKind.API_KEY_MISSING, ErrorKind.AUTH_REQUIRED)


class AuthRequiredError(ExtractionError):
    kind = ErrorKind.AUTH_REQUIRED


class RemoteCallError(ExtractionError):
    kind = ErrorKind.REMOTE_FAILURE


class UnprocessableContentError(ExtractionError):
    kind = ErrorKind.CONTENT_UNPROCESSABLE
