import os
import sys
from pathlib import Path
import pytest

# Ensure project root is on sys.path so `import exam_extractor...` works when running pytest from repo root
ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from langchain_core.messages import AIMessage

from exam_extractor.config import Settings

FAKE_KEY = "test-key-0123456789"


# Pytest configuration: live Gemini tests run when a key is present; disable with --no-live
def pytest_addoption(parser):
    parser.addoption(
        "--no-live",
        action="store_true",
        default=False,
        help="Disable tests that call the real Gemini API",
    )


def pytest_configure(config):
    config.addinivalue_line("markers", "live: marks tests that call the real Gemini API")


def pytest_collection_modifyitems(config, items):
    if not items:
        return
    if config.getoption("--no-live"):
        skip_live = pytest.mark.skip(reason="live tests disabled via --no-live")
        for item in items:
            if item.get_closest_marker("live") is not None:
                item.add_marker(skip_live)


class StubLLM:
    """Minimal chat-model stand-in: returns a canned reply or raises, and counts calls."""

    def __init__(self, reply=None, error=None):
        self.reply = reply
        self.error = error
        self.calls = []

    def _respond(self, messages):
        self.calls.append(messages)
        if self.error is not None:
            raise self.error
        if isinstance(self.reply, AIMessage):
            return self.reply
        return AIMessage(content=self.reply or "")

    def invoke(self, messages, *args, **kwargs):
        return self._respond(messages)

    async def ainvoke(self, messages, *args, **kwargs):
        return self._respond(messages)


class FakeAPIError(Exception):
    """Shaped like google.api_core / google.genai errors: an HTTP `code` and optional `reason`."""

    def __init__(self, message, code=None, reason=None):
        super().__init__(message)
        self.code = code
        self.reason = reason


@pytest.fixture
def stub_llm():
    return StubLLM


@pytest.fixture
def api_error():
    return FakeAPIError


@pytest.fixture
def settings():
    return Settings(api_key=FAKE_KEY)


@pytest.fixture
def lines_settings():
    return Settings(api_key=FAKE_KEY, mode="lines")


@pytest.fixture
def pdf_bytes():
    return b"%PDF-1.4\n% lab report\n%%EOF\n"


@pytest.fixture
def live_api_key():
    from dotenv import load_dotenv
    load_dotenv()
    key = os.getenv("API_KEY") or os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY")
    if not key:
        pytest.skip("no Gemini API key configured")
    return key
