import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


@pytest.fixture(autouse=True)
def disable_sleep(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("time.sleep", lambda *_args, **_kwargs: None)


@pytest.fixture(autouse=True)
def isolated_narrator_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in (
        "GROQ_API_KEY",
        "OPENROUTER_API_KEY",
        "LOVABLE_API_KEY",
        "GOOGLE_GEMINI_API_KEY",
        "TAVERN_DATABASE_URL",
        "TAVERN_NARRATOR",
        "TAVERN_PREFERRED_PROVIDER",
        "TAVERN_HISTORY_WINDOW",
    ):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def reset_http_circuits():
    from tavern.infrastructure.resilient_http import reset_circuit_breakers

    reset_circuit_breakers()
    yield
    reset_circuit_breakers()


@pytest.fixture(autouse=True)
def block_external_http(monkeypatch: pytest.MonkeyPatch) -> None:
    import httpx

    def _deny_external_http(self, request):
        raise RuntimeError(f"External HTTP disabled during tests: {request.url}")

    monkeypatch.setattr(httpx.HTTPTransport, "handle_request", _deny_external_http)
