from __future__ import annotations

import io

import pytest

from chipsfx.spinner import Spinner, render_error


def test_spinner_disabled_is_noop() -> None:
    spinner = Spinner("Rendering", enabled=False)
    spinner.start()
    spinner.update("Still rendering")
    spinner.stop()


def test_spinner_is_silent_off_tty() -> None:
    stream = io.StringIO()
    with Spinner("Rendering", stream=stream) as spinner:
        spinner.update("Almost")
    assert stream.getvalue() == ""


def test_render_error_plain_stream(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    monkeypatch.setenv("CHIPSFX_LOG_DIR", str(tmp_path))
    monkeypatch.delenv("CHIPSFX_DEBUG", raising=False)
    stream = io.StringIO()
    render_error("chipsfx render", ValueError("boom"), stream=stream)
    text = stream.getvalue()
    assert text.startswith("chipsfx render failed: ValueError: boom")
    assert str(tmp_path / "chipsfx.log") in text
    assert "Traceback" not in text


def test_render_error_includes_trace_in_debug(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CHIPSFX_DEBUG", "1")
    stream = io.StringIO()
    try:
        raise RuntimeError("kaput")
    except RuntimeError as exc:
        render_error("chipsfx encode", exc, stream=stream)
    assert "Traceback" in stream.getvalue()
