"""
Integration tests for the application runtime.

Runs translations through TranslatorApp's worker threads with scripted
backends, and the console entry point end to end.
"""

import io
from unittest.mock import patch

import pytest

from snaptrans.app import ConsolePrinter, TranslatorApp, _build_parser, main
from snaptrans.core.detection import DetectionResult
from snaptrans.core.settings import Settings
from snaptrans.core.translation import (
    BackendType,
    Completed,
    Error,
    Grabbing,
    Idle,
    Streaming,
    Translating,
    TranslationResult,
)

COORDINATOR = "snaptrans.core.translation.coordinator"


@pytest.fixture
def mock_dependencies(make_backend):
    backend = make_backend(["你好", "世界"], name="Mock")

    with patch(
        f"{COORDINATOR}.create_backend", return_value=backend
    ) as mock_create, patch(
        f"{COORDINATOR}.detect_with_confidence",
        return_value=DetectionResult("en", 0.99, True),
    ), patch(
        "snaptrans.core.input.permissions.check_accessibility_permissions",
        return_value=True,
    ), patch("snaptrans.app.SelectionGrabber") as MockGrabber:
        grabber = MockGrabber.return_value
        grabber.grab_selected_text.return_value = "hello world"

        yield {
            "backend": backend,
            "create_backend": mock_create,
            "grabber": grabber,
        }


@pytest.fixture
def translator(mock_dependencies):
    app = TranslatorApp(Settings())
    yield app
    app.shutdown()


def record_states(app):
    states = []
    app.state_changed.connect(lambda state: states.append(state))
    return states


class TestTranslatorApp:
    def test_translate_text_on_worker(self, qtbot, translator, mock_dependencies):
        states = record_states(translator)

        with qtbot.waitSignal(translator.operation_finished, timeout=5000) as blocker:
            translator.translate_text("  hello world ")

        expected = Completed(
            result=TranslationResult(
                source_text="hello world",
                translated_text="你好世界",
                source_lang="en",
                target_lang="zh-Hans",
                service_name="Mock",
            )
        )
        assert blocker.args == [expected]
        assert states[0] == Translating(source_text="hello world")
        assert isinstance(states[1], Streaming)
        assert states[-1] == expected
        mock_dependencies["create_backend"].assert_called_once()
        assert mock_dependencies["create_backend"].call_args.args[0] == BackendType.REMOTE

    def test_translate_selection(self, qtbot, translator, mock_dependencies):
        states = record_states(translator)

        with qtbot.waitSignal(translator.operation_finished, timeout=5000) as blocker:
            translator.translate_selection()

        assert states[0] == Grabbing()
        assert isinstance(blocker.args[0], Completed)
        mock_dependencies["grabber"].grab_selected_text.assert_called_once()

    def test_ocr_unavailable(self, qtbot, translator):
        with qtbot.waitSignal(translator.operation_finished, timeout=5000) as blocker:
            translator.ocr_and_translate()

        assert isinstance(blocker.args[0], Error)

    def test_dismiss_after_completion(self, qtbot, translator):
        with qtbot.waitSignal(translator.operation_finished, timeout=5000):
            translator.translate_text("hello")

        with qtbot.waitSignal(translator.state_changed) as blocker:
            translator.dismiss()

        assert blocker.args == [Idle()]

    def test_no_polling_when_permission_granted(self, translator):
        assert not translator._permissions.is_polling


class TestConsolePrinter:
    def _result(self, text):
        return TranslationResult("src", text, "en", "zh-Hans", "Mock")

    def test_streams_increments(self):
        out, err = io.StringIO(), io.StringIO()
        printer = ConsolePrinter(out, err)

        printer.on_state_changed(Streaming("src", "你"))
        printer.on_state_changed(Streaming("src", "你好"))
        printer.on_state_changed(Completed(self._result("你好")))

        assert out.getvalue() == "你好\n"
        assert err.getvalue() == ""

    def test_restarted_stream_starts_new_line(self):
        out = io.StringIO()
        printer = ConsolePrinter(out, io.StringIO())

        printer.on_state_changed(Streaming("src", "partial"))
        printer.on_state_changed(Streaming("src", "other"))

        assert out.getvalue() == "partial\nother"

    def test_error_goes_to_stderr(self):
        out, err = io.StringIO(), io.StringIO()
        printer = ConsolePrinter(out, err)

        printer.on_state_changed(Error("Empty text"))

        assert out.getvalue() == ""
        assert err.getvalue() == "Error: Empty text\n"


class TestCommandLine:
    def test_parser(self):
        args = _build_parser().parse_args(["--target", "ja", "hello", "world"])
        assert args.text == ["hello", "world"]
        assert args.target == "ja"
        assert not args.selection

    def test_rejects_unsupported_target(self):
        with pytest.raises(SystemExit):
            _build_parser().parse_args(["--target", "nl", "hello"])

    def test_requires_input(self):
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 2

    def test_main_translates_text(self, qtbot, mock_dependencies, capsys):
        with patch("snaptrans.app.get_settings", return_value=Settings()), patch(
            "snaptrans.app.signal.signal"
        ):
            exit_code = main(["--target", "ja", "hello", "world"])

        assert exit_code == 0
        assert mock_dependencies["backend"].calls == [("hello world", "en", "ja")]
        assert "你好世界" in capsys.readouterr().out

    def test_main_reports_failure(self, qtbot, mock_dependencies, capsys):
        with patch("snaptrans.app.get_settings", return_value=Settings()), patch(
            "snaptrans.app.signal.signal"
        ):
            exit_code = main(["   "])

        assert exit_code == 1
        assert "Error: Empty text" in capsys.readouterr().err
