"""
Pytest configuration for Qt-based tests.

Provides fixtures for proper Qt object cleanup between tests, plus scripted
translation backends and credential stores for driving the coordinator.
"""
import os

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest
from PySide6.QtWidgets import QApplication

from snaptrans.core.translation import TranslationBackend


@pytest.fixture(autouse=True)
def cleanup_qt_objects(qtbot, request):
    """
    Auto-cleanup fixture that runs after each test to ensure Qt objects are
    properly destroyed before the next test starts.
    """
    yield

    app = QApplication.instance()
    if app:
        app.processEvents()


class FakeBackend(TranslationBackend):
    """Backend that yields a fixed list of chunks, optionally failing after them."""

    def __init__(self, chunks=(), error=None, name="Fake", credential_key=None):
        self._chunks = list(chunks)
        self._error = error
        self._name = name
        self._credential_key = credential_key
        self.calls = []
        self.closed = False

    @property
    def name(self):
        return self._name

    @property
    def credential_key(self):
        return self._credential_key

    def translate_stream(self, text, source_lang, target_lang):
        self.calls.append((text, source_lang, target_lang))
        try:
            for chunk in self._chunks:
                yield chunk
            if self._error is not None:
                raise self._error
        except GeneratorExit:
            self.closed = True
            raise


class FakeCredentials:
    def __init__(self, keys=None):
        self.keys = dict(keys or {})
        self.requested = []

    def load(self, key):
        self.requested.append(key)
        return self.keys.get(key)


@pytest.fixture
def make_backend():
    return FakeBackend


@pytest.fixture
def credentials():
    return FakeCredentials()
