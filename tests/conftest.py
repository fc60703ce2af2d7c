import os
import sys

import pytest

# Ensure project root is importable when running pytest from repository root
_THIS_DIR = os.path.dirname(__file__)
_REPO_ROOT = os.path.abspath(os.path.join(_THIS_DIR, ".."))
if _REPO_ROOT not in sys.path:
    sys.path.insert(0, _REPO_ROOT)

lxml = pytest.importorskip("lxml")

from structmd.config import ConfigManager, EditorSettings
from structmd.core.editor import EditorSession
from structmd.core.models import Document, iter_lines, structure
from structmd.core.models.cursor import Selection
from structmd.core.parser.html_parser import from_html
from structmd.core.parser.markdown_parser import decode


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    # Keep user overrides in ~/.structmd out of the tests.
    monkeypatch.setenv("STRUCTMD_CONFIG_DIR", str(tmp_path / "structmd-config"))
    ConfigManager.reset()
    yield
    ConfigManager.reset()


@pytest.fixture
def settings():
    return EditorSettings()


@pytest.fixture
def session_md(settings):
    def factory(markdown: str) -> EditorSession:
        return EditorSession(markdown, settings=settings)
    return factory


@pytest.fixture
def session_html(settings):
    def factory(html: str) -> EditorSession:
        return EditorSession.from_html(html, settings=settings)
    return factory


@pytest.fixture
def line():
    """Find a line node by its text: ``line(document, "bbb")``."""
    def finder(document: Document, text: str, occurrence: int = 0):
        matches = [node for node in iter_lines(document) if node.text == text]
        assert len(matches) > occurrence, f"no line {text!r}"
        return matches[occurrence]
    return finder


@pytest.fixture
def caret(line):
    def factory(document: Document, text: str, offset: int = 0) -> Selection:
        node = line(document, text)
        return Selection.caret(node, len(node.text) if offset < 0 else offset)
    return factory


@pytest.fixture
def same_tree():
    """Compare two documents (or a document and Markdown/HTML source)."""
    def compare(left, right) -> bool:
        def as_document(value):
            if isinstance(value, Document):
                return value
            if value.lstrip().startswith("<"):
                return from_html(value)
            return decode(value)
        return structure(as_document(left)) == structure(as_document(right))
    return compare
