"""Tests for documents and document selectors."""

from neml2_lsp.config import ConfigModel
from neml2_lsp.document import Document
from neml2_lsp.lsp.language import document_selector, matches


def test_file_document_roundtrips_path(tmp_path):
    document = Document.from_path(str(tmp_path / "a b" / "model.i"), "neml2")
    
    assert document.scheme == "file"
    assert document.fs_path == str(tmp_path / "a b" / "model.i")


def test_untitled_document_has_no_path_until_normalized(tmp_path):
    document = Document.from_path(str(tmp_path / "Untitled-1"), "neml2", untitled=True)
    
    assert document.scheme == "untitled"
    assert document.fs_path is None
    assert document.as_file().fs_path == str(tmp_path / "Untitled-1")


def test_bare_untitled_name_normalizes_to_root():
    document = Document(uri="untitled:Untitled-1", language_id="neml2")
    
    assert document.as_file().fs_path == "/Untitled-1"


def test_document_selector_matches_both_schemes():
    selector = document_selector(ConfigModel())
    
    assert matches(selector, Document(uri="file:///w/model.i", language_id="neml2"))
    assert matches(selector, Document(uri="untitled:Untitled-1", language_id="neml2"))
    assert not matches(selector, Document(uri="file:///w/model.py", language_id="python"))
    assert not matches(selector, Document(uri="git:/w/model.i", language_id="neml2"))

