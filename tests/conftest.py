"""Shared fixtures."""

from pathlib import Path

import pytest
from docx_factory import create_test_docx, document_xml, people_table_body
from lxml import etree

from docx_templater import DocxPackage, TemplateSession


@pytest.fixture
def make_docx(tmp_path: Path):
    """Factory writing a .docx with the given body markup."""

    def _make(body: str, name: str = "template.docx") -> Path:
        return create_test_docx(tmp_path / name, body)

    return _make


@pytest.fixture
def make_root():
    """Factory parsing body markup into a w:document root element."""

    def _make(body: str) -> etree._Element:
        return etree.fromstring(document_xml(body).encode("utf-8"))

    return _make


@pytest.fixture
def people_session(make_docx):
    session = TemplateSession(DocxPackage.open(make_docx(people_table_body())))
    yield session
    session.close()
