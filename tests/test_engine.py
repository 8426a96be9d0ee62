"""
Tests for TemplateSession, the public template API.
"""

import pytest
from docx_factory import (
    cell,
    count_elements,
    para,
    people_table_body,
    read_document_xml,
    row,
    table,
)

from docx_templater import (
    DocxPackage,
    DocxTemplateError,
    MalformedSpanError,
    MarkerNotFoundError,
    OutputTarget,
    StructuralBoundaryNotFoundError,
    TableShapeError,
    TemplateSession,
    ValidationError,
)


class TestSetTag:
    def test_replaces_and_cleans(self, make_docx):
        session = TemplateSession.from_file(make_docx(para("Title: ${title}")))

        assert session.set_tag("title", "A & B <b>bold</b>") == 1

        assert "Title: A and B bold" in session.source.get_xml()
        assert not session.has_marker("title")

    def test_second_call_fails(self, make_docx):
        session = TemplateSession.from_file(make_docx(para("${title}")))
        session.set_tag("title", "once")

        with pytest.raises(MarkerNotFoundError):
            session.set_tag("title", "twice")

    def test_missing_marker(self, make_docx):
        session = TemplateSession.from_file(make_docx(para("plain")))
        with pytest.raises(MarkerNotFoundError):
            session.set_tag("title", "x")

    def test_control_characters_are_dropped(self, make_docx):
        session = TemplateSession.from_file(make_docx(para("${title}")))

        session.set_tag("title", "line\x0bbreak")

        assert "linebreak" in session.source.get_xml()
        session.source.set_xml(session.source.get_xml())


class FailingPackage(DocxPackage):
    """Package whose set_value fails for the second cloned row."""

    def set_value(self, name, value):
        if name.endswith("#2"):
            raise ValidationError(f"cannot write {name}")
        return super().set_value(name, value)


class TestSetRepeatingRows:
    def test_people_scenario(self, people_session):
        rows = [
            {"first_name": "First", "last_name": "Name"},
            {"first_name": "Another", "last_name": "Name"},
        ]

        assert people_session.set_repeating_rows("first_name", rows) == 2

        xml = people_session.source.get_xml()
        assert count_elements(xml, "tr") == 3
        assert xml.index("First") < xml.index("Another")
        assert people_session.markers() == []
        assert not people_session.has_marker("first_name")
        assert not people_session.has_marker("first_name#1")

    def test_clone_index_addresses_each_row(self, make_docx):
        session = TemplateSession.from_file(make_docx(people_table_body()))
        session.source.clone_row("first_name", 2)

        assert session.markers() == [
            "first_name#1",
            "last_name#1",
            "first_name#2",
            "last_name#2",
        ]

    def test_values_are_cleaned(self, people_session):
        people_session.set_repeating_rows(
            "first_name", [{"first_name": "Tom & Jerry", "last_name": "<i>Cat</i>"}]
        )

        xml = people_session.source.get_xml()
        assert "Tom and Jerry" in xml
        assert ">Cat<" in xml

    def test_partial_record_leaves_other_marker(self, people_session):
        people_session.set_repeating_rows("first_name", [{"first_name": "Only"}])

        assert people_session.markers() == ["last_name#1"]

    def test_empty_rows_removes_template_row(self, people_session):
        assert people_session.set_repeating_rows("first_name", []) == 0
        assert count_elements(people_session.source.get_xml(), "tr") == 1

    def test_unknown_record_key_changes_nothing(self, people_session):
        before = people_session.source.get_xml()

        with pytest.raises(MarkerNotFoundError) as exc_info:
            people_session.set_repeating_rows("first_name", [{"surname": "x"}])

        assert exc_info.value.name == "surname"
        assert people_session.source.get_xml() == before

    def test_failure_part_way_restores_document(self, make_docx):
        session = TemplateSession(FailingPackage.open(make_docx(people_table_body())))
        before = session.source.get_xml()
        rows = [
            {"first_name": "Ada", "last_name": "Lovelace"},
            {"first_name": "Grace", "last_name": "Hopper"},
        ]

        with pytest.raises(ValidationError):
            session.set_repeating_rows("first_name", rows)

        assert session.source.get_xml() == before
        assert session.markers() == ["first_name", "last_name"]
        session.close()

    def test_control_characters_in_values_are_dropped(self, people_session):
        people_session.set_repeating_rows(
            "first_name", [{"first_name": "Ada\x0b", "last_name": "Love\x0blace"}]
        )

        xml = people_session.source.get_xml()
        assert ">Ada<" in xml
        assert ">Lovelace<" in xml
        assert count_elements(xml, "tr") == 2

    def test_marker_outside_table(self, make_docx):
        session = TemplateSession.from_file(make_docx(para("${first_name}")))
        with pytest.raises(StructuralBoundaryNotFoundError):
            session.set_repeating_rows("first_name", [{"first_name": "x"}])


class TestStructuralOperations:
    def test_remove_row(self, people_session):
        people_session.remove_row("last_name")

        xml = people_session.source.get_xml()
        assert count_elements(xml, "tr") == 1
        assert "First name" in xml

    def test_remove_column(self, make_docx):
        session = TemplateSession.from_file(
            make_docx(table(row("A", "B"), row("${keep}", "${drop}")))
        )

        assert session.remove_column("drop") == 1
        assert session.markers() == ["keep"]
        assert count_elements(session.source.get_xml(), "tc") == 2

    def test_failed_remove_column_leaves_document_unchanged(self, make_docx):
        body = table(row("A", "B"), "<w:tr>" + cell("${drop}") + "</w:tr>")
        session = TemplateSession.from_file(make_docx(body))
        before = session.source.get_xml()

        with pytest.raises(TableShapeError):
            session.remove_column("drop")

        assert session.source.get_xml() == before

    def test_remove_only_row_removes_table(self, make_docx):
        session = TemplateSession.from_file(
            make_docx(para("Before") + table(row("${a}", "${b}")) + para("After"))
        )

        session.remove_row("a")

        xml = session.source.get_xml()
        assert count_elements(xml, "tbl") == 0
        assert "Before" in xml and "After" in xml

    def test_clone_paragraph(self, make_docx):
        session = TemplateSession.from_file(make_docx(para("* ${item}")))

        assert session.clone_paragraph("item", ["a", "b", "c"]) == 3

        xml = session.source.get_xml()
        assert count_elements(xml, "p") == 3
        assert "${item}" not in xml

    def test_remove_row_missing_marker(self, people_session):
        with pytest.raises(MarkerNotFoundError):
            people_session.remove_row("nope")


class TestRepair:
    FRAGMENTED = (
        "<w:tbl><w:tr><w:tc><w:p>"
        "<w:r><w:t>${first</w:t></w:r>"
        '<w:proofErr w:type="spellStart"/>'
        "<w:r><w:t>_name}</w:t></w:r>"
        "</w:p></w:tc></w:tr></w:tbl>"
    )

    def test_repair_then_fill(self, make_docx):
        session = TemplateSession.from_file(make_docx(self.FRAGMENTED))
        assert session.markers() == []

        assert session.repair() == 1
        session.set_repeating_rows("first_name", [{"first_name": "Ada"}])

        assert "Ada" in session.source.get_xml()

    def test_repair_twice_gives_same_markup(self, make_docx):
        session = TemplateSession.from_file(make_docx(self.FRAGMENTED))

        session.repair()
        once = session.source.get_xml()
        assert session.repair() == 0

        assert session.source.get_xml() == once

    def test_malformed_repair_leaves_document_unchanged(self, make_docx):
        session = TemplateSession.from_file(
            make_docx("<w:p><w:r><w:t>${a</w:t></w:r><w:r><w:t>b</w:t></w:r></w:p>")
        )
        before = session.source.get_xml()

        with pytest.raises(MalformedSpanError):
            session.repair()

        assert session.source.get_xml() == before


class TestSave:
    def test_save_to_output_target(self, make_docx, tmp_path):
        target = OutputTarget("result", path=tmp_path / "out")
        session = TemplateSession.from_file(make_docx(para("${name}")), target)
        session.set_tag("name", "Saved")

        path = session.save()

        assert path == tmp_path / "out" / "result.docx"
        assert "Saved" in read_document_xml(path)
        assert session.closed

    def test_save_without_target_requires_path(self, make_docx):
        session = TemplateSession.from_file(make_docx(para("x")))
        with pytest.raises(ValueError):
            session.save()

    def test_session_closed_after_save(self, make_docx, tmp_path):
        session = TemplateSession.from_file(make_docx(para("${name}")))
        session.save(tmp_path / "out.docx")

        with pytest.raises(DocxTemplateError):
            session.set_tag("name", "late")

    def test_context_manager_closes(self, make_docx):
        with TemplateSession.from_file(make_docx(para("x"))) as session:
            pass
        assert session.closed
