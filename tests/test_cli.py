"""Tests for the command-line interface."""

from docx_factory import para, people_table_body, read_document_xml
from typer.testing import CliRunner

from docx_templater import TemplateSession, __version__
from docx_templater.cli import app

runner = CliRunner()

FRAGMENTED = "<w:p><w:r><w:t>${na</w:t></w:r><w:r><w:t>me}</w:t></w:r></w:p>"


class TestCLIVersion:
    def test_version_flag(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.stdout

    def test_main_help(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "markers" in result.stdout
        assert "repair" in result.stdout
        assert "fill" in result.stdout


class TestCLIMarkers:
    def test_lists_markers(self, make_docx):
        path = make_docx(para("${title}") + people_table_body())

        result = runner.invoke(app, ["markers", str(path)])

        assert result.exit_code == 0
        assert result.stdout.split() == ["title", "first_name", "last_name"]

    def test_no_markers(self, make_docx):
        result = runner.invoke(app, ["markers", str(make_docx(para("plain")))])
        assert result.exit_code == 0
        assert "No markers found" in result.stdout

    def test_missing_file(self, tmp_path):
        result = runner.invoke(app, ["markers", str(tmp_path / "missing.docx")])
        assert result.exit_code == 1


class TestCLIRepair:
    def test_repair_to_output(self, make_docx, tmp_path):
        path = make_docx(FRAGMENTED)
        out = tmp_path / "fixed.docx"

        result = runner.invoke(app, ["repair", str(path), "-o", str(out)])

        assert result.exit_code == 0
        assert "Repaired 1 marker(s)" in result.stdout
        assert "${name}" in read_document_xml(out)

    def test_unclosed_marker_fails_and_closes_session(self, make_docx, tmp_path, monkeypatch):
        closed = []
        original_close = TemplateSession.close

        def tracking_close(session):
            closed.append(session)
            original_close(session)

        monkeypatch.setattr(TemplateSession, "close", tracking_close)
        path = make_docx("<w:p><w:r><w:t>${name</w:t></w:r></w:p>")
        out = tmp_path / "fixed.docx"

        result = runner.invoke(app, ["repair", str(path), "-o", str(out)])

        assert result.exit_code == 1
        assert not out.exists()
        assert len(closed) >= 1
        assert all(session.closed for session in closed)


class TestCLIFill:
    def test_fill_from_yaml(self, make_docx, tmp_path):
        path = make_docx(para("${title}") + people_table_body())
        ops = tmp_path / "data.yaml"
        ops.write_text(
            "- type: set_tag\n"
            "  marker: title\n"
            "  value: Team\n"
            "- type: set_repeating_rows\n"
            "  marker: first_name\n"
            "  rows:\n"
            "    - {first_name: Grace, last_name: Hopper}\n"
        )
        out = tmp_path / "filled.docx"

        result = runner.invoke(app, ["fill", str(path), str(ops), "-o", str(out)])

        assert result.exit_code == 0, result.stdout
        xml = read_document_xml(out)
        assert "Team" in xml
        assert "Hopper" in xml

    def test_fill_default_output_name(self, make_docx, tmp_path):
        path = make_docx(para("${title}"))
        ops = tmp_path / "data.json"
        ops.write_text('[{"type": "set_tag", "marker": "title", "value": "JSON"}]')

        result = runner.invoke(app, ["fill", str(path), str(ops)])

        assert result.exit_code == 0
        assert "JSON" in read_document_xml(tmp_path / "template_filled.docx")

    def test_fill_with_repair(self, make_docx, tmp_path):
        path = make_docx(FRAGMENTED)
        ops = tmp_path / "data.yaml"
        ops.write_text("- {type: set_tag, marker: name, value: Joined}\n")
        out = tmp_path / "filled.docx"

        result = runner.invoke(app, ["fill", str(path), str(ops), "-o", str(out), "--repair"])

        assert result.exit_code == 0
        assert "Joined" in read_document_xml(out)

    def test_bad_operation_file_closes_session(self, make_docx, tmp_path, monkeypatch):
        sessions = []
        original_from_file = TemplateSession.from_file.__func__

        def tracking_from_file(cls, *args, **kwargs):
            session = original_from_file(cls, *args, **kwargs)
            sessions.append(session)
            return session

        monkeypatch.setattr(TemplateSession, "from_file", classmethod(tracking_from_file))
        path = make_docx(para("${title}"))
        ops = tmp_path / "data.yaml"
        ops.write_text("- [unbalanced\n")

        result = runner.invoke(app, ["fill", str(path), str(ops)])

        assert result.exit_code == 1
        assert len(sessions) == 1
        assert sessions[0].closed

    def test_failed_operation_saves_nothing(self, make_docx, tmp_path):
        path = make_docx(para("plain"))
        ops = tmp_path / "data.yaml"
        ops.write_text("- {type: set_tag, marker: title, value: x}\n")
        out = tmp_path / "filled.docx"

        result = runner.invoke(app, ["fill", str(path), str(ops), "-o", str(out)])

        assert result.exit_code == 1
        assert not out.exists()
