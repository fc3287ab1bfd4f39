"""
Integration tests for the ebook-export command line (ebook_export/cli.py)
"""
import json

import pytest

from ebook_export.cli import load_project, main


@pytest.fixture
def project_file(tmp_path):
    project = {
        "title": "CLI Book",
        "author": "Jane",
        "genre": "Mystery",
        "chapters": [
            {"id": "c2", "title": "Two", "content": "<p>second</p>", "chapter_order": 1},
            {"id": "c1", "title": "One", "content": "<p>first</p>", "chapter_order": 0},
        ],
    }
    path = tmp_path / "project.json"
    path.write_text(json.dumps(project), encoding="utf-8")
    return path


class TestLoadProject:

    def test_metadata_and_chapters(self, project_file):
        metadata, chapters = load_project(project_file)

        assert metadata.title == "CLI Book"
        assert metadata.genre == "Mystery"
        assert [c.order for c in chapters] == [1, 0]


class TestMain:

    def test_pdf_default(self, project_file, tmp_path):
        out = tmp_path / "out"

        assert main([str(project_file), "--output-dir", str(out)]) == 0
        assert (out / "CLI Book.pdf").exists()

    def test_both_formats(self, project_file, tmp_path):
        out = tmp_path / "out"

        code = main([str(project_file), "--format", "both", "--output-dir", str(out), "--no-cover"])

        assert code == 0
        assert sorted(p.name for p in out.iterdir()) == ["CLI Book.docx", "CLI Book.pdf"]

    def test_no_chapters_fails(self, tmp_path):
        path = tmp_path / "empty.json"
        path.write_text(json.dumps({"title": "Empty", "chapters": []}), encoding="utf-8")
        out = tmp_path / "out"

        assert main([str(path), "--output-dir", str(out)]) == 1
        assert not out.exists()

    def test_missing_project_file(self, tmp_path):
        assert main([str(tmp_path / "nope.json")]) == 1

    def test_invalid_project(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"chapters": []}), encoding="utf-8")

        assert main([str(path)]) == 1

    def test_unknown_format_rejected(self, project_file):
        with pytest.raises(SystemExit):
            main([str(project_file), "--format", "epub"])
