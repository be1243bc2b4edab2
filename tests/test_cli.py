import json

import pytest
from click.testing import CliRunner

from pdfcards.cli import document_key, main


@pytest.fixture(autouse=True)
def no_dotenv(monkeypatch):
    monkeypatch.setattr("pdfcards.config.load_dotenv", lambda: None)
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("PDFCARDS_PROVIDER", raising=False)


@pytest.fixture
def run(tmp_path):
    runner = CliRunner()

    def invoke(*args, input=None):
        return runner.invoke(main, ["--vault-path", str(tmp_path), *args], input=input)

    return invoke


SNAPSHOT = {
    "text": "The mitochondria is the powerhouse of the cell.",
    "rects": [{"left": 160, "top": 80, "width": 300, "height": 16}],
    "pages": [{"pageNumber": 1, "left": 100, "top": 0, "width": 600, "height": 800}],
}


def test_document_key_is_vault_relative(tmp_path):
    assert document_key(str(tmp_path / "docs" / "a.pdf"), tmp_path) == "docs/a.pdf"


def test_capture_list_and_export(run, tmp_path):
    pdf = tmp_path / "book.pdf"
    pdf.write_bytes(b"%PDF-1.4")
    snapshot = tmp_path / "selection.json"
    snapshot.write_text(json.dumps(SNAPSHOT))

    result = run("capture", str(pdf), str(snapshot), "--color", "green")
    assert result.exit_code == 0, result.output
    assert "Saved green highlight." in result.output

    result = run("highlights", str(pdf))
    assert "green" in result.output
    assert "p.1" in result.output

    result = run("export", str(pdf))
    assert result.exit_code == 0, result.output
    assert (tmp_path / "book Annotations.md").read_text() == (
        "## Green\n- The mitochondria is the powerhouse of the cell. (pages 1)\n"
    )


def test_capture_outside_pages(run, tmp_path):
    snapshot = tmp_path / "selection.json"
    snapshot.write_text(json.dumps({**SNAPSHOT, "rects": [{"left": 0, "top": 0, "width": 50, "height": 10}]}))

    result = run("capture", str(tmp_path / "book.pdf"), str(snapshot))

    assert result.exit_code == 0
    assert "Could not capture selection." in result.output
    assert not (tmp_path / ".flashcards").exists()


def test_cards_lifecycle_and_review(run):
    result = run("cards", "add", "What is 2+2?", "4")
    assert result.exit_code == 0, result.output
    card_id = result.output.split()[-1]

    result = run("review", input="s\ng\nn\n")
    assert "Q: What is 2+2?" in result.output
    assert "A: 4" in result.output
    assert "Congrats! You finished all flashcards." in result.output

    result = run("cards", "edit", card_id, "What is 3+3?", "6")
    assert result.exit_code == 0

    result = run("cards", "list")
    assert "What is 3+3?" in result.output

    result = run("cards", "delete", card_id)
    assert result.exit_code == 0
    assert "No flashcards yet." in run("review").output


def test_generate_without_api_key(run, tmp_path):
    result = run("generate", str(tmp_path / "book.pdf"))

    assert result.exit_code == 0
    assert "No new flashcard highlights found." in result.output or "API key" in result.output


def test_unknown_card_delete_fails(run):
    result = run("cards", "delete", "missing")

    assert result.exit_code == 1
