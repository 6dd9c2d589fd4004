"""Tests for the command line interface."""

import json

import pytest

DESCRIPTION = "Design and maintain our analytics warehouse and reporting stack. " * 10


@pytest.fixture(autouse=True)
def clean_logging():
    from rolecase.utils.logging import reset_logging

    yield
    reset_logging()


@pytest.fixture
def job_html(tmp_path):
    path = tmp_path / "job.html"
    path.write_text(
        f"<html><body><h1>Analytics Engineer</h1><main>{DESCRIPTION}</main></body></html>",
        encoding="utf-8",
    )
    return path


class TestParser:
    """Test argument parsing."""

    def test_scrape_arguments(self):
        from rolecase.__main__ import create_parser

        parsed = create_parser().parse_args(
            ["scrape", "https://example.com/jobs/1", "--html", "page.html", "--no-progress"]
        )

        assert parsed.mode == "scrape"
        assert parsed.url == "https://example.com/jobs/1"
        assert str(parsed.html) == "page.html"
        assert parsed.no_progress is True

    def test_save_arguments(self):
        from rolecase.__main__ import create_parser

        parsed = create_parser().parse_args(
            [
                "save",
                "abc",
                "--salary-range",
                "£50000",
                "--date-extracted",
                "2024-05-09",
                "--feature",
                "benefit:Pension",
                "--feature",
                "Hybrid working",
            ]
        )

        assert parsed.job_id == "abc"
        assert parsed.salary_range == "£50000"
        assert parsed.date_extracted == "2024-05-09"
        assert parsed.title is None
        assert parsed.feature == ["benefit:Pension", "Hybrid working"]

    def test_queue_requires_subcommand(self):
        from rolecase.__main__ import create_parser

        with pytest.raises(SystemExit):
            create_parser().parse_args(["queue"])


class TestMain:
    """Test command execution."""

    def test_no_command_prints_help(self, capsys):
        from rolecase.__main__ import main

        assert main([]) == 0
        assert "usage" in capsys.readouterr().out

    def test_invalid_settings_fail(self, monkeypatch, capsys):
        from rolecase.__main__ import main

        monkeypatch.setenv("ROLECASE_PARSE_MODE", "stream")

        assert main(["stats"]) == 1
        assert "Error loading settings" in capsys.readouterr().err

    def test_extract_from_saved_html(self, job_html, tmp_path, capsys):
        from rolecase.__main__ import main

        out = tmp_path / "out" / "job.json"

        code = main(
            ["extract", "https://example.com/jobs/1", "--html", str(job_html), "--out", str(out)]
        )

        assert code == 0
        printed = capsys.readouterr().out
        assert "Analytics Engineer" in printed
        assert json.loads(out.read_text())["title"] == "Analytics Engineer"

    def test_extract_failure_exits_nonzero(self, tmp_path, capsys):
        from rolecase.__main__ import main

        page = tmp_path / "empty.html"
        page.write_text("<html><body><p>Apply</p></body></html>", encoding="utf-8")

        assert main(["extract", "https://example.com/jobs/1", "--html", str(page)]) == 1
        assert "Could not detect job description" in capsys.readouterr().err

    def test_queue_list_empty(self, capsys):
        from rolecase.__main__ import main

        assert main(["queue", "list"]) == 0
        assert "Queue is empty" in capsys.readouterr().out

    def test_queue_show_missing(self, capsys):
        from rolecase.__main__ import main

        assert main(["queue", "show", "missing"]) == 1
        assert "Not found" in capsys.readouterr().out

    def test_queue_clear_with_yes(self, capsys):
        from rolecase.__main__ import main

        assert main(["queue", "clear", "--yes"]) == 0
        assert "Removed 0 jobs" in capsys.readouterr().out

    def test_queue_clear_declined(self, monkeypatch, capsys):
        from rolecase.__main__ import main

        monkeypatch.setattr("builtins.input", lambda prompt: "n")

        assert main(["queue", "clear"]) == 1
        assert "Aborted" in capsys.readouterr().out

    def test_save_missing_job(self, capsys):
        from rolecase.__main__ import main

        assert main(["save", "missing", "--title", "Lead"]) == 1
        assert "not found" in capsys.readouterr().err

    def test_stats(self, capsys):
        from rolecase.__main__ import main

        assert main(["stats"]) == 0
        output = capsys.readouterr().out
        assert "jobs timed: 0" in output
        assert "average parse time: 60.0s" in output


class TestPromptHelpers:
    """Test CLI prompt helpers."""

    @pytest.mark.parametrize(("answer", "expected"), [(" Y ", True), ("no", False)])
    def test_parse_yes_no(self, answer, expected):
        from rolecase.hitl import parse_yes_no

        assert parse_yes_no(answer) is expected

    def test_parse_yes_no_rejects_other_answers(self):
        from rolecase.hitl import parse_yes_no

        with pytest.raises(ValueError):
            parse_yes_no("maybe")

    def test_prompt_yes_no_retries_until_valid(self, monkeypatch, capsys):
        from rolecase.hitl import prompt_yes_no

        answers = iter(["maybe", "yes"])
        monkeypatch.setattr("builtins.input", lambda prompt: next(answers))

        assert prompt_yes_no("Continue?") is True
        assert "Please answer" in capsys.readouterr().out

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("benefit:Pension", ("benefit", "Pension")),
            ("Hybrid working", ("other", "Hybrid working")),
            (":Gym", ("other", "Gym")),
        ],
    )
    def test_parse_feature(self, value, expected):
        from rolecase.hitl import parse_feature

        assert parse_feature(value) == expected
