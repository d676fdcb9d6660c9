"""Tests for the command-line interface."""
import json
from pathlib import Path

import pytest

from nutriplan.cli import build_parser, main


EXAMPLE_PROFILE = Path(__file__).resolve().parent.parent / "config" / "user_profile.yaml.example"


@pytest.fixture
def offline_settings(tmp_path, monkeypatch):
    """Settings file with no model backends and no mock delay."""
    monkeypatch.setenv("GEMINI_API_KEY", "")
    monkeypatch.delenv("GEMINI_API_KEY")
    path = tmp_path / "settings.yaml"
    path.write_text("ollama_enabled: false\nmock_delay: 0\n")
    return str(path)


class TestParser:
    """Tests for argument parsing."""

    def test_generate_defaults(self):
        args = build_parser().parse_args(["generate"])
        assert args.command == "generate"
        assert args.profile == "config/user_profile.yaml"
        assert args.format == "markdown"
        assert args.mock is False
        assert args.language == "en"

    def test_suggest_arguments(self):
        args = build_parser().parse_args([
            "--language", "es", "suggest", "--category", "dinner", "--calories", "650",
            "--allergies", "peanuts, shellfish",
        ])
        assert args.category == "dinner"
        assert args.calories == 650
        assert args.allergies == "peanuts, shellfish"
        assert args.language == "es"

    def test_unknown_category_rejected(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["suggest", "--category", "brunch"])


class TestMain:
    """Tests for main()."""

    def test_mock_plan_to_json(self, offline_settings, tmp_path):
        output = tmp_path / "plan.json"

        code = main([
            "--settings", offline_settings,
            "generate", "--profile", str(EXAMPLE_PROFILE), "--mock",
            "--format", "json", "--output", str(output),
        ])

        assert code == 0
        data = json.loads(output.read_text())
        assert data["model"] == "mock"
        assert len(data["weeklyPlan"]) == 7
        assert data["targets"]["workoutFrequency"] == 5  # running goal

    def test_mock_plan_markdown_to_stdout(self, offline_settings, capsys):
        code = main(["--settings", offline_settings, "generate", "--profile", str(EXAMPLE_PROFILE), "--mock"])

        assert code == 0
        assert capsys.readouterr().out.startswith("# Weekly Meal Plan")

    def test_missing_profile(self, offline_settings, tmp_path):
        code = main(["--settings", offline_settings, "generate", "--profile", str(tmp_path / "none.yaml")])
        assert code == 1

    def test_missing_settings_file(self, tmp_path):
        assert main(["--settings", str(tmp_path / "none.yaml"), "generate", "--mock"]) == 1

    def test_suggest_without_backends(self, offline_settings, capsys):
        code = main(["--settings", offline_settings, "suggest", "--category", "lunch"])

        assert code == 2
        assert "No model backend is configured" in capsys.readouterr().err
