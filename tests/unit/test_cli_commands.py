"""Tests for CLI commands."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from typer.testing import CliRunner

from ellift.cli import app
from ellift.models.adaptation import (
    AdaptationResult,
    BackendKind,
    DispatchOutcome,
    ProficiencyLevel,
)
from ellift.models.config import AppConfig
from ellift.services.config_manager import ConfigValidationError
from ellift.utils.exceptions import ConfigurationError, NoExtractableTextError

runner = CliRunner()


@pytest.fixture(autouse=True)
def mock_config_manager():
    """Default configuration without touching the real environment or logging."""
    with patch("ellift.cli.utils.ConfigManager") as MockConfigManager, patch(
        "ellift.cli.utils.configure_logging"
    ):
        MockConfigManager.return_value.load_config.return_value = AppConfig()
        yield MockConfigManager


@pytest.fixture
def worksheet(tmp_path):
    path = tmp_path / "worksheet.txt"
    path.write_text("Label the parts of the cell.", encoding="utf-8")
    return path


def test_config_error(mock_config_manager, worksheet):
    mock_config_manager.return_value.load_config.side_effect = ConfigValidationError(
        "Invalid configuration: port"
    )

    result = runner.invoke(app, ["extract", str(worksheet)])

    assert result.exit_code == 1
    assert "Configuration Error" in result.output


class TestServe:
    def test_serve_with_overrides(self):
        with patch("ellift.api.server.run_server") as mock_run:
            result = runner.invoke(app, ["serve", "--port", "8080", "--host", "127.0.0.1"])

        assert result.exit_code == 0
        config = mock_run.call_args[0][0]
        assert config.port == 8080
        assert config.host == "127.0.0.1"
        assert "http://127.0.0.1:8080" in result.output

    def test_serve_defaults(self):
        with patch("ellift.api.server.run_server") as mock_run:
            result = runner.invoke(app, ["serve"])

        assert result.exit_code == 0
        assert mock_run.call_args[0][0].port == 3001


class TestExtract:
    def test_prints_text(self, tmp_path):
        pdf = tmp_path / "quiz.pdf"
        pdf.write_bytes(b"%PDF-1.4")

        with patch("ellift.cli.extract.ExtractionPipeline") as MockPipeline:
            MockPipeline.return_value.extract = AsyncMock(return_value="Question 1")
            result = runner.invoke(app, ["extract", str(pdf)])

        assert result.exit_code == 0
        assert "Question 1" in result.output
        MockPipeline.return_value.extract.assert_awaited_once_with(b"%PDF-1.4")

    def test_writes_output_file(self, tmp_path):
        pdf = tmp_path / "quiz.pdf"
        pdf.write_bytes(b"%PDF-1.4")
        out = tmp_path / "quiz.txt"

        with patch("ellift.cli.extract.ExtractionPipeline") as MockPipeline:
            MockPipeline.return_value.extract = AsyncMock(return_value="Question 1")
            result = runner.invoke(app, ["extract", str(pdf), "-o", str(out)])

        assert result.exit_code == 0
        assert out.read_text(encoding="utf-8") == "Question 1"
        assert "Extracted 10 characters" in result.output

    def test_typed_failure_shows_remedy(self, tmp_path):
        pdf = tmp_path / "scan.pdf"
        pdf.write_bytes(b"%PDF-1.4")

        with patch("ellift.cli.extract.ExtractionPipeline") as MockPipeline:
            MockPipeline.return_value.extract = AsyncMock(
                side_effect=NoExtractableTextError("No text found in PDF.")
            )
            result = runner.invoke(app, ["extract", str(pdf)])

        assert result.exit_code == 1
        assert "No text found in PDF." in result.output
        assert "OCR" in result.output

    def test_missing_file(self, tmp_path):
        result = runner.invoke(app, ["extract", str(tmp_path / "missing.pdf")])
        assert result.exit_code != 0


class TestAdapt:
    @pytest.fixture
    def controller(self):
        controller = MagicMock()
        controller.adapt = AsyncMock(
            return_value=DispatchOutcome(
                result=AdaptationResult(text="Adapted worksheet", input_tokens=5, output_tokens=9),
                backend=BackendKind.PRIMARY,
                model="claude-sonnet-4-20250514",
            )
        )
        with patch("ellift.api.server.build_controller", return_value=controller), patch(
            "ellift.api.server.open_store", return_value=None
        ):
            yield controller

    def test_adapts_text_file(self, controller, worksheet):
        result = runner.invoke(
            app,
            [
                "adapt",
                str(worksheet),
                "--subject",
                "Science",
                "--level",
                "emerging",
                "--bilingual",
                "--native-language",
                "Spanish",
            ],
        )

        assert result.exit_code == 0
        assert "Adapted worksheet" in result.output
        assert "primary (claude-sonnet-4-20250514)" in result.output

        request, policy = controller.adapt.await_args[0][:2]
        assert controller.adapt.await_args.kwargs["identity"] == "cli"
        assert request.content == "Label the parts of the cell."
        assert request.proficiency_level == ProficiencyLevel.EMERGING
        assert request.native_language == "Spanish"
        assert policy.backend == BackendKind.PRIMARY
        assert policy.auto_route is True

    def test_use_openai(self, controller, worksheet):
        result = runner.invoke(
            app, ["adapt", str(worksheet), "-s", "Math", "--use-openai", "--max-tokens", "12000"]
        )

        assert result.exit_code == 0
        policy = controller.adapt.await_args[0][1]
        assert policy.backend == BackendKind.SECONDARY
        assert policy.max_tokens == 12000

    def test_configuration_error(self, controller, worksheet):
        controller.adapt.side_effect = ConfigurationError("Claude API key not configured")

        result = runner.invoke(app, ["adapt", str(worksheet), "-s", "Math"])

        assert result.exit_code == 1
        assert "Claude API key not configured" in result.output

    def test_invalid_level(self, controller, worksheet):
        result = runner.invoke(app, ["adapt", str(worksheet), "-s", "Math", "--level", "fluent"])
        assert result.exit_code != 0
        controller.adapt.assert_not_called()
