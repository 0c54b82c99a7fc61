import logging
import warnings
from unittest.mock import patch

import pytest

from src.utils.logging import configure_logging


@pytest.fixture
def mocked_setup():
    """Patch the stdlib and structlog configuration calls."""
    with (
        patch("src.utils.logging.logging.basicConfig") as basic_config,
        patch("src.utils.logging.logging.captureWarnings") as capture_warnings,
        patch("src.utils.logging.structlog.configure") as structlog_configure,
    ):
        yield basic_config, capture_warnings, structlog_configure


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_defaults_log_info_to_stdout_and_capture_warnings(self, mocked_setup) -> None:
        # Arrange
        basic_config, capture_warnings, structlog_configure = mocked_setup

        # Act
        configure_logging()

        # Assert
        kwargs = basic_config.call_args[1]
        assert kwargs["level"] == logging.INFO
        assert kwargs["force"] is True
        assert len(kwargs["handlers"]) == 1
        capture_warnings.assert_called_once_with(True)
        assert structlog_configure.call_args[1]["processors"]

    @pytest.mark.parametrize(
        ("level_name", "expected"),
        [("debug", logging.DEBUG), ("WARNING", logging.WARNING), ("Error", logging.ERROR)],
    )
    def test_level_names_are_case_insensitive(self, mocked_setup, level_name, expected) -> None:
        basic_config, _, _ = mocked_setup

        configure_logging(log_level=level_name)

        assert basic_config.call_args[1]["level"] == expected

    def test_unknown_level_raises_attribute_error(self, mocked_setup) -> None:
        with pytest.raises(AttributeError):
            configure_logging(log_level="CHATTY")

    def test_warning_capture_can_be_disabled(self, mocked_setup) -> None:
        _, capture_warnings, _ = mocked_setup

        configure_logging(capture_warnings=False)

        capture_warnings.assert_called_once_with(False)

    def test_json_logs_end_with_json_renderer(self, mocked_setup) -> None:
        _, _, structlog_configure = mocked_setup

        with patch("src.utils.logging.structlog.processors.JSONRenderer") as json_renderer:
            configure_logging(json_logs=True)

        json_renderer.assert_called_once()
        assert structlog_configure.call_args[1]["processors"][-1] is json_renderer.return_value

    def test_console_logs_end_with_console_renderer(self, mocked_setup) -> None:
        _, _, structlog_configure = mocked_setup

        with patch("src.utils.logging.structlog.dev.ConsoleRenderer") as console_renderer:
            configure_logging(json_logs=False)

        console_renderer.assert_called_once()
        assert structlog_configure.call_args[1]["processors"][-1] is console_renderer.return_value

    def test_log_file_in_new_directory_adds_file_handler(self, mocked_setup, tmp_path) -> None:
        # Arrange
        basic_config, _, _ = mocked_setup
        log_file = tmp_path / "logs" / "analysis.log"

        # Act
        with patch("src.utils.logging.logging.FileHandler") as file_handler:
            configure_logging(log_file=str(log_file))

        # Assert
        assert log_file.parent.is_dir()
        file_handler.assert_called_once_with(str(log_file))
        assert len(basic_config.call_args[1]["handlers"]) == 2


def test_captured_warnings_reach_the_log_file(tmp_path) -> None:
    log_file = tmp_path / "analysis.log"

    try:
        configure_logging(log_level="WARNING", log_file=str(log_file))
        warnings.warn("maximum likelihood optimization failed to converge", stacklevel=1)
        for handler in logging.getLogger().handlers:
            handler.flush()
    finally:
        logging.captureWarnings(False)
        for handler in logging.getLogger().handlers:
            handler.close()

    assert "failed to converge" in log_file.read_text()
