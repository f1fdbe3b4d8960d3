"""Tests for settings and logging configuration."""

import logging

import pytest

import main as main_module
from cfd_invoice.config import Settings, get_settings
from cfd_invoice.logging_config import LOG_FILE, get_logging_config, setup_logging


def test_defaults(clean_env):
    settings = Settings(_env_file=None)

    assert settings.gemini_api_key == ""
    assert not settings.has_credentials
    assert settings.extraction_model == "gemini-2.5-flash"
    assert settings.extraction_temperature == 0.1
    assert settings.max_upload_size_mb == 20.0
    assert settings.history_storage_key == "cfd_invoice_history"
    assert settings.log_level == "WARNING"


@pytest.mark.parametrize("variable", ["GEMINI_API_KEY", "API_KEY"])
def test_api_key_from_environment(clean_env, variable):
    clean_env.setenv(variable, "  secret-key  ")

    settings = get_settings()

    assert settings.has_credentials
    assert settings.api_client_kwargs == {"api_key": "secret-key"}


def test_api_key_from_dotenv(clean_env, tmp_path):
    (tmp_path / ".env").write_text("GEMINI_API_KEY=from-dotenv\n", encoding="utf-8")

    assert get_settings().gemini_api_key == "from-dotenv"


def test_blank_api_key_is_not_a_credential(clean_env):
    assert not Settings(_env_file=None, gemini_api_key="   ").has_credentials


def test_vertex_ai_client_kwargs(clean_env):
    clean_env.setenv("USE_VERTEX_AI", "true")
    clean_env.setenv("GOOGLE_CLOUD_PROJECT", "bills-project")
    clean_env.setenv("GOOGLE_CLOUD_LOCATION", "asia-south1")

    settings = Settings(_env_file=None)

    assert settings.has_credentials
    assert settings.api_client_kwargs == {
        "vertexai": True,
        "project": "bills-project",
        "location": "asia-south1",
    }


@pytest.mark.parametrize("raw, expected", [("1", True), ("true", True), ("TRUE", True), ("0", False), ("no", False)])
def test_debug_flag_parsing(clean_env, raw, expected):
    clean_env.setenv("DEBUG_RESPONSES", raw)
    assert Settings(_env_file=None).debug_responses is expected


def test_derived_paths(tmp_path):
    settings = Settings(_env_file=None, data_directory=tmp_path, log_level="debug")

    assert settings.log_level == "DEBUG"
    assert settings.logs_folder == tmp_path / "logs"
    assert settings.responses_folder == tmp_path / "responses"
    assert settings.storage_path == tmp_path / "local_storage.db"


def test_logging_config(tmp_path):
    config = get_logging_config(tmp_path / "logs", console_level="INFO")

    assert (tmp_path / "logs").is_dir()
    assert config["handlers"]["console"]["level"] == "INFO"
    assert config["handlers"]["file"]["filename"] == str(tmp_path / "logs" / LOG_FILE)


def test_setup_logging_writes_file(tmp_path):
    setup_logging(tmp_path, console_level="ERROR")
    try:
        logging.getLogger("cfd_invoice.tests").info("hello from tests")
        for handler in logging.getLogger("cfd_invoice").handlers:
            handler.flush()

        assert "hello from tests" in (tmp_path / LOG_FILE).read_text(encoding="utf-8")
    finally:
        for logger in (logging.getLogger(), logging.getLogger("cfd_invoice")):
            for handler in list(logger.handlers):
                handler.close()
                logger.removeHandler(handler)
        logging.getLogger("cfd_invoice").propagate = True


def test_file_log_level(tmp_path):
    settings = Settings(_env_file=None, data_directory=tmp_path, file_log_level="warning")
    config = get_logging_config(settings.logs_folder, file_level=settings.file_log_level)

    assert settings.file_log_level == "WARNING"
    assert config["handlers"]["file"]["level"] == "WARNING"
    assert config["loggers"]["cfd_invoice"]["handlers"] == ["console", "file"]


def test_main_logs_startup_to_file(clean_env, tmp_path):
    started = []

    class StubApp:
        async def run(self, initial_file):
            started.append(initial_file)

    clean_env.setattr(main_module, "build_app", lambda settings: StubApp())
    try:
        main_module.main(["--data-dir", str(tmp_path / "data"), "receipt.jpg"])

        for handler in logging.getLogger("cfd_invoice").handlers:
            handler.flush()
        log_text = (tmp_path / "data" / "logs" / LOG_FILE).read_text(encoding="utf-8")
        assert f"Starting with data directory {tmp_path / 'data'}" in log_text
        assert started == ["receipt.jpg"]
    finally:
        for logger in (logging.getLogger(), logging.getLogger("cfd_invoice")):
            for handler in list(logger.handlers):
                handler.close()
                logger.removeHandler(handler)
        logging.getLogger("cfd_invoice").propagate = True
