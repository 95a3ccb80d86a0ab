import os

from sitewrap.config import settings


def test_project_dotenv_overrides_environment(tmp_path, monkeypatch) -> None:
    project_dir = tmp_path / "project"
    project_dir.mkdir()
    (project_dir / ".env").write_text("SITEWRAP_LOG_LEVEL=debug\n", encoding="utf-8")

    monkeypatch.chdir(project_dir)
    monkeypatch.setenv("SITEWRAP_LOG_LEVEL", "warning")
    monkeypatch.delenv("SITEWRAP_ENV", raising=False)

    settings._load_dotenv()

    assert os.getenv("SITEWRAP_LOG_LEVEL") == "debug"


def test_environment_specific_dotenv_wins(tmp_path, monkeypatch) -> None:
    project_dir = tmp_path / "project"
    project_dir.mkdir()
    (project_dir / ".env").write_text("SITEWRAP_CONFIG=shared.toml\n", encoding="utf-8")
    (project_dir / ".env.production").write_text("SITEWRAP_CONFIG=prod.toml\n", encoding="utf-8")

    monkeypatch.chdir(project_dir)
    monkeypatch.setenv("SITEWRAP_ENV", "production")
    monkeypatch.setenv("SITEWRAP_CONFIG", "from-shell.toml")

    settings._load_dotenv()
    settings.get_settings.cache_clear()
    try:
        loaded = settings.get_settings()
    finally:
        settings.get_settings.cache_clear()

    assert os.getenv("SITEWRAP_CONFIG") == "prod.toml"
    assert loaded.env == "production"
    assert str(loaded.config_path) == "prod.toml"
