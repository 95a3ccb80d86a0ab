import re
from pathlib import Path

import pytest
from typer.testing import CliRunner

from sitewrap import cli
from sitewrap.config import get_settings


@pytest.fixture(autouse=True)
def _fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_build_command_writes_site(runner: CliRunner, site_project: dict) -> None:
    result = runner.invoke(cli.app, ["build", "--config", str(site_project["path"])])

    assert result.exit_code == 0, result.output
    assert "Build completed." in result.output
    dist = site_project["dist"]
    assert (dist / "index.html").read_text(encoding="utf-8") == "<html><body><h1>Hi</h1></body></html>"
    assert (dist / "blog" / "post1.html").exists()
    assert (site_project["root"] / "dist.tar.gz").exists()


def test_build_reports_page_failures_but_succeeds(runner: CliRunner, site_project: dict) -> None:
    (site_project["pages"] / "broken.html").write_bytes(b"\xff\xfe")

    result = runner.invoke(cli.app, ["build", "--config", str(site_project["path"])])

    assert result.exit_code == 0, result.output
    assert "broken.html" in result.output
    assert "1 page failure" in result.output


def test_build_strict_fails_on_page_failure(runner: CliRunner, site_project: dict) -> None:
    (site_project["pages"] / "broken.html").write_bytes(b"\xff\xfe")

    result = runner.invoke(cli.app, ["build", "--strict", "--config", str(site_project["path"])])

    assert result.exit_code == 1
    assert "Build failed" in result.output


def test_build_dry_run_makes_no_changes(runner: CliRunner, site_project: dict) -> None:
    result = runner.invoke(cli.app, ["build", "--dry-run", "--config", str(site_project["path"])])

    assert result.exit_code == 0, result.output
    assert "Dry run complete." in result.output
    assert not site_project["dist"].exists()


def test_build_unknown_pipeline(runner: CliRunner, site_project: dict) -> None:
    result = runner.invoke(cli.app, ["build", "--pipeline", "server", "--config", str(site_project["path"])])

    assert result.exit_code == 1
    assert "Unknown pipeline" in result.output


def test_build_missing_layout_exits_non_zero(runner: CliRunner, site_project: dict) -> None:
    (site_project["root"] / "src" / "partials" / "layout.html").unlink()

    result = runner.invoke(cli.app, ["build", "--config", str(site_project["path"])])

    assert result.exit_code == 1
    assert "Build failed" in result.output


def test_template_command_with_overrides(runner: CliRunner, site_project: dict, tmp_path: Path) -> None:
    out_dir = tmp_path / "preview"

    result = runner.invoke(
        cli.app,
        ["template", "--config", str(site_project["path"]), "--dest", str(out_dir)],
    )

    assert result.exit_code == 0, result.output
    assert "Template Summary" in result.output
    assert (out_dir / "about.html").read_text(encoding="utf-8") == "<html><body><p>About us</p></body></html>"
    assert not site_project["dist"].exists()


def test_template_command_strict_exit_code(runner: CliRunner, site_project: dict) -> None:
    (site_project["pages"] / "broken.html").write_bytes(b"\xff\xfe")

    result = runner.invoke(cli.app, ["template", "--strict", "--config", str(site_project["path"])])

    assert result.exit_code == 1
    assert (site_project["dist"] / "index.html").exists()


def test_config_from_environment(runner: CliRunner, site_project: dict, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SITEWRAP_CONFIG", str(site_project["path"]))

    result = runner.invoke(cli.app, ["config-hash"])

    assert result.exit_code == 0, result.output
    assert re.search(r"\b[0-9a-f]{64}\b", result.output)


def test_invalid_config_reports_error(runner: CliRunner, tmp_path: Path) -> None:
    path = tmp_path / "sitewrap.toml"
    path.write_text('[template]\nbogus = 1\n', encoding="utf-8")

    result = runner.invoke(cli.app, ["template", "--config", str(path)])

    assert result.exit_code == 1
    assert "Configuration error" in result.output


def test_version_flag(runner: CliRunner) -> None:
    result = runner.invoke(cli.app, ["--version"])

    assert result.exit_code == 0
    assert "sitewrap" in result.output
