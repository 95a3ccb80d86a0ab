from pathlib import Path
import textwrap

import pytest
from typer.testing import CliRunner

LAYOUT = "<html><body><%= contents %></body></html>"


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def site_project(tmp_path: Path) -> dict:
    """
    Lay out a small project (layout, pages, scripts) plus its sitewrap.toml.
    """
    root = tmp_path / "project"
    pages = root / "src" / "pages"
    (pages / "blog").mkdir(parents=True)
    (root / "src" / "partials").mkdir(parents=True)
    (root / "src" / "js").mkdir(parents=True)

    (root / "src" / "partials" / "layout.html").write_text(LAYOUT, encoding="utf-8")
    (pages / "index.html").write_text("<h1>Hi</h1>", encoding="utf-8")
    (pages / "about.html").write_text("<p>About us</p>", encoding="utf-8")
    (pages / "blog" / "post1.html").write_text("<article>First</article>", encoding="utf-8")
    (pages / "notes.txt").write_text("not a page", encoding="utf-8")
    (root / "src" / "js" / "a.js").write_text("var a = 1;", encoding="utf-8")
    (root / "src" / "js" / "b.js").write_text("var b = 2;", encoding="utf-8")

    config_text = textwrap.dedent(
        """
        [template]
        layout = "src/partials/layout.html"
        source = "src/pages"
        destination = "dist"

        [[step]]
        name = "clean"
        kind = "clean"
        paths = ["dist"]

        [[step]]
        name = "concat"
        kind = "concat"
        source = "src"
        patterns = ["**/*.js"]
        destination = "dist/assets/index.js"

        [[step]]
        name = "template"
        kind = "template"

        [[step]]
        name = "compress"
        kind = "compress"
        source = "dist"
        archive = "dist.tar.gz"

        [pipelines]
        build = ["clean", "concat", "template", "compress"]
        pages = ["template"]
        """
    ).strip()
    path = root / "sitewrap.toml"
    path.write_text(config_text + "\n", encoding="utf-8")
    return {"path": path, "root": root, "pages": pages, "dist": root / "dist"}
