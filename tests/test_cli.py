from datetime import datetime
from pathlib import Path

import yaml
from click.testing import CliRunner

from quillpress import __version__
from quillpress.cli import cli


class Answer:
    def __init__(self, value):
        self.value = value

    def ask(self):
        return self.value


def scaffold(tmp_path: Path) -> Path:
    target = tmp_path / "myblog"
    result = CliRunner().invoke(cli, ["new", str(target), "--yes"])
    assert result.exit_code == 0, result.output
    return target


def test_version():
    result = CliRunner().invoke(cli, ["--version"])
    assert __version__ in result.output


def test_new_scaffolds_project(tmp_path):
    target = scaffold(tmp_path)
    config = yaml.safe_load((target / "quillpress.yaml").read_text(encoding="utf-8"))
    assert config["title"] == "Myblog"
    assert (target / "theme" / "post.html").exists()
    assert (target / "theme" / "header.html").exists()
    assert (target / "posts" / "hello-world.md").exists()
    assert (target / "static").is_dir()

    # fails on non-empty directory
    result = CliRunner().invoke(cli, ["new", str(target), "--yes"])
    assert result.exit_code != 0


def test_new_wizard_uses_answers(monkeypatch, tmp_path):
    answers = iter(["Field Notes", "Ada", "https://notes.example.com"])
    monkeypatch.setattr("quillpress.cli.questionary.text", lambda *a, **k: Answer(next(answers)))
    target = tmp_path / "notes"
    result = CliRunner().invoke(cli, ["new", str(target)])
    assert result.exit_code == 0, result.output
    config = yaml.safe_load((target / "quillpress.yaml").read_text(encoding="utf-8"))
    assert config["title"] == "Field Notes"
    assert config["author"] == "Ada"
    assert config["url"] == "https://notes.example.com"


def test_new_wizard_can_be_cancelled(monkeypatch, tmp_path):
    monkeypatch.setattr("quillpress.cli.questionary.text", lambda *a, **k: Answer(None))
    result = CliRunner().invoke(cli, ["new", str(tmp_path / "x")])
    assert result.exit_code != 0
    assert not (tmp_path / "x").exists()


def test_build_scaffolded_project(monkeypatch, tmp_path):
    project = scaffold(tmp_path)
    monkeypatch.chdir(project)
    runner = CliRunner()
    result = runner.invoke(cli, ["build"], catch_exceptions=False)
    assert result.exit_code == 0
    assert "Built 1 posts" in result.output
    html = (project / "dist" / "hello-world.html").read_text(encoding="utf-8")
    assert '<span class="keyword">def</span>' in html
    assert 'class="admonition tip"' in html

    result = runner.invoke(cli, ["build"], catch_exceptions=False)
    assert "(1 unchanged)" in result.output

    out = tmp_path / "public"
    result = runner.invoke(cli, ["build", "--clean", "--output", str(out)], catch_exceptions=False)
    assert result.exit_code == 0
    assert (out / "hello-world.html").exists()


def test_build_reports_template_errors(monkeypatch, tmp_path):
    project = scaffold(tmp_path)
    (project / "theme" / "post.html").write_text("{% if %}", encoding="utf-8")
    monkeypatch.chdir(project)
    result = CliRunner().invoke(cli, ["build"])
    assert result.exit_code == 1
    assert "Build failed:" in result.output
    assert "theme/post.html" in result.output


def test_build_reports_missing_posts_dir(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    result = CliRunner().invoke(cli, ["build"])
    assert result.exit_code == 1
    assert "Expected posts directory" in result.output


def test_post_creates_dated_file(monkeypatch, tmp_path):
    project = scaffold(tmp_path)
    monkeypatch.chdir(project)
    runner = CliRunner()
    result = runner.invoke(cli, ["post", "--title", "My Post", "--tags", "a, b"])
    assert result.exit_code == 0, result.output
    created = project / "posts" / f"{datetime.now():%Y-%m-%d}-my-post.md"
    text = created.read_text(encoding="utf-8")
    assert "title: My Post" in text
    assert "tags: [a, b]" in text

    result = runner.invoke(cli, ["post", "--title", "My Post"])
    assert result.exit_code != 0
    assert "already exists" in result.output


def test_post_wizard_prompts(monkeypatch, tmp_path):
    project = scaffold(tmp_path)
    monkeypatch.chdir(project)
    answers = iter(["Second Thoughts", ""])
    monkeypatch.setattr("quillpress.cli.questionary.text", lambda *a, **k: Answer(next(answers)))
    result = CliRunner().invoke(cli, ["post"])
    assert result.exit_code == 0, result.output
    assert list((project / "posts").glob("*-second-thoughts.md"))


def test_post_requires_posts_dir(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    result = CliRunner().invoke(cli, ["post", "--title", "x"])
    assert result.exit_code != 0


def test_render_prints_fragment(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    source = tmp_path / "doc.md"
    source.write_text("---\ntitle: Doc\n---\n# Hi\n\nSome **text**.", encoding="utf-8")
    result = CliRunner().invoke(cli, ["render", str(source)])
    assert result.exit_code == 0
    assert result.output == "<h1>Hi</h1>\n<p>Some <strong>text</strong>.</p>\n"


def test_serve_passes_options(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    called = {}

    class DummyServer:
        def __init__(self, root, http_port=None, ws_port=None):
            called["root"] = root
            called["port"] = http_port
            called["ws_port"] = ws_port

        def start(self, include_drafts=False):
            called["drafts"] = include_drafts

    monkeypatch.setattr("quillpress.server.DevServer", DummyServer)
    result = CliRunner().invoke(cli, ["serve", "--drafts", "--port", "5050", "--ws-port", "5051"])
    assert result.exit_code == 0
    assert called == {"root": Path.cwd(), "port": 5050, "ws_port": 5051, "drafts": True}
