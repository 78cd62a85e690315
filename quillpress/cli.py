"""Command-line interface for Quillpress.

This module defines the CLI commands using the Click framework. It provides
commands for creating new blogs and posts, building, serving and rendering.

Commands:
- new: Scaffold a new Quillpress blog.
- post: Create a new post interactively.
- build: Build the blog into the output directory.
- serve: Run development server with live reload.
- render: Print the HTML fragment of one Markdown file.
"""

from __future__ import annotations

import shutil
from datetime import datetime
from pathlib import Path

import click
import questionary
import yaml

from . import __version__
from .build import CONFIG_FILENAME, BuildError, ConfigError, build_site, load_config
from .templates import DEFAULT_THEME_DIR
from .utils import slugify, titleize

SAMPLE_POST = """---
title: Hello World
date: {date}
tags: [welcome]
---

Welcome to your new blog. Edit or delete this post in `posts/`, then run
`quillpress serve` to see your changes live.

## Writing posts

Posts are Markdown files with a small frontmatter block. Code fences get
highlighted:

```python
def greet(name):
    return "Hello, " + name  # friendly
```

> [!TIP]
> Start a filename with `_` to keep a post as a draft.
"""


@click.group()
@click.version_option(version=__version__, prog_name="quillpress")
def cli():
    """Quillpress static blog generator."""


@cli.command()
@click.argument("name")
@click.option("--yes", "-y", is_flag=True, help="Accept defaults without prompting")
def new(name: str, yes: bool):
    """Scaffold a new Quillpress blog."""
    target = Path(name).resolve()
    if target.exists() and any(target.iterdir()):
        raise click.ClickException(f"Refusing to initialize into non-empty directory: {target}")

    config = {"title": titleize(target.name), "author": "", "url": ""}
    if not yes:
        config["title"] = _ask(questionary.text("Blog title:", default=config["title"], style=_questionary_style()))
        config["author"] = _ask(questionary.text("Author:", style=_questionary_style()))
        config["url"] = _ask(
            questionary.text("Site URL (used for the RSS feed, optional):", style=_questionary_style())
        )
    _scaffold(target, config)
    click.echo(f"New Quillpress blog created at {target}")


@cli.command()
@click.option("--title", help="Post title; skips the prompts")
@click.option("--tags", default="", help="Comma-separated tags")
def post(title: str | None, tags: str):
    """Create a new post interactively."""
    project_root = Path.cwd()
    config = _load_config_or_exit(project_root)
    posts_dir = project_root / config["posts_dir"]
    if not posts_dir.exists():
        raise click.ClickException(
            f"No {config['posts_dir']}/ directory found. Run this command from a Quillpress project root."
        )

    if title is None:
        title = _ask(
            questionary.text(
                "Post title:",
                validate=lambda x: len(x.strip()) > 0 or "Title cannot be empty",
                style=_questionary_style(),
            )
        )
        tags = _ask(questionary.text("Tags (comma-separated):", style=_questionary_style()))
    title = title.strip()
    slug = slugify(title)

    conflicting = [p for p in posts_dir.glob("*.md") if slugify(p.stem) == slug]
    if conflicting:
        raise click.ClickException(f"A post with slug '{slug}' already exists: {conflicting[0].name}")

    now = datetime.now()
    target_path = posts_dir / f"{now:%Y-%m-%d}-{slug}.md"
    tag_list = ", ".join(t.strip() for t in tags.split(",") if t.strip())
    target_path.write_text(
        f"---\ntitle: {title}\ndate: {now:%Y-%m-%d %H:%M}\ntags: [{tag_list}]\n---\n\n",
        encoding="utf-8",
    )
    click.echo(f"Created {target_path.relative_to(project_root)}")


@cli.command()
@click.option("--drafts", is_flag=True, help="Include draft posts")
@click.option("--clean", is_flag=True, help="Wipe the output directory and ignore the build cache")
@click.option("--posts-dir", type=click.Path(path_type=Path), help="Posts directory (overrides quillpress.yaml)")
@click.option("--output", type=click.Path(path_type=Path), help="Output directory (overrides quillpress.yaml)")
def build(drafts: bool, clean: bool, posts_dir: Path | None, output: Path | None):
    """Build the blog into the output directory."""
    project_root = Path.cwd()
    try:
        result = build_site(
            project_root,
            include_drafts=drafts,
            clean_output=clean,
            posts_dir_override=posts_dir.resolve() if posts_dir else None,
            output_dir_override=output.resolve() if output else None,
        )
    except BuildError as exc:
        source = exc.source_path
        if source.is_absolute() and source.is_relative_to(project_root):
            source = source.relative_to(project_root)
        click.echo(click.style("Build failed:", fg="red", bold=True), err=True)
        click.echo(click.style(f"  File: {source}", fg="yellow"), err=True)
        click.echo(click.style(f"  Error: {exc.message}", fg="white"), err=True)
        raise SystemExit(1) from None
    except (ConfigError, FileNotFoundError) as exc:
        _fail(str(exc))
    summary = f"Built {len(result.posts)} posts into {result.output_dir}"
    if result.skipped:
        summary += f" ({len(result.skipped)} unchanged)"
    click.echo(summary)


@cli.command()
@click.option("--drafts", is_flag=True, help="Include draft posts")
@click.option("--port", type=int, required=False, help="Port to run the dev server (overrides quillpress.yaml)")
@click.option(
    "--ws-port",
    type=int,
    required=False,
    help="Port for the live reload websocket server (overrides quillpress.yaml ws_port)",
)
def serve(drafts: bool, port: int | None, ws_port: int | None):
    """Run dev server with live reload."""
    from .server import DevServer

    project_root = Path.cwd()
    try:
        server = DevServer(project_root, http_port=port, ws_port=ws_port)
        server.start(include_drafts=drafts)
    except (BuildError, ConfigError, FileNotFoundError) as exc:
        _fail(str(exc))


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def render(file: Path):
    """Print the rendered HTML fragment of a Markdown FILE."""
    from .content import PostBuilder
    from .markdown import MarkdownRenderer

    config = _load_config_or_exit(Path.cwd())
    renderer = MarkdownRenderer(close_unterminated_fences=bool(config.get("close_unterminated_fences")))
    click.echo(PostBuilder(renderer=renderer).build(file).content)


def _ask(question):
    answer = question.ask()
    if answer is None:
        raise click.Abort()
    return answer.strip()


def _fail(message: str) -> None:
    click.echo(click.style(f"Error: {message}", fg="red", bold=True), err=True)
    raise SystemExit(1)


def _load_config_or_exit(project_root: Path) -> dict:
    try:
        return load_config(project_root)
    except ConfigError as exc:
        _fail(str(exc))


def _questionary_style():
    """Return consistent questionary style."""
    return questionary.Style(
        [
            ("qmark", "fg:cyan bold"),
            ("question", "bold"),
            ("answer", "fg:cyan"),
            ("pointer", "fg:cyan bold"),
            ("highlighted", "fg:cyan bold"),
            ("selected", "fg:cyan"),
        ]
    )


def main():
    """Entry point for the CLI application."""
    cli()


def _scaffold(root: Path, config: dict) -> None:
    """Create the directory structure and files for a new blog.

    Args:
        root: Root directory for the new blog.
        config: Answers from the setup wizard.
    """
    root.mkdir(parents=True, exist_ok=True)
    (root / CONFIG_FILENAME).write_text(
        yaml.safe_dump({**config, "posts_per_page": 10}, sort_keys=False),
        encoding="utf-8",
    )
    shutil.copytree(DEFAULT_THEME_DIR, root / "theme")
    (root / "static").mkdir(exist_ok=True)
    posts_dir = root / "posts"
    posts_dir.mkdir(exist_ok=True)
    (posts_dir / "hello-world.md").write_text(
        SAMPLE_POST.format(date=datetime.now().strftime("%Y-%m-%d")),
        encoding="utf-8",
    )
