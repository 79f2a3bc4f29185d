"""Smoke tests for the CLI."""

import functools

import pytest
from fakes import API_KEY, BLOG_URL, FakeGhost
from typer.testing import CliRunner

from ghostpost import __version__, cli
from ghostpost.cli import app
from ghostpost.config import load_config


@pytest.fixture
def runner() -> CliRunner:
    """Create a CLI test runner."""
    return CliRunner(env={"NO_COLOR": "1", "FORCE_COLOR": None})


@pytest.fixture
def fake_ghost(monkeypatch) -> FakeGhost:
    """Route every CLI HTTP call to an in-memory Ghost."""
    ghost = FakeGhost()
    monkeypatch.setattr(
        cli, "publish_document", functools.partial(cli.publish_document, transport=ghost.transport)
    )
    monkeypatch.setattr(cli, "check_site", functools.partial(cli.check_site, transport=ghost.transport))
    return ghost


@pytest.fixture
def vault_dir(tmp_path, monkeypatch):
    """A vault with one draft, and a clean environment pointing at it."""
    for name in ("GHOSTPOST_BLOG_URL", "GHOSTPOST_API_KEY_NAME", "GHOSTPOST_VAULT"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(cli, "load_config", functools.partial(_load_isolated, tmp_path))
    (tmp_path / "writing").mkdir()
    (tmp_path / "writing" / "Hello.md").write_text("---\ntitle: Hello\n---\nFirst post.")
    return tmp_path


def _load_isolated(tmp_path, path=None):
    return load_config(path if path is not None else tmp_path / "missing.toml")


class TestCLI:
    def test_main_help(self, runner: CliRunner) -> None:
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "publish" in result.output
        assert "check" in result.output

    def test_main_version(self, runner: CliRunner) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"ghostpost {__version__}" in result.output

    def test_publish_help(self, runner: CliRunner) -> None:
        result = runner.invoke(app, ["publish", "--help"])
        assert result.exit_code == 0
        assert "--blog-url" in result.output


class TestPublishCommand:
    def test_publish_success(self, runner, fake_ghost, vault_dir, monkeypatch):
        monkeypatch.setenv("GHOST_ADMIN_API_KEY", API_KEY)
        result = runner.invoke(
            app,
            ["publish", "writing/Hello.md", "--vault", str(vault_dir), "--blog-url", BLOG_URL],
        )
        assert result.exit_code == 0, result.output
        assert "Published https://blog.test/hello/" in result.output
        assert "writing/published/Hello.md" in result.output
        moved = vault_dir / "writing" / "published" / "Hello.md"
        assert "ghostPostId: post1" in moved.read_text()
        assert fake_ghost.calls() == [("POST", "/posts/")]

    def test_publish_uses_config_file(self, runner, fake_ghost, vault_dir, monkeypatch):
        monkeypatch.setenv("MY_KEY", API_KEY)
        config_file = vault_dir / ".ghostpost.toml"
        config_file.write_text(
            f'[ghost]\nurl = "{BLOG_URL}"\napi_key_name = "my-key"\n'
            f'[vault]\nroot = "{vault_dir.as_posix()}"\npublished_folder = ""\n'
        )
        result = runner.invoke(app, ["publish", "writing/Hello.md", "--config", str(config_file)])
        assert result.exit_code == 0, result.output
        assert (vault_dir / "writing" / "Hello.md").exists()

    def test_missing_api_key(self, runner, fake_ghost, vault_dir, monkeypatch):
        monkeypatch.delenv("GHOST_ADMIN_API_KEY", raising=False)
        result = runner.invoke(
            app,
            ["publish", "writing/Hello.md", "--vault", str(vault_dir), "--blog-url", BLOG_URL],
        )
        assert result.exit_code == 1
        assert "Publish failed" in result.output
        assert "GHOST_ADMIN_API_KEY" in result.output
        assert fake_ghost.requests == []

    def test_remote_failure(self, runner, fake_ghost, vault_dir, monkeypatch):
        monkeypatch.setenv("GHOST_ADMIN_API_KEY", API_KEY)
        fake_ghost.fail("POST", "/posts/", 422, "[ValidationError]")
        result = runner.invoke(
            app,
            ["publish", "writing/Hello.md", "--vault", str(vault_dir), "--blog-url", BLOG_URL],
        )
        assert result.exit_code == 1
        assert "[ValidationError]" in result.output
        assert (vault_dir / "writing" / "Hello.md").read_text() == "---\ntitle: Hello\n---\nFirst post."

    def test_path_outside_vault(self, runner, fake_ghost, vault_dir, tmp_path_factory):
        outside = tmp_path_factory.mktemp("elsewhere") / "Note.md"
        outside.write_text("x")
        result = runner.invoke(app, ["publish", str(outside), "--vault", str(vault_dir)])
        assert result.exit_code == 1
        assert "inside" in result.output


class TestCheckCommand:
    def test_check_success(self, runner, fake_ghost, vault_dir):
        result = runner.invoke(app, ["check", "--blog-url", BLOG_URL])
        assert result.exit_code == 0, result.output
        assert "Connected to Test Blog" in result.output
        assert "5.80" in result.output

    def test_check_without_url(self, runner, fake_ghost, vault_dir):
        result = runner.invoke(app, ["check"])
        assert result.exit_code == 1
        assert "Blog URL is not set" in result.output

    def test_check_remote_failure(self, runner, fake_ghost, vault_dir):
        fake_ghost.fail("GET", "/site/", 503, "down")
        result = runner.invoke(app, ["check", "--blog-url", BLOG_URL])
        assert result.exit_code == 1
        assert "503" in result.output
