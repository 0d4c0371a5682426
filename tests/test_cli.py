"""CLI commands against a seeded in-memory shelf."""

from datetime import datetime, timezone

import pytest
from typer.testing import CliRunner

from storyshelf import __version__
from storyshelf.cli import app as cli
from storyshelf.store import COMMENTS, RATINGS

runner = CliRunner()


@pytest.fixture
def seeded(shelf, store, seed_story, seed_user, monkeypatch):
    seed_story(
        "s1",
        title="Dune Sea",
        authorId="a1",
        authorName="Frank",
        genre="SciFi",
        content="Sand",
        createdAt=datetime(2024, 1, 2, tzinfo=timezone.utc),
    )
    seed_story("s2", title="Old Road", authorId="a2", createdAt=datetime(2024, 1, 1, tzinfo=timezone.utc))
    store.collections[COMMENTS]["c1"] = {
        "storyId": "s1", "userId": "u1", "userName": "Ann", "text": "Lovely",
        "createdAt": datetime(2024, 2, 1, tzinfo=timezone.utc),
    }
    store.collections[RATINGS]["s1:u1"] = {"storyId": "s1", "userId": "u1", "value": 4}
    seed_user("u1", favorites=["s2"], readLater=["s1"])
    monkeypatch.setattr(cli, "_open_shelf", lambda: shelf)
    return shelf


class TestCli:
    def test_version(self):
        result = runner.invoke(cli.app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_stories(self, seeded):
        result = runner.invoke(cli.app, ["stories"])
        assert result.exit_code == 0
        assert "Dune Sea" in result.output
        assert "Old Road" in result.output

    def test_stories_paged(self, seeded):
        result = runner.invoke(cli.app, ["stories", "--per-page", "1", "--page", "2"])
        assert result.exit_code == 0
        assert "Old Road" in result.output
        assert "Dune Sea" not in result.output
        assert "Page 2 of 2" in result.output

    def test_show(self, seeded):
        result = runner.invoke(cli.app, ["show", "s1"])
        assert result.exit_code == 0
        assert "Chapter 1" in result.output
        assert "4.0 (1 ratings)" in result.output

    def test_show_missing(self, seeded):
        result = runner.invoke(cli.app, ["show", "nope"])
        assert result.exit_code == 1
        assert "Story not found" in result.output

    def test_comments(self, seeded):
        result = runner.invoke(cli.app, ["comments", "s1"])
        assert result.exit_code == 0
        assert "Lovely" in result.output

    def test_user_stories(self, seeded):
        result = runner.invoke(cli.app, ["user-stories", "a1"])
        assert result.exit_code == 0
        assert "Dune Sea" in result.output

    def test_favorites_and_read_later(self, seeded):
        favorites = runner.invoke(cli.app, ["favorites", "u1"])
        read_later = runner.invoke(cli.app, ["read-later", "u1"])

        assert "Old Road" in favorites.output
        assert "Dune Sea" in read_later.output

    def test_default_cover_upload_then_read(self, seeded):
        upload = runner.invoke(cli.app, ["upload-default-cover"])
        assert upload.exit_code == 0
        assert "memory://placeholders/cover.png" in upload.output
        assert seeded.objects.objects["placeholders/cover.png"][1] == "image/png"

        result = runner.invoke(cli.app, ["default-cover"])
        assert result.exit_code == 0
        assert "memory://placeholders/cover.png" in result.output

    def test_upload_from_file(self, seeded, tmp_path):
        path = tmp_path / "art.jpg"
        path.write_bytes(b"jpeg-bytes")

        result = runner.invoke(cli.app, ["upload-default-cover", str(path)])
        assert result.exit_code == 0
        assert seeded.objects.objects["placeholders/cover.png"] == (b"jpeg-bytes", "image/jpeg")

    def test_default_cover_missing(self, seeded):
        result = runner.invoke(cli.app, ["default-cover"])
        assert result.exit_code == 1

    def test_check(self, seeded):
        result = runner.invoke(cli.app, ["check"])
        assert result.exit_code == 0
        assert "2 stories" in result.output
        assert seeded.objects.objects == {}
