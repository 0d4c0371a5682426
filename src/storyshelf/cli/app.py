"""Typer CLI application for Storyshelf."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Optional

import anyio
import typer
from loguru import logger

from storyshelf import __version__
from storyshelf.cli.display import (
    console,
    print_checks,
    print_comments,
    print_error,
    print_stories,
    print_story,
    print_success,
    print_user_stories,
    print_warning,
)
from storyshelf.core.config import Config, config_dir
from storyshelf.core.pagination import paginate
from storyshelf.exceptions import StoryshelfError
from storyshelf.shelf import Shelf
from storyshelf.store import STORIES

app = typer.Typer(
    name="storyshelf",
    help="Inspect and maintain a Storyshelf library.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


def _open_shelf() -> Shelf:
    return Shelf.open(Config.load())


def _run(func, *args) -> None:
    try:
        anyio.run(func, *args)
    except StoryshelfError as exc:
        print_error(str(exc))
        raise typer.Exit(1)


def version_callback(value: bool) -> None:
    if value:
        console.print(f"storyshelf {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option("--version", "-V", callback=version_callback, is_eager=True),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose logging"),
    ] = False,
) -> None:
    """Storyshelf: serialized fiction on Firebase."""
    if verbose:
        logger.enable("storyshelf")
    else:
        logger.disable("storyshelf")


@app.command()
def stories(
    page: Annotated[int, typer.Option("--page", "-p", help="Page to show")] = 1,
    per_page: Annotated[int, typer.Option("--per-page", help="Stories per page")] = 12,
    limit: Annotated[
        Optional[int], typer.Option("--limit", help="Fetch at most N stories")
    ] = None,
) -> None:
    """List the newest stories."""
    async def _stories() -> None:
        async with _open_shelf() as shelf:
            result = await shelf.stories.lookup_stories(limit)
        if not result.ok:
            raise StoryshelfError(f"Could not load stories: {result.error}")
        print_stories(paginate(result.value, page, per_page))

    _run(_stories)


@app.command()
def show(
    story_id: Annotated[str, typer.Argument(help="Story ID")],
) -> None:
    """Show a story with its chapters and rating."""
    async def _show() -> None:
        async with _open_shelf() as shelf:
            result = await shelf.stories.lookup_story(story_id)
            if not result.ok:
                raise StoryshelfError(f"Could not load story: {result.error}")
            if result.value is None:
                raise StoryshelfError(f"Story not found: {story_id}")
            stats = await shelf.ratings.get_average_rating(story_id)
        print_story(result.value, stats)

    _run(_show)


@app.command()
def comments(
    story_id: Annotated[str, typer.Argument(help="Story ID")],
) -> None:
    """List comments on a story, newest first."""
    async def _comments() -> None:
        async with _open_shelf() as shelf:
            result = await shelf.comments.lookup_comments(story_id)
        if not result.ok:
            raise StoryshelfError(f"Could not load comments: {result.error}")
        print_comments(result.value)

    _run(_comments)


@app.command(name="user-stories")
def user_stories(
    author_id: Annotated[str, typer.Argument(help="Author user ID")],
) -> None:
    """List an author's stories with comment counts and ratings."""
    async def _user_stories() -> None:
        async with _open_shelf() as shelf:
            print_user_stories(await shelf.stories.get_user_stories(author_id))

    _run(_user_stories)


@app.command()
def favorites(
    user_id: Annotated[str, typer.Argument(help="User ID")],
) -> None:
    """List a user's favorite stories."""
    async def _favorites() -> None:
        async with _open_shelf() as shelf:
            items = await shelf.profiles.get_favorite_stories(user_id)
        print_stories(paginate(items, 1, max(1, len(items))), title="Favorites")

    _run(_favorites)


@app.command(name="read-later")
def read_later(
    user_id: Annotated[str, typer.Argument(help="User ID")],
) -> None:
    """List a user's read-later stories."""
    async def _read_later() -> None:
        async with _open_shelf() as shelf:
            items = await shelf.profiles.get_read_later_stories(user_id)
        print_stories(paginate(items, 1, max(1, len(items))), title="Read Later")

    _run(_read_later)


async def _load_cover(source: str | None, config: Config) -> tuple[bytes, str]:
    from storyshelf.core.cover import render_placeholder_cover
    from storyshelf.core.fetcher import ImageFetcher

    if source is None:
        print_warning("No source given; generating a placeholder cover")
        return render_placeholder_cover(), "image/png"
    if source.startswith(("http://", "https://")):
        async with ImageFetcher(config.fetch) as fetcher:
            image = await fetcher.fetch(source)
        return image.data, image.content_type
    path = Path(source)
    if not path.exists():
        raise StoryshelfError(f"File not found: {path}")
    suffix = path.suffix.lower().lstrip(".")
    return path.read_bytes(), f"image/{'jpeg' if suffix == 'jpg' else suffix or 'png'}"


@app.command(name="upload-default-cover")
def upload_default_cover(
    source: Annotated[
        Optional[str],
        typer.Argument(help="Image file path or http(s) URL; omit to generate one"),
    ] = None,
) -> None:
    """Upload the placeholder cover used by stories without artwork."""
    async def _upload() -> None:
        async with _open_shelf() as shelf:
            data, content_type = await _load_cover(source, shelf.config)
            url = await shelf.covers.upload_default_cover(data, content_type)
        print_success(f"Default cover uploaded: {url}")

    _run(_upload)


@app.command(name="default-cover")
def default_cover() -> None:
    """Print the public URL of the default cover."""
    async def _default_cover() -> None:
        async with _open_shelf() as shelf:
            console.print(await shelf.covers.get_default_cover_url())

    _run(_default_cover)


@app.command()
def check() -> None:
    """Verify the document store and object store are reachable."""
    async def _check() -> None:
        results: list[tuple[str, bool, str]] = []
        async with _open_shelf() as shelf:
            try:
                total = await shelf.store.count(STORIES)
                results.append(("Document store", True, f"{total} stories"))
            except StoryshelfError as exc:
                results.append(("Document store", False, str(exc)))

            path = "healthcheck/test.txt"
            try:
                await shelf.covers.upload_file(path, b"storyshelf healthcheck", "text/plain")
                await shelf.covers.delete_file(path)
                results.append(("Object store", True, "upload and delete"))
            except StoryshelfError as exc:
                results.append(("Object store", False, str(exc)))
        print_checks(results)
        if not all(ok for _, ok, _ in results):
            raise typer.Exit(1)

    _run(_check)


@app.command(name="config-path")
def config_path() -> None:
    """Show the config directory path."""
    console.print(f"[bold]Config:[/bold] {config_dir() / 'storyshelf.toml'}")


def run() -> None:
    app()
