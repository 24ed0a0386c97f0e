"""pick-story command: choose one of your started Pivotal Tracker stories."""

from __future__ import annotations

from typing import Callable, List, Optional, TextIO

from rich.console import Console
from rich.prompt import IntPrompt
from rich.table import Table

from lazyai.domain.exceptions import ValidationError
from lazyai.domain.models import Story
from lazyai.domain.store import CredentialStore
from lazyai.providers.pivotal_client import PivotalClient

PIVOTAL_SECTION = "pivotalTracker"


def render_stories(stories: List[Story], console: Console) -> None:
    table = Table(title="Pick a story.")
    table.add_column("#", justify="right")
    table.add_column("ID")
    table.add_column("Name")
    for idx, story in enumerate(stories, start=1):
        table.add_row(str(idx), str(story.id), story.name)
    console.print(table)


def run_pick_story(
    settings,
    store: CredentialStore,
    stdout: TextIO,
    link: bool = False,
    console: Optional[Console] = None,
    ask: Optional[Callable[[List[str]], int]] = None,
    client: Optional[PivotalClient] = None,
) -> Story:
    """List started stories, let the user pick one, print its description (or URL).

    The story table goes to stderr so that stdout only carries the selected value.
    """

    console = console or Console(stderr=True)
    if client is None:
        client = PivotalClient.from_section(
            settings,
            store.load_section(PIVOTAL_SECTION),
            path=str(getattr(store, "path", "")),
        )
    stories = client.list_stories(state="started")
    if not stories:
        raise ValidationError(code="NO_STORIES", message="No started stories found for you")

    render_stories(stories, console)
    choices = [str(i) for i in range(1, len(stories) + 1)]
    ask = ask or (lambda options: IntPrompt.ask("Story number", console=console, choices=options))
    picked = stories[ask(choices) - 1]

    stdout.write(picked.url if link else picked.description)
    stdout.flush()
    return picked
