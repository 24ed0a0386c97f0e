import io

import pytest
from rich.console import Console

from lazyai.commands.pick_story import run_pick_story
from lazyai.domain.exceptions import ValidationError
from lazyai.domain.models import Story


class FakeClient:
    def __init__(self, stories):
        self._stories = stories
        self.states = []

    def list_stories(self, state="started"):
        self.states.append(state)
        return self._stories


STORIES = [
    Story(id=1, name="Login page", description="Build the login page", url="https://pt/1"),
    Story(id=2, name="Logout", description="Add logout", url="https://pt/2"),
]


def test_pick_story_prints_description():
    client = FakeClient(STORIES)
    stdout = io.StringIO()
    console = Console(file=io.StringIO())
    asked = []

    def ask(choices):
        asked.append(choices)
        return 2

    picked = run_pick_story(None, None, stdout, console=console, ask=ask, client=client)

    assert picked.id == 2
    assert stdout.getvalue() == "Add logout"
    assert asked == [["1", "2"]]
    assert client.states == ["started"]


def test_pick_story_link():
    stdout = io.StringIO()
    run_pick_story(
        None,
        None,
        stdout,
        link=True,
        console=Console(file=io.StringIO()),
        ask=lambda choices: 1,
        client=FakeClient(STORIES),
    )
    assert stdout.getvalue() == "https://pt/1"


def test_pick_story_without_stories():
    with pytest.raises(ValidationError):
        run_pick_story(
            None,
            None,
            io.StringIO(),
            console=Console(file=io.StringIO()),
            ask=lambda choices: 1,
            client=FakeClient([]),
        )
