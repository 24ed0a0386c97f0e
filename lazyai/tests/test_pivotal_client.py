import pytest

from lazyai.domain.exceptions import ConfigError, DecodeError, UpstreamError
from lazyai.providers.pivotal_client import PivotalClient


class SettingsStub:
    pivotal_base_url = "https://www.pivotaltracker.com/services/v5"
    http_timeout = 1.0


def fake_httpx_client(monkeypatch, resp, captured=None):
    class Client:
        def __init__(self, *a, **kw):
            pass

        def __enter__(self):
            return self

        def __exit__(self, *a):
            return False

        def get(self, url, params=None, headers=None, **_):
            if captured is not None:
                captured.update(url=url, params=params, headers=headers)
            return resp

    monkeypatch.setattr("httpx.Client", Client)


def test_list_stories(monkeypatch):
    class Resp:
        status_code = 200
        text = "[...]"

        def json(self):
            return [
                {"id": 1, "name": "Login page", "description": "Build it", "url": "https://pt/1"},
                {"id": 2, "name": "Logout", "description": None, "url": "https://pt/2"},
            ]

    captured = {}
    fake_httpx_client(monkeypatch, Resp(), captured)
    stories = PivotalClient(SettingsStub(), "tok", "123", "TN").list_stories()

    assert [s.name for s in stories] == ["Login page", "Logout"]
    assert stories[1].description == ""
    assert captured["url"] == "https://www.pivotaltracker.com/services/v5/projects/123/stories"
    assert captured["params"] == {"filter": 'owner:"TN" AND state:"started"'}
    assert captured["headers"] == {"X-TrackerToken": "tok"}


def test_list_stories_error_status(monkeypatch):
    class Resp:
        status_code = 403
        text = "forbidden"

    fake_httpx_client(monkeypatch, Resp())
    with pytest.raises(UpstreamError) as exc:
        PivotalClient(SettingsStub(), "tok", "123", "TN").list_stories()
    assert exc.value.http_status == 403


def test_list_stories_bad_json(monkeypatch):
    class Resp:
        status_code = 200
        text = "not json"

        def json(self):
            raise ValueError("Expecting value")

    fake_httpx_client(monkeypatch, Resp())
    with pytest.raises(DecodeError) as exc:
        PivotalClient(SettingsStub(), "tok", "123", "TN").list_stories()
    assert exc.value.body == "not json"


def test_from_section_requires_all_fields():
    with pytest.raises(ConfigError):
        PivotalClient.from_section(SettingsStub(), {"apiToken": "t", "projectID": "1"})
    client = PivotalClient.from_section(SettingsStub(), {"apiToken": "t", "projectID": 1, "owner": "TN"})
    assert isinstance(client, PivotalClient)
