"""Pivotal Tracker 只读客户端。

只提供一个调用：列出某个 owner 在项目中处于指定状态的 story，
供 pick-story 命令做交互式选择。
"""

from typing import List

import httpx

from lazyai.domain.exceptions import ConfigError, DecodeError, TransportError, UpstreamError
from lazyai.domain.models import Story


class PivotalClient:
    """Pivotal Tracker API v5 客户端。"""

    name = "pivotal"

    def __init__(self, settings, api_token: str, project_id: str, owner: str):
        self._settings = settings
        self._api_token = api_token
        self._project_id = project_id
        self._owner = owner

    @classmethod
    def from_section(cls, settings, section: dict, path: str = "") -> "PivotalClient":
        """根据配置文件中的 pivotalTracker 段创建客户端，缺字段时抛 ConfigError。"""

        api_token = section.get("apiToken")
        project_id = section.get("projectID")
        owner = section.get("owner")
        if not api_token or not project_id or not owner:
            raise ConfigError(
                code="MISSING_PIVOTAL_CONFIG",
                message=(
                    "pivotalTracker.apiToken, projectID and owner must be set in the configuration file. "
                    f"Please check {path or '~/.lazyai.yml'} again!"
                ),
            )
        return cls(settings, str(api_token), str(project_id), str(owner))

    def list_stories(self, state: str = "started") -> List[Story]:
        url = f"{self._settings.pivotal_base_url}/projects/{self._project_id}/stories"
        params = {"filter": f'owner:"{self._owner}" AND state:"{state}"'}
        try:
            with httpx.Client(timeout=self._settings.http_timeout, trust_env=False) as client:
                resp = client.get(url, params=params, headers={"X-TrackerToken": self._api_token})
        except httpx.RequestError as e:
            raise TransportError(code="NETWORK_ERROR", message=str(e))
        if resp.status_code != 200:
            raise UpstreamError(
                code="API_ERROR",
                message=f"Failed to get stories: {resp.text}",
                http_status=resp.status_code,
                body=resp.text,
            )
        try:
            data = resp.json()
        except ValueError as e:
            raise DecodeError(code="DECODE_ERROR", message=f"Failed to decode stories: {e}", body=resp.text)
        if not isinstance(data, list):
            raise DecodeError(code="DECODE_ERROR", message="Expected a list of stories", body=resp.text)
        return [self._parse_story(item, resp.text) for item in data]

    @staticmethod
    def _parse_story(item, body: str) -> Story:
        if not isinstance(item, dict) or "id" not in item:
            raise DecodeError(code="DECODE_ERROR", message="Malformed story entry", body=body)
        return Story(
            id=int(item["id"]),
            name=item.get("name") or "",
            description=item.get("description") or "",
            url=item.get("url") or "",
        )
