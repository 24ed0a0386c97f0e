import os
from pathlib import Path
from typing import Any, Dict, Optional
from uuid import uuid4

import yaml

from lazyai.domain.exceptions import ConfigError
from lazyai.domain.models import Credentials


SKYDECK_SECTION = "skydeck"
ACCESS_TOKEN_KEY = "accessToken"
REFRESH_TOKEN_KEY = "refreshToken"
CONVERSATION_ID_KEY = "convoID"


class YamlConfigStore:
    """基于 ~/.lazyai.yml 的 CredentialStore 实现。

    每次写入都会重新读取整个文档，只修改目标键，其余段落原样保留，
    然后通过临时文件 + os.replace 原子替换。
    """

    def __init__(self, path: str | Path):
        self._path = Path(path).expanduser()

    @property
    def path(self) -> Path:
        return self._path

    def load_credentials(self) -> Credentials:
        section = self.load_section(SKYDECK_SECTION)
        access_token = section.get(ACCESS_TOKEN_KEY)
        refresh_token = section.get(REFRESH_TOKEN_KEY)
        missing = [
            key
            for key, value in ((ACCESS_TOKEN_KEY, access_token), (REFRESH_TOKEN_KEY, refresh_token))
            if not value
        ]
        if missing:
            raise ConfigError(
                code="MISSING_CREDENTIALS",
                message=(
                    f"{', '.join(f'{SKYDECK_SECTION}.{k}' for k in missing)} not set in {self._path}. "
                    "Add your SkyDeck tokens under the 'skydeck' section."
                ),
                path=str(self._path),
            )
        return Credentials(access_token=str(access_token), refresh_token=str(refresh_token))

    def save_access_token(self, access_token: str) -> None:
        self._update_section(SKYDECK_SECTION, {ACCESS_TOKEN_KEY: access_token})

    def load_conversation_id(self) -> Optional[int]:
        raw = self.load_section(SKYDECK_SECTION).get(CONVERSATION_ID_KEY)
        if raw in (None, ""):
            return None
        try:
            value = int(raw)
        except (TypeError, ValueError):
            raise ConfigError(
                code="INVALID_CONVERSATION_ID",
                message=f"{SKYDECK_SECTION}.{CONVERSATION_ID_KEY} in {self._path} is not an integer: {raw!r}",
                path=str(self._path),
            )
        return value or None

    def save_conversation_id(self, conversation_id: int) -> None:
        self._update_section(SKYDECK_SECTION, {CONVERSATION_ID_KEY: int(conversation_id)})

    def load_section(self, name: str) -> Dict[str, Any]:
        section = self._read().get(name) or {}
        if not isinstance(section, dict):
            raise ConfigError(
                code="INVALID_CONFIG",
                message=f"'{name}' section in {self._path} is not a mapping",
                path=str(self._path),
            )
        return section

    def _read(self) -> Dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            data = yaml.safe_load(self._path.read_text(encoding="utf-8")) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(code="CONFIG_READ_ERROR", message=str(e), path=str(self._path))
        if not isinstance(data, dict):
            raise ConfigError(
                code="INVALID_CONFIG",
                message=f"{self._path} is not a YAML mapping",
                path=str(self._path),
            )
        return data

    def _update_section(self, name: str, values: Dict[str, Any]) -> None:
        data = self._read()
        section = data.get(name)
        if not isinstance(section, dict):
            section = {}
        section.update(values)
        data[name] = section
        self._write(data)

    def _write(self, data: Dict[str, Any]) -> None:
        tmp_path = self._path.with_name(f".{self._path.name}.{uuid4().hex}.tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(
                yaml.safe_dump(data, default_flow_style=False, allow_unicode=True, sort_keys=False),
                encoding="utf-8",
            )
            os.replace(tmp_path, self._path)
        except OSError as e:
            if tmp_path.exists():
                tmp_path.unlink()
            raise ConfigError(code="CONFIG_WRITE_ERROR", message=str(e), path=str(self._path))
