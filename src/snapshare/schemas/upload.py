"""Upload target configuration records.

Field aliases follow the camelCase keys of the persisted targets file so that
records round-trip through ``snapshare.config.json`` unchanged.
"""

from __future__ import annotations

from typing import Dict, List
from uuid import uuid4

from pydantic import ConfigDict, Field

from .base import SchemaBase


def new_record_id() -> str:
    return str(uuid4()).upper()


class HeaderConfig(SchemaBase):
    """One configured request header, sent exactly as written."""

    model_config = ConfigDict(str_strip_whitespace=False)

    id: str = Field(default_factory=new_record_id)
    key: str = Field(default="")
    value: str = Field(default="")


class UploadTarget(SchemaBase):
    """A named HTTP destination for uploads.

    Only ``request_url``, ``file_form_name`` and ``headers`` are consulted by the
    upload pipeline; the rest belongs to the configuration layer.
    """

    id: str = Field(default_factory=new_record_id)
    name: str = Field(default="")
    request_url: str = Field(default="", alias="requestURL")
    file_form_name: str = Field(default="file", alias="fileFormName")
    response_url: str = Field(default="", alias="responseURL")
    headers: List[HeaderConfig] = Field(default_factory=list)
    is_default: bool = Field(default=False, alias="isDefault")

    @property
    def headers_dict(self) -> Dict[str, str]:
        """Headers folded in list order; a repeated key keeps its last value."""
        result: Dict[str, str] = {}
        for header in self.headers:
            result[header.key] = header.value
        return result

    def to_file_dict(self) -> Dict:
        return self.model_dump(by_alias=True)
