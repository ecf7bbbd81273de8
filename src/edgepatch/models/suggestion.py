"""Read-only views of upstream entities: suggestions, opportunities, sites."""

from datetime import datetime
from typing import Any, Optional, Union

from pydantic import BaseModel, Field, field_validator


class Suggestion(BaseModel):
    """
    Upstream content recommendation. Only `id`, `data` and `updated_at` are read;
    `data` is a type-specific bag whose shape each mapper validates itself.
    """

    id: str
    data: dict[str, Any] = Field(default_factory=dict)
    updated_at: Optional[Union[datetime, str]] = None

    @field_validator("data", mode="before")
    @classmethod
    def _none_data_is_empty(cls, value: Any) -> Any:
        return {} if value is None else value

    @property
    def url(self) -> Optional[str]:
        return self.data.get("url")

    @property
    def transform_rules(self) -> dict[str, Any]:
        rules = self.data.get("transformRules")
        return rules if isinstance(rules, dict) else {}


class Opportunity(BaseModel):
    """Grouping of suggestions; `type` selects the mapper."""

    id: str
    type: Optional[str] = None


class SiteEdgeSettings(BaseModel):
    """Per-site credentials for fetching pages through the edge."""

    forwarded_host: Optional[str] = None
    api_key: Optional[str] = None


class Site(BaseModel):
    """Customer site whose pages receive patches."""

    id: str
    base_url: str
    override_base_url: Optional[str] = None
    edge: Optional[SiteEdgeSettings] = None

    @property
    def effective_base_url(self) -> str:
        """Override base URL when configured, else the site's base URL."""
        return self.override_base_url or self.base_url
