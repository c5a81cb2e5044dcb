"""Media library data transfer objects."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class SignedRequest(BaseModel):
    """Ready-to-send request bound to a single signing timestamp."""
    model_config = ConfigDict(frozen=True)

    method: str
    url: str
    headers: dict[str, str] = Field(default_factory=dict)
    amz_date: str


class ListedObject(BaseModel):
    """One ``Contents`` entry of a ListObjectsV2 page."""
    key: str
    size: int = 0
    last_modified: Optional[datetime] = None

    @property
    def is_directory_marker(self) -> bool:
        return self.size == 0 and self.key.endswith("/")


class ListPage(BaseModel):
    """Parsed ListObjectsV2 response."""
    objects: list[ListedObject] = Field(default_factory=list)
    common_prefixes: list[str] = Field(default_factory=list)
    is_truncated: bool = False
    next_continuation_token: Optional[str] = None
