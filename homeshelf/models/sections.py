from typing import Literal

from pydantic import BaseModel

SectionKind = Literal["new_and_popular", "top_picks", "latest"]


class HomeSection(BaseModel):
    kind: SectionKind
    title: str
    view_id: str | None = None
    collection_type: str | None = None
    limit: int
