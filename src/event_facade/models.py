from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict

UNKNOWN_LIBRARY = "unknown"


class LibraryInfo(BaseModel):
    """Client library that produced a message.

    Producers send either a bare name or an object; unknown keys ride along.
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    name: Any = UNKNOWN_LIBRARY
    version: Any = None

    @classmethod
    def from_raw(cls, raw: Any) -> LibraryInfo:
        if isinstance(raw, Mapping):
            return cls.model_validate({str(key): value for key, value in raw.items()})
        if isinstance(raw, str) and raw:
            return cls(name=raw)
        return cls()

    def as_dict(self) -> dict[str, Any]:
        return self.model_dump()
