"""Read-only identity context handed to the sync components."""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class IdentityContext(BaseModel):
    """The signed-in account as reported by the identity provider."""

    model_config = ConfigDict(frozen=True)

    identity: str = Field(..., min_length=1)
    display_name: str | None = None

    @property
    def local_part(self) -> str:
        return self.identity.split("@", 1)[0]


__all__ = ["IdentityContext"]
