"""
Partition models — the local user scope that owns stored messages.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict


class PlanterIdentity(BaseModel):
    wallet_handle: str
    identifier: Optional[str] = None

    model_config = ConfigDict(frozen=True)


class Partition(BaseModel):
    """Records are keyed by `key`; network operations need an `identity`."""
    key: str
    identity: Optional[PlanterIdentity] = None

    model_config = ConfigDict(frozen=True)

    @property
    def wallet_handle(self) -> Optional[str]:
        return self.identity.wallet_handle if self.identity else None
