"""
Outcome of one sync pass.
"""

from typing import Optional

from treetracker_messaging.errors import MessagingError


class SyncResult:
    __slots__ = ("error", "pages", "fetched", "inserted", "uploaded")

    def __init__(
        self,
        error: Optional[MessagingError] = None,
        pages: int = 0,
        fetched: int = 0,
        inserted: int = 0,
        uploaded: int = 0,
    ):
        self.error = error
        self.pages = pages
        self.fetched = fetched
        self.inserted = inserted
        self.uploaded = uploaded

    @property
    def ok(self) -> bool:
        return self.error is None

    def __bool__(self) -> bool:
        return self.ok

    def __repr__(self) -> str:
        status = "ok" if self.ok else f"error={self.error.code!r}"  # type: ignore[union-attr]
        return (
            f"SyncResult({status}, pages={self.pages}, fetched={self.fetched}, "
            f"inserted={self.inserted}, uploaded={self.uploaded})"
        )
