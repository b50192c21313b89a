from dataclasses import dataclass


@dataclass(frozen=True)
class Identity:
    """Verified requester, produced once by session verification."""

    user_id: int
    name: str
