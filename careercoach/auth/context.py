from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class CallerContext:
    """Identity of whoever is calling, resolved once per request."""

    user_id: Optional[int] = None

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None


ANONYMOUS = CallerContext()
