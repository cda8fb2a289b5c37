from typing import Literal, Optional
from pydantic import BaseModel

Role = Literal["student", "instructor"]


class CurrentUser(BaseModel):
    """Identity of the caller, resolved from the access token. Passed explicitly to services."""
    id: int
    email: str
    role: Role
    full_name: Optional[str] = None

    @property
    def is_instructor(self) -> bool:
        return self.role == "instructor"
