from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class AuthUser(BaseModel):
    """
    Represents the user behind an authenticated session token.
    """

    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(..., alias="sub")
    email: Optional[str] = None
    full_name: Optional[str] = Field(None, alias="name")
    phone_number: Optional[str] = None
    role: str = "user"
