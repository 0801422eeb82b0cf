from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class AuthRequest(BaseModel):
    """Body shared by sign-up and sign-in. Blank fields are rejected by the service, not here."""
    model_config = ConfigDict(populate_by_name=True)

    email: Optional[str] = None
    password: Optional[str] = None
    account_type: Optional[str] = Field(default=None, alias="accountType")


class AuthRedirect(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    redirect_url: str = Field(alias="redirectUrl")


class CurrentUser(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    username: str
    email: str
    account_type: str = Field(alias="accountType")
    first_name: str = Field(alias="firstName")
    last_name: str = Field(alias="lastName")


class MeResponse(BaseModel):
    authenticated: bool
    user: CurrentUser
