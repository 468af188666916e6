"""
Auth Pydantic Schemas

Request/response models for authentication endpoints.
"""

from pydantic import BaseModel, Field, model_validator


class LoginRequest(BaseModel):
    """
    Schema for operator login.

    Either workforce API credentials or an already issued external token.
    """

    username: str | None = Field(default=None, max_length=255)
    password: str | None = Field(default=None, max_length=255)
    external_token: str | None = Field(default=None, description="JWT issued by the workforce API")

    @model_validator(mode="after")
    def check_credentials(self) -> "LoginRequest":
        if self.external_token:
            return self
        if not self.username or not self.password:
            raise ValueError("Provide username and password, or an external_token")
        return self


class UserResponse(BaseModel):
    """Operator identity as read from the session token."""

    id: str
    name: str | None = None
    email: str | None = None
    worker_relation_id: str | None = None
    company_ids: list[str] = Field(default_factory=list)


class TokenResponse(BaseModel):
    """Session token response."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int = Field(description="Access token expiry in seconds")
    user: UserResponse
