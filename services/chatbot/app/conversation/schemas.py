from typing import Optional
from pydantic import BaseModel, Field, field_validator


class ChatResult(BaseModel):
    """Outcome of processing one inbound message."""

    success: bool = Field(description="False when the option was unavailable or an error occurred")
    message: Optional[str] = Field(default=None, description="Text to deliver to the user")
    node_id: Optional[str] = Field(default=None, description="Menu node selected by this message, if any")
    ended: bool = Field(default=False, description="True when the conversation was closed")


class DebugMessageRequest(BaseModel):
    """Run a message through the dialogue engine without WhatsApp."""

    phone_number: str = Field(min_length=1, alias="phoneNumber")
    message: str = Field(min_length=1, max_length=1000)

    model_config = {"populate_by_name": True}

    @field_validator("phone_number", "message")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Field cannot be empty or whitespace only")
        return v.strip()


class DebugMenuRequest(BaseModel):
    """Select a menu option by number for a phone."""

    phone_number: str = Field(min_length=1, alias="phoneNumber")
    menu_number: int = Field(ge=0, alias="menuNumber")

    model_config = {"populate_by_name": True}


class DebugMessageResponse(BaseModel):
    phone_number: str
    input: str
    result: ChatResult
