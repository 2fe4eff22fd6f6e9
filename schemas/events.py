from pydantic import BaseModel, ConfigDict, Field, StrictStr, field_validator


class _EventPayload(BaseModel):
    # wire names only: roomId, userName
    model_config = ConfigDict(populate_by_name=False)


class JoinPayload(_EventPayload):
    room_id: StrictStr = Field(alias="roomId")
    user_name: StrictStr = Field(alias="userName")

    @field_validator("room_id", "user_name")
    @classmethod
    def not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value

class CodeChangePayload(_EventPayload):
    room_id: StrictStr = Field(alias="roomId", min_length=1)
    code: StrictStr

class TypingPayload(_EventPayload):
    room_id: StrictStr = Field(alias="roomId")
    user_name: StrictStr = Field(alias="userName")

class LanguageChangePayload(_EventPayload):
    room_id: StrictStr = Field(alias="roomId")
    language: StrictStr

class ErrorPayload(BaseModel):
    message: str
