"""
Shared schema configuration

Payloads arrive in camelCase (``targetUserId``); Python code reads
snake_case attributes. Unknown keys are dropped so a caller cannot smuggle
server-owned fields such as ``priority`` or ``createdAt`` into a record.
"""
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CallPayload(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        str_strip_whitespace=True,
    )


class TargetUserRequest(CallPayload):
    """Payload naming the user an admin operation acts on"""
    target_user_id: str = Field(..., min_length=1, description="uid of the target user")


class OptionalTargetUserRequest(CallPayload):
    """Payload for operations that default to the caller when no target is given"""
    target_user_id: Optional[str] = Field(default=None, min_length=1)
