"""Shared schema helpers: camelCase wire names and the response envelope."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    # the frontend speaks camelCase (dueDate, isUnique...), snake_case is accepted too
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MessageResponse(CamelModel):
    success: bool = True
    message: str
