"""Schema base class and the response envelopes shared by every router."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class BaseSchema(BaseModel):
    """
    Base for request and response models.

    Fields are snake_case in Python and camelCase on the wire; either form is
    accepted on input so ORM rows and client payloads validate alike.
    """

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )


class SuccessResponse(BaseSchema):
    success: bool = True
    message: str


class ErrorResponse(BaseSchema):
    """Body of every error reply."""

    success: bool = False
    error: str
