from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ORMBase(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class CamelModel(ORMBase):
    """API payloads use camelCase keys on the wire."""

    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class TimestampMixin(CamelModel):
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ErrorResponse(BaseModel):
    error: str
