"""Wire format mapping.

API bodies are camelCase; models and services are snake_case. Every DTO
derives from ``CamelModel`` so the translation happens in one place instead
of per-field fallbacks in each route.
"""

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class SuccessResponse(CamelModel):
    success: bool = True
