"""DTOs for the Zendesk ticket API."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ZendeskCustomField(BaseModel):
    id: int
    value: Any = None


class ZendeskTicket(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: int | None = None
    subject: str | None = None
    status: str | None = None
    updated_at: str | None = None
    custom_fields: list[ZendeskCustomField] = Field(default_factory=list)

    def custom_field_value(self, field_id: int | None) -> Any:
        for field in self.custom_fields:
            if field.id == field_id:
                return field.value
        return None


class TicketUpdate(BaseModel):
    id: int
    custom_fields: list[ZendeskCustomField]
