# inbound_desk/schemas/workflow_rules.py
from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

CURRENT_SCHEMA_VERSION = 1


class WorkflowRules(BaseModel):
    """
    Per-client inbound workflow rules (read-only to this service).

    Versioned configuration with explicit defaults:
    - every flag defaults to False
    - lot_format defaults to None (data API falls back to LOT-<YYYYMMDD>-<SEQ>)
    - allowed_container_types defaults to ["pallet"]
    - an order without a client gets `WorkflowRules.disabled()`

    Accepts both snake_case and the camelCase keys the data API emits
    (requiresLotTracking, autoCreateLots, ...).
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)

    schema_version: int = Field(CURRENT_SCHEMA_VERSION, alias="schemaVersion")
    enabled: bool = False
    requires_po: bool = Field(False, alias="requiresPo")
    requires_appointment: bool = Field(False, alias="requiresAppointment")
    auto_create_lots: bool = Field(False, alias="autoCreateLots")
    lot_format: Optional[str] = Field(None, alias="lotFormat")
    requires_inspection: bool = Field(False, alias="requiresInspection")
    requires_lot_tracking: bool = Field(False, alias="requiresLotTracking")
    requires_expiration_dates: bool = Field(False, alias="requiresExpirationDates")
    allowed_container_types: List[str] = Field(
        default_factory=lambda: ["pallet"], alias="allowedContainerTypes"
    )

    @field_validator("schema_version")
    @classmethod
    def _check_version(cls, v: int) -> int:
        if v < 1 or v > CURRENT_SCHEMA_VERSION:
            raise ValueError(f"unsupported workflow rules schema_version: {v}")
        return v

    @field_validator("lot_format", mode="before")
    @classmethod
    def _blank_format_is_none(cls, v: Any) -> Optional[str]:
        if v is None:
            return None
        s = str(v).strip()
        return s or None

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        # null flags from the API mean "use the default"
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data

    @classmethod
    def disabled(cls) -> "WorkflowRules":
        return cls()

    @classmethod
    def load(cls, raw: Optional[Dict[str, Any]]) -> "WorkflowRules":
        """Validate a raw payload; None means the order has no client rules."""
        if not raw:
            return cls.disabled()
        return cls.model_validate(raw)

    # ------------------------------------------------------------------ #
    # effective flags (only meaningful when enabled)
    # ------------------------------------------------------------------ #
    @property
    def lots_required(self) -> bool:
        return self.enabled and (self.requires_lot_tracking or self.auto_create_lots)

    @property
    def expiration_required(self) -> bool:
        return self.enabled and self.requires_expiration_dates

    @property
    def inspection_required(self) -> bool:
        return self.enabled and self.requires_inspection

    @property
    def lot_numbers_generated(self) -> bool:
        return self.enabled and self.auto_create_lots
