from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from pricing_service.core.enums import AuditAction


class AuditEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_id: str
    action: AuditAction
    resource_id: Optional[str] = None
    payload_hash: str
    diff: dict
    created_at: datetime
