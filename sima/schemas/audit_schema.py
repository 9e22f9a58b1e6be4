from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel


class AuditLogOut(BaseModel):
    id: int
    user_id: Optional[int] = None
    action: str
    entity: str
    entity_id: Optional[int] = None
    payload: Optional[dict[str, Any]] = None
    created_at: datetime

    model_config = {
        "from_attributes": True
    }
