from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class PlantTaskRead(BaseModel):
    id: int
    plant_id: int
    task_key: str
    frequency_days: int
    next_due_on: datetime
    last_completed_on: Optional[datetime]
    active: bool
    created_at: datetime

    model_config = {"from_attributes": True}
