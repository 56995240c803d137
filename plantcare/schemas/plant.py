from pydantic import BaseModel


class BadgeRead(BaseModel):
    name: str
    quote: str
    image: str

    model_config = {"from_attributes": True}


class PlantHealthRead(BaseModel):
    plant_id: int
    display_name: str
    health_score: int
    care_streak: int
    badge: BadgeRead
