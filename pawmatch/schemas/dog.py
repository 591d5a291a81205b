from uuid import UUID

from pydantic import BaseModel, ConfigDict


class DogRecord(BaseModel):
    """Dog as seen by the match workflow"""

    id: UUID
    user_id: UUID
    name: str | None = None
    breed: str | None = None
    gender: str | None = None
    image_url: str | None = None

    model_config = ConfigDict(from_attributes=True, frozen=True)

    @property
    def normalized_gender(self) -> str:
        return (self.gender or "").strip().lower()

    @property
    def is_male(self) -> bool:
        return self.normalized_gender == "male"
