from pydantic import BaseModel, Field


class SubjectCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    color: str = Field(default="#3B82F6", pattern=r"^#[0-9A-Fa-f]{6}$")


class Subject(BaseModel):
    id: str
    user_id: int
    name: str
    color: str
    created_at: str


class SubjectList(BaseModel):
    items: list[Subject]
    total: int
