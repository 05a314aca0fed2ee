from pydantic import BaseModel, Field


class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1)


class PostCreate(BaseModel):
    content: str = Field(..., min_length=1)


class ProgressUpdate(BaseModel):
    module_id: int = Field(..., alias="moduleId")
    completed: bool = False

    class Config:
        populate_by_name = True
