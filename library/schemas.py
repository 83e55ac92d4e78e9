# library/schemas.py
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

NoteCategory = Literal["general", "important", "question", "summary", "todo", "insight"]


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def dump(model_cls, obj) -> dict:
    return model_cls.model_validate(obj).model_dump(mode="json", by_alias=True)


# --- Responses ---
class VideoOut(CamelModel):
    video_id: str
    title: str
    description: str
    thumbnail_url: str
    duration: str
    is_completed: bool
    position: int


class PlaylistOut(CamelModel):
    id: str
    playlist_id: str
    title: str
    description: str
    thumbnail_url: str
    channel_title: str
    total_videos: int
    completed_videos: int
    folder_id: Optional[str] = None
    is_starred: bool
    tags: List[str] = []
    videos: List[VideoOut] = []
    created_at: datetime
    updated_at: datetime


class NoteOut(CamelModel):
    id: str
    playlist_id: str
    video_id: str
    content: str
    html_content: str
    timestamp: Optional[float] = None
    category: str
    tags: List[str] = []
    is_bookmark: bool
    created_at: datetime
    updated_at: datetime


class FolderOut(CamelModel):
    id: str
    name: str
    description: str
    color: str
    created_at: datetime
    updated_at: datetime


# --- Request bodies ---
class PlaylistAdd(CamelModel):
    playlist_url: Optional[str] = None

    @model_validator(mode="after")
    def check_fields(self):
        if not self.playlist_url:
            raise ValueError("Playlist URL is required")
        return self


class VideoToggle(CamelModel):
    video_id: Optional[str] = None

    @model_validator(mode="after")
    def check_fields(self):
        if not self.video_id:
            raise ValueError("Video ID is required")
        return self


class FolderMove(CamelModel):
    folder_id: Optional[str] = None


class NoteCreate(CamelModel):
    playlist_id: Optional[str] = None
    video_id: Optional[str] = None
    content: Optional[str] = None
    html_content: str = ""
    timestamp: Optional[float] = Field(None, ge=0)
    category: NoteCategory = "general"
    tags: List[str] = []
    is_bookmark: bool = False

    @model_validator(mode="after")
    def check_fields(self):
        if not self.playlist_id or not self.video_id or not self.content:
            raise ValueError("Playlist ID, Video ID, and content are required")
        return self


class NoteUpdate(CamelModel):
    content: Optional[str] = None
    html_content: Optional[str] = None
    timestamp: Optional[float] = Field(None, ge=0)
    category: Optional[NoteCategory] = None
    tags: Optional[List[str]] = None
    is_bookmark: Optional[bool] = None

    @model_validator(mode="after")
    def check_fields(self):
        if not self.content:
            raise ValueError("Content is required")
        return self


class FolderData(CamelModel):
    name: Optional[str] = None
    description: Optional[str] = None
    color: Optional[str] = None

    @model_validator(mode="after")
    def check_fields(self):
        if not self.name or not self.name.strip():
            raise ValueError("Folder name is required")
        self.name = self.name.strip()
        return self
