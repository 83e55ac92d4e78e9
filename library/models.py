# library/models.py
from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from auth_service.challenge import utcnow
from auth_service.database import Base
from auth_service.models import new_id

NOTE_CATEGORIES = ("general", "important", "question", "summary", "todo", "insight")


class Folder(Base):
    __tablename__ = "folders"
    id = Column(String(32), primary_key=True, default=new_id)
    user_id = Column(String(32), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    description = Column(String(500), nullable=False, default="")
    color = Column(String(30), nullable=False, default="blue")
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (UniqueConstraint("user_id", "name", name="uq_folder_user_name"),)


class Playlist(Base):
    __tablename__ = "playlists"
    id = Column(String(32), primary_key=True, default=new_id)
    user_id = Column(String(32), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    playlist_id = Column(String(64), nullable=False)
    title = Column(String(300), nullable=False)
    description = Column(Text, nullable=False, default="")
    thumbnail_url = Column(String(500), nullable=False, default="")
    channel_title = Column(String(200), nullable=False, default="")
    total_videos = Column(Integer, nullable=False, default=0)
    completed_videos = Column(Integer, nullable=False, default=0)
    folder_id = Column(String(32), ForeignKey("folders.id", ondelete="SET NULL"), nullable=True)
    is_starred = Column(Boolean, nullable=False, default=False)
    tags = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    videos = relationship(
        "Video",
        back_populates="playlist",
        order_by="Video.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __table_args__ = (UniqueConstraint("user_id", "playlist_id", name="uq_playlist_user_source"),)

    def recount_completed(self):
        self.completed_videos = sum(1 for video in self.videos if video.is_completed)


class Video(Base):
    __tablename__ = "videos"
    id = Column(Integer, primary_key=True, autoincrement=True)
    playlist_pk = Column(String(32), ForeignKey("playlists.id", ondelete="CASCADE"), nullable=False, index=True)
    video_id = Column(String(32), nullable=False)
    title = Column(String(300), nullable=False, default="")
    description = Column(Text, nullable=False, default="")
    thumbnail_url = Column(String(500), nullable=False, default="")
    duration = Column(String(20), nullable=False, default="Unknown")
    is_completed = Column(Boolean, nullable=False, default=False)
    position = Column(Integer, nullable=False, default=0)

    playlist = relationship("Playlist", back_populates="videos")


class Note(Base):
    __tablename__ = "notes"
    id = Column(String(32), primary_key=True, default=new_id)
    user_id = Column(String(32), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    playlist_id = Column(String(64), nullable=False)
    video_id = Column(String(32), nullable=False)
    content = Column(Text, nullable=False)
    html_content = Column(Text, nullable=False, default="")
    timestamp = Column(Float, nullable=True)  # seconds into the video
    category = Column(String(20), nullable=False, default="general")
    tags = Column(JSON, nullable=False, default=list)
    is_bookmark = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)
