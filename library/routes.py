# library/routes.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from auth_service.database import get_db
from auth_service.errors import Conflict, NotFound, ValidationError
from auth_service.models import User
from auth_service.sessions import get_current_user

from .models import Folder, Note, Playlist, Video
from .schemas import (
    FolderData,
    FolderMove,
    FolderOut,
    NoteCreate,
    NoteOut,
    NoteUpdate,
    PlaylistAdd,
    PlaylistOut,
    VideoToggle,
    dump,
)
from .youtube import YoutubeClient, extract_playlist_id

logger = logging.getLogger(__name__)

playlist_router = APIRouter(prefix="/playlists", tags=["Playlists"])
note_router = APIRouter(prefix="/notes", tags=["Notes"])
folder_router = APIRouter(prefix="/folders", tags=["Folders"])


def get_youtube_client(request: Request) -> YoutubeClient:
    return request.app.state.youtube_client


def _owned_playlist(db: Session, user: User, playlist_pk: str) -> Playlist:
    playlist = (
        db.query(Playlist)
        .filter(Playlist.id == playlist_pk, Playlist.user_id == user.id)
        .first()
    )
    if not playlist:
        raise NotFound("Playlist not found")
    return playlist


def _owned_folder(db: Session, user: User, folder_id: str) -> Folder:
    folder = db.query(Folder).filter(Folder.id == folder_id, Folder.user_id == user.id).first()
    if not folder:
        raise NotFound("Folder not found")
    return folder


def _owned_note(db: Session, user: User, note_id: str) -> Note:
    note = db.query(Note).filter(Note.id == note_id, Note.user_id == user.id).first()
    if not note:
        raise NotFound("Note not found")
    return note


def _folder_name_taken(db: Session, user: User, name: str, exclude_id: Optional[str] = None) -> bool:
    query = db.query(Folder.id).filter(Folder.user_id == user.id, Folder.name == name)
    if exclude_id:
        query = query.filter(Folder.id != exclude_id)
    return query.first() is not None


# ------------------------------------------------------------------
# --- PLAYLISTS ---
# ------------------------------------------------------------------
@playlist_router.get("")
def list_playlists(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    playlists = (
        db.query(Playlist)
        .filter(Playlist.user_id == user.id)
        .order_by(Playlist.created_at.desc())
        .all()
    )
    return {"playlists": [dump(PlaylistOut, p) for p in playlists]}


@playlist_router.post("/add")
def add_playlist(
    data: PlaylistAdd,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    youtube: YoutubeClient = Depends(get_youtube_client),
):
    playlist_id = extract_playlist_id(data.playlist_url)
    if not playlist_id:
        raise ValidationError("Invalid YouTube playlist URL")

    existing = (
        db.query(Playlist.id)
        .filter(Playlist.user_id == user.id, Playlist.playlist_id == playlist_id)
        .first()
    )
    if existing:
        raise Conflict("Playlist already added")

    details = youtube.fetch_playlist_details(playlist_id)
    if not details:
        raise ValidationError("Failed to fetch playlist details or playlist not found")

    playlist = Playlist(
        user_id=user.id,
        playlist_id=details["playlist_id"],
        title=details["title"],
        description=details["description"],
        thumbnail_url=details["thumbnail_url"],
        channel_title=details["channel_title"],
        total_videos=details["total_videos"],
        completed_videos=0,
        videos=[Video(**video, is_completed=False) for video in details["videos"]],
    )
    db.add(playlist)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict("Playlist already added")
    db.refresh(playlist)
    logger.info("✅ Imported playlist %s (%d videos) for user %s", playlist_id, playlist.total_videos, user.id)
    return {"message": "Playlist added successfully", "playlist": dump(PlaylistOut, playlist)}


@playlist_router.get("/progress")
def playlist_progress(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Completion summary across the user's playlists."""
    playlists = db.query(Playlist).filter(Playlist.user_id == user.id).all()
    total_videos = sum(p.total_videos for p in playlists)
    completed_videos = sum(p.completed_videos for p in playlists)
    completed = sum(1 for p in playlists if p.total_videos and p.completed_videos >= p.total_videos)
    not_started = sum(1 for p in playlists if p.completed_videos == 0)
    return {
        "totalPlaylists": len(playlists),
        "totalVideos": total_videos,
        "completedVideos": completed_videos,
        "completionRate": round(completed_videos / total_videos * 100, 1) if total_videos else 0.0,
        "completedPlaylists": completed,
        "inProgressPlaylists": len(playlists) - completed - not_started,
        "notStartedPlaylists": not_started,
        "starredPlaylists": sum(1 for p in playlists if p.is_starred),
        "totalNotes": db.query(Note).filter(Note.user_id == user.id).count(),
    }


@playlist_router.get("/{playlist_pk}")
def get_playlist(playlist_pk: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return {"playlist": dump(PlaylistOut, _owned_playlist(db, user, playlist_pk))}


@playlist_router.delete("/{playlist_pk}")
def delete_playlist(playlist_pk: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    playlist = _owned_playlist(db, user, playlist_pk)
    db.delete(playlist)
    db.commit()
    return {"message": "Playlist deleted successfully"}


@playlist_router.post("/{playlist_pk}/complete")
def toggle_video(
    playlist_pk: str,
    data: VideoToggle,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    playlist = _owned_playlist(db, user, playlist_pk)
    video = next((v for v in playlist.videos if v.video_id == data.video_id), None)
    if not video:
        raise NotFound("Video not found in playlist")

    video.is_completed = not video.is_completed
    playlist.recount_completed()
    db.commit()
    db.refresh(playlist)
    return {
        "message": "Video marked as completed" if video.is_completed else "Video marked as incomplete",
        "playlist": dump(PlaylistOut, playlist),
    }


@playlist_router.put("/{playlist_pk}/star")
def toggle_star(playlist_pk: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    playlist = _owned_playlist(db, user, playlist_pk)
    playlist.is_starred = not playlist.is_starred
    db.commit()
    db.refresh(playlist)
    return dump(PlaylistOut, playlist)


@playlist_router.put("/{playlist_pk}/folder")
def move_to_folder(
    playlist_pk: str,
    data: FolderMove,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    playlist = _owned_playlist(db, user, playlist_pk)
    if data.folder_id:
        _owned_folder(db, user, data.folder_id)
    playlist.folder_id = data.folder_id or None
    db.commit()
    db.refresh(playlist)
    return dump(PlaylistOut, playlist)


# ------------------------------------------------------------------
# --- NOTES ---
# ------------------------------------------------------------------
@note_router.get("")
def list_notes(
    playlist_id: Optional[str] = Query(None, alias="playlistId"),
    video_id: Optional[str] = Query(None, alias="videoId"),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if not playlist_id or not video_id:
        raise ValidationError("Playlist ID and Video ID are required")
    notes = (
        db.query(Note)
        .filter(Note.user_id == user.id, Note.playlist_id == playlist_id, Note.video_id == video_id)
        .order_by(Note.created_at.desc())
        .all()
    )
    return {"notes": [dump(NoteOut, n) for n in notes]}


@note_router.post("")
def add_note(data: NoteCreate, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    note = Note(user_id=user.id, **data.model_dump())
    db.add(note)
    db.commit()
    db.refresh(note)
    return {"message": "Note added successfully", "note": dump(NoteOut, note)}


@note_router.put("/{note_id}")
def update_note(
    note_id: str,
    data: NoteUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    note = _owned_note(db, user, note_id)
    for field, value in data.model_dump(exclude_unset=True).items():
        if value is not None or field == "timestamp":
            setattr(note, field, value)
    db.commit()
    db.refresh(note)
    return {"message": "Note updated successfully", "note": dump(NoteOut, note)}


@note_router.delete("/{note_id}")
def delete_note(note_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    note = _owned_note(db, user, note_id)
    db.delete(note)
    db.commit()
    return {"message": "Note deleted successfully"}


# ------------------------------------------------------------------
# --- FOLDERS ---
# ------------------------------------------------------------------
@folder_router.get("")
def list_folders(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    folders = (
        db.query(Folder)
        .filter(Folder.user_id == user.id)
        .order_by(Folder.created_at.desc())
        .all()
    )
    return {"folders": [dump(FolderOut, f) for f in folders]}


@folder_router.post("", status_code=status.HTTP_201_CREATED)
def create_folder(data: FolderData, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    if _folder_name_taken(db, user, data.name):
        raise Conflict("Folder with this name already exists", status_code=status.HTTP_409_CONFLICT)
    folder = Folder(
        user_id=user.id,
        name=data.name,
        description=data.description or "",
        color=data.color or "blue",
    )
    db.add(folder)
    db.commit()
    db.refresh(folder)
    return dump(FolderOut, folder)


@folder_router.get("/{folder_id}")
def get_folder(folder_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return dump(FolderOut, _owned_folder(db, user, folder_id))


@folder_router.put("/{folder_id}")
def update_folder(
    folder_id: str,
    data: FolderData,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    folder = _owned_folder(db, user, folder_id)
    if _folder_name_taken(db, user, data.name, exclude_id=folder.id):
        raise Conflict("Folder with this name already exists", status_code=status.HTTP_409_CONFLICT)
    folder.name = data.name
    folder.description = data.description or ""
    folder.color = data.color or "blue"
    db.commit()
    db.refresh(folder)
    return dump(FolderOut, folder)


@folder_router.delete("/{folder_id}")
def delete_folder(folder_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    folder = _owned_folder(db, user, folder_id)
    # playlists in the folder go back to the unfiled list
    db.query(Playlist).filter(Playlist.folder_id == folder.id).update(
        {Playlist.folder_id: None}, synchronize_session=False
    )
    db.delete(folder)
    db.commit()
    return {"message": "Folder deleted successfully"}
