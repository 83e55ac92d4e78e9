# library/youtube.py
import logging
import re
from typing import Any, Dict, List, Optional

import requests

from auth_service.errors import InternalError
from config import AppConfig

logger = logging.getLogger(__name__)

API_BASE = "https://www.googleapis.com/youtube/v3"
PAGE_SIZE = 50  # API maximum for playlistItems and videos

_PLAYLIST_ID_RE = re.compile(r"[&?]list=([a-zA-Z0-9_-]+)")
_DURATION_RE = re.compile(r"PT(\d+H)?(\d+M)?(\d+S)?")


class YoutubeError(Exception):
    pass


def extract_playlist_id(url: str) -> Optional[str]:
    match = _PLAYLIST_ID_RE.search(url)
    return match.group(1) if match else None


def format_duration(duration: str) -> str:
    """Turn an ISO-8601 duration such as ``PT1H2M3S`` into ``1:02:03``."""
    match = _DURATION_RE.search(duration or "")
    if not match:
        return "Unknown"
    hours, minutes, seconds = (int(part[:-1]) if part else 0 for part in match.groups())
    if hours > 0:
        return f"{hours}:{minutes:02d}:{seconds:02d}"
    return f"{minutes}:{seconds:02d}"


def _thumbnail(snippet: Dict[str, Any]) -> str:
    thumbnails = snippet.get("thumbnails") or {}
    for size in ("medium", "default"):
        url = (thumbnails.get(size) or {}).get("url")
        if url:
            return url
    return ""


class YoutubeClient:
    def __init__(self, api_key: Optional[str], timeout: float = 10, session=None):
        self.api_key = api_key
        self.timeout = timeout
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls, config=AppConfig) -> "YoutubeClient":
        if not config.YOUTUBE_API_KEY:
            logger.warning("⚠️ YOUTUBE_API_KEY not configured. Playlist import is disabled.")
        return cls(config.YOUTUBE_API_KEY, timeout=config.YOUTUBE_TIMEOUT_SECONDS)

    def _get(self, resource: str, **params) -> Dict[str, Any]:
        params["key"] = self.api_key
        try:
            response = self.session.get(f"{API_BASE}/{resource}", params=params, timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise YoutubeError(f"YouTube {resource} request failed: {e}") from e
        return response.json()

    def _playlist_items(self, playlist_id: str) -> List[Dict[str, Any]]:
        items = []
        page_token = None
        while True:
            params = {"part": "snippet", "playlistId": playlist_id, "maxResults": PAGE_SIZE}
            if page_token:
                params["pageToken"] = page_token
            data = self._get("playlistItems", **params)
            items.extend(data.get("items", []))
            page_token = data.get("nextPageToken")
            if not page_token:
                return items

    def _durations(self, video_ids: List[str]) -> Dict[str, str]:
        durations = {}
        for start in range(0, len(video_ids), PAGE_SIZE):
            chunk = video_ids[start:start + PAGE_SIZE]
            try:
                data = self._get("videos", part="contentDetails", id=",".join(chunk))
            except YoutubeError as e:
                # durations are cosmetic, the import still succeeds without them
                logger.warning("Could not fetch video durations: %s", e)
                continue
            for video in data.get("items", []):
                durations[video["id"]] = format_duration(
                    (video.get("contentDetails") or {}).get("duration", "")
                )
        return durations

    def fetch_playlist_details(self, playlist_id: str) -> Optional[Dict[str, Any]]:
        """Playlist metadata plus its videos, or None when it cannot be fetched."""
        if not self.api_key:
            raise InternalError("YouTube API key not configured")

        try:
            playlist_data = self._get("playlists", part="snippet", id=playlist_id)
            if not playlist_data.get("items"):
                return None
            snippet = playlist_data["items"][0].get("snippet", {})
            items = self._playlist_items(playlist_id)
        except YoutubeError as e:
            logger.error("❌ Error fetching playlist %s: %s", playlist_id, e)
            return None

        video_ids = [item["snippet"]["resourceId"]["videoId"] for item in items]
        durations = self._durations(video_ids)

        videos = []
        for position, item in enumerate(items):
            item_snippet = item["snippet"]
            video_id = item_snippet["resourceId"]["videoId"]
            videos.append(
                {
                    "video_id": video_id,
                    "title": item_snippet.get("title", ""),
                    "description": item_snippet.get("description", ""),
                    "thumbnail_url": _thumbnail(item_snippet),
                    "duration": durations.get(video_id, "Unknown"),
                    "position": position,
                }
            )

        return {
            "playlist_id": playlist_id,
            "title": snippet.get("title", ""),
            "description": snippet.get("description", ""),
            "thumbnail_url": _thumbnail(snippet),
            "channel_title": snippet.get("channelTitle", ""),
            "total_videos": len(videos),
            "videos": videos,
        }
