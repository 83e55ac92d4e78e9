import pytest
from fastapi.testclient import TestClient

from auth_service.app import app
from conftest import sign_in

PLAYLIST_URL = "https://www.youtube.com/watch?v=abc&list=PLpython101"


@pytest.fixture
def python_playlist(youtube):
    youtube.playlists["PLpython101"] = {
        "playlist_id": "PLpython101",
        "title": "Python 101",
        "description": "Basics",
        "thumbnail_url": "https://i.ytimg.com/vi/v1/mqdefault.jpg",
        "channel_title": "Teach",
        "total_videos": 3,
        "videos": [
            {
                "video_id": f"v{i}",
                "title": f"Lesson {i}",
                "description": "",
                "thumbnail_url": "",
                "duration": "10:00",
                "position": i,
            }
            for i in range(3)
        ],
    }
    return "PLpython101"


def _import(client):
    resp = client.post("/playlists/add", json={"playlistUrl": PLAYLIST_URL})
    assert resp.status_code == 200, resp.json()
    return resp.json()["playlist"]


def test_library_routes_require_session(client):
    for method, path in [
        ("get", "/playlists"),
        ("post", "/playlists/add"),
        ("get", "/notes?playlistId=a&videoId=b"),
        ("get", "/folders"),
    ]:
        resp = getattr(client, method)(path)
        assert resp.status_code == 401, path
        assert resp.json() == {"error": "Unauthorized"}


def test_import_playlist(signed_in, python_playlist):
    client, _ = signed_in

    playlist = _import(client)

    assert playlist["playlistId"] == "PLpython101"
    assert playlist["title"] == "Python 101"
    assert playlist["totalVideos"] == 3
    assert playlist["completedVideos"] == 0
    assert [v["videoId"] for v in playlist["videos"]] == ["v0", "v1", "v2"]
    assert all(v["isCompleted"] is False for v in playlist["videos"])

    listed = client.get("/playlists").json()["playlists"]
    assert [p["id"] for p in listed] == [playlist["id"]]
    assert client.get(f"/playlists/{playlist['id']}").json()["playlist"]["title"] == "Python 101"


def test_import_rejections(signed_in, python_playlist, youtube):
    client, _ = signed_in

    resp = client.post("/playlists/add", json={})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Playlist URL is required"}

    resp = client.post("/playlists/add", json={"playlistUrl": "https://youtube.com/watch?v=abc"})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid YouTube playlist URL"}

    resp = client.post("/playlists/add", json={"playlistUrl": "https://youtube.com/playlist?list=PLmissing"})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Failed to fetch playlist details or playlist not found"}

    _import(client)
    resp = client.post("/playlists/add", json={"playlistUrl": PLAYLIST_URL})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Playlist already added"}
    assert youtube.requested.count("PLpython101") == 1


def test_toggle_video_completion(signed_in, python_playlist):
    client, _ = signed_in
    playlist = _import(client)

    resp = client.post(f"/playlists/{playlist['id']}/complete", json={"videoId": "v1"})
    assert resp.status_code == 200
    assert resp.json()["message"] == "Video marked as completed"
    assert resp.json()["playlist"]["completedVideos"] == 1

    resp = client.post(f"/playlists/{playlist['id']}/complete", json={"videoId": "v1"})
    assert resp.json()["message"] == "Video marked as incomplete"
    assert resp.json()["playlist"]["completedVideos"] == 0

    resp = client.post(f"/playlists/{playlist['id']}/complete", json={"videoId": "nope"})
    assert resp.status_code == 404
    assert resp.json() == {"error": "Video not found in playlist"}


def test_star_and_progress(signed_in, python_playlist):
    client, _ = signed_in
    playlist = _import(client)

    resp = client.put(f"/playlists/{playlist['id']}/star")
    assert resp.json()["isStarred"] is True
    client.post(f"/playlists/{playlist['id']}/complete", json={"videoId": "v0"})

    progress = client.get("/playlists/progress").json()
    assert progress["totalPlaylists"] == 1
    assert progress["totalVideos"] == 3
    assert progress["completedVideos"] == 1
    assert progress["completionRate"] == 33.3
    assert progress["inProgressPlaylists"] == 1
    assert progress["notStartedPlaylists"] == 0
    assert progress["starredPlaylists"] == 1


def test_playlists_are_private(signed_in, sms, python_playlist):
    client, _ = signed_in
    playlist = _import(client)

    other = TestClient(app)
    sign_in(other, sms, phone="+15550001111", name="Bob")

    assert other.get(f"/playlists/{playlist['id']}").status_code == 404
    assert other.get("/playlists").json() == {"playlists": []}
    assert other.delete(f"/playlists/{playlist['id']}").status_code == 404


def test_delete_playlist(signed_in, python_playlist):
    client, _ = signed_in
    playlist = _import(client)

    resp = client.delete(f"/playlists/{playlist['id']}")

    assert resp.status_code == 200
    assert client.get(f"/playlists/{playlist['id']}").status_code == 404


def test_folders_crud_and_moves(signed_in, python_playlist):
    client, _ = signed_in
    playlist = _import(client)

    resp = client.post("/folders", json={"name": "Backend"})
    assert resp.status_code == 201
    folder = resp.json()
    assert folder["color"] == "blue"

    resp = client.post("/folders", json={"name": "Backend"})
    assert resp.status_code == 409
    assert resp.json() == {"error": "Folder with this name already exists"}

    resp = client.post("/folders", json={"description": "no name"})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Folder name is required"}

    resp = client.put(f"/folders/{folder['id']}", json={"name": "Server side", "color": "green"})
    assert resp.json()["name"] == "Server side"
    assert resp.json()["color"] == "green"

    resp = client.put(f"/playlists/{playlist['id']}/folder", json={"folderId": folder["id"]})
    assert resp.json()["folderId"] == folder["id"]

    resp = client.put(f"/playlists/{playlist['id']}/folder", json={"folderId": "not-mine"})
    assert resp.status_code == 404

    resp = client.delete(f"/folders/{folder['id']}")
    assert resp.json() == {"message": "Folder deleted successfully"}
    assert client.get(f"/folders/{folder['id']}").status_code == 404
    assert client.get(f"/playlists/{playlist['id']}").json()["playlist"]["folderId"] is None


def test_notes_crud(signed_in):
    client, _ = signed_in

    resp = client.post("/notes", json={"playlistId": "PL1", "videoId": "v1"})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Playlist ID, Video ID, and content are required"}

    resp = client.post(
        "/notes",
        json={
            "playlistId": "PL1",
            "videoId": "v1",
            "content": "closures capture variables",
            "timestamp": 125.5,
            "category": "insight",
            "tags": ["python"],
        },
    )
    assert resp.status_code == 200
    note = resp.json()["note"]
    assert note["category"] == "insight"
    assert note["timestamp"] == 125.5
    assert note["isBookmark"] is False

    resp = client.post("/notes", json={"playlistId": "PL1", "videoId": "v1", "content": "x", "category": "rant"})
    assert resp.status_code == 400

    resp = client.get("/notes?playlistId=PL1")
    assert resp.status_code == 400
    assert resp.json() == {"error": "Playlist ID and Video ID are required"}

    notes = client.get("/notes?playlistId=PL1&videoId=v1").json()["notes"]
    assert [n["id"] for n in notes] == [note["id"]]

    resp = client.put(f"/notes/{note['id']}", json={"content": "closures capture names", "isBookmark": True})
    assert resp.json()["note"]["content"] == "closures capture names"
    assert resp.json()["note"]["isBookmark"] is True
    assert resp.json()["note"]["category"] == "insight"

    resp = client.put(f"/notes/{note['id']}", json={})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Content is required"}

    assert client.delete(f"/notes/{note['id']}").json() == {"message": "Note deleted successfully"}
    assert client.delete(f"/notes/{note['id']}").status_code == 404
