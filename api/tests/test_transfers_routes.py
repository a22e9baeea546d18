from conftest import make_track
from tunebridge.api.v1.dependencies import AUTH_EXPIRED_HEADER
from tunebridge.services.music_providers.base import AuthExpiredError, Platform


def _seed(provider_stub, matched: int = 3, total: int = 3):
    spotify = provider_stub[Platform.SPOTIFY]
    youtube = provider_stub[Platform.GOOGLE]
    tracks = [make_track(f"t{i}", f"Song {i}", "Artist") for i in range(total)]
    spotify.add_playlist("src-1", "Road Trip", tracks)
    for track in tracks[:matched]:
        youtube.search_results[f"{track.title} Artist"] = [
            make_track(f"yt-{track.id}", track.title, "Artist", platform=Platform.GOOGLE)
        ]
    return spotify, youtube


def _start(client, token_headers, **overrides):
    payload = {
        "source_provider": "spotify",
        "source_playlist_id": "src-1",
        "destination_provider": "google",
    }
    payload.update(overrides)
    return client.post("/api/v1/transfers", json=payload, headers=token_headers)


def test_transfer_runs_in_background_and_report_is_pollable(client, provider_stub, token_headers):
    _, youtube = _seed(provider_stub)

    response = _start(client, token_headers)
    assert response.status_code == 202
    assert response.json()["source_playlist_id"] == "src-1"

    report = client.get("/api/v1/transfers/src-1", headers=token_headers).json()
    assert report["is_terminal"] is True
    assert report["final_status"] == "success"
    assert report["success_count"] == 3
    assert report["link_eligible"] is True
    assert [step["step"] for step in report["steps"]] == ["creating", "matching_and_adding", "completed"]
    assert youtube.track_ids(report["destination_playlist_id"]) == ["yt-t0", "yt-t1", "yt-t2"]


def test_unknown_report_is_404(client, provider_stub, token_headers):
    assert client.get("/api/v1/transfers/missing", headers=token_headers).status_code == 404


def test_reports_are_scoped_to_the_session_header(client, provider_stub, token_headers):
    _seed(provider_stub)
    _start(client, {**token_headers, "X-Session-Id": "tab-1"})

    assert client.get("/api/v1/transfers/src-1", headers={"X-Session-Id": "tab-1"}).status_code == 200
    assert client.get("/api/v1/transfers/src-1", headers={"X-Session-Id": "tab-2"}).status_code == 404


def test_same_provider_transfer_is_rejected(client, provider_stub, token_headers):
    _seed(provider_stub)
    assert _start(client, token_headers, destination_provider="spotify").status_code == 400


def test_expired_destination_auth_is_reported_on_the_report(client, provider_stub, token_headers):
    _, youtube = _seed(provider_stub)
    youtube.create_error = AuthExpiredError("expired", status_code=401, platform=Platform.GOOGLE)

    assert _start(client, token_headers).status_code == 202

    report = client.get("/api/v1/transfers/src-1").json()
    assert report["auth_expired_provider"] == "google"
    assert report["is_terminal"] is True
    assert report["steps"][-1]["status"] == "error"


def test_missing_source_playlist_is_a_bad_gateway(client, provider_stub, token_headers):
    response = _start(client, token_headers, source_playlist_id="nope")
    assert response.status_code == 502


def test_missing_destination_token_is_401(client, provider_stub):
    response = client.post(
        "/api/v1/transfers",
        json={"source_provider": "spotify", "source_playlist_id": "src-1", "destination_provider": "google"},
        headers={"X-Spotify-Token": "token"},
    )
    assert response.status_code == 401
    assert response.headers[AUTH_EXPIRED_HEADER] == "google"
