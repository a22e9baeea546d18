from conftest import make_track
from tunebridge.services.music_providers.base import Platform, PlaylistItem
from tunebridge.services.playlist_sync.link_registry import (
    LinkRegistry,
    backfill_positional,
    record_track_mappings,
)
from tunebridge.services.playlist_sync.report import TrackMapping


def _linked_registry() -> LinkRegistry:
    registry = LinkRegistry()
    registry.link(
        "src-1",
        "dst-1",
        "https://youtube.test/dst-1",
        source_platform=Platform.SPOTIFY,
        destination_platform=Platform.GOOGLE,
    )
    return registry


def test_link_stores_platforms_and_timestamps():
    registry = _linked_registry()
    link = registry.get("src-1")
    assert registry.is_linked("src-1")
    assert link.destination_playlist_id == "dst-1"
    assert link.destination_platform == Platform.GOOGLE
    assert link.created_at == link.last_sync_at
    assert link.track_mappings == []


def test_relinking_replaces_the_link_and_drops_mappings():
    registry = _linked_registry()
    registry.record_track_mapping("src-1", "t1", "item-1", "v1")
    registry.link("src-1", "dst-2", None)
    assert registry.get("src-1").destination_playlist_id == "dst-2"
    assert registry.get_track_mapping("src-1", "t1") is None
    assert len(registry.list_links()) == 1


def test_latest_mapping_for_a_source_track_wins():
    registry = _linked_registry()
    for handle in ["item-1", "item-2", "item-3"]:
        registry.record_track_mapping("src-1", "t1", handle, "v1")
    registry.record_track_mapping("src-1", "t2", "item-9", "v2")

    assert registry.get_track_mapping("src-1", "t1").destination_playlist_item_id == "item-3"
    assert [mapping.source_track_id for mapping in registry.get("src-1").track_mappings] == ["t1", "t2"]


def test_mappings_for_unlinked_playlists_are_ignored():
    registry = LinkRegistry()
    registry.record_track_mapping("src-1", "t1", "item-1", None)
    registry.touch_sync("src-1")
    assert registry.get("src-1") is None
    assert registry.get_track_mapping("src-1", "t1") is None


def test_unlink_reports_whether_a_link_existed():
    registry = _linked_registry()
    assert registry.unlink("src-1") is True
    assert registry.unlink("src-1") is False
    assert registry.is_linked("src-1") is False


def test_touch_sync_moves_last_sync_forward():
    registry = _linked_registry()
    before = registry.get("src-1").last_sync_at
    registry.touch_sync("src-1")
    assert registry.get("src-1").last_sync_at >= before


def test_record_track_mappings_from_transfer():
    registry = _linked_registry()
    recorded = record_track_mappings(
        registry,
        "src-1",
        [TrackMapping("t1", "item-1", "v1"), TrackMapping("t2", "item-2", "v2")],
    )
    assert recorded == 2
    assert registry.get_track_mapping("src-1", "t2").destination_track_external_id == "v2"
    assert record_track_mappings(LinkRegistry(), "src-1", [TrackMapping("t1", "x")]) == 0


def test_backfill_pairs_tracks_by_position():
    registry = _linked_registry()
    source = [make_track("t1", "One", "A"), make_track("t2", "Two", "B")]
    destination = [
        PlaylistItem("item-a", make_track("v1", "One", "A", platform=Platform.GOOGLE), 0),
        PlaylistItem("item-b", make_track("v2", "Two", "B", platform=Platform.GOOGLE), 1),
    ]

    assert backfill_positional(registry, "src-1", source, destination) == 2
    assert registry.get_track_mapping("src-1", "t1").destination_playlist_item_id == "item-a"
    assert registry.get_track_mapping("src-1", "t2").destination_track_external_id == "v2"


def test_backfill_with_length_mismatch_pairs_the_common_prefix(caplog):
    registry = _linked_registry()
    source = [make_track("t1", "One", "A"), make_track("t2", "Two", "B"), make_track("t3", "Three", "C")]
    destination = [PlaylistItem("item-a", make_track("v1", "One", "A", platform=Platform.GOOGLE), 0)]

    assert backfill_positional(registry, "src-1", source, destination) == 1
    assert registry.get_track_mapping("src-1", "t2") is None
    assert "Positional backfill" in caplog.text


def test_forget_track_mapping_removes_only_that_track():
    registry = _linked_registry()
    registry.record_track_mapping("src-1", "t1", "item-1", "v1")
    registry.record_track_mapping("src-1", "t2", "item-2", "v2")

    assert registry.forget_track_mapping("src-1", "t1") is True
    assert registry.forget_track_mapping("src-1", "t1") is False
    assert registry.forget_track_mapping("other", "t2") is False
    assert registry.get_track_mapping("src-1", "t1") is None
    assert registry.get_track_mapping("src-1", "t2").destination_playlist_item_id == "item-2"
