"""Tests for the snapshot cache."""

import json

from shed.cache import (
    decode_links,
    encode_links,
    load_cached_snapshot,
    save_cached_snapshot,
)
from shed.models import BrewData, BrewPackage, ProjectLink, Snapshot

T = 1_700_000_000.0
HOUR = 3600


def sample_snapshot() -> Snapshot:
    return Snapshot(
        brew=BrewData(
            packages=[BrewPackage(name="jq", version="1.7", size_bytes=1024)],
            total_bytes=1024,
        ),
        links={
            "jq": [ProjectLink(project_name="scripts", files=["Makefile"])],
            "lodash": [
                ProjectLink(project_name="web", files=["package.json"]),
                ProjectLink(project_name="api", files=["package.json", "Dockerfile"]),
            ],
        },
        total_disk_bytes=500 * 1024**3,
    )


class TestLinkEncoding:
    def test_pairs_in_order(self):
        encoded = encode_links(sample_snapshot().links)
        assert [pair[0] for pair in encoded] == ["jq", "lodash"]
        assert encoded[0][1] == [{"project_name": "scripts", "files": ["Makefile"]}]

    def test_decode_non_list_passthrough(self):
        assert decode_links({"a": []}) == {"a": []}


class TestCache:
    def test_fresh_round_trip(self, tmp_path):
        path = tmp_path / "last-scan.json"
        snapshot = sample_snapshot()
        save_cached_snapshot(snapshot, path, now=T)

        loaded = load_cached_snapshot(path, now=T + HOUR)

        assert loaded is not None
        assert loaded.links == snapshot.links
        assert list(loaded.links) == ["jq", "lodash"]
        assert loaded.brew.packages[0].name == "jq"
        assert loaded.total_disk_bytes == snapshot.total_disk_bytes

    def test_stale_after_a_day(self, tmp_path):
        path = tmp_path / "last-scan.json"
        save_cached_snapshot(sample_snapshot(), path, now=T)

        assert load_cached_snapshot(path, now=T + 25 * HOUR) is None

    def test_links_stored_as_pairs(self, tmp_path):
        path = tmp_path / "last-scan.json"
        save_cached_snapshot(sample_snapshot(), path, now=T)

        raw = json.loads(path.read_text())
        assert isinstance(raw["links"], list)
        assert raw["_timestamp"] == int(T * 1000)

    def test_missing_file(self, tmp_path):
        assert load_cached_snapshot(tmp_path / "nope.json") is None

    def test_corrupt_file(self, tmp_path):
        path = tmp_path / "last-scan.json"
        path.write_text("{truncated")
        assert load_cached_snapshot(path) is None

    def test_missing_timestamp(self, tmp_path):
        path = tmp_path / "last-scan.json"
        path.write_text(json.dumps({"links": []}))
        assert load_cached_snapshot(path) is None

    def test_invalid_shape(self, tmp_path):
        path = tmp_path / "last-scan.json"
        path.write_text(json.dumps({"_timestamp": int(T * 1000), "brew": "oops"}))
        assert load_cached_snapshot(path, now=T) is None

    def test_save_creates_directory(self, tmp_path):
        path = tmp_path / "nested" / "dir" / "last-scan.json"
        save_cached_snapshot(sample_snapshot(), path, now=T)
        assert path.exists()
        assert list(path.parent.glob("*.tmp")) == []

    def test_unwritable_location_is_ignored(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("x")
        # parent is a regular file, so the directory cannot be created
        save_cached_snapshot(sample_snapshot(), blocker / "last-scan.json", now=T)
