"""Tests for field resolution against a project snapshot."""

from __future__ import annotations

import pytest

from wallnut.rules.resolver import NOT_FOUND, ProjectSnapshot, resolve


@pytest.fixture
def snapshot() -> ProjectSnapshot:
    return ProjectSnapshot(
        {
            "buildingType": "residential",
            "numberOfFloors": 0,
            "electrical": {"rcdSensitivity": 30, "hasEarthingSystem": False, "notes": None},
            "envelope": {"walls": [{"uValue": 0.4}, {"uValue": 0.6}]},
            "computed": {"fromProject": 1, "shadowed": "project"},
        },
        computed={"avgFloorHeight": 2.8, "shadowed": "derived"},
    )


class TestResolve:
    def test_top_level(self, snapshot: ProjectSnapshot) -> None:
        assert resolve("buildingType", snapshot) == "residential"

    def test_nested(self, snapshot: ProjectSnapshot) -> None:
        assert resolve("electrical.rcdSensitivity", snapshot) == 30

    def test_falsy_values_are_found(self, snapshot: ProjectSnapshot) -> None:
        assert resolve("numberOfFloors", snapshot) == 0
        assert resolve("electrical.hasEarthingSystem", snapshot) is False
        assert resolve("electrical.notes", snapshot) is None

    def test_missing_segment(self, snapshot: ProjectSnapshot) -> None:
        assert resolve("electrical.missing", snapshot) is NOT_FOUND
        assert resolve("missing.deeper.path", snapshot) is NOT_FOUND

    def test_path_through_scalar(self, snapshot: ProjectSnapshot) -> None:
        assert resolve("buildingType.length", snapshot) is NOT_FOUND

    def test_empty_path(self, snapshot: ProjectSnapshot) -> None:
        assert resolve("", snapshot) is NOT_FOUND

    def test_sequence_index(self, snapshot: ProjectSnapshot) -> None:
        assert resolve("envelope.walls.1.uValue", snapshot) == 0.6
        assert resolve("envelope.walls.5.uValue", snapshot) is NOT_FOUND

    def test_computed_prefers_derived(self, snapshot: ProjectSnapshot) -> None:
        assert resolve("computed.avgFloorHeight", snapshot) == 2.8
        assert resolve("computed.shadowed", snapshot) == "derived"

    def test_computed_falls_back_to_project(self, snapshot: ProjectSnapshot) -> None:
        assert resolve("computed.fromProject", snapshot) == 1

    def test_not_found_is_falsy_singleton(self) -> None:
        assert not NOT_FOUND
        assert NOT_FOUND is not None
        assert repr(NOT_FOUND) == "NOT_FOUND"


class TestProjectSnapshot:
    def test_rejects_non_mapping(self) -> None:
        with pytest.raises(TypeError):
            ProjectSnapshot(["not", "a", "mapping"])  # type: ignore[arg-type]

    def test_rejects_non_mapping_computed(self) -> None:
        with pytest.raises(TypeError):
            ProjectSnapshot({}, computed=42)  # type: ignore[arg-type]

    def test_input_is_copied(self) -> None:
        project = {"electrical": {"rcdSensitivity": 30}}
        snap = ProjectSnapshot(project)
        project["electrical"]["rcdSensitivity"] = 300
        assert resolve("electrical.rcdSensitivity", snap) == 30

    def test_snapshot_is_read_only(self) -> None:
        snap = ProjectSnapshot({"electrical": {"rcdSensitivity": 30}, "items": [1, 2]})
        with pytest.raises(TypeError):
            snap.data["electrical"]["rcdSensitivity"] = 1  # type: ignore[index]
        assert isinstance(snap.data["items"], tuple)

    def test_with_computed_shares_data(self) -> None:
        snap = ProjectSnapshot({"a": 1}, computed={"x": 1})
        other = snap.with_computed({"x": 2})
        assert resolve("a", other) == 1
        assert resolve("computed.x", other) == 2
        assert resolve("computed.x", snap) == 1

    def test_empty_snapshot(self) -> None:
        assert resolve("anything", ProjectSnapshot()) is NOT_FOUND
