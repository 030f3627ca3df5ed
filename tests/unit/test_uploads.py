"""Tests for fitout.storage.uploads - floor plan file storage."""

from __future__ import annotations

import pytest

from fitout.storage.uploads import (
    PUBLIC_PREFIX,
    floor_plan_dir,
    resolve_public_path,
    safe_filename,
    save_floor_plan,
)


def test_safe_filename():
    assert safe_filename("Unit 101 plan (v2).pdf") == "Unit_101_plan__v2_.pdf"
    assert safe_filename("../../etc/passwd") == ".._.._etc_passwd"


class TestSaveFloorPlan:
    def test_writes_file_and_returns_public_path(self, tmp_path):
        stored, public = save_floor_plan(tmp_path, "plan A.png", b"\x89PNG data")

        assert stored.endswith("_plan_A.png")
        assert stored.split("_", 1)[0].isdigit()
        assert public == f"{PUBLIC_PREFIX}{stored}"
        assert (floor_plan_dir(tmp_path) / stored).read_bytes() == b"\x89PNG data"

    def test_leaves_no_temporary_files(self, tmp_path):
        save_floor_plan(tmp_path, "plan.png", b"data")

        names = [p.name for p in floor_plan_dir(tmp_path).iterdir()]
        assert len(names) == 1
        assert not names[0].startswith(".upload-")

    def test_empty_upload_rejected(self, tmp_path):
        with pytest.raises(ValueError):
            save_floor_plan(tmp_path, "plan.png", b"")


class TestResolvePublicPath:
    def test_round_trip(self, tmp_path):
        stored, public = save_floor_plan(tmp_path, "plan.png", b"data")

        path = resolve_public_path(tmp_path, public)

        assert path is not None
        assert path.name == stored
        assert resolve_public_path(tmp_path, stored) == path

    def test_rejects_paths_outside_upload_dir(self, tmp_path):
        assert resolve_public_path(tmp_path, "/floor-plans/../secret.txt") is None
        assert resolve_public_path(tmp_path, "/floor-plans/nested/plan.png") is None

    def test_empty_path(self, tmp_path):
        assert resolve_public_path(tmp_path, None) is None
        assert resolve_public_path(tmp_path, "") is None
