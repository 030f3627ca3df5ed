"""Tests for fitout.reporting.pdf_export - submission documents."""

from __future__ import annotations

import io
import zipfile
from decimal import Decimal
from types import SimpleNamespace

import pytest

from fitout.reporting.pdf_export import (
    export_submission,
    generate_finishes_pdf,
    generate_floor_plan_pdf,
    generate_upgrades_pdf,
)

UPGRADES = [
    {
        "id": "oven",
        "name": "Steam Oven",
        "category": "Appliances",
        "price": "2400.00",
        "quantity": 1,
        "floor_plan_points": [],
    },
    {
        "id": "power",
        "name": "Double Power Points",
        "category": "Electrical",
        "price": "95.00",
        "quantity": 2,
        "floor_plan_points": [
            {"id": "p1", "x": 100, "y": 120, "label": "Double Power Points #1"},
            {"id": "p2", "x": 640, "y": 300, "label": "Double Power Points #2"},
        ],
    },
]


@pytest.fixture
def submission():
    return {
        "unit_number": "101",
        "project_name": "Harbour View",
        "submitted_date": "2026-03-02",
        "color_scheme": "Coastal",
        "selected_upgrades": UPGRADES,
    }


@pytest.fixture
def scheme():
    return SimpleNamespace(
        materials={"paint": "Resene Alabaster", "paint_link": "https://resene.co.nz"}
    )


def _is_pdf(content: bytes) -> bool:
    return content.startswith(b"%PDF")


class TestDocuments:
    def test_finishes_pdf(self, submission, scheme):
        assert _is_pdf(generate_finishes_pdf(submission, scheme))

    def test_finishes_pdf_without_scheme(self, submission):
        assert _is_pdf(generate_finishes_pdf(submission, None))

    def test_upgrades_pdf(self, submission):
        assert _is_pdf(generate_upgrades_pdf(submission, UPGRADES, Decimal("0.15")))

    def test_upgrades_pdf_with_gst_included(self, submission):
        assert _is_pdf(generate_upgrades_pdf(submission, UPGRADES, Decimal("0.15"), gst_included=True))

    def test_upgrades_pdf_without_upgrades(self, submission):
        assert _is_pdf(generate_upgrades_pdf(submission, []))

    def test_floor_plan_pdf_with_plan_file(self, submission, tmp_path):
        plan = tmp_path / "plan.png"
        plan.write_bytes(b"not really a png")

        assert _is_pdf(generate_floor_plan_pdf(submission, UPGRADES, plan))

    def test_accepts_attribute_objects(self):
        row = SimpleNamespace(
            unit_number="7", project_name="Harbour View", submitted_date=None, color_scheme=None
        )

        assert _is_pdf(generate_finishes_pdf(row))


class TestExportSubmission:
    def test_single_document_is_pdf(self, submission):
        name, content_type, content = export_submission(submission, export_types=["upgrades"])

        assert name == "upgrades.pdf"
        assert content_type == "application/pdf"
        assert _is_pdf(content)

    def test_several_documents_are_zipped(self, submission, scheme):
        name, content_type, content = export_submission(submission, scheme)

        assert name == "submission-101-documents.zip"
        assert content_type == "application/zip"
        with zipfile.ZipFile(io.BytesIO(content)) as archive:
            assert sorted(archive.namelist()) == [
                "electrical-plan.pdf",
                "finishes.pdf",
                "upgrades.pdf",
            ]

    def test_floorplan_skipped_without_electrical_upgrades(self, submission):
        submission["selected_upgrades"] = UPGRADES[:1]

        with pytest.raises(ValueError):
            export_submission(submission, export_types=["floorplan"])

    def test_unknown_export_type(self, submission):
        with pytest.raises(ValueError, match="Unknown export type"):
            export_submission(submission, export_types=["invoice"])
