from __future__ import annotations

import shutil
from pathlib import Path

from candidate_ingest.services.orchestrator import handle_upload
from candidate_ingest.storage.blob import stage_upload

"""End-to-end upload: staged workbook -> records + photos in the blob sink."""

TITLE_ROWS = [
    ["Candidate Export"],
    ["Generated for the spring intake"],
]


def _upload(source: Path, temp_workdir: Path, store, sink):
    staged = stage_upload(source, temp_workdir / "uploads")
    response = handle_upload(staged, actor="staff-1", store=store, sink=sink, source_name=source.name)
    assert not staged.exists()
    return response


def _photo_files(temp_workdir: Path) -> list[Path]:
    root = temp_workdir / "blobs" / "photos"
    return sorted(p for p in root.iterdir() if p.is_file()) if root.exists() else []


def test_header_below_title_with_photo(temp_workdir, workbook_factory, png_bytes, store, sink):
    source = workbook_factory(
        "intake.xlsx",
        TITLE_ROWS + [["Name", "Email", "Phone"], ["Alice", "alice@x.com", "5551234"]],
        images=[("A4", png_bytes())],
    )
    response = _upload(source, temp_workdir, store, sink)

    assert response.status == 200
    assert response.body == {"message": "File processed", "added": 1, "errors": []}
    record = store.find_by_email("alice@x.com")
    assert record.name == "Alice"
    assert record.phone == "5551234"
    assert record.status == "pending"
    assert record.photo_path.startswith("photos/candidate-")
    assert record.photo_path.endswith(".png")
    assert sink.exists(record.photo_path)
    assert source.exists()


def test_reupload_adds_nothing_and_leaves_no_orphans(temp_workdir, workbook_factory, png_bytes, store, sink):
    rows = [["Name", "Email"], ["Ann", "ann@x.com"], ["Bo", "bo@x.com"]]
    source = workbook_factory("batch.xlsx", rows, images=[("B2", png_bytes())])
    first = _upload(source, temp_workdir, store, sink)
    assert first.body["added"] == 2

    second = _upload(source, temp_workdir, store, sink)
    assert second.status == 200
    assert second.body["added"] == 0
    assert second.body["errors"] == [
        "Skipped: Email ann@x.com already exists",
        "Skipped: Email bo@x.com already exists",
    ]
    assert len(store) == 2
    assert len(_photo_files(temp_workdir)) == 1


def test_second_upload_contributes_missing_photo(temp_workdir, workbook_factory, png_bytes, store, sink):
    rows = [["Name", "Email"], ["Ann", "ann@x.com"]]
    _upload(workbook_factory("no-photo.xlsx", rows), temp_workdir, store, sink)
    assert store.find_by_email("ann@x.com").photo_path is None

    response = _upload(
        workbook_factory("with-photo.xlsx", rows, images=[("C2", png_bytes())]), temp_workdir, store, sink
    )
    assert response.body == {"message": "File processed", "added": 1, "errors": []}
    assert response.report.updated == 1
    assert response.report.inserted == 0
    photo = store.find_by_email("ann@x.com").photo_path
    assert photo is not None and sink.exists(photo)


def test_larger_photo_wins_on_shared_row(temp_workdir, workbook_factory, png_bytes, store, sink):
    small = png_bytes((2, 2))
    large = png_bytes((128, 128), (10, 200, 90))
    rows = [["Name", "Email"], ["Ann", "ann@x.com"]]
    source = workbook_factory("two-photos.xlsx", rows, images=[("A2", small), ("B2", large)])
    _upload(source, temp_workdir, store, sink)
    photo = store.find_by_email("ann@x.com").photo_path
    assert sink.read(photo) == large
    assert len(_photo_files(temp_workdir)) == 1


def test_missing_header_rejects_upload(temp_workdir, workbook_factory, png_bytes, store, sink):
    source = workbook_factory(
        "notes.xlsx",
        [["Meeting notes"], ["Call Alice tomorrow"], ["alice@x.com"]],
        images=[("A2", png_bytes())],
    )
    response = _upload(source, temp_workdir, store, sink)
    assert response.status == 400
    assert response.body["message"].startswith("headers not found in the first")
    assert response.body["added"] == 0
    assert len(store) == 0
    assert _photo_files(temp_workdir) == []


def test_missing_contact_reported(temp_workdir, workbook_factory, store, sink):
    source = workbook_factory("bob.xlsx", [["Name", "Email", "Phone"], ["Bob", None, None]])
    response = _upload(source, temp_workdir, store, sink)
    assert response.status == 200
    assert response.body["added"] == 0
    assert response.body["errors"] == ["Skipped: Missing email/phone for Bob (found: name)"]


def test_profile_block_fallback(temp_workdir, workbook_factory, store, sink):
    rows = [
        ["Candidate Name", "Contact Details"],
        [None, "Name: Jane Doe Age: 29 Phone: 555-1234"],
        ["Powered by HireDesk", None],
        [None, "Updated: weekly"],
    ]
    response = _upload(workbook_factory("blocks.xlsx", rows), temp_workdir, store, sink)
    assert response.body["added"] == 1
    assert response.body["errors"] == []
    jane = store.list_all()[0]
    assert jane.name == "Jane Doe"
    assert jane.phone == "555-1234"
    assert jane.age == 29
    assert jane.email is None


def test_text_values_and_numeric_coercion(temp_workdir, workbook_factory, store, sink):
    rows = [
        ["Full Name", "E-mail", "Mobile", "Years of Experience", "Previous Company", "Age"],
        ["Ann", "ann@x.com", 5551234, "3.5", "Acme", "n/a"],
    ]
    _upload(workbook_factory("types.xlsx", rows), temp_workdir, store, sink)
    ann = store.find_by_email("ann@x.com")
    assert ann.phone == "5551234"
    assert ann.experience_years == 3.5
    assert ann.previous_experience == "Acme"
    assert ann.age == 0


def test_staged_file_removed_even_when_original_is_reused(temp_workdir, workbook_factory, store, sink):
    source = workbook_factory("keep.xlsx", [["Name", "Email"], ["Ann", "ann@x.com"]])
    copy = temp_workdir / "input" / "copy.xlsx"
    shutil.copyfile(source, copy)
    _upload(copy, temp_workdir, store, sink)
    assert list((temp_workdir / "uploads").iterdir()) == []


def test_repeated_rows_merge_one_photo_into_existing_record(
    temp_workdir, workbook_factory, png_bytes, store, sink
):
    _upload(workbook_factory("first.xlsx", [["Name", "Email"], ["Ann", "ann@x.com"]]), temp_workdir, store, sink)

    rows = [["Name", "Email"], ["Ann", "ann@x.com"], ["Ann", "ann@x.com"]]
    images = [("A2", png_bytes((4, 4))), ("A3", png_bytes((8, 8), (0, 0, 255)))]
    response = _upload(workbook_factory("again.xlsx", rows, images=images), temp_workdir, store, sink)

    assert response.body == {
        "message": "File processed",
        "added": 1,
        "errors": ["Skipped: Email ann@x.com already exists"],
    }
    assert len(store) == 1
    photo = store.find_by_email("ann@x.com").photo_path
    assert sink.exists(photo)
    assert _photo_files(temp_workdir) == [temp_workdir / "blobs" / photo]


def test_repeated_rows_in_new_upload_count_one_record(temp_workdir, workbook_factory, png_bytes, store, sink):
    rows = [["Name", "Email"], ["Ann", "ann@x.com"], ["Ann", "ann@x.com"]]
    response = _upload(
        workbook_factory("dupes.xlsx", rows, images=[("A3", png_bytes())]), temp_workdir, store, sink
    )
    assert response.body["added"] == 1
    assert response.report.inserted == 1
    assert response.report.updated == 0
    assert store.find_by_email("ann@x.com").photo_path is not None
