"""Tests for asset lookups."""

from datetime import UTC, datetime, timedelta

import pytest

from storefront_customizer.domain.errors import NotFoundError, ValidationError
from storefront_customizer.domain.storage import StoredObject
from storefront_customizer.services.assets import (
    AssetLookupService,
    asset_timestamp,
    mime_for,
    shape_of,
)
from storefront_customizer.services.storage import SessionStoreGateway
from tests.conftest import InMemoryObjectStore

NOW = datetime(2026, 10, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def service(store: SessionStoreGateway) -> AssetLookupService:
    return AssetLookupService(store)


def test_latest_shape_picks_newest_across_folders(
    object_store: InMemoryObjectStore, service: AssetLookupService
) -> None:
    object_store.seed("customizer/sess_1-P1/original.png", modified_at=NOW)
    object_store.seed(
        "customizer/sess_1-P1/circle_1.png", modified_at=NOW - timedelta(hours=2)
    )
    object_store.seed(
        "customizer/sess_1-P2/heart_2.png", modified_at=NOW - timedelta(hours=1)
    )
    object_store.seed("customizer/sess_10-P1/circle_3.png", modified_at=NOW)

    asset = service.latest_shape("sess_1")

    assert asset.folder == "customizer/sess_1-P2"
    assert asset.name == "heart_2.png"
    assert asset.public_url.startswith(
        "https://cdn.test/storage/v1/object/public/customizer-uploads/"
        "customizer/sess_1-P2/heart_2.png?v="
    )


def test_latest_shape_filters_by_shape_and_product(
    object_store: InMemoryObjectStore, service: AssetLookupService
) -> None:
    object_store.seed(
        "customizer/sess_1-P1/circle_1.png", modified_at=NOW - timedelta(hours=3)
    )
    object_store.seed("customizer/sess_1-P1/heart_1.png", modified_at=NOW)
    object_store.seed("customizer/sess_1-P2/circle_2.png", modified_at=NOW)

    asset = service.latest_shape("sess_1", shape="CIRCLE", product_id="P1")

    assert asset.name == "circle_1.png"


def test_latest_shape_falls_back_to_name_timestamp(
    object_store: InMemoryObjectStore, service: AssetLookupService
) -> None:
    object_store.seed("customizer/sess_1-P1/circle_1700000000000.png")
    object_store.seed("customizer/sess_1-P1/circle_1800000000000.png")

    asset = service.latest_shape("sess_1")

    assert asset.name == "circle_1800000000000.png"
    assert asset.timestamp == 1_800_000_000_000


def test_latest_shape_missing_raises_not_found(
    object_store: InMemoryObjectStore, service: AssetLookupService
) -> None:
    object_store.seed("customizer/sess_1-P1/original.png")

    with pytest.raises(NotFoundError, match="No shaped image found"):
        service.latest_shape("sess_1")


def test_latest_shape_skips_unlistable_folder(
    object_store: InMemoryObjectStore, service: AssetLookupService
) -> None:
    object_store.seed("customizer/sess_1-P1/circle_1.png", modified_at=NOW)
    object_store.seed("customizer/sess_1-P2/heart_1.png", modified_at=NOW)
    object_store.failing_prefixes.add("customizer/sess_1-P2")

    asset = service.latest_shape("sess_1")

    assert asset.name == "circle_1.png"


def test_fetch_latest_shape_bytes(
    object_store: InMemoryObjectStore, service: AssetLookupService
) -> None:
    object_store.seed("customizer/sess_1-P1/rectangle_1.png", data=b"png-bytes")

    downloaded = service.fetch_latest_shape_bytes("sess_1")

    assert downloaded.content == b"png-bytes"
    assert downloaded.mime_type == "image/png"
    assert downloaded.name == "rectangle_1.png"


def test_list_shapes_excludes_original(
    object_store: InMemoryObjectStore, service: AssetLookupService
) -> None:
    object_store.seed("customizer/sess_1-P1/original.png")
    object_store.seed("customizer/sess_1-P1/circle_1.png")
    object_store.seed("customizer/sess_1-P1/notes.txt")

    folders = service.list_shapes("sess_1")

    assert len(folders) == 1
    assert folders[0]["folder"] == "customizer/sess_1-P1"
    names = [item["name"] for item in folders[0]["shaped_files"]]
    assert names == ["circle_1.png"]


def test_shape_types_lists_distinct_shapes(
    object_store: InMemoryObjectStore, service: AssetLookupService
) -> None:
    object_store.seed("customizer/sess_1-P1/circle_1.png")
    object_store.seed("customizer/sess_1-P1/circle_2.png")
    object_store.seed("customizer/sess_1-P2/heart_1.png")
    object_store.seed("customizer/sess_1-P2/star_1.png")

    result = service.shape_types("sess_1")

    assert result["shapes"] == ["circle", "heart"]
    assert result["folders"] == [
        {"folder": "customizer/sess_1-P1", "shapes": ["circle"]},
        {"folder": "customizer/sess_1-P2", "shapes": ["heart"]},
    ]


def test_original_and_qr_downloads(
    object_store: InMemoryObjectStore, service: AssetLookupService
) -> None:
    object_store.seed("customizer/sess_1/original.jpg", data=b"jpeg")
    object_store.seed("customizer/sess_1/qr_code.png", data=b"qr")

    original = service.original_file("sess_1")
    qr = service.qr_file("sess_1")

    assert original.content == b"jpeg"
    assert original.mime_type == "image/jpeg"
    assert qr.content == b"qr"
    assert qr.mime_type == "image/png"


def test_missing_qr_raises_not_found(
    object_store: InMemoryObjectStore, service: AssetLookupService
) -> None:
    object_store.seed("customizer/sess_1/original.png")

    with pytest.raises(NotFoundError):
        service.qr_file("sess_1")


def test_delete_session_files_clears_bare_folder(
    object_store: InMemoryObjectStore, service: AssetLookupService
) -> None:
    object_store.seed("customizer/sess_1/original.png")
    object_store.seed("customizer/sess_1/shape.png")
    object_store.seed("customizer/sess_1-P1/circle_1.png")

    deleted = service.delete_session_files("sess_1")

    assert deleted == 2
    assert list(object_store.objects) == ["customizer/sess_1-P1/circle_1.png"]
    assert service.delete_session_files("sess_1") == 0


def test_session_info_and_blank_session(service: AssetLookupService) -> None:
    assert service.session_info("sess_1") == {
        "session_id": "sess_1",
        "folder_path": "customizer/sess_1",
    }
    with pytest.raises(ValidationError):
        service.session_info("  ")


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("circle_1.png", "circle"),
        ("HEART_1700000000000.PNG", "heart"),
        ("rectangle.png", "rectangle"),
        ("original.png", None),
        ("star_1.png", None),
        ("circle_1.jpg", None),
    ],
)
def test_shape_of(name: str, expected: str | None) -> None:
    assert shape_of(name) == expected


def test_asset_timestamp_sources() -> None:
    assert asset_timestamp(StoredObject("circle_1.png", last_modified_at=NOW)) == int(
        NOW.timestamp() * 1000
    )
    assert asset_timestamp(StoredObject("circle_1700000000.png")) == 1_700_000_000_000
    assert asset_timestamp(StoredObject("circle.png")) == 0


def test_mime_for() -> None:
    assert mime_for("photo.JPEG") == "image/jpeg"
    assert mime_for("qr.png") == "image/png"
    assert mime_for("blob.bin") == "application/octet-stream"
