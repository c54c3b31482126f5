import pytest

from artgallery.aws import artworks, storage, tags
from artgallery.core.errors import ConflictError, StorageError
from artgallery.services import gallery
from conftest import jpeg_bytes, png_bytes


def _create(title="Blue Hour", **kwargs):
    params = dict(title=title, data_bytes=jpeg_bytes(), category="Landscape", medium="Oil", size="Large")
    params.update(kwargs)
    return gallery.create_artwork(**params)


def test_create_artwork_stores_objects_and_record(aws_mock):
    item = _create(description="Evening light", alt="A blue harbour")

    stored = artworks.get_artwork(item["artwork_id"])
    assert stored["name"] == "Blue Hour"
    assert stored["description"] == "Evening light"
    assert int(stored["meta_width"]) == 800 and int(stored["meta_height"]) == 600
    assert storage.key_from_url(stored["src"]) == "gallery/images/blue-hour.webp"
    assert storage.key_from_url(stored["thumb_src"]) == "gallery/images/thumbnails/blue-hour-thumbnail.webp"
    assert storage.object_exists("gallery/images/blue-hour.webp")
    assert storage.object_exists("gallery/images/thumbnails/blue-hour-thumbnail.webp")

    view = gallery.present(stored)
    assert view["category"] == "Landscape"
    assert view["medium"] == "Oil"
    assert view["size"] == "Large"
    assert view["dimensions"] == "800x600"
    assert view["alt"] == "A blue harbour"
    assert view["tags"] == ["Landscape"]
    assert view["image_url"].startswith("https://")


def test_create_artwork_default_tags(aws_mock):
    item = gallery.create_artwork(title="Untitled", data_bytes=png_bytes())
    view = gallery.present(item)
    assert (view["category"], view["medium"], view["size"]) == ("Uncategorized", "Mixed Media", "Various")


def test_create_artwork_extra_categories_deduplicated(aws_mock):
    item = _create(categories=["Seascape", "Landscape", " "])
    view = gallery.present(item)
    assert view["tags"] == ["Landscape", "Seascape"]


@pytest.mark.parametrize(
    "kwargs,code",
    [
        ({"title": ""}, "title_and_image_required"),
        ({"data_bytes": b""}, "title_and_image_required"),
        ({"title": "x" * 61}, "title_too_long"),
        ({"description": "d" * 256}, "description_too_long"),
        ({"data_bytes": b"not an image"}, "unsupported_image_type"),
    ],
)
def test_create_artwork_validation(aws_mock, kwargs, code):
    with pytest.raises(ValueError, match=code):
        _create(**kwargs)


def test_invalid_image_creates_no_tags(aws_mock):
    with pytest.raises(ValueError):
        _create(data_bytes=b"garbage", medium="Charcoal")
    assert tags.find_tag("Charcoal", "medium") is None


def test_create_artwork_duplicate_name_conflict(aws_mock):
    _create()
    with pytest.raises(ConflictError) as exc:
        _create()
    assert exc.value.code == "artwork_exists"


def test_create_artwork_colliding_file_name_gets_suffixed_key(aws_mock):
    first = _create("Blue Hour")
    second = _create("blue hour")

    assert storage.key_from_url(first["src"]) == "gallery/images/blue-hour.webp"
    suffix = second["artwork_id"][:8]
    assert storage.key_from_url(second["src"]) == f"gallery/images/blue-hour-{suffix}.webp"
    assert storage.key_from_url(second["thumb_src"]) == f"gallery/images/thumbnails/blue-hour-{suffix}-thumbnail.webp"
    assert storage.object_exists(f"gallery/images/blue-hour-{suffix}.webp")


def test_create_artwork_non_latin_titles_do_not_collide(aws_mock):
    night = _create("夜")
    morning = _create("朝")
    assert night["src"] != morning["src"]
    assert storage.key_from_url(night["src"]).startswith("gallery/images/artwork-")


def test_recreate_title_after_failed_object_delete(aws_mock, monkeypatch):
    item = _create()
    real_delete = storage.delete_object

    def broken_delete(key):
        raise RuntimeError("s3 unavailable")

    monkeypatch.setattr(storage, "delete_object", broken_delete)
    gallery.delete_artwork(item["artwork_id"])
    monkeypatch.setattr(storage, "delete_object", real_delete)

    again = _create()
    assert again["name"] == "Blue Hour"
    assert storage.key_from_url(again["src"]) != storage.key_from_url(item["src"])
    assert storage.object_exists(storage.key_from_url(again["src"]))


def test_create_retry_after_thumbnail_upload_failure(aws_mock, monkeypatch):
    real_put = storage.put_object

    def flaky_put(key, data_bytes, content_type="image/webp"):
        if "/thumbnails/" in key:
            raise RuntimeError("thumbnail upload failed")
        real_put(key, data_bytes, content_type)

    monkeypatch.setattr(storage, "put_object", flaky_put)
    with pytest.raises(RuntimeError):
        _create()
    assert not storage.object_exists("gallery/images/blue-hour.webp")
    assert artworks.find_by_name("Blue Hour") is None

    monkeypatch.setattr(storage, "put_object", real_put)
    item = _create()
    assert storage.key_from_url(item["src"]) == "gallery/images/blue-hour.webp"


def test_update_artwork_title_renames_objects(aws_mock):
    item = _create()
    updated = gallery.update_artwork(item["artwork_id"], {"title": "Red Dawn", "medium": "Acrylic"})

    assert updated["name"] == "Red Dawn"
    assert storage.key_from_url(updated["src"]) == "gallery/images/red-dawn.webp"
    assert storage.object_exists("gallery/images/red-dawn.webp")
    assert storage.object_exists("gallery/images/thumbnails/red-dawn-thumbnail.webp")
    assert not storage.object_exists("gallery/images/blue-hour.webp")
    assert not storage.object_exists("gallery/images/thumbnails/blue-hour-thumbnail.webp")

    view = gallery.present(updated)
    assert view["medium"] == "Acrylic"
    # untouched fields keep their value
    assert view["category"] == "Landscape"
    assert view["size"] == "Large"


def test_update_artwork_primary_category_keeps_secondary(aws_mock):
    item = _create(categories=["Seascape"])
    updated = gallery.update_artwork(
        item["artwork_id"], {"title": "Blue Hour II", "category": "Landscape", "medium": "Oil", "size": "Large"}
    )
    assert gallery.present(updated)["tags"] == ["Landscape", "Seascape"]

    updated = gallery.update_artwork(item["artwork_id"], {"category": "Portrait"})
    assert gallery.present(updated)["tags"] == ["Portrait", "Seascape"]


def test_update_artwork_categories_list_replaces_all(aws_mock):
    item = _create(categories=["Seascape"])
    updated = gallery.update_artwork(item["artwork_id"], {"categories": ["Abstract"]})
    assert gallery.present(updated)["tags"] == ["Abstract"]

    updated = gallery.update_artwork(item["artwork_id"], {"categories": []})
    assert gallery.present(updated)["tags"] == ["Uncategorized"]


def test_update_artwork_rename_onto_leftover_object(aws_mock):
    item = _create()
    storage.put_object("gallery/images/red-dawn.webp", b"orphan")
    updated = gallery.update_artwork(item["artwork_id"], {"title": "Red Dawn"})
    suffix = item["artwork_id"][:8]
    assert storage.key_from_url(updated["src"]) == f"gallery/images/red-dawn-{suffix}.webp"
    assert storage.object_exists(f"gallery/images/thumbnails/red-dawn-{suffix}-thumbnail.webp")
    assert not storage.object_exists("gallery/images/blue-hour.webp")


def test_update_artwork_without_title_change_keeps_objects(aws_mock):
    item = _create()
    updated = gallery.update_artwork(item["artwork_id"], {"title": "Blue Hour", "description": "New words"})
    assert updated["description"] == "New words"
    assert updated["src"] == item["src"]


def test_update_artwork_rename_to_taken_name_conflict(aws_mock):
    _create("Blue Hour")
    other = _create("Red Dawn")
    with pytest.raises(ConflictError):
        gallery.update_artwork(other["artwork_id"], {"title": "Blue Hour"})


def test_update_artwork_copy_failure_aborts(aws_mock, monkeypatch):
    item = _create()

    def broken_copy(src, dst):
        raise RuntimeError("copy denied")

    monkeypatch.setattr(storage, "copy_object", broken_copy)
    with pytest.raises(StorageError):
        gallery.update_artwork(item["artwork_id"], {"title": "Red Dawn"})
    assert artworks.get_artwork(item["artwork_id"])["name"] == "Blue Hour"
    assert storage.object_exists("gallery/images/blue-hour.webp")


def test_update_missing_artwork(aws_mock):
    with pytest.raises(KeyError):
        gallery.update_artwork("nope", {"title": "x"})


def test_replace_image_updates_dimensions(aws_mock):
    item = _create()
    updated = gallery.replace_image(item["artwork_id"], png_bytes(size=(300, 500)))
    assert (int(updated["meta_width"]), int(updated["meta_height"])) == (300, 500)
    assert updated["src"] == item["src"]


def test_delete_artwork_survives_storage_failure(aws_mock, monkeypatch):
    item = _create()

    def broken_delete(key):
        raise RuntimeError("s3 unavailable")

    monkeypatch.setattr(storage, "delete_object", broken_delete)
    gallery.delete_artwork(item["artwork_id"])
    with pytest.raises(KeyError):
        artworks.get_artwork(item["artwork_id"])


def test_delete_artwork_removes_objects(aws_mock):
    item = _create()
    gallery.delete_artwork(item["artwork_id"])
    assert not storage.object_exists("gallery/images/blue-hour.webp")
    with pytest.raises(KeyError):
        gallery.delete_artwork(item["artwork_id"])


def test_batch_upload_collects_per_file_results(aws_mock):
    summary = gallery.batch_upload(
        [
            ("sunrise.jpg", jpeg_bytes()),
            ("broken.png", b"nope"),
            ("harbour.png", png_bytes()),
        ],
        category="Landscape",
    )
    assert summary["total"] == 3
    assert summary["succeeded"] == 2
    assert summary["failed"] == 1
    assert [r["status"] for r in summary["results"]] == ["ok", "error", "ok"]
    assert summary["results"][1]["error"] == "unsupported_image_type"
    assert artworks.find_by_name("sunrise") is not None


def test_bulk_delete(aws_mock):
    a = _create("One")
    b = _create("Two")
    summary = gallery.bulk_delete([a["artwork_id"], "missing", b["artwork_id"]])
    assert summary["succeeded"] == 2
    assert summary["results"][1] == {"id": "missing", "status": "error", "error": "not_found"}


def test_list_gallery_pagination_and_order(aws_mock, monkeypatch):
    counter = {"t": 1000}

    def fake_time():
        counter["t"] += 10
        return counter["t"]

    monkeypatch.setattr("artgallery.aws.artworks.time.time", fake_time)
    for i in range(5):
        _create(f"Piece {i}")

    first = gallery.list_gallery(page=1, limit=2)
    assert first["total"] == 5
    assert first["total_pages"] == 3
    assert [a["title"] for a in first["artworks"]] == ["Piece 4", "Piece 3"]

    last = gallery.list_gallery(page=3, limit=2)
    assert [a["title"] for a in last["artworks"]] == ["Piece 0"]

    beyond = gallery.list_gallery(page=4, limit=2)
    assert beyond["artworks"] == [] and beyond["total"] == 5


def test_list_gallery_filters(aws_mock):
    _create("Harbour", category="Seascape", medium="Oil", size="Large")
    _create("Field", category="Landscape", medium="Oil", size="Small")
    _create("Face", category="Portrait", medium="Charcoal", size="Small")

    assert gallery.list_gallery(medium="Oil")["total"] == 2
    assert gallery.list_gallery(medium="Oil", size="Small")["total"] == 1
    assert [a["title"] for a in gallery.list_gallery(category="Portrait")["artworks"]] == ["Face"]


def test_list_gallery_unknown_label_does_not_filter(aws_mock):
    _create("Harbour")
    _create("Field")
    assert gallery.list_gallery(category="Does Not Exist")["total"] == 2
