from artgallery import cli
from artgallery.aws import artworks, profiles, schema
from conftest import jpeg_bytes, png_bytes


def test_init_is_idempotent(aws_mock):
    assert cli.main(["init"]) == 0
    assert schema.create_tables() == []


def test_create_profile_and_set_admin(aws_mock):
    profiles.upsert_user("g-7", "owner@example.com", name="Owner")
    assert cli.main(["create-profile", "owner@example.com"]) == 0
    assert profiles.get_profile("g-7")["role"] == "admin"

    assert cli.main(["set-admin", "owner@example.com", "--revoke"]) == 0
    assert profiles.role_for("g-7") == "user"
    assert cli.main(["set-admin", "owner@example.com"]) == 0
    assert profiles.role_for("g-7") == "admin"


def test_create_profile_unknown_user(aws_mock):
    assert cli.main(["create-profile", "ghost@example.com"]) == 1


def test_batch_upload_directory(aws_mock, tmp_path):
    (tmp_path / "dawn.jpg").write_bytes(jpeg_bytes())
    (tmp_path / "dusk.png").write_bytes(png_bytes())
    (tmp_path / "notes.txt").write_text("skip me")

    assert cli.main(["batch-upload", str(tmp_path), "--medium", "Oil"]) == 0
    assert artworks.find_by_name("dawn") is not None
    assert artworks.find_by_name("dusk") is not None
    assert artworks.find_by_name("notes") is None


def test_batch_upload_dry_run(aws_mock, tmp_path, capsys):
    (tmp_path / "dawn.jpg").write_bytes(jpeg_bytes())
    assert cli.main(["batch-upload", str(tmp_path), "--dry-run"]) == 0
    assert "dawn.jpg" in capsys.readouterr().out
    assert artworks.find_by_name("dawn") is None
