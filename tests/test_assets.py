import io
import re

from keitruckhub.assets import AssetStore


def stored_file(assets, url):
    return assets.upload_dir / url.rsplit("/", 1)[-1]


def test_save_creates_directory_and_returns_url(tmp_path):
    upload_dir = tmp_path / "nested" / "uploads"
    assets = AssetStore(upload_dir)

    url = assets.save("carry.png", io.BytesIO(b"png-bytes"))

    assert url.startswith("/uploads/carry-")
    assert url.endswith(".png")
    assert stored_file(assets, url).read_bytes() == b"png-bytes"
    assert stored_file(assets, url).parent == upload_dir


def test_generated_name_keeps_stem_and_extension():
    name = AssetStore.generate_name("Honda Acty.JPG")
    assert re.fullmatch(r"Honda_Acty-\d+\.JPG", name)


def test_generated_name_drops_client_directories():
    assert AssetStore.generate_name("../../etc/passwd").startswith("passwd-")
    assert AssetStore.generate_name("C:\\photos\\hijet.webp").startswith("hijet-")


def test_generated_name_without_usable_stem():
    assert re.fullmatch(r"image-\d+\.png", AssetStore.generate_name("???.png"))


def test_same_filename_twice_gives_distinct_files(tmp_path):
    assets = AssetStore(tmp_path)
    first = assets.save("truck.png", io.BytesIO(b"one"))
    second = assets.save("truck.png", io.BytesIO(b"two"))
    assert first != second
    assert stored_file(assets, first).read_bytes() == b"one"
    assert stored_file(assets, second).read_bytes() == b"two"
