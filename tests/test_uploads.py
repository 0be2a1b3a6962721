import io
import os
import re

import pytest
from marshmallow import ValidationError
from werkzeug.datastructures import FileStorage

from api.uploads import (
    build_profile_filename,
    profile_image_dir,
    remove_profile_image,
    save_profile_image,
)

MAX = 1024


def _file(content=b"\x89PNG....", filename="me.png", content_type="image/png"):
    return FileStorage(stream=io.BytesIO(content), filename=filename, content_type=content_type)


def test_filename_is_timestamp_and_uuid():
    assert re.fullmatch(r"\d{13}-[0-9a-f-]{36}\.png", build_profile_filename("png"))


def test_save_stores_file(tmp_path):
    name = save_profile_image(_file(), str(tmp_path), MAX)
    assert name.endswith(".png")
    with open(os.path.join(profile_image_dir(str(tmp_path)), name), "rb") as fh:
        assert fh.read() == b"\x89PNG...."


def test_missing_file_means_no_profile(tmp_path):
    assert save_profile_image(None, str(tmp_path), MAX) is None
    assert save_profile_image(_file(filename=""), str(tmp_path), MAX) is None


@pytest.mark.parametrize("content_type", ["image/jpg", "image/jpeg", "image/png", "image/heic"])
def test_allowed_types(tmp_path, content_type):
    assert save_profile_image(_file(content_type=content_type), str(tmp_path), MAX)


@pytest.mark.parametrize("content_type", ["image/gif", "application/pdf", "text/plain"])
def test_disallowed_types(tmp_path, content_type):
    with pytest.raises(ValidationError) as exc:
        save_profile_image(_file(content_type=content_type), str(tmp_path), MAX)
    assert "profile_image" in exc.value.messages
    assert not os.path.exists(profile_image_dir(str(tmp_path)))


def test_oversized_file(tmp_path):
    with pytest.raises(ValidationError):
        save_profile_image(_file(content=b"x" * (MAX + 1)), str(tmp_path), MAX)


def test_extension_comes_from_mime_type(tmp_path):
    name = save_profile_image(_file(filename="photo", content_type="image/heic"), str(tmp_path), MAX)
    assert name.endswith(".heic")


@pytest.mark.parametrize("filename", ["x.html", "x.svg", "x.png.html", "x.HTML"])
def test_filename_extension_is_ignored(tmp_path, filename):
    content = b"<script>alert(1)</script>"
    name = save_profile_image(_file(content=content, filename=filename), str(tmp_path), MAX)
    assert name.endswith(".png")
    assert os.listdir(profile_image_dir(str(tmp_path))) == [name]


def test_client_path_is_not_trusted(tmp_path):
    name = save_profile_image(_file(filename="../../etc/passwd.png"), str(tmp_path), MAX)
    assert "/" not in name and name.endswith(".png")


def test_remove(tmp_path):
    name = save_profile_image(_file(), str(tmp_path), MAX)
    remove_profile_image(str(tmp_path), name)
    assert os.listdir(profile_image_dir(str(tmp_path))) == []
    # second removal is a no-op
    remove_profile_image(str(tmp_path), name)
