"""Network input download tests"""
import zipfile
from unittest.mock import MagicMock, patch

import pytest
import requests

from config import NETWORK_DIR, SCENARIOS
from data.download_data import (
    download_file_with_resume,
    download_source,
    is_valid_gtfs,
    target_directory,
)

GTFS_TABLES = ["agency.txt", "stops.txt", "routes.txt", "trips.txt", "stop_times.txt"]


def write_gtfs(path, tables=GTFS_TABLES):
    with zipfile.ZipFile(path, "w") as zf:
        for name in tables:
            zf.writestr(name, "header\n")
    return path


def test_target_directory():
    assert target_directory("network") == NETWORK_DIR
    assert target_directory("after") == SCENARIOS["after"]["gtfs_dir"]
    with pytest.raises(ValueError):
        target_directory("tomorrow")


def test_is_valid_gtfs(tmp_path):
    assert is_valid_gtfs(write_gtfs(tmp_path / "good.zip"))
    assert not is_valid_gtfs(write_gtfs(tmp_path / "partial.zip", ["stops.txt"]))

    broken = tmp_path / "broken.zip"
    broken.write_bytes(b"not a zip")
    assert not is_valid_gtfs(broken)


def test_download_file_with_resume(tmp_path):
    head = MagicMock(headers={"content-length": "6"})
    response = MagicMock(status_code=200, headers={"content-length": "6"})
    response.iter_content.return_value = [b"abc", b"def"]

    with patch("data.download_data.requests.head", return_value=head), \
            patch("data.download_data.requests.get", return_value=response):
        ok = download_file_with_resume("https://example.org/feed.zip", tmp_path / "feed.zip")

    assert ok
    assert (tmp_path / "feed.zip").read_bytes() == b"abcdef"


def test_download_file_network_error(tmp_path):
    with patch("data.download_data.requests.head",
               side_effect=requests.exceptions.ConnectionError("offline")), \
            patch("data.download_data.requests.get",
                  side_effect=requests.exceptions.ConnectionError("offline")):
        ok = download_file_with_resume("https://example.org/feed.zip", tmp_path / "feed.zip")

    assert not ok


def test_download_source_deletes_invalid_gtfs(tmp_path):
    def fake_download(url, output_path, desc):
        output_path.write_bytes(b"<html>login required</html>")
        return True

    with patch("data.download_data.target_directory", return_value=tmp_path), \
            patch("data.download_data.download_file_with_resume", side_effect=fake_download):
        ok = download_source("https://example.org/gtfs/feed.zip?key=1", "before")

    assert not ok
    assert not (tmp_path / "feed.zip").exists()


def test_download_source_keeps_valid_gtfs(tmp_path):
    def fake_download(url, output_path, desc):
        write_gtfs(output_path)
        return True

    with patch("data.download_data.target_directory", return_value=tmp_path), \
            patch("data.download_data.download_file_with_resume", side_effect=fake_download):
        ok = download_source("https://example.org/gtfs/feed.zip", "after", filename="after.zip")

    assert ok
    assert (tmp_path / "after.zip").exists()
