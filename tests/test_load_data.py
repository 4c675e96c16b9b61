"""Point of interest loading and network file discovery tests"""
from unittest.mock import MagicMock, patch

import pandas as pd
import pytest
import requests

from data.load_data import (
    DataUnavailable,
    fetch_sheet_csv,
    find_network_files,
    load_points_of_interest,
    normalize_points_of_interest,
)

POI_CSV = "ID,Label,Lat,Lon\ncentral_station,Central Station,60.1699,24.9384\nuniversity,University,60.2049,24.9630\n"


def test_load_points_of_interest_from_local_csv(tmp_path):
    path = tmp_path / "pois.csv"
    path.write_text(POI_CSV)

    pois = load_points_of_interest(path)

    assert list(pois.columns) == ["id", "label", "lat", "lon"]
    assert pois["id"].tolist() == ["central_station", "university"]
    assert pois["lat"].iloc[0] == pytest.approx(60.1699)


def test_missing_label_falls_back_to_id():
    raw = pd.DataFrame({"id": [1, 2], "lat": [60.0, 60.1], "lon": [24.0, 24.1]})

    pois = normalize_points_of_interest(raw)

    assert pois["id"].tolist() == ["1", "2"]
    assert pois["label"].tolist() == ["1", "2"]


def test_missing_required_column_raises():
    raw = pd.DataFrame({"id": ["a"], "lat": [60.0]})

    with pytest.raises(DataUnavailable, match="lon"):
        normalize_points_of_interest(raw)


def test_non_numeric_coordinates_raise():
    raw = pd.DataFrame({"id": ["a", "b"], "lat": [60.0, "north"], "lon": [24.0, 24.1]})

    with pytest.raises(DataUnavailable, match="b"):
        normalize_points_of_interest(raw)


def test_duplicate_ids_are_kept_with_warning():
    raw = pd.DataFrame({"id": ["a", "a"], "lat": [60.0, 60.1], "lon": [24.0, 24.1]})

    with pytest.warns(UserWarning, match="Duplicate POI ids"):
        pois = normalize_points_of_interest(raw)

    assert len(pois) == 2


def test_missing_local_file_raises(tmp_path):
    with pytest.raises(DataUnavailable):
        load_points_of_interest(tmp_path / "missing.csv")


def test_undecodable_local_file_raises(tmp_path):
    path = tmp_path / "pois.csv"
    path.write_bytes(b"id,lat,lon\n\xe4\xff,1,2\n")

    with pytest.raises(DataUnavailable, match="not valid CSV"):
        load_points_of_interest(path)


def test_directory_as_local_file_raises(tmp_path):
    with pytest.raises(DataUnavailable, match="Could not read"):
        load_points_of_interest(tmp_path)


def test_load_points_of_interest_from_sheet():
    response = MagicMock()
    response.text = POI_CSV
    response.raise_for_status.return_value = None

    with patch("data.load_data.requests.get", return_value=response) as mock_get:
        pois = load_points_of_interest("1AbCdEfGhIjK")

    url = mock_get.call_args[0][0]
    assert "1AbCdEfGhIjK" in url
    assert "format=csv" in url
    assert len(pois) == 2


def test_unreachable_sheet_raises():
    with patch("data.load_data.requests.get",
               side_effect=requests.exceptions.ConnectionError("offline")):
        with pytest.raises(DataUnavailable, match="offline"):
            fetch_sheet_csv("1AbCdEfGhIjK")


def test_sheet_http_error_raises():
    response = MagicMock()
    response.raise_for_status.side_effect = requests.exceptions.HTTPError("404 Client Error")

    with patch("data.load_data.requests.get", return_value=response):
        with pytest.raises(DataUnavailable):
            fetch_sheet_csv("1AbCdEfGhIjK", gid="0")


def test_find_network_files(tmp_path):
    network_dir = tmp_path / "network"
    gtfs_dir = tmp_path / "gtfs" / "before"
    network_dir.mkdir()
    gtfs_dir.mkdir(parents=True)
    (network_dir / "region.osm.pbf").write_bytes(b"")
    (gtfs_dir / "b_feed.zip").write_bytes(b"")
    (gtfs_dir / "a_feed.zip").write_bytes(b"")

    osm_pbf, gtfs_files = find_network_files(gtfs_dir, network_dir)

    assert osm_pbf.name == "region.osm.pbf"
    assert [f.name for f in gtfs_files] == ["a_feed.zip", "b_feed.zip"]


def test_find_network_files_requires_inputs(tmp_path):
    network_dir = tmp_path / "network"
    gtfs_dir = tmp_path / "gtfs"
    network_dir.mkdir()
    gtfs_dir.mkdir()

    with pytest.raises(DataUnavailable, match="osm.pbf"):
        find_network_files(gtfs_dir, network_dir)

    (network_dir / "region.osm.pbf").write_bytes(b"")
    with pytest.raises(DataUnavailable, match="GTFS"):
        find_network_files(gtfs_dir, network_dir)

    (network_dir / "other.osm.pbf").write_bytes(b"")
    with pytest.raises(DataUnavailable, match="one road network"):
        find_network_files(gtfs_dir, network_dir)
