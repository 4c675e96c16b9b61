"""
Data Loading Module for the Transit Redesign Comparison Project

Loads the points of interest used as trip origins and destinations,
and locates the road network and schedule files consumed by the routing engine.
"""

import io
import sys
import warnings
from pathlib import Path
from typing import List, Optional, Tuple, Union

import pandas as pd
import requests

sys.path.append(str(Path(__file__).parent.parent))
from config import (
    POI_SHEET_ID, POI_LOCAL_FILE, POI_REQUIRED_COLUMNS, NETWORK_DIR
)

SHEET_EXPORT_URL = "https://docs.google.com/spreadsheets/d/{sheet_id}/export?format=csv"


class DataUnavailable(Exception):
    """Raised when an input source is unreachable or malformed."""


def fetch_sheet_csv(sheet_id: str, gid: Optional[str] = None,
                    timeout: int = 30) -> pd.DataFrame:
    """
    Download a Google Sheets document as CSV.

    Args:
        sheet_id: Spreadsheet document identifier
        gid: Optional worksheet id
        timeout: Request timeout in seconds

    Returns:
        Raw DataFrame with the sheet contents
    """
    url = SHEET_EXPORT_URL.format(sheet_id=sheet_id)
    if gid is not None:
        url += f"&gid={gid}"

    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.exceptions.RequestException as e:
        raise DataUnavailable(f"Could not fetch spreadsheet {sheet_id}: {e}") from e

    try:
        return pd.read_csv(io.StringIO(response.text))
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise DataUnavailable(f"Spreadsheet {sheet_id} is not valid CSV: {e}") from e


def read_poi_file(path: Path) -> pd.DataFrame:
    """Read points of interest from a local CSV file."""
    try:
        return pd.read_csv(path)
    except FileNotFoundError as e:
        raise DataUnavailable(f"POI file not found: {path}") from e
    except OSError as e:
        raise DataUnavailable(f"Could not read POI file {path}: {e}") from e
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
        raise DataUnavailable(f"POI file {path} is not valid CSV: {e}") from e


def normalize_points_of_interest(raw: pd.DataFrame) -> pd.DataFrame:
    """
    Bring a raw POI table into the (id, label, lat, lon) shape.

    Column names are matched case-insensitively. A missing label column
    falls back to the id. Row order is preserved.

    Args:
        raw: DataFrame as read from the source

    Returns:
        DataFrame with columns id, label, lat, lon
    """
    df = raw.rename(columns=lambda c: str(c).strip().lower())

    missing = [col for col in POI_REQUIRED_COLUMNS if col not in df.columns]
    if missing:
        raise DataUnavailable(f"POI source is missing required columns: {missing}")

    pois = pd.DataFrame({
        'id': df['id'].astype(str).str.strip(),
        'lat': pd.to_numeric(df['lat'], errors='coerce'),
        'lon': pd.to_numeric(df['lon'], errors='coerce'),
    })
    if 'label' in df.columns:
        pois['label'] = df['label'].fillna(pois['id']).astype(str)
    else:
        pois['label'] = pois['id']

    bad_coords = pois[pois['lat'].isna() | pois['lon'].isna()]
    if not bad_coords.empty:
        raise DataUnavailable(
            f"POI source has non-numeric coordinates for ids: {bad_coords['id'].tolist()}"
        )

    duplicated = pois.loc[pois['id'].duplicated(), 'id'].unique().tolist()
    if duplicated:
        warnings.warn(f"Duplicate POI ids in source: {duplicated}")

    return pois[['id', 'label', 'lat', 'lon']].reset_index(drop=True)


def load_points_of_interest(source: Union[str, Path, None] = None) -> pd.DataFrame:
    """
    Load the ordered set of points of interest.

    Args:
        source: Local CSV path or Google Sheets document id. If None,
            the configured sheet id is used, or the local fallback file.

    Returns:
        DataFrame with columns id, label, lat, lon
    """
    if source is None:
        source = POI_SHEET_ID or POI_LOCAL_FILE

    path = Path(source)
    if isinstance(source, Path) or path.suffix.lower() == ".csv" or path.exists():
        print(f"Loading points of interest from {path}")
        raw = read_poi_file(path)
    else:
        print(f"Loading points of interest from spreadsheet {source}")
        raw = fetch_sheet_csv(str(source))

    pois = normalize_points_of_interest(raw)
    print(f"  Loaded {len(pois)} points of interest")
    return pois


def find_network_files(gtfs_dir: Path,
                       network_dir: Path = None) -> Tuple[Path, List[Path]]:
    """
    Find the road network extract and the GTFS archives for one scenario.

    Args:
        gtfs_dir: Directory with the scenario's GTFS zip files
        network_dir: Directory with the OSM extract

    Returns:
        Tuple of (osm_pbf_path, list of gtfs zip paths)
    """
    if network_dir is None:
        network_dir = NETWORK_DIR

    osm_files = sorted(Path(network_dir).glob("*.osm.pbf"))
    if not osm_files:
        raise DataUnavailable(f"No road network extract (*.osm.pbf) in {network_dir}")
    if len(osm_files) > 1:
        raise DataUnavailable(
            f"Expected one road network extract in {network_dir}, found {len(osm_files)}"
        )

    gtfs_files = sorted(Path(gtfs_dir).glob("*.zip"))
    if not gtfs_files:
        raise DataUnavailable(f"No GTFS archives (*.zip) in {gtfs_dir}")

    return osm_files[0], gtfs_files


if __name__ == "__main__":
    pois = load_points_of_interest()
    print(pois)
