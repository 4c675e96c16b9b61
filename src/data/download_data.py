"""
Data Download Script for the Transit Redesign Comparison Project

Downloads the road network extract and the GTFS snapshots used by the
"before" and "after" scenarios into the raw data layout:

    data/raw/network/*.osm.pbf
    data/raw/gtfs/before/*.zip
    data/raw/gtfs/after/*.zip

Features:
- Resume support for interrupted downloads
- Progress bar with download speed

Usage:
    python download_data.py                          # Download configured sources
    python download_data.py --status                 # Check download status
    python download_data.py --url URL --target after # Download a single file
"""

import argparse
import sys
import zipfile
from pathlib import Path
from typing import Dict

import requests
from tqdm import tqdm

sys.path.append(str(Path(__file__).parent.parent))
from config import NETWORK_DIR, SCENARIOS, DOWNLOAD_SOURCES


def target_directory(target: str) -> Path:
    """Map a download target ("network" or a scenario name) to its directory."""
    if target == "network":
        return NETWORK_DIR
    if target in SCENARIOS:
        return SCENARIOS[target]["gtfs_dir"]
    raise ValueError(f"Unknown download target: {target}")


def create_directories():
    """Create all necessary data directories."""
    directories = [NETWORK_DIR] + [scenario["gtfs_dir"] for scenario in SCENARIOS.values()]
    for directory in directories:
        directory.mkdir(parents=True, exist_ok=True)
    print("Directory structure created.")


def get_remote_file_size(url: str) -> int:
    """Get the size of remote file via HEAD request."""
    try:
        response = requests.head(url, timeout=10, allow_redirects=True)
        return int(response.headers.get('content-length', 0))
    except requests.exceptions.RequestException:
        return 0


def download_file_with_resume(url: str, output_path: Path, desc: str = "Downloading") -> bool:
    """
    Download a file with resume support and progress bar.

    Args:
        url: URL to download from
        output_path: Path to save the file
        desc: Description for progress bar

    Returns:
        True if successful, False otherwise
    """
    try:
        remote_size = get_remote_file_size(url)

        local_size = 0
        mode = 'wb'
        headers = {}

        if output_path.exists():
            local_size = output_path.stat().st_size
            if local_size == remote_size and remote_size > 0:
                print(f"  File already complete: {output_path.name}")
                return True
            elif local_size < remote_size:
                headers['Range'] = f'bytes={local_size}-'
                mode = 'ab'
                print(f"  Resuming from {local_size / 1024 / 1024:.1f} MB...")

        response = requests.get(url, stream=True, timeout=30, headers=headers)

        if response.status_code == 206:  # Partial content
            total_size = remote_size
        elif response.status_code == 200:
            total_size = int(response.headers.get('content-length', 0))
            local_size = 0  # Server doesn't support resume, start over
            mode = 'wb'
        else:
            print(f"  Error: HTTP {response.status_code}")
            return False

        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, mode) as f:
            with tqdm(
                total=total_size,
                initial=local_size,
                unit='B',
                unit_scale=True,
                desc=desc,
                ncols=80
            ) as pbar:
                for chunk in response.iter_content(chunk_size=8192):
                    if chunk:
                        f.write(chunk)
                        pbar.update(len(chunk))

        return True

    except requests.exceptions.RequestException as e:
        print(f"  Network error: {e}")
        print("  You can resume by running the script again.")
        return False
    except OSError as e:
        print(f"  Error: {e}")
        return False


def is_valid_gtfs(path: Path) -> bool:
    """Check that a GTFS archive is a readable zip with the core tables."""
    required = {"stops.txt", "routes.txt", "trips.txt", "stop_times.txt"}
    try:
        with zipfile.ZipFile(path) as zf:
            names = {Path(name).name for name in zf.namelist()}
    except zipfile.BadZipFile:
        return False
    return required.issubset(names)


def download_source(url: str, target: str, filename: str = None) -> bool:
    """
    Download one network input into its target directory.

    GTFS archives are checked after download and deleted when corrupt.

    Args:
        url: URL to download from
        target: "network" or a scenario name
        filename: Local file name; defaults to the last URL path component

    Returns:
        True if successful, False otherwise
    """
    if filename is None:
        filename = url.rstrip('/').split('/')[-1].split('?')[0]

    output_path = target_directory(target) / filename
    print(f"\n[{target}] Downloading {filename}...")

    if not download_file_with_resume(url, output_path, filename):
        return False

    if target != "network" and not is_valid_gtfs(output_path):
        print(f"  Error: {filename} is not a valid GTFS archive, deleting...")
        output_path.unlink()
        return False

    return True


def download_all(sources: Dict = None) -> Dict[str, bool]:
    """
    Download every configured source.

    Args:
        sources: Mapping of name to {"url", "target", "filename"}

    Returns:
        Mapping of name to success flag
    """
    if sources is None:
        sources = DOWNLOAD_SOURCES

    if not sources:
        print("No download sources configured (config.DOWNLOAD_SOURCES).")
        print("Place the OSM extract and GTFS files manually, or use --url.")

    results = {}
    for name, source in sources.items():
        results[name] = download_source(
            source["url"], source["target"], source.get("filename")
        )
    return results


def check_data_status() -> Dict[str, list]:
    """Check and report which network inputs are on disk."""
    print("\n" + "=" * 50)
    print("Data Status")
    print("=" * 50)

    status = {"network": sorted(NETWORK_DIR.glob("*.osm.pbf")) if NETWORK_DIR.exists() else []}
    for name, scenario in SCENARIOS.items():
        gtfs_dir = scenario["gtfs_dir"]
        status[name] = sorted(gtfs_dir.glob("*.zip")) if gtfs_dir.exists() else []

    for name, files in status.items():
        if files:
            size_mb = sum(f.stat().st_size for f in files) / (1024 * 1024)
            print(f"\n{name}: {len(files)} files ({size_mb:.1f} MB)")
            for f in files:
                print(f"  {f.name}")
        else:
            print(f"\n{name}: Not downloaded")

    return status


def main():
    """Main function to download the network inputs."""
    parser = argparse.ArgumentParser(description="Download routing network inputs")
    parser.add_argument('--status', action='store_true', help='Check download status')
    parser.add_argument('--url', help='Download a single file from this URL')
    parser.add_argument('--target', default='network',
                        help='Target for --url: network, before or after')
    parser.add_argument('--filename', help='Local file name for --url')
    args = parser.parse_args()

    print("=" * 60)
    print("Transit Redesign Comparison - Data Download Script")
    print("=" * 60)

    create_directories()

    if args.status:
        check_data_status()
        return

    if args.url:
        download_source(args.url, args.target, args.filename)
    else:
        download_all()

    check_data_status()

    print("\n" + "=" * 60)
    print("Download complete! Run again to resume any failed downloads.")
    print("=" * 60)


if __name__ == "__main__":
    main()
