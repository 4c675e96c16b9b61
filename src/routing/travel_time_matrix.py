"""
Routing Client for the Transit Redesign Comparison Project

Wraps the R5 routing engine (through r5py) to compute an expanded
travel time matrix: one routing run per departure minute in the analysis
window, reduced to one record per origin/destination pair and minute.
"""

import sys
from datetime import datetime, timedelta
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import geopandas as gpd
import pandas as pd
from tqdm import tqdm

sys.path.append(str(Path(__file__).parent.parent))
from config import RECORD_COLUMNS, ROUTING_PARAMS
from data.load_data import find_network_files

WALK_MODE = "WALK"
SUPPORTED_MODES = {WALK_MODE, "TRANSIT"}


class RoutingEngineError(Exception):
    """Raised when the routing engine cannot be initialized or fails to route."""


def to_geodataframe(pois: pd.DataFrame) -> gpd.GeoDataFrame:
    """
    Convert a POI table into the point layer expected by the routing engine.

    Args:
        pois: DataFrame with columns id, lat, lon

    Returns:
        GeoDataFrame in EPSG:4326 with id and geometry columns
    """
    return gpd.GeoDataFrame(
        {'id': pois['id'].astype(str).values},
        geometry=gpd.points_from_xy(pois['lon'], pois['lat']),
        crs="EPSG:4326",
    )


def _mode_name(mode) -> str:
    """Normalize a transport mode (enum member or string) to its upper-case name."""
    return str(getattr(mode, 'name', mode)).split('.')[-1].upper()


def _minutes(values: pd.Series) -> pd.Series:
    """Convert a Series of timedeltas (or NaT) to float minutes, NaT as 0."""
    return pd.to_timedelta(values).dt.total_seconds().fillna(0) / 60


def summarize_itinerary(legs: pd.DataFrame) -> Dict[str, float]:
    """
    Reduce the legs of one itinerary to its time components.

    Args:
        legs: Legs of a single option, ordered by segment, with columns
            transport_mode, travel_time_min and wait_time_min

    Returns:
        Dictionary with total_time, access_time, egress_time and transfer_time
    """
    is_walk = legs['transport_mode'].map(_mode_name) == WALK_MODE
    travel = legs['travel_time_min'].to_numpy()
    wait = legs['wait_time_min'].to_numpy()
    total = float(travel.sum() + wait.sum())

    transit_positions = [i for i, walk in enumerate(is_walk) if not walk]
    if not transit_positions:
        return {
            'total_time': total,
            'access_time': float(travel.sum()),
            'egress_time': 0.0,
            'transfer_time': 0.0,
        }

    first, last = transit_positions[0], transit_positions[-1]
    return {
        'total_time': total,
        'access_time': float(travel[:first].sum()),
        'egress_time': float(travel[last + 1:].sum()),
        'transfer_time': float(wait[transit_positions[1:]].sum()),
    }


def itineraries_to_records(itineraries: pd.DataFrame,
                           departure_minute: int) -> pd.DataFrame:
    """
    Turn detailed itineraries for one departure minute into travel time records.

    Only the fastest option per origin/destination pair is kept.
    Pairs without any itinerary (unreachable) produce no record.

    Args:
        itineraries: One row per leg with from_id, to_id, option, segment,
            transport_mode, travel_time and wait_time
        departure_minute: Offset of this departure from the window start

    Returns:
        DataFrame with RECORD_COLUMNS
    """
    if itineraries.empty:
        return pd.DataFrame(columns=RECORD_COLUMNS)

    legs = itineraries.dropna(subset=['travel_time', 'transport_mode']).copy()
    if legs.empty:
        return pd.DataFrame(columns=RECORD_COLUMNS)

    legs['travel_time_min'] = _minutes(legs['travel_time'])
    legs['wait_time_min'] = _minutes(legs['wait_time']) if 'wait_time' in legs.columns else 0.0
    if 'option' not in legs.columns:
        legs['option'] = 0
    if 'segment' not in legs.columns:
        legs['segment'] = legs.groupby(['from_id', 'to_id', 'option']).cumcount()

    options = []
    for (from_id, to_id, option), group in legs.groupby(['from_id', 'to_id', 'option'], sort=False):
        summary = summarize_itinerary(group.sort_values('segment'))
        summary.update({'from_id': str(from_id), 'to_id': str(to_id)})
        options.append(summary)

    options_df = pd.DataFrame(options)

    # Fastest option per pair
    best = options_df.loc[options_df.groupby(['from_id', 'to_id'], sort=False)['total_time'].idxmin()]
    best = best.assign(departure_minute=departure_minute)

    return best[RECORD_COLUMNS].reset_index(drop=True)


class TravelTimeRouter:
    """
    Routing client for one scenario's network inputs.

    The transport network is built on first use and reused for every
    departure minute.
    """

    def __init__(self, osm_pbf: Path, gtfs_files: Sequence[Path]):
        self.osm_pbf = Path(osm_pbf)
        self.gtfs_files = [Path(f) for f in gtfs_files]
        self._network = None

    @property
    def network(self):
        if self._network is None:
            self._network = self._build_network()
        return self._network

    def _build_network(self):
        print(f"  Building transport network from {self.osm_pbf.name} "
              f"and {len(self.gtfs_files)} GTFS file(s)...")
        try:
            import r5py
            return r5py.TransportNetwork(
                str(self.osm_pbf), [str(f) for f in self.gtfs_files]
            )
        except Exception as e:
            raise RoutingEngineError(f"Failed to build transport network: {e}") from e

    def _route_departure(self, origins: gpd.GeoDataFrame,
                         destinations: gpd.GeoDataFrame,
                         departure: datetime,
                         transport_modes: List[str],
                         max_walk_time: int,
                         max_trip_duration: int) -> pd.DataFrame:
        """Run the engine for a single departure minute and return its itinerary legs."""
        import r5py

        itineraries = r5py.DetailedItineraries(
            self.network,
            origins=origins,
            destinations=destinations,
            departure=departure,
            departure_time_window=timedelta(minutes=1),
            transport_modes=[getattr(r5py.TransportMode, mode) for mode in transport_modes],
            max_time=timedelta(minutes=max_trip_duration),
            max_time_walking=timedelta(minutes=max_walk_time),
            force_all_to_all=True,
        )
        return pd.DataFrame(itineraries)

    def expanded_travel_time_matrix(self, origins: pd.DataFrame,
                                    destinations: pd.DataFrame,
                                    departure: datetime,
                                    time_window: int = None,
                                    transport_modes: Sequence[str] = None,
                                    max_walk_time: int = None,
                                    max_trip_duration: int = None,
                                    show_progress: bool = True) -> pd.DataFrame:
        """
        Compute travel time records for every minute of the departure window.

        Args:
            origins: POI table (id, lat, lon)
            destinations: POI table (id, lat, lon)
            departure: First departure instant of the window
            time_window: Window length in minutes
            transport_modes: Allowed modes, subset of WALK/TRANSIT (or transit submodes)
            max_walk_time: Maximum walking time in minutes
            max_trip_duration: Maximum trip duration in minutes
            show_progress: Show a progress bar over departure minutes

        Returns:
            DataFrame with RECORD_COLUMNS, one row per feasible pair and minute
        """
        time_window = time_window if time_window is not None else ROUTING_PARAMS['time_window']
        max_walk_time = max_walk_time if max_walk_time is not None else ROUTING_PARAMS['max_walk_time']
        max_trip_duration = (max_trip_duration if max_trip_duration is not None
                             else ROUTING_PARAMS['max_trip_duration'])
        if transport_modes is None:
            transport_modes = ROUTING_PARAMS['transport_modes']

        modes = [_mode_name(m) for m in transport_modes]
        unknown = set(modes) - SUPPORTED_MODES
        if unknown:
            raise ValueError(f"Unsupported transport modes: {sorted(unknown)}")

        origins_gdf = to_geodataframe(origins)
        destinations_gdf = to_geodataframe(destinations)

        collected = []
        minutes = tqdm(range(time_window), desc=f"Routing {departure:%Y-%m-%d %H:%M}",
                       disable=not show_progress, ncols=80)
        for minute in minutes:
            current = departure + timedelta(minutes=minute)
            try:
                legs = self._route_departure(
                    origins_gdf, destinations_gdf, current,
                    modes, max_walk_time, max_trip_duration
                )
            except RoutingEngineError:
                raise
            except Exception as e:
                raise RoutingEngineError(f"Routing failed for departure {current}: {e}") from e

            records = itineraries_to_records(legs, minute)
            if not records.empty:
                collected.append(records)

        if not collected:
            return pd.DataFrame(columns=RECORD_COLUMNS)

        return pd.concat(collected, ignore_index=True)


def build_router(gtfs_dir: Path, network_dir: Optional[Path] = None) -> TravelTimeRouter:
    """Create a router for the network inputs of one scenario directory."""
    osm_pbf, gtfs_files = find_network_files(gtfs_dir, network_dir)
    return TravelTimeRouter(osm_pbf, gtfs_files)
