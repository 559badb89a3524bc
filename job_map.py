# Places job postings and employers on a map by geocoding their addresses
# and Eircodes.

import argparse
import csv
import io
import json
import logging
import os
import shutil
import sys
import threading
from abc import ABC, abstractmethod
from concurrent.futures import Future, ThreadPoolExecutor

import requests
from dotenv import load_dotenv

from api_adapters import AddressResolver, NominatimAdapter, read_timeout
from api_structures import EmploymentRecord, JobPosting, MapMarker, MarkerIcon
from errors import CommuteError

logger = logging.getLogger(__name__)

load_dotenv()
EMPLOYERS_CSV = os.getenv("EMPLOYERS_CSV", "employers.csv")

# Initial map view over Cork city.
MAP_CENTER = (51.8979, -8.4706)
MAP_ZOOM = 13

EMPLOYER_ICON = MarkerIcon(
    url="https://cdn-icons-png.flaticon.com/512/684/684908.png", size=(25, 25))

JOBS = [
    JobPosting(title="Software Engineer", address="Patrick St, Cork, Ireland",
               url="https://example.com/job1"),
    JobPosting(title="Sales Manager", address="Grand Parade, Cork, Ireland",
               url="https://example.com/job2"),
]


class MapSurface(ABC):
    """Whatever draws the map; it only ever receives marker placements."""

    @abstractmethod
    def place_marker(self, marker: MapMarker):
        pass


class MarkerCollector(MapSurface):
    """Keeps placed markers in memory and exports them as GeoJSON."""

    def __init__(self, center=MAP_CENTER, zoom=MAP_ZOOM):
        self.center = center
        self.zoom = zoom
        self.markers: list[MapMarker] = []
        self._lock = threading.Lock()

    def place_marker(self, marker: MapMarker):
        with self._lock:
            self.markers.append(marker)

    def to_geojson(self) -> dict:
        features = []
        for marker in self.markers:
            properties = {
                'title': marker.title,
                'body': marker.body,
                'link': marker.link,
                'link_text': marker.link_text,
            }
            if marker.icon:
                properties['icon'] = {'url': marker.icon.url, 'size': list(marker.icon.size)}
            features.append({
                'type': 'Feature',
                'geometry': {
                    'type': 'Point',
                    # GeoJSON positions are [lon, lat].
                    'coordinates': [marker.coords.lon, marker.coords.lat],
                },
                'properties': properties,
            })
        return {
            'type': 'FeatureCollection',
            'view': {'center': list(self.center), 'zoom': self.zoom},
            'features': features,
        }


def _is_url(source: str) -> bool:
    return source.startswith(("http://", "https://"))


def _read_source(source: str) -> str:
    if _is_url(source):
        response = requests.get(source, timeout=read_timeout())
        response.raise_for_status()
        return response.text
    with open(source, newline='', encoding='utf-8-sig') as f:
        return f.read()


def load_employer_rows(source: str = EMPLOYERS_CSV) -> list[dict]:
    """Reads the employer CSV (a path or an http(s) URL) into header->value rows, in file order."""
    text = _read_source(source)
    return list(csv.DictReader(io.StringIO(text)))


def download_employers(source: str = EMPLOYERS_CSV, dest: str = "employers.csv") -> str:
    """Saves a copy of the employer CSV to `dest` and returns the path written."""
    if _is_url(source):
        response = requests.get(source, timeout=read_timeout())
        response.raise_for_status()
        with open(dest, 'wb') as f:
            f.write(response.content)
    elif os.path.abspath(source) != os.path.abspath(dest):
        shutil.copyfile(source, dest)
    logger.info("Employer list saved to %s", dest)
    return dest


# --- Core Logic ---

class MapAnnotationFlow:
    """Geocodes jobs and employers and hands the resulting markers to a map surface."""

    def __init__(self, resolver: AddressResolver, surface: MapSurface,
                 executor: ThreadPoolExecutor | None = None):
        self.resolver = resolver
        self.surface = surface
        self.executor = executor
        self._owns_executor = False

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def close(self, wait: bool = True):
        """Shuts down the pool this flow started itself; an injected executor is left alone."""
        if self._owns_executor and self.executor is not None:
            self.executor.shutdown(wait=wait)
            self.executor = None
            self._owns_executor = False

    def _plot_job(self, job: JobPosting):
        try:
            coords = self.resolver.resolve(job.address)
        except CommuteError as e:
            # Nobody waits on these lookups, so a failure just means no marker.
            logger.debug("No marker for job '%s': %s", job.title, e)
            return
        self.surface.place_marker(MapMarker(
            coords=coords, title=job.title, body=job.address,
            link=job.url, link_text="Apply"))

    def plot_jobs_fire_and_forget(self, jobs: list[JobPosting] = JOBS) -> list[Future]:
        """
        Starts one lookup per job at once and returns without waiting.
        Completion order is unspecified; the futures are returned so a caller
        can wait if it wants to.
        """
        if self.executor is None:
            self.executor = ThreadPoolExecutor(thread_name_prefix="job-geocode")
            self._owns_executor = True
        return [self.executor.submit(self._plot_job, job) for job in jobs]

    def plot_employers_sequentially(self, rows: list[dict]) -> int:
        """
        Plots employers strictly in row order, one lookup at a time.
        Incomplete rows are skipped quietly; a failed lookup is logged and
        skipped. Returns the number of markers placed.
        """
        placed = 0
        for row in rows:
            employer = EmploymentRecord.from_row(row)
            if employer is None:
                continue
            try:
                coords = self.resolver.resolve(employer.eircode)
            except CommuteError as e:
                logger.error("Error geocoding employer: %s (%s)", employer, e)
                continue
            self.surface.place_marker(MapMarker(
                coords=coords,
                title=employer.name,
                body=f"Eircode: {employer.eircode}",
                link=employer.job_site,
                link_text="Job Site",
                icon=EMPLOYER_ICON))
            placed += 1
        return placed


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description="Job Map: geocode job postings and employers into map markers.")
    parser.add_argument('--employers', default=EMPLOYERS_CSV,
                        help="Employer CSV file or URL with Name, Eircode and JobSite columns.")
    parser.add_argument('--output', default="markers.geojson",
                        help="Where to write the markers as GeoJSON.")
    parser.add_argument('--download', metavar='PATH',
                        help="Save a copy of the employer CSV to PATH and exit.")
    parser.add_argument('-v', '--verbose', action='store_true',
                        help="Enable verbose mode to see the exact API calls being made.")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    try:
        if args.download:
            download_employers(args.employers, args.download)
            print(f"Saved employer list to {args.download}")
            return 0
        resolver = NominatimAdapter()
        rows = load_employer_rows(args.employers)
    except (ValueError, OSError, requests.exceptions.RequestException) as e:
        print(f"Could not load the employer list: {e}")
        return 1

    surface = MarkerCollector()
    # Leaving the executor block waits for the job lookups to finish.
    with ThreadPoolExecutor(thread_name_prefix="job-geocode") as executor:
        flow = MapAnnotationFlow(resolver, surface, executor)
        flow.plot_jobs_fire_and_forget(JOBS)
        placed = flow.plot_employers_sequentially(rows)

    with open(args.output, 'w', encoding='utf-8') as f:
        json.dump(surface.to_geojson(), f, indent=2)
    print(f"Placed {len(surface.markers)} markers ({placed} employers) -> {args.output}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
