# Defines the standardized, internal data structures for the application.

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum


def round_half_up(value: float, places: int = 0) -> Decimal:
    """Rounds the float's exact value to `places` decimals, halves away from zero."""
    return Decimal(value).quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class Coordinates:
    """A standardized representation of geographic coordinates."""
    lon: float
    lat: float

    def as_lon_lat(self) -> str:
        """The 'lon,lat' form the routing service expects in its URL path."""
        return f"{self.lon},{self.lat}"


class TravelMode(str, Enum):
    EV = "ev"
    CAR = "car"
    BUS = "bus"
    CYCLE = "cycle"
    WALK = "walk"

    @property
    def label(self) -> str:
        return TRAVEL_MODE_LABELS[self]

    @property
    def is_motorised(self) -> bool:
        return self in (TravelMode.EV, TravelMode.CAR, TravelMode.BUS)


TRAVEL_MODE_LABELS = {
    TravelMode.EV: "Electric Vehicle (EV)",
    TravelMode.CAR: "Car (Petrol/Diesel)",
    TravelMode.BUS: "Bus",
    TravelMode.CYCLE: "Cycle",
    TravelMode.WALK: "Walk",
}


class RouteProfile(str, Enum):
    """Routing profiles, valued with the names OSRM uses in its URLs."""
    DRIVE = "car"
    BIKE = "bike"
    FOOT = "foot"


# Bus is approximated by the driving profile; there is no transit routing.
PROFILE_BY_MODE = {
    TravelMode.EV: RouteProfile.DRIVE,
    TravelMode.CAR: RouteProfile.DRIVE,
    TravelMode.BUS: RouteProfile.DRIVE,
    TravelMode.CYCLE: RouteProfile.BIKE,
    TravelMode.WALK: RouteProfile.FOOT,
}


def profile_for(mode: TravelMode) -> RouteProfile:
    """Maps a travel mode onto the routing profile used to measure it."""
    return PROFILE_BY_MODE[TravelMode(mode)]


@dataclass
class RouteInfo:
    """A standardized representation of a route's length."""
    distance_m: float


@dataclass(frozen=True)
class JobPosting:
    title: str
    address: str
    url: str


@dataclass(frozen=True)
class EmploymentRecord:
    """One employer row; built only from rows carrying every required field."""
    name: str
    eircode: str
    job_site: str

    REQUIRED_FIELDS = ("Name", "Eircode", "JobSite")

    @classmethod
    def from_row(cls, row: dict) -> "EmploymentRecord | None":
        """Returns None when any of Name, Eircode or JobSite is missing or blank."""
        values = [(row.get(name) or "").strip() for name in cls.REQUIRED_FIELDS]
        if not all(values):
            return None
        name, eircode, job_site = values
        return cls(name=name, eircode=eircode, job_site=job_site)


@dataclass(frozen=True)
class MarkerIcon:
    url: str
    size: tuple[int, int]


@dataclass
class MapMarker:
    """A request to place one marker on the map surface."""
    coords: Coordinates
    title: str
    body: str
    link: str
    link_text: str
    icon: MarkerIcon | None = None


@dataclass
class CommuteResult:
    """The computed outcome of one commute calculation."""
    mode: TravelMode
    distance_km: float
    carbon_grams: float
    alternatives: dict[TravelMode, float] = field(default_factory=dict)
    suggestion: str | None = None

    @property
    def distance_display(self) -> str:
        return str(round_half_up(self.distance_km, 2))

    @property
    def carbon_display(self) -> str:
        return str(round_half_up(self.carbon_grams))
