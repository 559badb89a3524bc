# Main script to estimate the carbon footprint of a daily commute.

import argparse
import logging
import re
import sys
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from dotenv import load_dotenv

from api_adapters import (GEOCODERS, AddressResolver, OsrmAdapter,
                          RouteDistanceEstimator, make_resolver)
from api_structures import (CommuteResult, TravelMode, profile_for,
                            round_half_up)
from emissions import EmissionEstimator
from errors import CommuteError, ValidationError

logger = logging.getLogger(__name__)

EIRCODE_PATTERN = re.compile(r"[A-Z0-9]{7}")
INVALID_EIRCODE_MESSAGE = "Please enter valid 7-character Eircodes"
# Trips at or under this many kilometres get the walk/cycle suggestion.
SHORT_TRIP_KM = 2.0


class CalculatorState(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    RESOLVING = "resolving"
    ROUTING = "routing"
    COMPUTED = "computed"
    ERROR = "error"


@dataclass
class DisplayState:
    """What the calculator currently shows: a state plus its error or result."""
    state: CalculatorState = CalculatorState.IDLE
    error: str | None = None
    result: CommuteResult | None = None

    @property
    def loading(self) -> bool:
        return self.state in (CalculatorState.VALIDATING, CalculatorState.RESOLVING,
                              CalculatorState.ROUTING)


def normalize_eircode(raw: str) -> str:
    """Uppercases an Eircode and checks it is exactly 7 letters or digits."""
    code = (raw or "").upper()
    if not EIRCODE_PATTERN.fullmatch(code):
        raise ValidationError(INVALID_EIRCODE_MESSAGE)
    return code


def validate_eircodes(home: str, work: str) -> tuple[str, str]:
    return normalize_eircode(home), normalize_eircode(work)


def build_result(distance_m: float, mode: TravelMode, estimator: EmissionEstimator) -> CommuteResult:
    """Turns a route length into the selected estimate, the comparison and any suggestion."""
    distance_km = distance_m / 1000
    shown_km = float(round_half_up(distance_km, 2))
    grams = estimator.estimate(distance_km, mode)
    result = CommuteResult(
        mode=mode,
        distance_km=distance_km,
        carbon_grams=grams,
        # Alternatives use the distance as displayed; the selected mode does not.
        alternatives=estimator.compare(shown_km, exclude=mode),
    )
    # Compared at display precision, so "2.00 km" always qualifies.
    if shown_km <= SHORT_TRIP_KM and mode != TravelMode.WALK:
        result.suggestion = (
            "You could walk or cycle to work and save approximately "
            f"{result.carbon_display} g CO₂ per trip!")
    return result


# --- Core Logic ---

class CommuteCalculatorFlow:
    """
    Runs one calculation at a time through validate, resolve, route and compute,
    publishing every state change to an optional listener.

    There is no lock: overlapping calls race and whichever finishes last
    leaves its state on display.
    """

    def __init__(
        self,
        resolver: AddressResolver,
        router: RouteDistanceEstimator,
        estimator: EmissionEstimator | None = None,
        listener: Callable[[DisplayState], None] | None = None,
    ):
        self.resolver = resolver
        self.router = router
        self.estimator = estimator or EmissionEstimator()
        self.listener = listener
        self.display = DisplayState()

    def _publish(self, display: DisplayState) -> DisplayState:
        self.display = display
        if self.listener:
            self.listener(display)
        return display

    def _fail(self, error: CommuteError) -> DisplayState:
        logger.info("Calculation failed: %s", error)
        return self._publish(DisplayState(CalculatorState.ERROR, error=error.message))

    def calculate(self, home_eircode: str, work_eircode: str, mode: TravelMode | str) -> DisplayState:
        self._publish(DisplayState(CalculatorState.VALIDATING))
        try:
            home, work = validate_eircodes(home_eircode, work_eircode)
            try:
                mode = TravelMode(mode)
            except ValueError:
                raise ValidationError(f"Unknown travel mode '{mode}'") from None
        except ValidationError as e:
            return self._fail(e)

        self._publish(DisplayState(CalculatorState.RESOLVING))
        try:
            # Home strictly before work.
            home_coords = self.resolver.resolve(home)
            work_coords = self.resolver.resolve(work)
        except CommuteError as e:
            return self._fail(e)

        self._publish(DisplayState(CalculatorState.ROUTING))
        try:
            distance_m = self.router.estimate(home_coords, work_coords, profile_for(mode))
        except CommuteError as e:
            return self._fail(e)

        result = build_result(distance_m, mode, self.estimator)
        logger.debug("Commute %s -> %s by %s: %s km, %s g",
                     home, work, mode.value, result.distance_display, result.carbon_display)
        return self._publish(DisplayState(CalculatorState.COMPUTED, result=result))


def display_results(display: DisplayState):
    """Prints the outcome of a calculation."""
    if display.state == CalculatorState.ERROR:
        print(f"\nError: {display.error}")
        return
    if display.result is None:
        print("\nNo calculation has been run.")
        return

    result = display.result
    print(f"\nDistance: {result.distance_display} km")
    print(f"Estimated CO₂ emissions: {result.carbon_display} g CO₂ per trip")

    if result.suggestion:
        print(f"\n🌱 {result.suggestion}")

    # The comparison is only worth showing when the chosen mode emits anything.
    if result.mode.is_motorised:
        print("\nAlternative options emissions per trip:")
        for mode, grams in result.alternatives.items():
            print(f"  - {mode.value.upper()}: {round_half_up(grams)} g CO₂")


def prompt_mode() -> TravelMode:
    print("Select your travel mode:")
    modes = list(TravelMode)
    for number, mode in enumerate(modes, start=1):
        default = " (Default)" if mode == TravelMode.CAR else ""
        print(f"{number}. {mode.label}{default}")
    choice = input("Enter your choice [2]: ") or "2"
    try:
        return modes[int(choice) - 1]
    except (ValueError, IndexError):
        print("Invalid choice. Using Car by default.\n")
        return TravelMode.CAR


def main(argv=None) -> int:
    load_dotenv()

    parser = argparse.ArgumentParser(
        description="Commute Carbon Calculator: estimate the CO₂ of your trip to work.")
    parser.add_argument('--home', help="Home Eircode (7 characters).")
    parser.add_argument('--work', help="Work Eircode (7 characters).")
    parser.add_argument('--mode', choices=[m.value for m in TravelMode],
                        help="Travel mode. Prompted for when omitted.")
    parser.add_argument('--geocoder', choices=list(GEOCODERS), default='eircode',
                        help="Geocoding backend used to locate the Eircodes.")
    parser.add_argument('-v', '--verbose', action='store_true',
                        help="Enable verbose mode to see the exact API calls being made.")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    print("Welcome to the Commute Carbon Calculator.\n")

    try:
        flow = CommuteCalculatorFlow(make_resolver(args.geocoder), OsrmAdapter())
    except ValueError as e:
        print(e)
        return 1

    home = args.home or input("Enter your Home Eircode: ")
    work = args.work or input("Enter your Work Eircode: ")
    mode = TravelMode(args.mode) if args.mode else prompt_mode()

    print("\nCalculating...")
    display = flow.calculate(home.upper(), work.upper(), mode)
    display_results(display)
    return 0 if display.state == CalculatorState.COMPUTED else 1


if __name__ == '__main__':
    sys.exit(main())
