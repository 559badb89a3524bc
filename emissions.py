# Per-mode emission factors and the estimator that applies them.

from dataclasses import dataclass

from api_structures import TravelMode


@dataclass(frozen=True)
class EmissionFactorTable:
    """Grams of CO2 emitted per kilometre, per travel mode."""
    ev: float = 60      # average electric vehicle
    car: float = 130    # average petrol/diesel car
    bus: float = 95     # per-passenger bus average
    cycle: float = 0
    walk: float = 0

    def factor(self, mode: TravelMode) -> float:
        return getattr(self, TravelMode(mode).value)


DEFAULT_EMISSION_FACTORS = EmissionFactorTable()


class EmissionEstimator:
    """Turns a distance into grams of CO2 using an injected factor table."""

    def __init__(self, factors: EmissionFactorTable = DEFAULT_EMISSION_FACTORS):
        self.factors = factors

    def estimate(self, distance_km: float, mode: TravelMode) -> float:
        return self.factors.factor(mode) * distance_km

    def compare(self, distance_km: float, exclude: TravelMode | None = None) -> dict[TravelMode, float]:
        """Estimates for every mode other than `exclude`, in the order TravelMode lists them."""
        return {
            mode: self.estimate(distance_km, mode)
            for mode in TravelMode
            if mode != exclude
        }
