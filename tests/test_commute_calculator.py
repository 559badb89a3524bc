"""Tests for the commute calculation flow and its result formatting."""

import pytest

from api_structures import RouteProfile, TravelMode
from commute_calculator import (INVALID_EIRCODE_MESSAGE, CalculatorState,
                                CommuteCalculatorFlow, display_results, main,
                                normalize_eircode)
from conftest import HOME, WORK, StubResolver, StubRouter
from errors import NoRouteError, NotFoundError, ServiceError, ValidationError


class TestValidation:
    @pytest.mark.parametrize("raw", ["T12X345", "t12x345", "T12x345", "A65F4E2", "1234567"])
    def test_seven_alphanumerics_pass(self, raw):
        assert normalize_eircode(raw) == raw.upper()

    @pytest.mark.parametrize("raw", ["", "T12X34", "T12X3456", "T12 X345", "T12-345", "T12X34!", "T12X345\n", None])
    def test_everything_else_fails(self, raw):
        with pytest.raises(ValidationError, match=INVALID_EIRCODE_MESSAGE):
            normalize_eircode(raw)

    def test_invalid_input_makes_no_network_calls(self, resolver, router):
        flow = CommuteCalculatorFlow(resolver, router)
        display = flow.calculate("T12X34", "T23Y456", "car")
        assert display.state == CalculatorState.ERROR
        assert display.error == "Please enter valid 7-character Eircodes"
        assert resolver.calls == []
        assert router.calls == []

    def test_trailing_newline_is_rejected_before_lookup(self, resolver, router):
        display = CommuteCalculatorFlow(resolver, router).calculate("T12X345\n", "T23Y456", "car")
        assert display.state == CalculatorState.ERROR
        assert display.error == INVALID_EIRCODE_MESSAGE
        assert resolver.calls == []

    def test_lowercase_input_is_uppercased_before_lookup(self, resolver, router):
        flow = CommuteCalculatorFlow(resolver, router)
        flow.calculate("t12x345", "t23y456", "car")
        assert resolver.calls == ["T12X345", "T23Y456"]


class TestCalculation:
    def test_car_five_km(self, resolver, router):
        flow = CommuteCalculatorFlow(resolver, router)
        display = flow.calculate("T12X345", "T23Y456", "car")

        assert display.state == CalculatorState.COMPUTED
        assert display.error is None
        result = display.result
        assert result.distance_display == "5.00"
        assert result.carbon_display == "650"
        assert result.suggestion is None
        assert router.calls == [(HOME, WORK, RouteProfile.DRIVE)]

    def test_comparison_covers_every_other_mode(self, resolver, router):
        result = CommuteCalculatorFlow(resolver, router).calculate(
            "T12X345", "T23Y456", TravelMode.CAR).result
        assert list(result.alternatives) == [
            TravelMode.EV, TravelMode.BUS, TravelMode.CYCLE, TravelMode.WALK]
        assert result.alternatives[TravelMode.EV] == pytest.approx(300)
        assert result.alternatives[TravelMode.BUS] == pytest.approx(475)

    def test_walk_has_zero_grams_and_no_suggestion(self, resolver, router):
        result = CommuteCalculatorFlow(resolver, router).calculate(
            "T12X345", "T23Y456", "walk").result
        assert result.carbon_display == "0"
        assert result.suggestion is None
        assert router.calls[0][2] is RouteProfile.FOOT

    def test_short_car_trip_suggests_walking(self, resolver):
        flow = CommuteCalculatorFlow(resolver, StubRouter(meters=1500))
        result = flow.calculate("T12X345", "T23Y456", "car").result
        assert result.distance_display == "1.50"
        assert result.suggestion == (
            "You could walk or cycle to work and save approximately 195 g CO₂ per trip!")

    def test_short_walk_gets_no_suggestion(self, resolver):
        flow = CommuteCalculatorFlow(resolver, StubRouter(meters=1500))
        assert flow.calculate("T12X345", "T23Y456", "walk").result.suggestion is None

    def test_exactly_two_km_qualifies(self, resolver):
        flow = CommuteCalculatorFlow(resolver, StubRouter(meters=2000))
        assert flow.calculate("T12X345", "T23Y456", "bus").result.suggestion is not None

    def test_half_gram_rounds_up(self, resolver):
        flow = CommuteCalculatorFlow(resolver, StubRouter(meters=1500))
        result = flow.calculate("T12X345", "T23Y456", "bus").result
        assert result.carbon_grams == 142.5
        assert result.carbon_display == "143"
        assert "save approximately 143 g CO₂" in result.suggestion

    def test_half_hundredth_km_rounds_up(self, resolver):
        flow = CommuteCalculatorFlow(resolver, StubRouter(meters=125))
        assert flow.calculate("T12X345", "T23Y456", "car").result.distance_display == "0.13"

    def test_alternatives_use_displayed_distance(self, resolver):
        flow = CommuteCalculatorFlow(resolver, StubRouter(meters=1004))
        result = flow.calculate("T12X345", "T23Y456", "bus").result
        assert result.distance_display == "1.00"
        assert result.carbon_grams == pytest.approx(95 * 1.004)
        assert result.alternatives[TravelMode.CAR] == pytest.approx(130)
        assert result.alternatives[TravelMode.EV] == pytest.approx(60)

    def test_states_are_published_in_order(self, resolver, router):
        seen = []
        flow = CommuteCalculatorFlow(resolver, router, listener=lambda d: seen.append(d.state))
        flow.calculate("T12X345", "T23Y456", "ev")
        assert seen == [
            CalculatorState.VALIDATING,
            CalculatorState.RESOLVING,
            CalculatorState.ROUTING,
            CalculatorState.COMPUTED,
        ]
        assert flow.display.state == CalculatorState.COMPUTED
        assert not flow.display.loading


class TestFailures:
    def test_home_lookup_failure_stops_before_work(self, router):
        resolver = StubResolver({
            "T12X345": NotFoundError("Invalid eircode or no coordinates found"),
            "T23Y456": WORK,
        })
        display = CommuteCalculatorFlow(resolver, router).calculate("T12X345", "T23Y456", "car")
        assert display.state == CalculatorState.ERROR
        assert display.error == "Invalid eircode or no coordinates found"
        assert resolver.calls == ["T12X345"]
        assert router.calls == []

    def test_work_lookup_service_error(self, router):
        resolver = StubResolver({
            "T12X345": HOME,
            "T23Y456": ServiceError("Failed to fetch coordinates"),
        })
        display = CommuteCalculatorFlow(resolver, router).calculate("T12X345", "T23Y456", "car")
        assert display.error == "Failed to fetch coordinates"
        assert router.calls == []

    def test_routing_failure_message_is_verbatim(self, resolver):
        router = StubRouter(error=NoRouteError("No route found"))
        display = CommuteCalculatorFlow(resolver, router).calculate("T12X345", "T23Y456", "cycle")
        assert display.state == CalculatorState.ERROR
        assert display.error == "No route found"
        assert display.result is None

    def test_unknown_mode_is_a_validation_error(self, resolver, router):
        display = CommuteCalculatorFlow(resolver, router).calculate("T12X345", "T23Y456", "rocket")
        assert display.state == CalculatorState.ERROR
        assert resolver.calls == []

    def test_new_run_replaces_previous_error(self, resolver, router):
        flow = CommuteCalculatorFlow(resolver, router)
        flow.calculate("bad", "T23Y456", "car")
        assert flow.display.state == CalculatorState.ERROR
        flow.calculate("T12X345", "T23Y456", "car")
        assert flow.display.state == CalculatorState.COMPUTED
        assert flow.display.error is None


class TestDisplay:
    def test_motorised_mode_lists_alternatives(self, resolver, router, capsys):
        display_results(CommuteCalculatorFlow(resolver, router).calculate(
            "T12X345", "T23Y456", "car"))
        out = capsys.readouterr().out
        assert "Distance: 5.00 km" in out
        assert "650 g CO₂ per trip" in out
        assert "EV: 300 g CO₂" in out
        assert "CAR:" not in out

    def test_alternatives_match_shown_distance(self, resolver, capsys):
        display_results(CommuteCalculatorFlow(resolver, StubRouter(meters=1004)).calculate(
            "T12X345", "T23Y456", "bus"))
        out = capsys.readouterr().out
        assert "Distance: 1.00 km" in out
        assert "CAR: 130 g CO₂" in out

    def test_cycle_hides_alternatives(self, resolver, router, capsys):
        display_results(CommuteCalculatorFlow(resolver, router).calculate(
            "T12X345", "T23Y456", "cycle"))
        assert "Alternative options" not in capsys.readouterr().out

    def test_error_is_printed(self, resolver, router, capsys):
        display_results(CommuteCalculatorFlow(resolver, router).calculate("x", "y", "car"))
        assert "Error: Please enter valid 7-character Eircodes" in capsys.readouterr().out


def test_main_rejects_bad_eircodes_without_network(monkeypatch, capsys):
    def fail(*args, **kwargs):
        raise AssertionError("no request expected")

    monkeypatch.setattr("api_adapters.requests.get", fail)
    code = main(["--home", "BAD", "--work", "T23Y456", "--mode", "car"])
    assert code == 1
    assert "Please enter valid 7-character Eircodes" in capsys.readouterr().out
