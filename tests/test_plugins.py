"""Tests for the built-in plugins and catalog assembly."""

import pytest

from tooldeck.errors import ConfigError
from tooldeck.plugins.arithmetic import (
    ArithmeticPlugin,
    RoundingMode,
    add,
    divide,
    multiply,
    subtract,
)
from tooldeck.plugins.weather import Location, TemperatureUnits, WeatherPlugin, get_current_weather
from tooldeck.tools import build_catalog
from tooldeck.tools.schema import ArgKind, FunctionKind


class TestRoundingMode:
    @pytest.mark.parametrize("mode, expected", [
        (RoundingMode.NoRounding, 2.5),
        (RoundingMode.Nearest, 3.0),
        (RoundingMode.Zero, 2.0),
        (RoundingMode.Up, 3.0),
        (RoundingMode.Down, 2.0),
    ])
    def test_positive(self, mode, expected):
        assert mode.round(2.5) == expected

    @pytest.mark.parametrize("mode, expected", [
        (RoundingMode.Nearest, -3.0),
        (RoundingMode.Zero, -2.0),
        (RoundingMode.Up, -2.0),
        (RoundingMode.Down, -3.0),
    ])
    def test_negative(self, mode, expected):
        assert mode.round(-2.5) == expected


class TestArithmetic:
    def test_operations(self):
        assert add(8, 2, RoundingMode.NoRounding) == 10
        assert subtract(8, 2, RoundingMode.NoRounding) == 6
        assert multiply(10, 7, RoundingMode.NoRounding) == 70
        assert divide(7, 2, RoundingMode.Down) == 3

    def test_divide_by_zero(self):
        with pytest.raises(ZeroDivisionError, match="Cannot divide by zero"):
            divide(1, 0, RoundingMode.NoRounding)

    def test_descriptors(self, counter):
        functions = ArithmeticPlugin().get_functions(counter)
        names = [f.name for f in functions]
        assert names == ["Add", "Subtract", "Multiply", "Divide", "CallMultiStep", "GPT"]

        add_fn = functions[0]
        assert add_fn.description == "Adds two numbers"
        rounding = add_fn.parameters[2]
        assert rounding.kind is ArgKind.ENUM
        assert rounding.choices == ("NoRounding", "Nearest", "Zero", "Up", "Down")
        assert rounding.description == "Different modes to round a number."

        assert functions[4].kind is FunctionKind.MULTI_STEP
        assert functions[5].kind is FunctionKind.FREE_FORM
        assert not functions[5].advertised

    def test_decoded_call(self, counter):
        add_fn = ArithmeticPlugin().get_functions(counter)[0]
        kwargs = add_fn.decode('{"a": 1.4, "b": 1, "rounding_mode": "Nearest"}')
        assert kwargs["rounding_mode"] is RoundingMode.Nearest
        assert add_fn.handler(**kwargs) == 2.0


class TestWeather:
    def test_lookup(self):
        text = get_current_weather(Location.Boston, TemperatureUnits.Fahrenheit)
        assert text == "Weather requested for Boston, MA in degrees F"

    def test_descriptor(self, counter):
        (weather,) = WeatherPlugin().get_functions(counter)
        assert weather.name == "GetCurrentWeather"
        kwargs = weather.decode('{"location": "Seattle", "temperature_units": "Celcius"}')
        assert kwargs == {
            "location": Location.Seattle,
            "temperature_units": TemperatureUnits.Celcius,
        }


class TestBuildCatalog:
    def test_all_plugins(self, counter):
        catalog = build_catalog(counter=counter)
        assert catalog.frozen
        assert "Add" in catalog
        assert "GetCurrentWeather" in catalog
        assert "GPT" not in catalog.advertised_names()

    def test_selected_plugins(self, counter):
        catalog = build_catalog(["weather"], counter=counter)
        assert catalog.names() == ["GetCurrentWeather"]

    def test_unknown_plugin(self, counter):
        with pytest.raises(ConfigError, match="Unknown plugin: nope"):
            build_catalog(["nope"], counter=counter)
