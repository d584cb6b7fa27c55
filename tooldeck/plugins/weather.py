"""Current-weather lookup over a closed set of locations."""

import enum
from typing import Optional

from ..tools.schema import FunctionDescriptor, build_descriptor, enum_arg
from ..tools.tokens import TokenCounter
from .base import BasePlugin
from .registry import register_plugin


class Location(enum.Enum):
    Atlanta = "Atlanta, GA"
    Boston = "Boston, MA"
    Chicago = "Chicago, IL"
    Dallas = "Dallas, TX"
    Denver = "Denver, CO"
    LosAngeles = "Los Angeles, CA"
    Miami = "Miami, FL"
    Nashville = "Nashville, TN"
    NewYork = "New York, NY"
    Philadelphia = "Philadelphia, PA"
    Seattle = "Seattle, WA"
    StLouis = "St. Louis, MO"
    Washington = "Washington, DC"


class TemperatureUnits(enum.Enum):
    Celcius = "C"
    Fahrenheit = "F"


def get_current_weather(location: Location, temperature_units: TemperatureUnits) -> str:
    # No live weather source; report what would be looked up.
    return f"Weather requested for {location.value} in degrees {temperature_units.value}"


@register_plugin("weather")
class WeatherPlugin(BasePlugin):

    @property
    def name(self) -> str:
        return "weather"

    @property
    def description(self) -> str:
        return "Current weather for a fixed list of cities"

    def get_functions(
        self, counter: Optional[TokenCounter] = None,
    ) -> list[FunctionDescriptor]:
        return [
            build_descriptor(
                "GetCurrentWeather",
                "Get the current weather in the location closest to the one provided location",
                [
                    enum_arg(
                        "location", Location,
                        "The only valid locations that can be passed.",
                    ),
                    enum_arg(
                        "temperature_units", TemperatureUnits,
                        "A temperature unit chosen from the enum.",
                    ),
                ],
                handler=get_current_weather,
                counter=counter,
            ),
        ]
