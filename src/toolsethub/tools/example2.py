"""Advanced example tools: weather, temperature conversion, random numbers, strings."""

from __future__ import annotations

import random
from typing import Annotated

from toolsethub.capabilities import Param, tool, toolset


@toolset(
    "example2-tools",
    "example2",
    "instance2",
    name="Example2 Tools",
    description="Advanced example tools: weather, temperature conversion, random number, string reverse",
)
class Example2Tools:
    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()

    @tool(description="Get weather information for a specific location")
    def get_weather(
        self, location: Annotated[str, Param(description="Location name (e.g., city name)")]
    ) -> str:
        return f"Weather in {location}: Sunny, 25°C, Humidity: 60%"

    @tool(description="Convert temperature between Celsius and Fahrenheit")
    def convert_temperature(
        self,
        temperature: Annotated[float, Param(description="Temperature value")],
        from_unit: Annotated[str, Param(description="Source unit (Celsius or Fahrenheit)")],
        to_unit: Annotated[str, Param(description="Target unit (Celsius or Fahrenheit)")],
    ) -> str:
        source, target = from_unit.strip().lower(), to_unit.strip().lower()
        if source == "celsius" and target == "fahrenheit":
            result = temperature * 9.0 / 5.0 + 32
        elif source == "fahrenheit" and target == "celsius":
            result = (temperature - 32) * 5.0 / 9.0
        elif source == target:
            result = temperature
        else:
            return "Error: Unsupported unit conversion. Supported units: Celsius, Fahrenheit"
        return f"{temperature:.2f}° {from_unit} = {result:.2f}° {to_unit}"

    @tool(description="Generate a random number within a specified range")
    def generate_random_number(
        self,
        min_value: Annotated[int, Param(description="Minimum value")],
        max_value: Annotated[int, Param(description="Maximum value")],
    ) -> str:
        if min_value >= max_value:
            return "Error: Minimum value must be less than maximum value"
        value = self._rng.randint(min_value, max_value)
        return f"Random number between {min_value} and {max_value}: {value}"

    @tool(description="Reverse a given string")
    def reverse_string(self, text: Annotated[str, Param(description="Text to reverse")]) -> str:
        return text[::-1]
