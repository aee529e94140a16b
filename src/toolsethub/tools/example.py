"""Basic example tools: calculator, greeting, current time."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated

from toolsethub.capabilities import Param, tool, toolset

_OPERATIONS = ("add", "subtract", "multiply", "divide")


@toolset(
    "example-tools",
    "example1",
    "instance1",
    name="Example Tools",
    description="Basic example tools: calculator, greeting, get_current_time",
)
class ExampleTools:
    @tool(description="Perform basic arithmetic operations (add, subtract, multiply, divide)")
    def calculator(
        self,
        operation: Annotated[
            str, Param(description="The operation to perform (add, subtract, multiply, divide)")
        ],
        num1: Annotated[float, Param(description="First number")],
        num2: Annotated[float, Param(description="Second number")],
    ) -> str:
        op = operation.strip().lower()
        if op == "add":
            result = num1 + num2
        elif op == "subtract":
            result = num1 - num2
        elif op == "multiply":
            result = num1 * num2
        elif op == "divide":
            if num2 == 0:
                return "Error: Division by zero"
            result = num1 / num2
        else:
            return f"Unknown operation. Supported: {', '.join(_OPERATIONS)}"
        return f"{num1:.2f} {operation} {num2:.2f} = {result:.2f}"

    @tool(description="Greet users with a personalized message")
    def greeting(
        self,
        name: Annotated[str | None, Param(description="User name", required=False)] = None,
    ) -> str:
        if name is None or not name.strip():
            return "Hello, anonymous user!"
        return f"Hello, {name.strip()}! Welcome to the MCP Server."

    @tool(description="Get current date and time")
    def get_current_time(self) -> str:
        return f"Current time: {datetime.now().isoformat(timespec='seconds')}"
