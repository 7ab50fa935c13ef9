"""
Failure conditions detected by the agent core itself.

Exceptions raised by the chat model client or inside a tool body are not
wrapped: they propagate unmodified and abort the run. The classes below
cover what the core detects on its own (unknown tools, timeouts, malformed
model output, step exhaustion, bad credentials, rejected input).
"""


class AgentError(Exception):
    """Base class for agent-core failures."""


class GatewayError(AgentError):
    """The model gateway did not return a usable assistant message."""


class ModelTimeoutError(GatewayError):
    def __init__(self, timeout: float):
        super().__init__(f"Model call exceeded {timeout}s")
        self.timeout = timeout


class ToolDispatchError(AgentError):
    """A tool call could not be routed to an implementation."""


class ToolNotFoundError(ToolDispatchError):
    def __init__(self, tool_name: str):
        super().__init__(f"Tool {tool_name} not found")
        self.tool_name = tool_name


class ToolExecutionError(AgentError):
    """A located tool rejected its arguments or could not complete."""


class ToolTimeoutError(ToolExecutionError):
    def __init__(self, tool_name: str, timeout: float):
        super().__init__(f"Tool {tool_name} exceeded {timeout}s")
        self.tool_name = tool_name
        self.timeout = timeout


class StepLimitExceeded(AgentError):
    def __init__(self, max_steps: int):
        super().__init__(f"Agent exceeded {max_steps} steps without a final answer")
        self.max_steps = max_steps


class AuthenticationError(AgentError):
    """Connection credential missing or invalid."""


class InvalidMessageError(AgentError):
    """Inbound user text rejected before it reaches the graph."""
