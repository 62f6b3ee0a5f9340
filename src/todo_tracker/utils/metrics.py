"""Prometheus metrics for observability."""

from functools import lru_cache

from prometheus_client import Counter, Histogram, Info

from todo_tracker import __version__


class Metrics:
    """Prometheus metrics for the todo tracker."""

    def __init__(self) -> None:
        """Initialize all metrics."""
        self.info = Info(
            "todo_tracker",
            "Todo tracker information",
        )
        self.info.info({"version": __version__})

        # Store operations
        self.store_operations_total = Counter(
            "todo_store_operations_total",
            "Total number of store operations",
            ["operation", "outcome"],
        )

        self.store_io_failures_total = Counter(
            "todo_store_io_failures_total",
            "Backing file reads or writes that failed",
            ["direction"],
        )

        # MCP tool metrics
        self.mcp_tool_calls_total = Counter(
            "todo_mcp_tool_calls_total",
            "Total number of MCP tool calls",
            ["tool", "status"],
        )

        self.mcp_tool_duration_seconds = Histogram(
            "todo_mcp_tool_duration_seconds",
            "Duration of MCP tool calls in seconds",
            ["tool"],
            buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1.0],
        )

        # HTTP metrics
        self.http_requests_total = Counter(
            "todo_http_requests_total",
            "Total number of HTTP API requests",
            ["method", "status"],
        )

    def record_store_operation(self, operation: str, outcome: str) -> None:
        """Record a store operation.

        Args:
            operation: Store operation name (add_todo, login, ...)
            outcome: "ok" or "denied"
        """
        self.store_operations_total.labels(operation=operation, outcome=outcome).inc()

    def record_io_failure(self, direction: str) -> None:
        """Record a failed backing-file read ("load") or write ("save")."""
        self.store_io_failures_total.labels(direction=direction).inc()

    def record_mcp_tool_call(
        self,
        tool: str,
        status: str,
        duration: float,
    ) -> None:
        """Record an MCP tool call metric.

        Args:
            tool: Tool name
            status: Call status (success, error)
            duration: Call duration in seconds
        """
        self.mcp_tool_calls_total.labels(
            tool=tool,
            status=status,
        ).inc()
        self.mcp_tool_duration_seconds.labels(
            tool=tool,
        ).observe(duration)

    def record_http_request(self, method: str, status: int) -> None:
        self.http_requests_total.labels(method=method, status=str(status)).inc()


@lru_cache
def get_metrics() -> Metrics:
    """Get cached metrics instance."""
    return Metrics()
