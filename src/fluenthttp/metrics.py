"""Process-wide counters for request dispatch."""

from dataclasses import asdict, dataclass, field
from typing import Any, ClassVar

from fluenthttp.errors import DispatchErrorClass


@dataclass
class DispatchMetrics:
    """Counters updated by every builder in the process.

    Attributes:
        dispatches_by_method: Dispatch attempts keyed by HTTP method.
        responses_by_status: Responses received keyed by status code.
        failures_by_class: Failed dispatches keyed by error class value.
        bytes_received: Body bytes read while dispatching. Raw and stream
            shapes leave the body to the caller and add nothing.
        duration_ms_total: Wall time spent in dispatch, failures included.
        dispatch_count: All dispatch attempts.
    """

    dispatches_by_method: dict[str, int] = field(default_factory=dict)
    responses_by_status: dict[int, int] = field(default_factory=dict)
    failures_by_class: dict[str, int] = field(default_factory=dict)
    bytes_received: int = 0
    duration_ms_total: float = 0.0
    dispatch_count: int = 0

    _instance: ClassVar["DispatchMetrics | None"] = None

    @classmethod
    def get_instance(cls) -> "DispatchMetrics":
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Drop the shared counters (primarily for testing)."""
        cls._instance = None

    def record_request(self, method: str) -> None:
        self.dispatches_by_method[method] = self.dispatches_by_method.get(method, 0) + 1
        self.dispatch_count += 1

    def record_response(self, status_code: int, bytes_received: int = 0) -> None:
        """Count a response and the body bytes read for it.

        Args:
            status_code: Response status.
            bytes_received: Body bytes read during dispatch.
        """
        self.responses_by_status[status_code] = (
            self.responses_by_status.get(status_code, 0) + 1
        )
        self.bytes_received += bytes_received

    def record_failure(self, error_class: DispatchErrorClass) -> None:
        name = error_class.value
        self.failures_by_class[name] = self.failures_by_class.get(name, 0) + 1

    def record_duration(self, duration_ms: float) -> None:
        self.duration_ms_total += duration_ms

    @property
    def failure_count(self) -> int:
        return sum(self.failures_by_class.values())

    @property
    def avg_duration_ms(self) -> float:
        """Mean dispatch time, 0.0 before the first dispatch."""
        if not self.dispatch_count:
            return 0.0
        return self.duration_ms_total / self.dispatch_count

    def to_dict(self) -> dict[str, Any]:
        """Snapshot the counters for logging.

        Returns:
            Copy of every counter plus the derived failure count and mean
            duration.
        """
        snapshot = asdict(self)
        snapshot["failure_count"] = self.failure_count
        snapshot["avg_duration_ms"] = self.avg_duration_ms
        return snapshot
