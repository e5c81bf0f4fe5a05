class StaffplanError(Exception):
    """Base class for errors raised by the staffing engine."""


class ValidationError(StaffplanError, ValueError):
    """Malformed input: dates, week labels, times or formula parameters."""


class StoreNotFoundError(StaffplanError, LookupError):
    def __init__(self, store_id: str) -> None:
        super().__init__(f"Store '{store_id}' not found.")
        self.store_id = store_id


class UpstreamUnavailable(StaffplanError):
    """The traffic service failed or timed out for a single date."""


class ConfigurationWriteError(StaffplanError):
    """The stored historical configuration cannot be merged into safely."""
