"""Exceptions raised by the navigation brains."""


class CityNavError(Exception):
    """Base class for citynav errors."""


class TransitionPendingError(CityNavError, RuntimeError):
    """A new action was requested before the previous one was resolved."""

    def __init__(self, pending):
        self.pending = pending
        super().__init__(
            f"Action {pending.from_node} -> {pending.to_node} is still awaiting arrival"
        )
