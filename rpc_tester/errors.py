"""Error taxonomy for the RPC equality tester."""


class TesterError(Exception):
    """Base class for every error raised by the tester."""


class FetchError(TesterError):
    """The truth endpoint could not supply canonical block data.

    Fatal: a missing canonical block is a precondition violation, not a test
    failure, so the whole run aborts.
    """

    def __init__(self, block_number: int | None, reason: str):
        self.block_number = block_number
        self.reason = reason
        where = f"block {block_number}" if block_number is not None else "truth endpoint"
        super().__init__(f"Failed to fetch {where}: {reason}")


class TransportError(TesterError):
    """A call to an endpoint failed (HTTP, timeout, JSON-RPC error object)."""

    def __init__(self, endpoint: str, method: str, message: str):
        self.endpoint = endpoint
        self.method = method
        self.message = message
        super().__init__(f"{endpoint} {method}: {message}")


class CanonicalizationError(TesterError):
    """A response could not be normalized for comparison. Always fatal."""

    def __init__(self, probe: str, side: str, cause: Exception):
        self.probe = probe
        self.side = side
        self.cause = cause
        super().__init__(f"Could not canonicalize {side} result of {probe}: {cause}")


class ReadinessError(TesterError):
    """Endpoints never reached a state where a block range can be tested."""
