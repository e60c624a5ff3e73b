"""
Luna Error Types — Structured exception hierarchy.

Lets action handlers tell a player mistake (unclear request) apart from
a flaky indexer/RPC node (try again) and from a real game rule
(not enough $LORDS), so each one gets the right chat reply.
"""


class LunaError(Exception):
    """Base class for all Luna errors."""
    pass


class UserInputError(LunaError):
    """The chat request could not be understood. Ask the player to clarify."""
    pass


class StateUnavailableError(LunaError):
    """Game state could not be read. Transient, the player should try again."""
    pass


class UpstreamConnectionError(StateUnavailableError):
    """Endpoint unreachable, timed out or returned a 5xx. Retryable."""
    pass


class IndexQueryError(StateUnavailableError):
    """Torii GraphQL query failed or returned an unexpected shape."""
    pass


class LedgerReadError(StateUnavailableError):
    """Starknet RPC read failed (balance, allowance, block, receipt)."""

    def __init__(self, message: str, code=None):
        super().__init__(message)
        self.code = code


class RateLimitError(StateUnavailableError):
    """Upstream returned 429 Too Many Requests. Retryable after backoff."""
    pass


class PreconditionFailedError(LunaError):
    """The request is understood but the game rules refuse it.

    The message is shown to the player as-is, so it must name the
    shortfall (balance, reinforcements, phase, unknown outpost).
    """
    pass
