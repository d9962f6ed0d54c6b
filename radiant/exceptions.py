"""Radiant exceptions."""


class RadiantError(Exception):
    """
    Structured exception for loyalty and commerce operations.

    Every error carries a stable ``code``, a human message (defaulting to the
    entry in ``_default_messages``) and free-form ``data`` for the caller.

    Usage:
        try:
            await engine.claim(reward)
        except RadiantError as e:
            if e.code == "QUOTA_EXCEEDED":
                show_limit_reached()
    """

    _default_messages = {
        "INVALID_CHECKOUT_STATE": "Checkout cannot start in the current state",
        "SESSION_IN_FLIGHT": "A checkout session is already being created",
        "CART_FROZEN": "Cart is locked while checkout is in progress",
        "LEDGER_STATE": "Illegal points ledger transition",
        "NO_ACCOUNT": "No points account is open",
        "INVALID_POINTS": "Points must be positive",
        "INSUFFICIENT_POINTS": "Insufficient points",
        "QUOTA_EXCEEDED": "Monthly limit reached for this reward",
        "REWARD_UNAVAILABLE": "Reward not found or inactive",
        "GAME_UNAVAILABLE": "Game is not currently active",
        "CLAIM_REJECTED": "Claim rejected",
        "PROBABILITY_EXCEEDED": "Total probability cannot exceed 100%",
        "PAYMENT_NOT_CONFIRMED": "Payment was not confirmed",
        "REQUEST_REJECTED": "Request rejected",
        "NETWORK_ERROR": "Network error, please try again",
    }

    def __init__(self, code: str, message: str | None = None, **data):
        self.code = code
        self.message = message or self._default_messages.get(code, code)
        self.data = data
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.code!r}, {self.message!r})"

    def as_dict(self) -> dict:
        return {"code": self.code, "message": self.message, "data": self.data}


class InvalidCheckoutState(RadiantError):
    """Empty cart or missing location at submit time."""

    def __init__(self, message: str | None = None, **data):
        super().__init__("INVALID_CHECKOUT_STATE", message, **data)


class SessionInFlight(RadiantError):
    """Duplicate checkout submission while a session request is pending."""

    def __init__(self, message: str | None = None, **data):
        super().__init__("SESSION_IN_FLIGHT", message, **data)


class CartFrozen(RadiantError):
    """Cart mutation attempted while its checkout is in flight."""

    def __init__(self, message: str | None = None, **data):
        super().__init__("CART_FROZEN", message, **data)


class LedgerStateError(RadiantError):
    """Illegal PointsLedger transition (programming error)."""

    def __init__(self, message: str | None = None, code: str = "LEDGER_STATE", **data):
        super().__init__(code, message, **data)


class ClaimError(RadiantError):
    """
    Reward claim or game play refused.

    ``code`` is one of INSUFFICIENT_POINTS, QUOTA_EXCEEDED,
    REWARD_UNAVAILABLE, GAME_UNAVAILABLE or CLAIM_REJECTED. When the refusal
    comes from the collaborator, ``message`` is its reason verbatim.
    """

    CODES = (
        "INSUFFICIENT_POINTS",
        "QUOTA_EXCEEDED",
        "REWARD_UNAVAILABLE",
        "GAME_UNAVAILABLE",
        "CLAIM_REJECTED",
    )

    def __init__(self, code: str = "CLAIM_REJECTED", message: str | None = None, **data):
        if code not in self.CODES:
            code = "CLAIM_REJECTED"
        super().__init__(code, message, **data)


class ProbabilityExceeded(RadiantError):
    """Scratch prize table adds up to more than the probability ceiling."""

    def __init__(self, total: int, ceiling: int = 100, message: str | None = None):
        super().__init__(
            "PROBABILITY_EXCEEDED",
            message or f"Total probability {total}% exceeds {ceiling}%",
            total=total,
            ceiling=ceiling,
        )
        self.total = total
        self.ceiling = ceiling


class NetworkError(RadiantError):
    """Collaborator unreachable or failed; always retryable."""

    retryable = True

    def __init__(self, message: str | None = None, **data):
        super().__init__("NETWORK_ERROR", message, **data)
