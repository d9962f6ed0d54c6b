"""
Django Radiant - Spa loyalty & checkout state engine.

Usage:
    from radiant import SpaSession
    from radiant.gates import Gates, GateError, GateResult

    session = SpaSession.from_settings(token=request.auth)
    await session.login(user.pk)
    session.cart.add("svc-1", "80.00", service_name="Massage")
    checkout = await session.checkout.submit("loc-1")

    # Gates validation
    Gates.probability_ceiling(items)
    Gates.item_completeness(item)
"""


def __getattr__(name):
    if name == "SpaSession":
        from radiant.service import SpaSession

        return SpaSession
    if name == "Gates":
        from radiant.gates import Gates

        return Gates
    if name == "GateError":
        from radiant.gates import GateError

        return GateError
    if name == "GateResult":
        from radiant.gates import GateResult

        return GateResult
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = ["SpaSession", "Gates", "GateError", "GateResult"]
__version__ = "0.1.0"
