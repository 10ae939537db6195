# psp_router/exceptions.py


class RoutingError(Exception):
    """Base class for errors raised by the routing core."""


class UnknownCountry(RoutingError):
    """No providers are configured for the requested country."""
    def __init__(self, country):
        super().__init__(f"No providers configured for country: {country}")
        self.country = country


class InvalidStrategy(RoutingError, ValueError):
    """Unrecognised routing strategy tag. Raised before any routing happens."""
    def __init__(self, value):
        super().__init__(f"Unknown routing strategy: {value!r}")
        self.value = value


class InvalidTransaction(RoutingError, ValueError):
    """Transaction fields violate the model invariants (amount, country/currency pair)."""
