class GatewayRequestError(ValueError):
    """The inbound envelope is valid JSON but does not describe an HTTP call."""


class DispatchError(Exception):
    """The outbound call could not be made or failed in flight."""
