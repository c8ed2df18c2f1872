"""Exceptions raised by Rivulet.

Each exception carries an HTTP status code and error code so host
applications can render them uniformly. The bundled app in api/main.py
converts these to a JSON error body.
"""


class RivuletError(Exception):
    """Base exception for all Rivulet errors."""

    status_code: int = 500
    code: str = "internal_error"
    message: str = "An unexpected error occurred."

    def __init__(self, message: str | None = None, detail: dict[str, object] | None = None):
        self.message = message or self.__class__.message
        self.detail = detail
        super().__init__(self.message)


class SerializationError(RivuletError):
    status_code = 500
    code = "serialization_error"
    message = "Payload could not be encoded as JSON."


class InvalidEventNameError(RivuletError):
    status_code = 422
    code = "invalid_event_name"
    message = "Event names must not contain line breaks."


class AssetUnavailableError(RivuletError):
    """Raised from the middleware, outside the app's exception handlers.

    Hosts see it through Starlette's server-error handling as a 500.
    """

    status_code = 500
    code = "asset_unavailable"
    message = "Polyfill asset is missing or unreadable."
