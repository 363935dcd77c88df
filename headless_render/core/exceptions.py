"""
Custom exception classes for the headless render service.

Every error carries an HTTP-equivalent `status_code` so the request-accepting
boundary can translate it without inspecting its type.
"""
from typing import Optional


class RenderServiceError(Exception):
    """
    Base class for all custom exceptions in the headless render service.

    Attributes:
        message (str): A human-readable description of the error.
        status_code (int): HTTP-equivalent status for the request-accepting boundary.
    """
    status_code: int = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"{self.__class__.__name__}: {self.message}"


# --- Configuration Related Exceptions ---
class ConfigurationError(RenderServiceError):
    """
    Raised for errors related to application configuration, such as a pool
    size that is not a positive integer.
    """
    def __init__(self, message: str):
        super().__init__(message)


# --- Component Related Exceptions ---
class ComponentError(RenderServiceError):
    """
    A general base class for errors originating from within a specific component
    (e.g., ConnectionPool, Renderer).

    Attributes:
        component_name (str): Name of the component where the error originated.
    """
    def __init__(self, component_name: str, message: str):
        full_message = f"Error in component '{component_name}': {message}"
        super().__init__(full_message)
        self.component_name = component_name


class ConnectionPoolError(ComponentError):
    """Raised when no pooled browser endpoint could be attached. Never retried."""
    status_code = 503

    def __init__(self, message: str, endpoint: Optional[str] = None):
        super().__init__(component_name="ConnectionPool", message=message)
        self.endpoint = endpoint


class RendererError(ComponentError):
    """Raised for errors specific to the Renderer component (page lifecycle, capture)."""
    def __init__(self, message: str):
        super().__init__(component_name="Renderer", message=message)


class NavigationError(RendererError):
    """Raised when the engine fails to load the URL or the inline markup."""
    status_code = 502


class PolicyAbortError(RendererError):
    """
    Raised when the failure-strictness policy aborts a render.

    Attributes:
        failure_count (int): Number of failed exchanges in the ledger.
        url (Optional[str]): Main-resource URL, for main-resource aborts.
        observed_status (Optional[int]): Status observed for the main resource.
    """
    status_code = 412

    def __init__(self, message: str, failure_count: int = 0, url: Optional[str] = None,
                 observed_status: Optional[int] = None):
        super().__init__(message)
        self.failure_count = failure_count
        self.url = url
        self.observed_status = observed_status


class ScrollTimeoutError(RendererError):
    """Raised when auto-scroll does not reach the bottom of the page within its bound."""
    status_code = 504


class UnsupportedOutputError(RendererError):
    """Raised for an output kind outside of pdf/html/screenshot."""
    status_code = 400

    def __init__(self, output: object):
        super().__init__(f"Unknown output type: {output}")
        self.output = output


class UnsupportedEncodingError(RendererError):
    """Raised for a screenshot encoding other than png or jpeg."""
    status_code = 400

    def __init__(self, encoding: object):
        super().__init__(f"Unknown screenshot type: {encoding}")
        self.encoding = encoding


class EngineRuntimeError(RendererError):
    """Raised when the page crashed while a render was in flight."""
