"""HTTP side of the client: configuration, transport and the call pipeline.

Security notes:
- Treat server responses as untrusted input.
- Avoid printing or logging secrets or raw file bytes.
"""

from .config import ClientConfig
from .http import HttpResponse, HttpTransport
from .rest import RestClient

__all__ = ["ClientConfig", "HttpResponse", "HttpTransport", "RestClient"]
