"""
Transport implementations for reaching the e-signature service.
"""

from .base import EnvelopeTransport, TransportError
from .http import HttpEnvelopeTransport
from .local import InMemoryEnvelopeTransport

__all__ = ["EnvelopeTransport", "HttpEnvelopeTransport", "InMemoryEnvelopeTransport", "TransportError"]
