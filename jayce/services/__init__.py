"""Chain access: transports and signers"""

from .rest_transport import RestTransport
from .signer import Ed25519Signer, Signer
from .transport import Transport

__all__ = ["RestTransport", "Ed25519Signer", "Signer", "Transport"]
