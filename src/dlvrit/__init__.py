"""DLVRIT backend: paid upload links via Stripe, MASV and email."""

from dlvrit.client import CheckoutClient
from dlvrit.payments.pricing import quote
from dlvrit.transfer.provisioner import StaticPortalProvisioner, UploadDestination

__all__ = [
    "CheckoutClient",
    "quote",
    "StaticPortalProvisioner",
    "UploadDestination",
]
__version__ = "0.1.0"
