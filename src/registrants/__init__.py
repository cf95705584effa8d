"""Registrant directory: people registered by the admin, with their certificates."""

from .models import INDIAN_STATES, REGISTRANTS_TABLES_CQL, Registrant
from .schemas import (
    CertificateView,
    RegistrantCreateForm,
    RegistrantResponse,
    RegistrantUpdateForm,
)


__all__ = [
    "INDIAN_STATES",
    "REGISTRANTS_TABLES_CQL",
    "CertificateView",
    "Registrant",
    "RegistrantCreateForm",
    "RegistrantResponse",
    "RegistrantUpdateForm",
]
