from forexnepal.domain.enums.access import AccessLevel, DenialReason
from forexnepal.domain.enums.rates import Provenance, Sampling

__all__ = [
    "AccessLevel",
    "DenialReason",
    "Provenance",
    "Sampling",
]
