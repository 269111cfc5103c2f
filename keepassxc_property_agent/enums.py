"""Enumerations for keepassxc-property-agent."""

from enum import Enum


class AcquisitionState(str, Enum):
    """Where the engine is while reading one entry URI.

    The normal path is IDLE → STORE_OPENED → CONNECTING → AWAITING_UNLOCK →
    FETCHING → EXTRACTED → CLOSED. CONNECTING and AWAITING_UNLOCK can end in
    TIMED_OUT (this URI and the remaining ones are skipped) or INTERRUPTED
    (the whole run stops). Any other terminal error ends in FAILED.
    """

    IDLE = "idle"
    STORE_OPENED = "store-opened"
    CONNECTING = "connecting"
    AWAITING_UNLOCK = "awaiting-unlock"
    FETCHING = "fetching"
    EXTRACTED = "extracted"
    CLOSED = "closed"
    TIMED_OUT = "timed-out"
    INTERRUPTED = "interrupted"
    FAILED = "failed"

    def __str__(self) -> str:
        return self.value
