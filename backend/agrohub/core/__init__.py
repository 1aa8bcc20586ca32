"""
Core utilities for AgroHub.
"""
from agrohub.core.security import (
    decode_token,
    generate_invitation_token,
    hash_token,
)
from agrohub.core.saga import Saga, SagaStep

__all__ = [
    "decode_token",
    "generate_invitation_token",
    "hash_token",
    "Saga",
    "SagaStep",
]
