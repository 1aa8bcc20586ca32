"""
Identity provider contract.

The hosted identity provider issues and verifies bearer tokens, stores
credentials and delivers transactional email. Services depend on this
interface only, so tests can substitute an in-memory implementation.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional
from uuid import UUID


class IdentityProviderError(Exception):
    """Any failure reported by the identity provider."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


@dataclass
class IdentitySession:
    user_id: UUID
    access_token: str
    email: str = ""
    refresh_token: Optional[str] = None


@dataclass
class VerifiedToken:
    user_id: Optional[UUID]
    email: str
    claims: dict[str, Any] = field(default_factory=dict)

    @property
    def expires_at(self) -> Optional[int]:
        exp = self.claims.get("exp")
        return int(exp) if exp is not None else None

    @property
    def audience(self) -> Any:
        return self.claims.get("aud")


class IdentityProvider(ABC):
    """Capability set consumed from the hosted auth service."""

    @abstractmethod
    async def sign_in(self, email: str, password: str) -> IdentitySession:
        pass

    @abstractmethod
    async def send_otp(
        self,
        email: str,
        metadata: Optional[dict[str, Any]] = None,
        create_user: bool = True,
    ) -> None:
        pass

    @abstractmethod
    async def verify_otp(self, email: str, code: str) -> IdentitySession:
        pass

    @abstractmethod
    async def verify_token(self, token: str) -> VerifiedToken:
        pass

    @abstractmethod
    async def create_user(
        self,
        email: str,
        password: str,
        metadata: Optional[dict[str, Any]] = None,
    ) -> UUID:
        pass

    @abstractmethod
    async def delete_user(self, user_id: UUID) -> None:
        pass

    @abstractmethod
    async def update_user(
        self,
        user_id: UUID,
        password: Optional[str] = None,
        metadata: Optional[dict[str, Any]] = None,
    ) -> None:
        pass

    @abstractmethod
    async def invite_by_email(
        self,
        email: str,
        redirect_url: str,
        metadata: Optional[dict[str, Any]] = None,
    ) -> None:
        pass

    @abstractmethod
    async def sign_out(self, token: str) -> None:
        pass

    async def close(self) -> None:
        """Release transport resources."""
