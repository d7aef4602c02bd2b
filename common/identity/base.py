from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass
class IdentityHandle:
    identity_id: str
    email: str
    metadata: Dict[str, Any] = field(default_factory=dict)


class IdentityProvider(ABC):
    """
    External login accounts (credentials + confirmation state).

    Implementations raise IdentityProviderError on failure. Deleting an
    identity that no longer exists is not an error.
    """

    @abstractmethod
    def create_identity(self, email: str, password: str, confirmed: bool = True,
                        metadata: Dict[str, Any] = None) -> IdentityHandle:
        ...

    @abstractmethod
    def delete_identity(self, identity_id: str) -> None:
        ...
