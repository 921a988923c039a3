"""Client service - Business logic for client operations"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ...errors import ClientNotFound, FeatureNotAvailable
from ...models import Client, User
from ...plan_limits import AccessPolicy, can_add_client
from .repository import ClientRepository
from .schemas import ClientCreate, ClientUpdate

logger = logging.getLogger(__name__)


class ClientService:
    """Service layer for client business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ClientRepository()

    def get_clients(self, user: User, search: Optional[str] = None) -> list[Client]:
        """Get all clients for a user"""
        return self.repo.get_clients(self.db, user.id, search)

    def get_client(self, client_id: int, user: User) -> Client:
        """Get a specific client"""
        client = self.repo.get_client_by_id(self.db, client_id, user.id)
        if not client:
            raise ClientNotFound(client_id)
        return client

    def create_client(self, data: ClientCreate, user: User, policy: AccessPolicy) -> Client:
        """Create a new client within the plan's client limit"""
        logger.info(f"📥 Creating client for user_id: {user.id}")

        can_add, error_message = can_add_client(policy, self.db, user.id)
        if not can_add:
            logger.warning(f"⚠️ User {user.id} reached client limit: {error_message}")
            raise FeatureNotAvailable(error_message)

        return self.repo.create_client(
            self.db,
            user.id,
            name=data.name,
            email=data.email,
            phone=data.phone,
            address=data.address,
            notes=data.notes,
        )

    def update_client(self, client_id: int, data: ClientUpdate, user: User) -> Client:
        """Update a client"""
        client = self.get_client(client_id, user)
        return self.repo.update_client(self.db, client, **data.model_dump(exclude_unset=True))
