"""
backend/cleanconnect/property/services.py

Property Service Layer
Manages the properties requesting users book cleaning services against.
"""

import logging
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from cleanconnect.cleaning.models import CleaningService
from cleanconnect.core.exceptions import (
    AuthorizationError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from cleanconnect.database.enums import UserRole
from cleanconnect.database.models import User
from cleanconnect.property import models, schemas

logger = logging.getLogger(__name__)


class PropertyService:
    """Handles property creation, retrieval, updates and deletion."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get_property_or_404(self, property_id: UUID) -> models.Property:
        prop = await self.db.get(models.Property, property_id)
        if not prop:
            logger.warning(f"[PROPERTY] Property not found: property_id={property_id}")
            raise NotFoundError("Property not found")
        return prop

    async def create_property(
        self, owner_id: UUID, data: schemas.PropertyCreate
    ) -> models.Property:
        logger.info(f"[PROPERTY] Creating property for user {owner_id}")
        prop = models.Property(owner_id=owner_id, **data.model_dump())
        self.db.add(prop)
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"[PROPERTY ERROR] Failed to create property: {e}", exc_info=True)
            raise PersistenceError("Failed to create property.")
        return prop

    async def list_for_owner(self, owner_id: UUID) -> list[models.Property]:
        result = await self.db.execute(
            select(models.Property)
            .where(models.Property.owner_id == owner_id)
            .order_by(models.Property.created_at.desc())
        )
        return list(result.scalars().all())

    async def update_property(
        self, user: User, property_id: UUID, data: schemas.PropertyUpdate
    ) -> models.Property:
        """Owner changes the address or room counts of a property."""
        prop = await self.get_property_or_404(property_id)
        if prop.owner_id != user.id:
            raise AuthorizationError("Only the owner can update this property.")

        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        for field, value in changes.items():
            setattr(prop, field, value)
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"[PROPERTY ERROR] Failed to update property: {e}", exc_info=True)
            raise PersistenceError("Failed to update property.")
        await self.db.refresh(prop)
        logger.info(f"[PROPERTY] Updated property {property_id}: {sorted(changes)}")
        return prop

    async def delete_property(self, user: User, property_id: UUID) -> None:
        """Delete a property owned by the user; refused while bookings reference it."""
        prop = await self.get_property_or_404(property_id)
        if prop.owner_id != user.id and user.role != UserRole.ADMIN:
            raise AuthorizationError("Only the owner can delete this property.")

        bookings = await self.db.scalar(
            select(func.count())
            .select_from(CleaningService)
            .where(CleaningService.property_id == property_id)
        )
        if bookings:
            raise ValidationError("Property has cleaning services and cannot be deleted.")

        await self.db.delete(prop)
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"[PROPERTY ERROR] Failed to delete property: {e}", exc_info=True)
            raise PersistenceError("Failed to delete property.")
        logger.info(f"[PROPERTY] Deleted property {property_id}")
