# tests/property/test_property_services.py
import pytest

from cleanconnect.cleaning.services import BookingService
from cleanconnect.core.exceptions import AuthorizationError, ValidationError
from cleanconnect.database.enums import UserRole
from cleanconnect.property import schemas
from cleanconnect.property.services import PropertyService


@pytest.mark.asyncio
async def test_create_and_list_properties(db, make_user):
    owner = await make_user(UserRole.USER)
    service = PropertyService(db)

    created = await service.create_property(
        owner.id,
        schemas.PropertyCreate(
            street="1 Main Road",
            city="Durban",
            province="KwaZulu-Natal",
            postal_code="4001",
            number_of_bedrooms=3,
            number_of_bathrooms=2,
        ),
    )

    assert created.country == "South Africa"
    assert [p.id for p in await service.list_for_owner(owner.id)] == [created.id]


@pytest.mark.asyncio
async def test_only_owner_can_delete(db, make_user, make_property):
    owner = await make_user(UserRole.USER)
    stranger = await make_user(UserRole.USER)
    prop = await make_property(owner)

    with pytest.raises(AuthorizationError):
        await PropertyService(db).delete_property(stranger, prop.id)

    await PropertyService(db).delete_property(owner, prop.id)


@pytest.mark.asyncio
async def test_property_with_bookings_cannot_be_deleted(
    db, make_user, make_property, weekly_booking
):
    owner = await make_user(UserRole.USER, balance="100.00")
    prop = await make_property(owner)
    await BookingService(db).create_service(owner, weekly_booking(prop.id))

    with pytest.raises(ValidationError):
        await PropertyService(db).delete_property(owner, prop.id)


@pytest.mark.asyncio
async def test_owner_updates_only_sent_fields(db, make_user, make_property):
    owner = await make_user(UserRole.USER)
    stranger = await make_user(UserRole.USER)
    prop = await make_property(owner)
    service = PropertyService(db)

    with pytest.raises(AuthorizationError):
        await service.update_property(stranger, prop.id, schemas.PropertyUpdate(city="Paarl"))

    updated = await service.update_property(
        owner, prop.id, schemas.PropertyUpdate(city="Stellenbosch", number_of_bedrooms=4)
    )

    assert updated.city == "Stellenbosch"
    assert updated.number_of_bedrooms == 4
    assert updated.street == prop.street
    assert updated.number_of_bathrooms == prop.number_of_bathrooms
