import pytest

from app.features.spaces.services.space_service import SpaceService
from app.features.users.services.user_service import UserService
from app.platform.exceptions import ForbiddenError, NotFoundError
from conftest import create_user


@pytest.fixture
def space_service(db_session):
    return SpaceService(db_session, "https://linetime.app/invite")


@pytest.fixture
def user_service(db_session, space_service):
    return UserService(db_session, space_service)


class TestDefaultSpace:
    async def test_set_and_clear(self, db_session, user_service, space_service):
        user = await create_user(db_session)
        space = await space_service.create_space(user.id, "Home")

        updated = await user_service.set_default_space(user.id, space.id)
        assert updated.default_space_id == space.id

        cleared = await user_service.clear_default_space(user.id)
        assert cleared.default_space_id is None

    async def test_missing_space(self, db_session, user_service):
        user = await create_user(db_session)
        with pytest.raises(NotFoundError):
            await user_service.set_default_space(user.id, "missing")

    async def test_must_be_member(self, db_session, user_service, space_service):
        owner = await create_user(db_session, email="owner@gmail.com", username="owner")
        stranger = await create_user(db_session, email="stranger@gmail.com", username="stranger")
        space = await space_service.create_space(owner.id, "Private")

        with pytest.raises(ForbiddenError):
            await user_service.set_default_space(stranger.id, space.id)

    async def test_clear_for_space_affects_every_user(self, db_session, user_service, space_service):
        owner = await create_user(db_session, email="owner@gmail.com", username="owner")
        guest = await create_user(db_session, email="guest@gmail.com", username="guest")
        shared = await space_service.create_space(owner.id, "Shared")
        other = await space_service.create_space(guest.id, "Other")
        await space_service.join_space(shared.invite_code, guest.id)

        await user_service.set_default_space(owner.id, shared.id)
        await user_service.set_default_space(guest.id, shared.id)
        await user_service.clear_default_space_for_space(other.id)
        await user_service.clear_default_space_for_space(shared.id)

        for user in (owner, guest):
            await db_session.refresh(user)
            assert user.default_space_id is None
