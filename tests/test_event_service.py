from datetime import date, time

import pytest

from app.features.events.schemas.event import EventImageInput
from app.features.events.services.event_service import EventService
from app.features.spaces.services.space_service import SpaceService
from app.platform.exceptions import ForbiddenError, NotFoundError
from conftest import create_user


@pytest.fixture
def space_service(db_session):
    return SpaceService(db_session, "https://linetime.app/invite")


@pytest.fixture
def event_service(db_session, space_service):
    return EventService(db_session, space_service)


@pytest.fixture
async def setup(db_session, space_service):
    owner = await create_user(db_session, email="owner@gmail.com", username="owner")
    member = await create_user(db_session, email="member@gmail.com", username="member")
    outsider = await create_user(db_session, email="outsider@gmail.com", username="outsider")
    space = await space_service.create_space(owner.id, "Shared", space_type="group")
    await space_service.join_space(space.invite_code, member.id)
    return owner, member, outsider, space


def images(count):
    return [
        EventImageInput(image_url=f"http://img/{i}.jpg", thumbnail_url=f"http://thumb/{i}.jpg")
        for i in range(count)
    ]


class TestCreateAndGet:
    async def test_create_event_with_ordered_images(self, event_service, setup):
        owner, member, _, space = setup

        event = await event_service.create_event(
            member.id,
            space.id,
            date(2026, 3, 1),
            "Picnic",
            event_time=time(14, 30),
            content="Sunny",
            images=images(3),
        )

        assert event.title == "Picnic"
        assert event.user_id == member.id
        assert [img.sort_order for img in event.images] == [0, 1, 2]
        assert [img.image_url for img in event.images] == [f"http://img/{i}.jpg" for i in range(3)]

        fetched = await event_service.get_event(event.id, owner.id)
        assert fetched.id == event.id
        assert len(fetched.images) == 3

    async def test_outsider_cannot_create_or_read(self, event_service, setup):
        owner, _, outsider, space = setup

        with pytest.raises(ForbiddenError):
            await event_service.create_event(outsider.id, space.id, date(2026, 3, 1), "Nope")

        event = await event_service.create_event(owner.id, space.id, date(2026, 3, 1), "Ours")
        with pytest.raises(ForbiddenError):
            await event_service.get_event(event.id, outsider.id)

    async def test_missing_event(self, event_service, setup):
        owner = setup[0]
        with pytest.raises(NotFoundError):
            await event_service.get_event("missing", owner.id)


class TestListEvents:
    async def test_newest_first_with_pagination(self, event_service, setup):
        owner, _, _, space = setup
        for day in (1, 3, 2):
            await event_service.create_event(owner.id, space.id, date(2026, 5, day), f"Day {day}")

        events = await event_service.list_events(space.id, owner.id)
        assert [e.title for e in events] == ["Day 3", "Day 2", "Day 1"]

        page = await event_service.list_events(space.id, owner.id, limit=1, offset=1)
        assert [e.title for e in page] == ["Day 2"]

    async def test_date_range_is_inclusive(self, event_service, setup):
        owner, _, _, space = setup
        for day in (1, 2, 3, 4):
            await event_service.create_event(owner.id, space.id, date(2026, 5, day), f"Day {day}")

        events = await event_service.list_events(
            space.id, owner.id, start_date=date(2026, 5, 2), end_date=date(2026, 5, 3)
        )
        assert [e.title for e in events] == ["Day 3", "Day 2"]

    async def test_limit_is_capped(self, event_service, setup):
        owner, _, _, space = setup
        await event_service.create_event(owner.id, space.id, date(2026, 5, 1), "Only")

        events = await event_service.list_events(space.id, owner.id, limit=10_000)
        assert len(events) == 1

    async def test_outsider_cannot_list(self, event_service, setup):
        _, _, outsider, space = setup
        with pytest.raises(ForbiddenError):
            await event_service.list_events(space.id, outsider.id)


class TestUpdateAndDelete:
    async def test_creator_updates_partially(self, event_service, setup):
        _, member, _, space = setup
        event = await event_service.create_event(
            member.id, space.id, date(2026, 3, 1), "Draft", content="keep me"
        )

        updated = await event_service.update_event(event.id, member.id, {"title": "Final"})

        assert updated.title == "Final"
        assert updated.content == "keep me"
        assert updated.event_date == date(2026, 3, 1)

    async def test_only_creator_updates(self, event_service, setup):
        owner, member, _, space = setup
        event = await event_service.create_event(member.id, space.id, date(2026, 3, 1), "Mine")

        with pytest.raises(ForbiddenError):
            await event_service.update_event(event.id, owner.id, {"title": "Owner edit"})

    async def test_space_owner_can_delete_members_event(self, event_service, setup):
        owner, member, _, space = setup
        event = await event_service.create_event(member.id, space.id, date(2026, 3, 1), "Mine")

        await event_service.delete_event(event.id, owner.id)

        with pytest.raises(NotFoundError):
            await event_service.get_event(event.id, member.id)
        assert await event_service.list_events(space.id, member.id) == []

    async def test_plain_member_cannot_delete_others_event(self, event_service, setup):
        owner, member, _, space = setup
        event = await event_service.create_event(owner.id, space.id, date(2026, 3, 1), "Owner's")

        with pytest.raises(ForbiddenError):
            await event_service.delete_event(event.id, member.id)

    async def test_delete_image(self, event_service, setup):
        owner, member, _, space = setup
        event = await event_service.create_event(
            member.id, space.id, date(2026, 3, 1), "Photos", images=images(2)
        )
        first_image = event.images[0].id

        await event_service.delete_event_image(first_image, member.id)

        remaining = await event_service.get_event(event.id, member.id)
        assert [img.image_url for img in remaining.images] == ["http://img/1.jpg"]

        with pytest.raises(NotFoundError):
            await event_service.delete_event_image(first_image, member.id)

    async def test_delete_image_permissions(self, event_service, setup, db_session, space_service):
        owner, member, _, space = setup
        third = await create_user(db_session, email="third@gmail.com", username="third")
        await space_service.join_space(space.invite_code, third.id)
        event = await event_service.create_event(
            member.id, space.id, date(2026, 3, 1), "Photos", images=images(2)
        )

        with pytest.raises(ForbiddenError):
            await event_service.delete_event_image(event.images[0].id, third.id)

        await event_service.delete_event_image(event.images[1].id, owner.id)
