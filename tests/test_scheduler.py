from datetime import date, datetime, timedelta, timezone

import pytest

from social_scheduler.timestamps import local_day_bounds, normalize_timestamp


@pytest.mark.asyncio
async def test_client_portal_by_code(scheduler, client_with_calendar, image):
    client_id, calendar_id = client_with_calendar
    later = await scheduler.posts.create_post(client_id, calendar_id, "later", "2030-02-01T10:00:00+00:00", image)
    sooner = await scheduler.posts.create_post(client_id, calendar_id, "sooner", "2030-01-01T10:00:00+00:00", image)

    portal = await scheduler.client_portal(" cli1234 ")

    assert portal.client.id == client_id
    assert [c.name for c in portal.client.calendars] == ["Instagram"]
    assert [p.id for p in portal.posts] == [sooner, later]


@pytest.mark.asyncio
@pytest.mark.parametrize("code", ["CLI9999", "hello", ""])
async def test_client_portal_unknown_code(scheduler, client_with_calendar, code):
    assert await scheduler.client_portal(code) is None


@pytest.mark.asyncio
async def test_shared_collection_keeps_kinds_apart(firestore_db, blobs, fake_client, image):
    from social_scheduler import Scheduler, init_scheduler

    init_scheduler(firestore_db, shared_collection="sites")
    try:
        scheduler = Scheduler(firestore_db, blobs)
        client_id = await scheduler.clients.create_client("Acme", code="CLI1000")
        calendar_id = await scheduler.calendars.create_calendar(client_id, "Instagram", "#E1306C")
        await scheduler.posts.create_post(client_id, calendar_id, "x", "2030-01-01T10:00:00+00:00", image)

        assert set(fake_client.data) == {"sites"}
        assert len(await scheduler.clients.get_all_clients()) == 1
        assert len(await scheduler.calendars.get_client_calendars(client_id)) == 1
        assert await scheduler.posts.get_post_by_id(calendar_id) is None
    finally:
        init_scheduler(firestore_db)


def test_normalize_timestamp_variants():
    aware = datetime(2030, 1, 1, 12, tzinfo=timezone.utc)

    assert normalize_timestamp(aware) == aware
    assert normalize_timestamp("2030-01-01T12:00:00+00:00") == aware
    assert normalize_timestamp(int(aware.timestamp() * 1000)) == aware
    assert normalize_timestamp(datetime(2030, 1, 1, 12)).tzinfo is not None
    assert normalize_timestamp(date(2030, 1, 1)).hour == 0
    with pytest.raises(TypeError):
        normalize_timestamp(None)


def test_normalize_protobuf_timestamp():
    from google.protobuf.timestamp_pb2 import Timestamp

    stamp = Timestamp()
    stamp.FromDatetime(datetime(2030, 1, 1, 12))

    assert normalize_timestamp(stamp) == datetime(2030, 1, 1, 12, tzinfo=timezone.utc)


def test_local_day_bounds_in_fixed_offset():
    tz = timezone(timedelta(hours=-3))

    start, end = local_day_bounds(datetime(2030, 1, 2, 1, 30, tzinfo=timezone.utc), tz)

    # 01:30 UTC on the 2nd is still the 1st at UTC-3
    assert start == datetime(2030, 1, 1, tzinfo=tz)
    assert end == datetime(2030, 1, 2, tzinfo=tz)


@pytest.mark.asyncio
async def test_shared_collection_updates_refuse_other_kinds(firestore_db, blobs, fake_client, image):
    from social_scheduler import NotFoundError, Scheduler, init_scheduler

    init_scheduler(firestore_db, shared_collection="sites")
    try:
        scheduler = Scheduler(firestore_db, blobs)
        client_id = await scheduler.clients.create_client("Acme", code="CLI1000")
        calendar_id = await scheduler.calendars.create_calendar(client_id, "Instagram", "#E1306C")
        post_id = await scheduler.posts.create_post(client_id, calendar_id, "x", "2030-01-01T10:00:00+00:00", image)

        with pytest.raises(NotFoundError):
            await scheduler.calendars.update_calendar(post_id, name="Renamed")
        with pytest.raises(NotFoundError):
            await scheduler.clients.update_client(post_id, {"name": "Renamed"})
        with pytest.raises(NotFoundError):
            await scheduler.posts.update_post(calendar_id, {"caption": "Renamed"})

        post_doc = fake_client.docs("sites")[post_id]
        assert "name" not in post_doc
        assert post_doc["type"] == "post"
        assert fake_client.docs("sites")[calendar_id]["name"] == "Instagram"
    finally:
        init_scheduler(firestore_db)
