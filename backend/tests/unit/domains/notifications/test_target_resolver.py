from __future__ import annotations

import pytest

from push_engine.domains.notifications.repositories import RegistrationRepository
from push_engine.domains.notifications.services import TargetResolver
from push_engine.models import PushChannel
from tests.utils.push_builders import create_user, register_device


@pytest.mark.asyncio
async def test_groups_tokens_by_channel_in_recipient_order(async_session):
    first = await create_user(async_session)
    second = await create_user(async_session)
    silent = await create_user(async_session)
    await register_device(async_session, first, PushChannel.FCM, "f1")
    await register_device(async_session, second, PushChannel.EXPO, "e2")
    await register_device(async_session, second, PushChannel.FCM, "f2")

    resolver = TargetResolver(RegistrationRepository(async_session))
    targets = await resolver.resolve([str(first.id), str(silent.id), str(second.id)])

    assert targets.tokens_by_channel[PushChannel.FCM] == ["f1", "f2"]
    assert targets.tokens_by_channel[PushChannel.EXPO] == ["e2"]
    assert targets.total_tokens == 3
    assert targets.owners_of(PushChannel.FCM, "f2") == [str(second.id)]
    assert targets.owners_of(PushChannel.EXPO, "f2") == []


@pytest.mark.asyncio
async def test_bad_user_ids_are_skipped(async_session):
    user = await create_user(async_session)
    await register_device(async_session, user, PushChannel.FCM, "f1")

    resolver = TargetResolver(RegistrationRepository(async_session))
    targets = await resolver.resolve(["not-a-uuid", str(user.id)])

    assert targets.tokens_by_channel == {PushChannel.FCM: ["f1"]}
    assert targets.unresolved_users == ["not-a-uuid"]


@pytest.mark.asyncio
async def test_empty_recipient_list(async_session):
    targets = await TargetResolver(RegistrationRepository(async_session)).resolve([])

    assert targets.is_empty
    assert targets.tokens_by_channel == {}


@pytest.mark.asyncio
async def test_duplicate_recipients_are_not_deduplicated(async_session):
    user = await create_user(async_session)
    await register_device(async_session, user, PushChannel.EXPO, "e1")

    resolver = TargetResolver(RegistrationRepository(async_session))
    targets = await resolver.resolve([str(user.id), str(user.id)])

    assert targets.tokens_by_channel[PushChannel.EXPO] == ["e1", "e1"]
    assert targets.owners_of(PushChannel.EXPO, "e1") == [str(user.id)]
