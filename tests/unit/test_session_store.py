"""
세션 저장소 유닛 테스트
"""
import asyncio
from datetime import timedelta

from scent_concierge.models.session import Turn, utc_now
from scent_concierge.services.session_store import InMemorySessionStore


class TestSessionStore:
    """인메모리 세션 저장소 테스트"""

    def test_create_and_get(self):
        store = InMemorySessionStore(ttl_minutes=60)

        async def scenario():
            session = await store.create_session()
            return session, await store.get_session(session.session_id)

        created, fetched = asyncio.run(scenario())

        assert created.session_id.startswith("sess_")
        assert len(created.session_id) == len("sess_") + 12
        assert fetched is created

    def test_get_or_create_unknown_id(self):
        store = InMemorySessionStore(ttl_minutes=60)

        session = asyncio.run(store.get_or_create_session("sess_missing"))

        assert session.session_id != "sess_missing"
        assert asyncio.run(store.get_active_count()) == 1

    def test_sessions_are_isolated(self):
        store = InMemorySessionStore(ttl_minutes=60)

        async def scenario():
            first = await store.create_session()
            second = await store.create_session()
            first.append(Turn.user_text("hello"))
            return first, second

        first, second = asyncio.run(scenario())

        assert len(first.turns) == 1
        assert second.turns == []

    def test_expired_session_is_dropped(self):
        store = InMemorySessionStore(ttl_minutes=30)

        async def scenario():
            session = await store.create_session()
            session.updated_at = utc_now() - timedelta(minutes=31)
            return await store.get_session(session.session_id)

        assert asyncio.run(scenario()) is None
        assert asyncio.run(store.get_active_count()) == 0

    def test_activity_extends_ttl(self):
        store = InMemorySessionStore(ttl_minutes=30)

        async def scenario():
            session = await store.create_session()
            session.created_at = utc_now() - timedelta(hours=2)
            session.append(Turn.user_text("still here"))
            return await store.get_session(session.session_id)

        assert asyncio.run(scenario()) is not None

    def test_clear_expired(self):
        store = InMemorySessionStore(ttl_minutes=30)

        async def scenario():
            stale = await store.create_session()
            await store.create_session()
            stale.updated_at = utc_now() - timedelta(hours=1)
            removed = await store.clear_expired()
            return removed, await store.get_active_count()

        assert asyncio.run(scenario()) == (1, 1)

    def test_delete_session(self):
        store = InMemorySessionStore(ttl_minutes=60)

        async def scenario():
            session = await store.create_session()
            return (
                await store.delete_session(session.session_id),
                await store.delete_session(session.session_id),
            )

        assert asyncio.run(scenario()) == (True, False)
