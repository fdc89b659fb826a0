import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Iterable

from fastapi.encoders import jsonable_encoder

from backend.auth.permissions import Principal, visible_to

logger = logging.getLogger(__name__)

SNAPSHOT_EVENT = 'appointments'


@dataclass(eq=False)
class Subscription:
    connection: Any
    principal: Principal | None = None


class AppointmentBroadcaster:
    """Fan-out of appointment snapshots to connected observers.

    Delivery is best effort: an observer whose send fails is dropped and the
    failure never reaches the writer that triggered the broadcast. Observers
    only ever get the latest snapshot, not a replay of intermediate states.
    """

    def __init__(self) -> None:
        self._subscriptions: list[Subscription] = []
        self._publish_lock = asyncio.Lock()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    async def subscribe(self, connection, principal: Principal | None = None, snapshot=()) -> Subscription:
        """Register ``connection`` and send it the current ``snapshot``."""
        subscription = Subscription(connection=connection, principal=principal)
        self._subscriptions.append(subscription)
        if not await self._deliver(subscription, snapshot):
            self.unsubscribe(subscription)
        return subscription

    async def subscribe_with(
        self,
        load_snapshot: Callable[[], Awaitable[list]],
        connection,
        principal: Principal | None = None,
    ) -> Subscription:
        """Load the first snapshot and register under the publish lock.

        A status change that commits while the snapshot loads is published
        only after the new observer is registered, so it cannot be missed.
        """
        async with self._publish_lock:
            snapshot = await load_snapshot()
            return await self.subscribe(connection, principal, snapshot)

    def unsubscribe(self, subscription: Subscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)

    async def broadcast_snapshot(self, appointments: Iterable) -> None:
        appointments = list(appointments)
        subscriptions = list(self._subscriptions)
        if not subscriptions:
            return

        results = await asyncio.gather(
            *(self._deliver(subscription, appointments) for subscription in subscriptions)
        )
        for subscription, delivered in zip(subscriptions, results):
            if not delivered:
                self.unsubscribe(subscription)

    async def publish(self, load_snapshot: Callable[[], Awaitable[list]]) -> None:
        """Load the snapshot and broadcast it as one step.

        Serialising load and fan-out keeps successive broadcasts in commit
        order: a later broadcast always reads a snapshot at least as new as
        an earlier one.
        """
        async with self._publish_lock:
            appointments = await load_snapshot()
            await self.broadcast_snapshot(appointments)

    async def _deliver(self, subscription: Subscription, appointments) -> bool:
        if subscription.principal is None:
            visible = list(appointments)
        else:
            visible = [appointment for appointment in appointments if visible_to(subscription.principal, appointment)]

        payload = {'event': SNAPSHOT_EVENT, 'data': jsonable_encoder(visible)}
        try:
            await subscription.connection.send_json(payload)
        except Exception:
            logger.info('Dropping appointment observer after failed delivery', exc_info=True)
            return False
        return True
