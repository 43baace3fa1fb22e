import asyncio

from chatbridge.api import dependencies
from chatbridge.api.dependencies import cancel_on_disconnect


class FakeRequest:
    def __init__(self, disconnect_after=None):
        self.disconnect_after = disconnect_after
        self.checks = 0

    async def is_disconnected(self):
        self.checks += 1
        return self.disconnect_after is not None and self.checks > self.disconnect_after


def test_disconnect_sets_cancel_event(monkeypatch):
    monkeypatch.setattr(dependencies, "DISCONNECT_CHECK_INTERVAL", 0)
    request = FakeRequest(disconnect_after=2)

    async def scenario():
        async with cancel_on_disconnect(request) as cancel_event:
            await asyncio.wait_for(cancel_event.wait(), timeout=1)
        return cancel_event

    assert asyncio.run(scenario()).is_set()
    assert request.checks == 3


def test_watcher_is_finished_when_the_request_completes(monkeypatch):
    monkeypatch.setattr(dependencies, "DISCONNECT_CHECK_INTERVAL", 0)

    async def scenario():
        async with cancel_on_disconnect(FakeRequest()) as cancel_event:
            await asyncio.sleep(0)
        pending = [t for t in asyncio.all_tasks() if t is not asyncio.current_task()]
        return cancel_event, pending

    cancel_event, pending = asyncio.run(scenario())

    assert not cancel_event.is_set()
    assert pending == []
