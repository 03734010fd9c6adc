"""Tool list change detection tests."""

import asyncio

from .change_detector import NO_TOOLS, ChangeDetector, Notifier
from .probe import ProbeResult

P1 = '[{"name": "a"}]'
P2 = '[{"name": "a"}, {"name": "b"}]'


def ok(payload):
    return ProbeResult(reachable=True, payload=payload, status_code=200)


def feed_all(detector, results):
    async def run():
        for result in results:
            if result is None:
                detector.reset()
            else:
                await detector.feed(result)
    asyncio.run(run())


class TestChangeDetector:

    def test_first_payload_is_baseline(self, detector, recording_session):
        feed_all(detector, [ok(P1)])
        assert detector.last_payload == P1
        assert recording_session.notifications == 0

    def test_same_payload_does_not_notify(self, detector, recording_session):
        feed_all(detector, [ok(P1), ok(P1)])
        assert recording_session.notifications == 0

    def test_changed_payload_notifies_once(self, detector, recording_session):
        feed_all(detector, [ok(P1), ok(P2), ok(P2)])
        assert recording_session.notifications == 1
        assert detector.last_payload == P2

    def test_failure_then_recovery_notifies(self, detector, recording_session):
        feed_all(detector, [ok(P1), None, ok(P1)])
        assert recording_session.notifications == 1

    def test_unreachable_results_are_ignored(self, detector, recording_session):
        feed_all(detector, [ok(P1), ProbeResult(reachable=False, status_code=503), ok(P1)])
        assert recording_session.notifications == 0
        assert detector.last_payload == P1

    def test_reset_sets_empty_baseline(self, detector):
        detector.reset()
        assert detector.last_payload == NO_TOOLS
        assert detector.observe(ok(P1))


class TestNotifier:

    def test_unbound_notifier_does_not_raise(self):
        detector = ChangeDetector(Notifier())
        feed_all(detector, [ok(P1), ok(P2)])
        assert detector.last_payload == P2

    def test_late_bound_session_receives_later_changes(self, recording_session):
        detector = ChangeDetector(Notifier())
        feed_all(detector, [ok(P1), ok(P2)])
        detector.notifier.bind(recording_session)
        feed_all(detector, [ok(P1)])
        assert recording_session.notifications == 1

    def test_send_failure_is_logged_not_raised(self):
        class BrokenSession:
            async def send_tool_list_changed(self):
                raise RuntimeError("stream closed")

        notifier = Notifier()
        notifier.bind(BrokenSession())
        asyncio.run(notifier.tools_changed())
        assert notifier.session is not None
