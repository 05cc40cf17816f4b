from banner_service.client.impression_tracker import (
    FileSessionStore,
    ImpressionTracker,
    MemorySessionStore,
    TrackedBanner,
    TrackerState,
    banners_from_markup,
)


class FakeTimer:
    def __init__(self, due, callback):
        self.due = due
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class FakeScheduler:
    """Manual clock: ``advance`` runs every timer that came due."""

    def __init__(self):
        self.now = 0.0
        self.timers = []

    def call_later(self, delay, callback):
        timer = FakeTimer(self.now + delay, callback)
        self.timers.append(timer)
        return timer

    def advance(self, seconds):
        self.now += seconds
        for timer in list(self.timers):
            if not timer.cancelled and timer.due <= self.now:
                self.timers.remove(timer)
                timer.callback()


BANNER = TrackedBanner(banner_id=5, placement_id=2, token="t" * 64)


def make_tracker(session=None, send=None):
    sent = []
    scheduler = FakeScheduler()
    tracker = ImpressionTracker(send or sent.append, scheduler=scheduler, session=session)
    tracker.observe(BANNER)
    return tracker, scheduler, sent


def test_visible_long_enough_sends_once():
    tracker, scheduler, sent = make_tracker()
    tracker.on_visibility([(BANNER, 0.6)])
    assert tracker.state(BANNER) == TrackerState.PENDING
    scheduler.advance(1.2)
    assert sent == [{"banner_id": 5, "placement_id": 2, "token": "t" * 64}]
    assert tracker.state(BANNER) == TrackerState.FIRED


def test_hidden_before_dwell_sends_nothing():
    tracker, scheduler, sent = make_tracker()
    tracker.on_visibility([(BANNER, 0.6)])
    scheduler.advance(0.5)
    tracker.on_visibility([(BANNER, 0.3)])
    assert tracker.state(BANNER) == TrackerState.IDLE
    scheduler.advance(2.0)
    assert sent == []


def test_below_threshold_never_starts():
    tracker, scheduler, sent = make_tracker()
    tracker.on_visibility([(BANNER, 0.49)])
    scheduler.advance(5)
    assert sent == []


def test_reentering_view_after_fire_does_not_resend():
    tracker, scheduler, sent = make_tracker()
    tracker.on_visibility([(BANNER, 1.0)])
    scheduler.advance(1.0)
    tracker.on_visibility([(BANNER, 0.0)])
    tracker.on_visibility([(BANNER, 1.0)])
    scheduler.advance(3.0)
    assert len(sent) == 1


def test_session_remembers_tracked_banners():
    session = MemorySessionStore()
    tracker, scheduler, sent = make_tracker(session=session)
    tracker.on_visibility([(BANNER, 0.8)])
    scheduler.advance(1.0)
    assert session.load() == {"5:2"}

    again, scheduler2, sent2 = make_tracker(session=session)
    assert again.state(BANNER) == TrackerState.FIRED
    again.on_visibility([(BANNER, 0.8)])
    scheduler2.advance(2.0)
    assert sent2 == []


def test_file_session_store_roundtrip(tmp_path):
    path = tmp_path / "tracked.json"
    store = FileSessionStore(path)
    assert store.load() == set()
    store.save({"1:2", "3:4"})
    assert FileSessionStore(path).load() == {"1:2", "3:4"}
    path.write_text("not json")
    assert store.load() == set()


def test_send_failure_is_swallowed():
    def boom(payload):
        raise RuntimeError("network down")

    tracker, scheduler, _ = make_tracker(send=boom)
    tracker.on_visibility([(BANNER, 0.9)])
    scheduler.advance(1.5)
    assert tracker.state(BANNER) == TrackerState.FIRED


def test_unobserved_or_tokenless_banners_are_ignored():
    tracker, scheduler, sent = make_tracker()
    stranger = TrackedBanner(9, 9, "x")
    tokenless = TrackedBanner(8, 8, "")
    tracker.observe(tokenless)
    tracker.on_visibility([(stranger, 1.0), (tokenless, 1.0)])
    scheduler.advance(2.0)
    assert sent == []


def test_banners_from_markup():
    html = (
        '<p>intro</p>'
        '<div class="banner-slot" data-placement="top" data-banner-id="4" data-placement-id="1" data-track-token="abc"><img src="x"></div>'
        '<div class="banner-slot" data-banner-id="5" data-placement-id="1"></div>'
        '<div class="other" data-banner-id="6" data-placement-id="1" data-track-token="def"></div>'
    )
    assert banners_from_markup(html) == [TrackedBanner(4, 1, "abc")]
