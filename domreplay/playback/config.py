from ..schemas.recording import PlaybackSpeed

# Lower bound on the wait between two replayed events, per speed
DELAY_FLOOR_MS = {
    PlaybackSpeed.REAL_TIME: 200,
    PlaybackSpeed.FAST: 200,
    PlaybackSpeed.INSTANT: 10,
}

TYPING_INTERVAL_MS = 20
SCROLL_SETTLE_MS = 200
PAUSE_POLL_INTERVAL_MS = 100
