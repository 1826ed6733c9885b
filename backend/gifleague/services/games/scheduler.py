from typing import Optional, Tuple

from gifleague import socketio


def sweep_once(hub, now: Optional[float] = None) -> Tuple[list, list]:
    """Evict stale sessions and reap idle rooms.

    Session eviction only forgets the identity mapping; seats and scores of
    evicted players stay in their rooms. Rooms go away only after
    ``ROOM_IDLE_TTL_SEC`` without any action (0 keeps them forever).
    """
    now = hub.clock() if now is None else now
    evicted = hub.registry.evict_expired(now)
    removed = []
    if hub.room_idle_ttl_sec > 0:
        for room_id in hub.store.idle_rooms(now - hub.room_idle_ttl_sec):
            if hub.store.remove(room_id):
                removed.append(room_id)
    if evicted or removed:
        hub.logger.info(
            f"[sweep] evicted_sessions={len(evicted)} removed_rooms={len(removed)} "
            f"sessions={len(hub.registry)} rooms={len(hub.store)}"
        )
    return evicted, removed


def start_sweeper(app) -> bool:
    """Start the background sweep loop for ``app``.

    - No-ops in TESTING mode unless ENABLE_SWEEPER_IN_TESTS is set
    - Ensures a single loop per app
    - Runs one pass every SWEEP_INTERVAL_SEC
    """
    if app.config.get('TESTING') and not app.config.get('ENABLE_SWEEPER_IN_TESTS'):
        return False
    if app.extensions.get('gifleague.sweeper'):
        return False
    app.extensions['gifleague.sweeper'] = True

    hub = app.extensions['gifleague']
    interval = int(app.config.get('SWEEP_INTERVAL_SEC', 60))
    app.logger.info(f"[sweeper-start] interval={interval}s session_ttl={hub.session_ttl_sec}s room_ttl={hub.room_idle_ttl_sec}s")

    def _worker():
        while True:
            socketio.sleep(interval)
            try:
                sweep_once(hub)
            except Exception:
                # Keep the loop alive; a failed pass is retried next tick
                app.logger.exception("[sweep-error] sweep pass failed")

    socketio.start_background_task(_worker)
    return True
