from __future__ import annotations

import logging
import threading
from dataclasses import replace
from typing import Any, Dict, Optional

from .config import GameConfig
from .core.events import EventBus, EventType, Listener
from .core.rng import RNG
from .core.scheduler import Scheduler
from .difficulty import Tier
from .errors import UnknownCharacterError
from .items import Item, ItemKind
from .persistence import HighScoreStore, MemoryHighScoreStore
from .staircase import Stair, Staircase, StaircaseGenerator
from .state import CHARACTERS, Direction, Phase, RunSnapshot, RunState

logger = logging.getLogger(__name__)


class RunStateMachine:
    """Owns one play session and turns player/timer intents into transitions.

    Phases run IDLE -> PLAYING -> GAME_OVER | GAME_WON; ``start()`` re-enters
    PLAYING from anywhere with a freshly generated staircase.

    Intents that arrive outside PLAYING or while a jump is settling are ignored.
    Deferred work (jump settlement, crumbling stairs) lives on a host-driven
    :class:`Scheduler` advanced by :meth:`tick`, and every pending task is
    cancelled whenever the run leaves PLAYING or restarts.

    After each mutating operation a :class:`RunSnapshot` is published on
    ``events`` as ``EventType.STATE_CHANGED``. All public operations are
    serialized by one re-entrant lock.
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        store: Optional[HighScoreStore] = None,
        rng: Optional[RNG] = None,
        events: Optional[EventBus] = None,
    ) -> None:
        self.config = config or GameConfig()
        self.policy = self.config.policy()
        self.generator = StaircaseGenerator(
            policy=self.policy,
            item_table=self.config.item_table(),
            shape=self.config.staircase,
            disappearing=self.config.disappearing,
        )
        self.rng = rng or RNG()
        self.store: HighScoreStore = store or MemoryHighScoreStore()
        self.events = events or EventBus()
        self.scheduler = Scheduler()
        self._lock = threading.RLock()

        shape = self.config.staircase
        self.staircase = Staircase(
            [Stair(id=0, lane=shape.lane_count // 2)],
            total_stairs=shape.total_stairs,
            lane_count=shape.lane_count,
        )
        self.state = RunState(time_remaining=self.policy.time_limit_ms(Tier.EASY))
        self.high_score = self._load_high_score()
        logger.info("RunStateMachine ready (high score %d)", self.high_score)

    # ---------- Read-only views ----------
    @property
    def phase(self) -> Phase:
        return self.state.phase

    @property
    def tier(self) -> Tier:
        return self.policy.tier(self.state.score)

    @property
    def time_limit(self) -> int:
        return self.policy.time_limit_ms(self.tier)

    def expected_direction(self) -> Optional[Direction]:
        """Direction that climbs from the current stair, or None past the end."""
        cur = self.staircase.get(self.state.current_floor)
        nxt = self.staircase.get(self.state.current_floor + 1)
        if cur is None or nxt is None:
            return None
        return Direction.LEFT if nxt.lane < cur.lane else Direction.RIGHT

    def snapshot(self) -> RunSnapshot:
        st = self.state
        tier = self.tier
        backdrop_tier = tier if st.phase is Phase.PLAYING else Tier.EASY
        timing = self.config.timing
        visible = tuple(
            replace(s) for s in self.staircase.window(st.current_floor, timing.window_before, timing.window_after)
        )
        return RunSnapshot(
            phase=st.phase,
            current_floor=st.current_floor,
            score=st.score,
            high_score=self.high_score,
            lives=st.lives,
            time_remaining=st.time_remaining,
            time_limit=self.time_limit,
            facing_direction=st.facing_direction,
            is_jumping=st.is_jumping,
            tier=tier,
            difficulty_label=self.policy.label(tier),
            backdrop=self.policy.backdrop(backdrop_tier),
            character=st.character,
            total_stairs=self.staircase.total_stairs,
            visible_stairs=visible,
            crumbling_stairs=tuple(sorted(k for k, h in st.disappearing_stairs.items() if h.active)),
        )

    def subscribe(self, listener: Listener) -> None:
        """Register a render sink for state snapshots."""
        self.events.on(EventType.STATE_CHANGED, listener)

    # ---------- Lifecycle ----------
    def start(self) -> None:
        """Begin a new run from any phase."""
        with self._lock:
            self._cancel_pending()
            self.staircase = self.generator.generate(self.rng)
            lives_cfg = self.config.lives
            self.state = RunState(
                current_floor=0,
                score=0,
                lives=lives_cfg.initial if lives_cfg.enabled else None,
                next_life_bonus_threshold=lives_cfg.bonus_interval,
                time_remaining=self.policy.time_limit_ms(Tier.EASY),
                facing_direction=Direction.RIGHT,
                is_jumping=False,
                phase=Phase.PLAYING,
                character=self.state.character,
            )
            logger.info("Run started (lives=%s, stairs=%d)", self.state.lives, len(self.staircase))
            self._emit(EventType.RUN_STARTED, {"lives": self.state.lives})
            self._publish()

    def go_to_select(self) -> None:
        """Return to the select screen from IDLE or a finished run."""
        with self._lock:
            st = self.state
            if st.phase is Phase.PLAYING:
                return
            self._cancel_pending()
            st.phase = Phase.IDLE
            st.current_floor = 0
            st.score = 0
            st.is_jumping = False
            self._publish()

    def select_character(self, name: str) -> bool:
        """Pick the cosmetic character; only honoured on the select screen."""
        key = str(name).upper()
        if key not in CHARACTERS:
            raise UnknownCharacterError(f"Unknown character {name!r}; choose from {', '.join(CHARACTERS)}")
        with self._lock:
            if self.state.phase is not Phase.IDLE:
                return False
            self.state.character = key
            self._publish()
            return True

    def win(self) -> None:
        with self._lock:
            self._finish(Phase.GAME_WON, "summit")

    def game_over(self, reason: str = "abandoned") -> None:
        with self._lock:
            self._finish(Phase.GAME_OVER, reason)

    # ---------- Clock ----------
    def tick(self, elapsed_ms: int) -> None:
        """Advance the run clock.

        The window is walked in segments between scheduled tasks, so a task
        that resets or resumes the countdown is only charged the time after
        it. A task due at the same moment as a timeout fires first.
        """
        with self._lock:
            if self.state.phase is not Phase.PLAYING:
                return
            if elapsed_ms < 0:
                raise ValueError(f"elapsed_ms must be >= 0, got {elapsed_ms}")
            sched = self.scheduler
            target = sched.now_ms + int(elapsed_ms)
            while self.state.phase is Phase.PLAYING:
                st = self.state
                due = sched.next_due()
                stop = due if due is not None and due <= target else target
                span = stop - sched.now_ms
                if not st.is_jumping and st.time_remaining < span:
                    sched.advance(st.time_remaining)
                    self._timeout()
                    continue
                if not st.is_jumping:
                    st.time_remaining -= span
                sched.advance(span)
                if st.phase is Phase.PLAYING and not st.is_jumping and st.time_remaining <= 0:
                    self._timeout()
                    continue
                if stop >= target:
                    break
            if self.state.phase is Phase.PLAYING:
                self._publish()

    def _timeout(self) -> None:
        st = self.state
        st.time_remaining = 0
        logger.info("Time ran out on floor %d", st.current_floor)
        self._fall("timeout")

    # ---------- Movement ----------
    def toggle_direction_and_move(self) -> bool:
        with self._lock:
            st = self.state
            if st.phase is not Phase.PLAYING or st.is_jumping:
                return False
            st.facing_direction = st.facing_direction.flipped()
            self._publish()
            return self.move()

    def move(self) -> bool:
        """Step toward the facing direction.

        Returns True if the player climbed one floor.
        """
        with self._lock:
            st = self.state
            if st.phase is not Phase.PLAYING or st.is_jumping:
                return False
            cur = self.staircase.get(st.current_floor)
            nxt = self.staircase.get(st.current_floor + 1)
            if cur is None or nxt is None:
                logger.warning("No stair above floor %d; ending run", st.current_floor)
                self._finish(Phase.GAME_OVER, "out_of_stairs")
                return False
            if nxt.lane - cur.lane != st.facing_direction.step:
                logger.debug("Misstep on floor %d facing %s", st.current_floor, st.facing_direction.value)
                self._fall("misstep")
                return False

            st.current_floor += 1
            self._add_score(1)
            st.time_remaining = self.time_limit
            if st.current_floor >= self.staircase.total_stairs:
                self._finish(Phase.GAME_WON, "summit")
                return True
            self._publish()
            self._collect_item()
            self._arm_disappearing_stair()
            return True

    # ---------- Items ----------
    def collect_item(self) -> Optional[Item]:
        """Apply the item on the current stair, if any; the stair is emptied first."""
        with self._lock:
            if self.state.phase is not Phase.PLAYING or self.state.is_jumping:
                return None
            return self._collect_item()

    def jump(self, floors: int) -> None:
        with self._lock:
            if self.state.phase is not Phase.PLAYING or self.state.is_jumping:
                return
            self._jump(floors)

    def arm_disappearing_stair(self) -> bool:
        """Start the crumble countdown for the current stair when it is in the crumbling range."""
        with self._lock:
            return self._arm_disappearing_stair()

    # ---------- Internals ----------
    def _collect_item(self) -> Optional[Item]:
        st = self.state
        stair = self.staircase.get(st.current_floor)
        if stair is None:
            return None
        item = stair.take_item()
        if item is None:
            return None
        logger.debug("Collected %s on floor %d", item.identity, st.current_floor)
        self._emit(
            EventType.ITEM_COLLECTED,
            {"item": item, "floor": st.current_floor, "text": item.feedback_text()},
        )
        if item.kind is ItemKind.SCORE:
            self._add_score(item.magnitude)
            self._publish()
        else:
            self._jump(item.magnitude)
        return item

    def _jump(self, floors: int) -> None:
        if floors <= 0:
            raise ValueError(f"Jump distance must be positive, got {floors}")
        st = self.state
        st.is_jumping = True
        st.time_remaining = self.policy.time_limit_ms(Tier.EASY)
        origin = st.current_floor
        target = min(origin + floors, self.staircase.total_stairs)
        st.current_floor = target
        self._add_score(target - origin)
        logger.info("Jump %d -> %d", origin, target)
        self._emit(EventType.JUMP_STARTED, {"from": origin, "to": target})
        self.scheduler.call_later(
            self.config.timing.jump_settle_ms, self._settle_jump, label=f"jump settle {target}"
        )
        self._publish()

    def _settle_jump(self) -> None:
        st = self.state
        st.is_jumping = False
        if st.current_floor >= self.staircase.total_stairs:
            self._finish(Phase.GAME_WON, "summit")
            return
        self._emit(EventType.JUMP_SETTLED, {"floor": st.current_floor})
        self._publish()
        self._collect_item()
        self._arm_disappearing_stair()

    def _arm_disappearing_stair(self) -> bool:
        st = self.state
        if st.phase is not Phase.PLAYING or st.is_jumping:
            return False
        stair_id = st.current_floor
        if not self.config.disappearing.contains(stair_id):
            return False
        existing = st.disappearing_stairs.get(stair_id)
        if existing is not None and existing.active:
            return False
        st.disappearing_stairs[stair_id] = self.scheduler.call_later(
            self.config.disappearing.countdown_ms,
            lambda: self._crumble(stair_id),
            label=f"crumble {stair_id}",
        )
        logger.debug("Armed crumbling stair %d", stair_id)
        return True

    def _crumble(self, stair_id: int) -> None:
        st = self.state
        st.disappearing_stairs.pop(stair_id, None)
        if st.phase is Phase.PLAYING and not st.is_jumping and st.current_floor == stair_id:
            logger.info("Stair %d crumbled under the player", stair_id)
            self._emit(EventType.STAIR_CRUMBLED, {"stair_id": stair_id})
            self._fall("crumble")

    def _add_score(self, amount: int) -> None:
        st = self.state
        st.score += amount
        if st.lives is None:
            return
        gained = 0
        while st.score >= st.next_life_bonus_threshold:
            st.lives += 1
            st.next_life_bonus_threshold += self.config.lives.bonus_interval
            gained += 1
        if gained:
            logger.info("Bonus life x%d at score %d (lives=%d)", gained, st.score, st.lives)
            self._emit(EventType.LIFE_GAINED, {"gained": gained, "lives": st.lives})

    def _fall(self, reason: str) -> None:
        """Shared failure path: lose one life, or end the run."""
        st = self.state
        if st.lives is None:
            self._finish(Phase.GAME_OVER, reason)
            return
        st.lives = max(0, st.lives - 1)
        logger.info("Life lost (%s) on floor %d; %d left", reason, st.current_floor, st.lives)
        self._emit(EventType.LIFE_LOST, {"reason": reason, "lives": st.lives, "floor": st.current_floor})
        if st.lives == 0:
            self._finish(Phase.GAME_OVER, reason)
            return
        st.time_remaining = self.time_limit
        self._publish()

    def _finish(self, phase: Phase, reason: str) -> None:
        st = self.state
        if st.phase is not Phase.PLAYING:
            return
        self._cancel_pending()
        st.is_jumping = False
        st.phase = phase
        if phase is Phase.GAME_WON:
            self._persist_high_score(max(self.high_score, st.score))
        elif st.score > self.high_score:
            self._persist_high_score(st.score)
        logger.info("Run ended: %s (%s) floor=%d score=%d", phase.value, reason, st.current_floor, st.score)
        event = EventType.GAME_WON if phase is Phase.GAME_WON else EventType.GAME_OVER
        self._emit(event, {"reason": reason, "snapshot": self.snapshot()})
        self._publish()

    def _cancel_pending(self) -> None:
        self.scheduler.cancel_all()
        self.state.disappearing_stairs.clear()

    def _load_high_score(self) -> int:
        try:
            return max(0, int(self.store.load_high_score()))
        except (OSError, TypeError, ValueError) as e:
            logger.error("Failed to load high score; defaulting to 0: %s", e)
            return 0

    def _persist_high_score(self, value: int) -> None:
        self.high_score = value
        try:
            self.store.save_high_score(value)
        except OSError:
            logger.exception("Failed to save high score %d", value)

    def _emit(self, event_name: str, payload: Dict[str, Any]) -> None:
        self.events.emit(event_name, payload)

    def _publish(self) -> None:
        if self.events.has_listeners(EventType.STATE_CHANGED):
            self.events.emit(EventType.STATE_CHANGED, {"snapshot": self.snapshot()})
