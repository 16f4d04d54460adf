import itertools
import logging
import random
import threading
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from pong.models import MatchState, Side
from .ai import AIController, DEAD_ZONE, MISTAKE_CHANCE, get_profile
from .match import Match
from .scheduler import RepeatingTask
from . import physics


@dataclass
class LeaveResult:
    match: Match
    side: Side
    destroyed: bool = False
    ai_attached: bool = False


class MatchRegistry:
    """Owns every live match and decides who plays where.

    All mutation of match state goes through ``lock``: registry operations,
    socket input, AI perception and the physics tick each hold it for their
    whole callback.
    """

    def __init__(self, socketio=None, logger=None, rng: Optional[random.Random] = None,
                 default_difficulty: str = 'medium', auto_attach_ai: bool = True,
                 standin_yields: bool = False, timers_enabled: bool = True,
                 ai_dead_zone: float = DEAD_ZONE, ai_mistake_chance: float = MISTAKE_CHANCE,
                 max_ball_speed: float = physics.BALL_MAX_SPEED):
        self.socketio = socketio
        self.logger = logger or logging.getLogger(__name__)
        self.rng = rng or random.Random()
        self.default_difficulty = default_difficulty if get_profile(default_difficulty) else 'medium'
        self.auto_attach_ai = auto_attach_ai
        self.standin_yields = standin_yields
        self.timers_enabled = timers_enabled and socketio is not None
        self.ai_dead_zone = ai_dead_zone
        self.ai_mistake_chance = ai_mistake_chance
        self.max_ball_speed = max_ball_speed
        self.lock = threading.RLock()
        self.matches: Dict[str, Match] = {}
        self._connections: Dict[str, str] = {}
        self._ids = itertools.count(1)

    # ---- lookup ----

    def get(self, match_id: str) -> Optional[Match]:
        return self.matches.get(match_id)

    def match_for(self, sid: str) -> Optional[Match]:
        match_id = self._connections.get(sid)
        return self.matches.get(match_id) if match_id else None

    # ---- matchmaking ----

    def join_pvp(self, sid: str) -> Tuple[Match, Side]:
        with self.lock:
            match = self._find_open_match()
            if match is None and self.standin_yields:
                match = self._find_standin_match()
                if match is not None:
                    self.logger.info(f"[ai-yield] match={match.id} side={match.ai.side.value}")
                    self.detach_ai(match)
            if match is None:
                match = self._create_match()
            side = match.free_side()
            self._seat(match, sid, side)
            if match.refresh_readiness() is MatchState.READY:
                self.logger.info(f"[match-ready] match={match.id} mode=pvp")
            return match, side

    def join_vs_ai(self, sid: str, difficulty: Optional[str] = None) -> Tuple[Match, Side]:
        with self.lock:
            level = difficulty if get_profile(difficulty) else self.default_difficulty
            match = self._create_match(difficulty=level)
            self._seat(match, sid, Side.LEFT)
            self.attach_ai(match, Side.RIGHT)
            match.refresh_readiness()
            self.logger.info(f"[match-ready] match={match.id} mode=ai difficulty={match.difficulty}")
            return match, Side.LEFT

    def leave(self, sid: str) -> Optional[LeaveResult]:
        with self.lock:
            match_id = self._connections.pop(sid, None)
            match = self.matches.get(match_id) if match_id else None
            if match is None:
                return None
            side = match.side_of(sid)
            match.participants.pop(side, None)
            match.paddles[side].vy = 0.0
            result = LeaveResult(match=match, side=side)

            if not match.has_humans:
                self.destroy(match)
                result.destroyed = True
                return result

            if match.ai is None and self.auto_attach_ai:
                self.attach_ai(match, side, standin=True)
                result.ai_attached = True
            match.refresh_readiness()
            self.logger.info(
                f"[match-leave] match={match.id} side={side.value} players={len(match.participants)} "
                f"ai={match.ai is not None} state={match.state.value}"
            )
            return result

    def set_difficulty(self, match_id: str, level) -> bool:
        with self.lock:
            match = self.matches.get(match_id)
            profile = get_profile(level)
            if match is None or match.ai is None or profile is None:
                return False
            match.difficulty = profile.name
            match.ai.set_profile(profile)
            match.ai.cancel_task()
            self._start_ai_task(match.ai)
            self.logger.info(f"[difficulty] match={match.id} level={profile.name} period={profile.refresh_period}s")
            return True

    # ---- AI lifecycle ----

    def attach_ai(self, match: Match, side: Side, standin: bool = False) -> AIController:
        controller = AIController(
            match,
            side,
            get_profile(match.difficulty) or get_profile(self.default_difficulty),
            rng=self.rng,
            dead_zone=self.ai_dead_zone,
            mistake_chance=self.ai_mistake_chance,
            logger=self.logger,
        )
        match.ai = controller
        match.ai_is_standin = standin
        self._start_ai_task(controller)
        self.logger.info(f"[ai-attach] match={match.id} side={side.value} difficulty={match.difficulty} standin={standin}")
        return controller

    def detach_ai(self, match: Match) -> None:
        controller, match.ai = match.ai, None
        match.ai_is_standin = False
        if controller is None:
            return
        controller.stop()
        self.logger.info(f"[ai-detach] match={match.id} side={controller.side.value}")

    def refresh_ai(self, controller: AIController, task: Optional[RepeatingTask] = None) -> None:
        """One perception cycle, run from the controller's timer.

        ``task`` is the timer that fired; a firing from a timer that has since
        been replaced (difficulty change) or cancelled is dropped.
        """
        with self.lock:
            if controller.detached or controller.match.ai is not controller:
                return
            if task is not None and controller.task is not task:
                return
            controller.perceive_and_act()

    def _start_ai_task(self, controller: AIController) -> None:
        task = RepeatingTask(
            self.socketio,
            controller.profile.refresh_period,
            lambda: self.refresh_ai(controller, task),
            name=f"ai:{controller.match.id}",
            logger=self.logger,
        )
        controller.task = task
        if self.timers_enabled:
            task.start()

    # ---- teardown ----

    def destroy(self, match: Match) -> None:
        with self.lock:
            if self.matches.get(match.id) is not match:
                return
            self.detach_ai(match)
            match.state = MatchState.DESTROYED
            for sid in list(match.participants.values()):
                self._connections.pop(sid, None)
            match.participants.clear()
            del self.matches[match.id]
            self.logger.info(f"[match-destroy] match={match.id}")

    # ---- internals ----

    def _create_match(self, difficulty: Optional[str] = None) -> Match:
        match_id = f"room{next(self._ids)}"
        match = Match(match_id, difficulty=difficulty or self.default_difficulty, rng=self.rng,
                      max_ball_speed=self.max_ball_speed)
        self.matches[match_id] = match
        self.logger.info(f"[match-create] match={match_id}")
        return match

    def _find_open_match(self) -> Optional[Match]:
        for match in self.matches.values():
            if match.state is MatchState.WAITING and match.ai is None and match.free_side() is not None:
                return match
        return None

    def _find_standin_match(self) -> Optional[Match]:
        for match in self.matches.values():
            if match.is_ready and match.ai is not None and match.ai_is_standin and len(match.participants) == 1:
                return match
        return None

    def _seat(self, match: Match, sid: str, side: Side) -> None:
        match.participants[side] = sid
        self._connections[sid] = match.id
