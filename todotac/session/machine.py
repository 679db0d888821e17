"""
Game Session - The state machine that drives one game.

PHASES:
    NOT_STARTED -> HUMAN_TURN <-> HUMAN_TASK_PENDING
                   HUMAN_TURN / HUMAN_TASK_PENDING -> OPPONENT_TURN -> HUMAN_TURN
                   any in-progress phase -> FINISHED
    reset() returns to NOT_STARTED from anywhere.

RULES:
- The session object is the only owner of board, tasks and turn state.
  Callers change it through transitions only and read it via snapshot().
- The two oracle calls are the only suspension points. While one is
  outstanding `busy` is set and every other mutating transition is
  rejected (reset() excepted).
- Every oracle call remembers the epoch it was issued in. reset() and
  start() move to a new epoch, so a late answer from an older game is
  dropped instead of being applied to the new one.
- Rejected transitions are not errors: they return False and log at DEBUG.
- Oracle failures never escape: the request is aborted, busy is cleared,
  last_error is set and the user may retry.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable
import asyncio
import logging
import time
import uuid

from .. import config
from ..engine_core.state import (
    DEFAULT_DIFFICULTY,
    DEFAULT_THEME,
    HUMAN_MARK,
    OPPONENT_MARK,
    Board,
    Difficulty,
    Mark,
    Outcome,
    Task,
    empty_board,
    empty_cells,
    is_valid_index,
    next_session_token,
    parse_difficulty,
    validate_theme,
)
from ..engine_core.win_detector import evaluate, winning_line
from ..oracles.base import MoveOracle, TaskOracle
from ..oracles.decoding import decode_move

logger = logging.getLogger(__name__)


class SessionPhase(Enum):
    """Phase of a game session."""
    NOT_STARTED = "not_started"
    HUMAN_TURN = "human_turn"
    HUMAN_TASK_PENDING = "human_task_pending"  # Task shown, waiting for "done"
    OPPONENT_TURN = "opponent_turn"
    FINISHED = "finished"

    @property
    def in_progress(self) -> bool:
        return self in _IN_PROGRESS


_IN_PROGRESS = {
    SessionPhase.HUMAN_TURN,
    SessionPhase.HUMAN_TASK_PENDING,
    SessionPhase.OPPONENT_TURN,
}


@dataclass(frozen=True)
class SessionSnapshot:
    """Read-only view of a session for presentation."""
    session_id: str
    epoch: int
    phase: SessionPhase
    board: tuple[Mark | None, ...]
    active_player: Mark | None
    outcome: Outcome | None
    tasks: dict[int, Task] = field(default_factory=dict)
    busy: bool = False
    started: bool = False
    theme: str = DEFAULT_THEME
    difficulty: Difficulty = DEFAULT_DIFFICULTY
    pending_index: int | None = None
    opponent_reasoning: str = ""
    last_opponent_move: int | None = None
    last_error: str | None = None
    winning_line: tuple[int, int, int] | None = None

    @property
    def pending_task(self) -> Task | None:
        if self.pending_index is None:
            return None
        return self.tasks.get(self.pending_index)


Listener = Callable[[SessionSnapshot], Any]
WinDetector = Callable[[Board], Outcome | None]


def _running_loop() -> asyncio.AbstractEventLoop | None:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


class GameSession:
    """
    One Todo Tic-Tac-Toe game.

    Usage:
        session = GameSession(task_oracle, move_oracle)
        session.configure(theme="Zen Master", difficulty=Difficulty.EASY)
        session.start()

        if await session.request_task(4):
            show(session.snapshot().pending_task)
            session.complete_task(4)      # opponent turn is scheduled
            await session.wait_idle()
    """

    def __init__(
        self,
        task_oracle: TaskOracle,
        move_oracle: MoveOracle,
        session_id: str | None = None,
        move_delay: float | None = None,
        auto_opponent: bool = True,
        win_detector: WinDetector = evaluate,
    ):
        self.session_id = session_id or str(uuid.uuid4())
        self.task_oracle = task_oracle
        self.move_oracle = move_oracle
        self.move_delay = config.TODOTAC_MOVE_DELAY if move_delay is None else move_delay
        self.auto_opponent = auto_opponent
        self.created_at = time.time()
        self.updated_at = self.created_at

        self._win_detector = win_detector
        self._listeners: list[Listener] = []
        self._opponent_job: asyncio.Task | None = None

        self._epoch = next_session_token()
        self._theme = DEFAULT_THEME
        self._difficulty = DEFAULT_DIFFICULTY
        self._clear_game()
        self._phase = SessionPhase.NOT_STARTED
        self._started = False

    # =========================================================================
    # Read access
    # =========================================================================

    @property
    def epoch(self) -> int:
        return self._epoch

    @property
    def phase(self) -> SessionPhase:
        return self._phase

    @property
    def board(self) -> Board:
        return list(self._board)

    @property
    def outcome(self) -> Outcome | None:
        return self._outcome

    @property
    def tasks(self) -> dict[int, Task]:
        return dict(self._tasks)

    @property
    def busy(self) -> bool:
        return self._busy

    @property
    def started(self) -> bool:
        return self._started

    @property
    def theme(self) -> str:
        return self._theme

    @property
    def difficulty(self) -> Difficulty:
        return self._difficulty

    @property
    def pending_index(self) -> int | None:
        return self._pending_index

    @property
    def opponent_reasoning(self) -> str:
        return self._opponent_reasoning

    @property
    def last_error(self) -> str | None:
        return self._last_error

    @property
    def active_player(self) -> Mark | None:
        """Whose turn it is; None once the game is finished."""
        if self._phase is SessionPhase.FINISHED:
            return None
        if self._phase is SessionPhase.OPPONENT_TURN:
            return OPPONENT_MARK
        return HUMAN_MARK

    def snapshot(self) -> SessionSnapshot:
        line = None
        if self._outcome in (Outcome.X, Outcome.O):
            line = winning_line(self._board)
        return SessionSnapshot(
            session_id=self.session_id,
            epoch=self._epoch,
            phase=self._phase,
            board=tuple(self._board),
            active_player=self.active_player,
            outcome=self._outcome,
            tasks=dict(self._tasks),
            busy=self._busy,
            started=self._started,
            theme=self._theme,
            difficulty=self._difficulty,
            pending_index=self._pending_index,
            opponent_reasoning=self._opponent_reasoning,
            last_opponent_move=self._last_opponent_move,
            last_error=self._last_error,
            winning_line=line,
        )

    # =========================================================================
    # Listeners
    # =========================================================================

    def add_listener(self, listener: Listener):
        """Call `listener(snapshot)` after every state change."""
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener):
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self):
        self.updated_at = time.time()
        if not self._listeners:
            return
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception(f"Session {self.session_id}: listener failed")

    # =========================================================================
    # Transitions
    # =========================================================================

    def configure(
        self,
        theme: str | None = None,
        difficulty: Difficulty | str | None = None,
    ) -> bool:
        """
        Choose theme and difficulty before a game.

        Raises:
            ValueError: unknown theme or difficulty
        """
        if theme is not None:
            validate_theme(theme)
        if difficulty is not None:
            difficulty = parse_difficulty(difficulty)

        if self._phase.in_progress or self._busy:
            return self._reject("configure", "game in progress")

        if theme is not None:
            self._theme = theme
        if difficulty is not None:
            self._difficulty = difficulty
        self._notify()
        return True

    def start(self) -> bool:
        """NOT_STARTED / FINISHED -> HUMAN_TURN with a fresh board."""
        if self._phase.in_progress:
            return self._reject("start", f"phase is {self._phase.value}")

        self._epoch = next_session_token()
        self._clear_game()
        self._started = True
        self._phase = SessionPhase.HUMAN_TURN
        logger.info(
            f"Session {self.session_id}: game started "
            f"[theme={self._theme}, difficulty={self._difficulty.value}, epoch={self._epoch}]"
        )
        self._notify()
        return True

    async def request_task(self, index: int, regenerate: bool = False) -> bool:
        """
        Ask for the task that claims `index`.

        An unclaimed task already recorded for the cell (after a cancel)
        is shown again without calling the oracle unless `regenerate`.
        Never touches the board.
        """
        if self._phase is not SessionPhase.HUMAN_TURN:
            return self._reject("request_task", f"phase is {self._phase.value}")
        if self._busy:
            return self._reject("request_task", "busy")
        if not is_valid_index(index):
            return self._reject("request_task", f"bad index {index!r}")
        if self._board[index] is not None:
            return self._reject("request_task", f"cell {index} is occupied")
        if self._outcome is not None:
            return self._reject("request_task", "game is over")

        existing = self._tasks.get(index)
        if existing is not None and not existing.completed and not regenerate:
            self._pending_index = index
            self._phase = SessionPhase.HUMAN_TASK_PENDING
            self._notify()
            return True

        epoch = self._epoch
        self._busy = True
        self._last_error = None
        self._notify()

        try:
            description = await self.task_oracle.generate_task(
                self._theme, index, self._difficulty
            )
        except Exception as e:
            if self._is_stale(epoch, "task"):
                return False
            logger.warning(
                f"Session {self.session_id}: task generation for cell {index} failed: {e}",
                exc_info=True,
            )
            self._busy = False
            self._last_error = f"Could not generate a task: {e}"
            self._notify()
            return False

        if self._is_stale(epoch, "task"):
            return False

        self._tasks[index] = Task.create(description, owner=HUMAN_MARK)
        self._pending_index = index
        self._phase = SessionPhase.HUMAN_TASK_PENDING
        self._busy = False
        logger.debug(f"Session {self.session_id}: task for cell {index}: {description}")
        self._notify()
        return True

    def complete_task(self, index: int) -> bool:
        """
        Claim the pending cell for the human and pass the turn.

        With auto_opponent the opponent turn is scheduled on the running
        event loop; outside one it is left to run_opponent_turn().
        """
        if self._phase is not SessionPhase.HUMAN_TASK_PENDING or self._pending_index != index:
            return self._reject("complete_task", f"no pending task for cell {index!r}")
        if self._busy:
            return self._reject("complete_task", "busy")

        loop = _running_loop() if self.auto_opponent else None

        self._board[index] = HUMAN_MARK
        self._tasks[index] = self._tasks[index].mark_completed()
        self._pending_index = None
        self._settle(next_phase=SessionPhase.OPPONENT_TURN)
        self._notify()

        if self._phase is SessionPhase.OPPONENT_TURN and self.auto_opponent:
            if loop is not None:
                self._schedule_opponent_turn(loop)
            else:
                logger.debug(
                    f"Session {self.session_id}: no running event loop, "
                    f"opponent turn left to the caller"
                )
        return True

    def cancel_task(self, index: int) -> bool:
        """Close the pending task without claiming; the task stays recorded."""
        if self._phase is not SessionPhase.HUMAN_TASK_PENDING or self._pending_index != index:
            return self._reject("cancel_task", f"no pending task for cell {index!r}")

        self._pending_index = None
        self._phase = SessionPhase.HUMAN_TURN
        self._notify()
        return True

    async def run_opponent_turn(self) -> bool:
        """
        Let the move oracle play O.

        Malformed answers fall back to the first empty cell. A transport
        failure leaves the session in OPPONENT_TURN; calling this again
        retries.
        """
        if self._phase is not SessionPhase.OPPONENT_TURN:
            return self._reject("run_opponent_turn", f"phase is {self._phase.value}")
        if self._outcome is not None:
            return self._reject("run_opponent_turn", "game is over")
        if self._busy:
            return self._reject("run_opponent_turn", "busy")
        if not empty_cells(self._board):
            return self._reject("run_opponent_turn", "board is full")

        epoch = self._epoch
        self._busy = True
        self._last_error = None
        self._notify()

        try:
            raw = await self.move_oracle.select_move(list(self._board), self._theme)
        except Exception as e:
            if self._is_stale(epoch, "move"):
                return False
            logger.warning(
                f"Session {self.session_id}: opponent move failed: {e}", exc_info=True
            )
            self._busy = False
            self._last_error = f"Opponent could not move: {e}"
            self._notify()
            return False

        if self._is_stale(epoch, "move"):
            return False

        decision = decode_move(raw, self._board)
        if decision.fallback:
            logger.info(
                f"Session {self.session_id}: malformed move answer, playing cell {decision.index}"
            )
        self._opponent_reasoning = decision.reasoning
        self._notify()

        if self.move_delay > 0:
            await asyncio.sleep(self.move_delay)
            if self._is_stale(epoch, "move"):
                return False

        self._board[decision.index] = OPPONENT_MARK
        self._last_opponent_move = decision.index
        self._busy = False
        self._settle(next_phase=SessionPhase.HUMAN_TURN)
        self._notify()
        return True

    def reset(self) -> bool:
        """Forfeit/restart: back to NOT_STARTED with every field cleared."""
        self._epoch = next_session_token()
        self._opponent_job = None
        self._clear_game()
        self._theme = DEFAULT_THEME
        self._difficulty = DEFAULT_DIFFICULTY
        self._started = False
        self._phase = SessionPhase.NOT_STARTED
        logger.info(f"Session {self.session_id}: reset (epoch={self._epoch})")
        self._notify()
        return True

    async def wait_idle(self):
        """Wait for a scheduled opponent turn to finish."""
        job = self._opponent_job
        if job is not None and not job.done():
            await job

    # =========================================================================
    # Internals
    # =========================================================================

    def _clear_game(self):
        self._board: Board = empty_board()
        self._outcome: Outcome | None = None
        self._tasks: dict[int, Task] = {}
        self._busy = False
        self._pending_index: int | None = None
        self._opponent_reasoning = ""
        self._last_opponent_move: int | None = None
        self._last_error: str | None = None

    def _settle(self, next_phase: SessionPhase):
        """Evaluate the board once after a placement and pick the next phase."""
        self._outcome = self._win_detector(list(self._board))
        if self._outcome is not None:
            self._phase = SessionPhase.FINISHED
            logger.info(f"Session {self.session_id}: game over, outcome={self._outcome.value}")
        else:
            self._phase = next_phase

    def _schedule_opponent_turn(self, loop: asyncio.AbstractEventLoop):
        job = loop.create_task(self.run_opponent_turn())
        job.add_done_callback(self._opponent_job_done)
        self._opponent_job = job

    def _opponent_job_done(self, job: asyncio.Task):
        if job.cancelled():
            return
        error = job.exception()
        if error is not None:
            logger.error(
                f"Session {self.session_id}: opponent turn crashed",
                exc_info=(type(error), error, error.__traceback__),
            )

    def _is_stale(self, epoch: int, oracle: str) -> bool:
        if epoch == self._epoch:
            return False
        logger.info(
            f"Session {self.session_id}: discarding stale {oracle} answer "
            f"(epoch {epoch}, now {self._epoch})"
        )
        return True

    def _reject(self, transition: str, reason: str) -> bool:
        logger.debug(f"Session {self.session_id}: ignored {transition}: {reason}")
        return False
