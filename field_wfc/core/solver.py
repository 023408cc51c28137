"""
Collapse driver with pause/resume support.
"""

import logging
import random
from enum import Enum, auto
from typing import Dict, Optional, Tuple

from PySide6.QtCore import QObject, Signal, QTimer

from .errors import Contradiction, InvalidCollapseRequest
from .grid import FieldGrid, Position
from .selector import pick_weighted
from .settings import SolverSettings
from .tile import TileCatalog

logger = logging.getLogger(__name__)


class EngineState(Enum):
    """Solver states."""
    IDLE = auto()
    RUNNING = auto()
    PAUSED = auto()
    FINISHED = auto()
    CONTRADICTION = auto()


class CollapseSolver(QObject):
    """
    Drives a FieldGrid to a fully placed state.

    Each step places the most constrained unplaced cell, choosing its tile
    by weight among the remaining candidates.

    Signals:
        state_changed(state): Emitted when solver state changes
        finished(success): Emitted when every cell is placed or a contradiction stops the run
        progress_updated(placed, total): Emitted on progress change
    """

    state_changed = Signal(object)
    finished = Signal(bool)
    progress_updated = Signal(int, int)

    def __init__(
        self,
        catalog: TileCatalog,
        settings: Optional[SolverSettings] = None,
        rng: Optional[random.Random] = None,
        parent=None
    ):
        super().__init__(parent)

        self.settings = settings or SolverSettings()
        self.catalog = catalog
        self.rng = rng if rng is not None else random.Random(self.settings.seed)
        self.grid = FieldGrid(self.settings.width, self.settings.height, catalog, parent=self)
        self.contradiction_at: Optional[Position] = None

        self._blank = self.grid.snapshot()
        self._locked: Dict[Position, str] = {}  # User-placed tiles, kept across resets

        self._state = EngineState.IDLE
        self._timer = QTimer(self)
        self._timer.timeout.connect(self._step)
        self._step_delay = max(1, self.settings.step_delay_ms)

    @property
    def state(self) -> EngineState:
        return self._state

    @state.setter
    def state(self, value: EngineState):
        if self._state != value:
            self._state = value
            self.state_changed.emit(value)

    @property
    def total_cells(self) -> int:
        return self.grid.width * self.grid.height

    @property
    def locked_cells(self) -> Dict[Position, str]:
        return dict(self._locked)

    def set_speed(self, delay_ms: int):
        """Set delay between timed steps in milliseconds."""
        self._step_delay = max(1, delay_ms)
        if self._timer.isActive():
            self._timer.setInterval(self._step_delay)

    def place(self, pos: Position, tile_id: str):
        """
        Lock a cell to a specific tile (user-placed constraint).

        Errors from the grid are passed on to the caller; a contradiction
        also moves the solver into the CONTRADICTION state.
        """
        pos = tuple(pos)
        try:
            resolved = self.grid.collapse(pos, tile_id)
        except Contradiction as e:
            self._fail(e.position)
            raise

        self._locked[pos] = tile_id
        self._emit_progress()
        return resolved

    def unlock(self, pos: Position):
        """Forget a user-placed tile and rebuild the field from the remaining ones."""
        if self._locked.pop(tuple(pos), None) is not None:
            self.reset()

    def start(self):
        """Start or resume timed stepping."""
        if self.state in (EngineState.FINISHED, EngineState.CONTRADICTION):
            return

        self.state = EngineState.RUNNING
        self._timer.start(self._step_delay)

    def pause(self):
        """Pause timed stepping."""
        if self.state == EngineState.RUNNING:
            self._timer.stop()
            self.state = EngineState.PAUSED

    def step(self):
        """Perform a single collapse step (manual stepping)."""
        if self.state in (EngineState.FINISHED, EngineState.CONTRADICTION):
            return

        self._step()

    def run(self, max_steps: Optional[int] = None) -> bool:
        """
        Step synchronously until the field is finished or contradicts.

        Returns:
            True if every cell was placed
        """
        if self.state in (EngineState.FINISHED, EngineState.CONTRADICTION):
            return self.state == EngineState.FINISHED

        logger.info("Solving %dx%d field", self.grid.width, self.grid.height)
        self.state = EngineState.RUNNING
        steps = 0
        while self.state == EngineState.RUNNING:
            if max_steps is not None and steps >= max_steps:
                self.state = EngineState.PAUSED
                break
            self._step()
            steps += 1

        return self.state == EngineState.FINISHED

    def reset(self):
        """
        Reset the field, keeping locked cells.

        Locked tiles are replayed in placement order. A tile that the
        replay has already ruled out is dropped from the locked cells.
        """
        self._timer.stop()
        self.contradiction_at = None
        self.grid.restore(self._blank)
        self.state = EngineState.IDLE

        for pos, tile_id in list(self._locked.items()):
            try:
                self.grid.collapse(pos, tile_id)
            except InvalidCollapseRequest:
                del self._locked[pos]
                logger.warning(
                    "Dropped locked '%s' at %s, remaining candidates are %s",
                    tile_id, pos, list(self.grid.candidate_ids_of(pos))
                )
            except Contradiction as e:
                self._fail(e.position)
                break

        self._emit_progress()

    def clear_all(self):
        """Clear all cells including locked ones."""
        self._locked.clear()
        self.reset()

    def _step(self):
        """Perform one collapse iteration."""
        positions = self.grid.lowest_entropy_positions()
        if not positions:
            self._finish()
            return

        # Pick random cell among the most constrained ones
        pos = self.rng.choice(positions)
        options = list(self.grid.candidates_of(pos))
        snapshot = self.grid.snapshot() if self.settings.max_retries else None
        retries_left = self.settings.max_retries

        while True:
            tile = pick_weighted(options, self.rng)
            try:
                self.grid.collapse(pos, tile.id)
                break
            except Contradiction as e:
                options.remove(tile)
                if retries_left == 0 or not options:
                    self._fail(e.position)
                    return
                retries_left -= 1
                logger.info("Placing '%s' at %s failed, retrying", tile.id, pos)
                self.grid.restore(snapshot)

        self._emit_progress()
        if self.grid.is_complete():
            self._finish()

    def _finish(self):
        self._timer.stop()
        self.state = EngineState.FINISHED
        logger.info("Field finished, %d cells placed", self.total_cells)
        self.finished.emit(True)

    def _fail(self, pos: Tuple[int, int]):
        self._timer.stop()
        self.contradiction_at = pos
        self.state = EngineState.CONTRADICTION
        logger.warning("Solver stopped on contradiction at %s", pos)
        self.finished.emit(False)

    def _emit_progress(self):
        self.progress_updated.emit(self.grid.placed_count(), self.total_cells)
