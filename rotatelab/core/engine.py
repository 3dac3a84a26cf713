from __future__ import annotations

from PySide6.QtCore import QObject, QPointF, Qt, Signal
from PySide6.QtGui import QImage

from rotatelab.core.codec import ImageDecoder
from rotatelab.core.compositor import Compositor, OverlayStyle
from rotatelab.core.errors import DecodeFailureError, EngineIssue
from rotatelab.core.fragment import FragmentExtractor, RotatedFragment
from rotatelab.core.geometry import (
    FRAGMENT_PADDING,
    MIN_SELECTION_SIZE,
    Selection,
    clamp_rotation,
)
from rotatelab.core.history import HistoryItem, HistoryManager
from rotatelab.core.logger import get_logger
from rotatelab.core.state import EditPhase, EditState, ToolMode
from rotatelab.tools.placetool import PlacementController
from rotatelab.tools.selecttool import SelectionTracker

_logger = get_logger("engine")


class RotationEngine(QObject):
    """Select, rotate, place and commit regions of a raster image.

    Pointer positions passed to :meth:`press`, :meth:`move` and
    :meth:`release` are raster coordinates; the view converts them with
    :func:`rotatelab.core.geometry.map_to_raster` first.

    Decodes finish on a later event loop turn. Every reset bumps
    ``generation`` so a decode issued before the reset is dropped when it
    completes.
    """

    changed = Signal()
    selection_ready = Signal(object)
    rotation_applied = Signal(object)
    placement_committed = Signal(object)
    undo_performed = Signal(int)
    history_empty = Signal()
    issue_raised = Signal(object)
    tool_mode_changed = Signal(object)
    rotation_changed = Signal(int)
    history_changed = Signal(int)

    def __init__(
        self,
        *,
        min_selection_size: float = MIN_SELECTION_SIZE,
        padding: float = FRAGMENT_PADDING,
        overlay_style: OverlayStyle | None = None,
        parent=None,
    ):
        super().__init__(parent)
        self.compositor = Compositor(overlay_style, parent=self)
        self.history = HistoryManager()
        self.decoder = ImageDecoder(parent=self)
        self.extractor = FragmentExtractor(padding)
        self.select_tool = SelectionTracker(min_selection_size)
        self.place_tool = PlacementController()
        self.state = EditState()

        self.generation = 0
        self._selection: Selection | None = None
        self._fragment: RotatedFragment | None = None
        self._fragment_preview: QImage | None = None
        self._rotation = 0
        self._commit_token: int | None = None

        self.compositor.changed.connect(self.changed.emit)

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------
    @property
    def selection(self) -> Selection | None:
        return self._selection

    @property
    def fragment(self) -> RotatedFragment | None:
        return self._fragment

    @property
    def fragment_preview(self) -> QImage | None:
        return self._fragment_preview

    @property
    def rotation(self) -> int:
        return self._rotation

    @property
    def phase(self) -> EditPhase:
        return self.state.phase

    @property
    def tool_mode(self) -> ToolMode:
        return self.state.tool_mode

    @property
    def commit_pending(self) -> bool:
        return self._commit_token is not None

    def has_image(self) -> bool:
        return self.compositor.has_surface()

    def image(self) -> QImage | None:
        return self.compositor.image()

    def is_idle(self) -> bool:
        """``True`` once every scheduled decode has been delivered."""
        return self.decoder.is_idle()

    def active_tool(self):
        if self.tool_mode is ToolMode.PLACE:
            return self.place_tool
        if self.tool_mode is ToolMode.SELECT:
            return self.select_tool
        return None

    def cursor(self) -> Qt.CursorShape:
        tool = self.active_tool()
        return tool.cursor if tool is not None else Qt.ArrowCursor

    def render(self) -> QImage | None:
        """Display frame for the current state."""
        if self._fragment is not None:
            return self.compositor.render(
                fragment=self._fragment, fragment_image=self._fragment_preview
            )
        return self.compositor.render(selection=self._selection)

    # ------------------------------------------------------------------
    # Ingestion and export
    # ------------------------------------------------------------------
    def load_image(self, image: QImage) -> bool:
        if image is None or image.isNull():
            self._raise_issue(EngineIssue.MISSING_SURFACE, "Refusing to load a null image")
            return False
        self._reset_session()
        self.history.clear()
        self.compositor.load(image)
        self.history_changed.emit(0)
        _logger.info("Loaded image %dx%d", image.width(), image.height())
        return True

    def unload(self) -> None:
        self._reset_session()
        self.history.clear()
        self.compositor.unload()
        self.history_changed.emit(0)

    def export(self, fmt: str = "PNG") -> bytes | None:
        data = self.compositor.export(fmt)
        if data is None:
            self._raise_issue(EngineIssue.MISSING_SURFACE, "Nothing to export")
        return data

    # ------------------------------------------------------------------
    # Tool mode and rotation
    # ------------------------------------------------------------------
    def set_tool_mode(self, mode: ToolMode) -> bool:
        """Switch tools. Requests that the current state cannot honour are
        ignored and return ``False``."""

        if mode is self.tool_mode:
            return True
        if mode is ToolMode.SELECT:
            if self.phase is EditPhase.PLACING:
                return False
            return self._enter(EditPhase.IDLE)
        if mode is ToolMode.ROTATE:
            if self._selection is None or not self.state.can_transition(EditPhase.FRAGMENTING):
                return False
            self.select_tool.reset()
            return self._enter(EditPhase.FRAGMENTING)
        # PLACE is only reachable with a live fragment, which already means PLACING.
        return False

    def set_rotation(self, degrees) -> int:
        value = clamp_rotation(degrees)
        if value != self._rotation:
            self._rotation = value
            self.rotation_changed.emit(value)
        return value

    # ------------------------------------------------------------------
    # Pointer handling (raster coordinates)
    # ------------------------------------------------------------------
    def press(self, pos: QPointF) -> None:
        if not self.has_image():
            return
        phase = self.phase
        if phase in (EditPhase.IDLE, EditPhase.SELECTING):
            self.select_tool.press(pos)
            self._selection = None
            self._enter(EditPhase.SELECTING)
            self.changed.emit()
        elif phase is EditPhase.PLACING and not self.commit_pending:
            if self.place_tool.press(self._fragment, pos):
                self.changed.emit()

    def move(self, pos: QPointF) -> None:
        phase = self.phase
        if phase is EditPhase.SELECTING:
            selection = self.select_tool.move(pos)
            if selection is not None:
                self._selection = selection
                self.changed.emit()
        elif phase is EditPhase.PLACING and self.place_tool.dragging:
            if self.place_tool.move(self._fragment, pos):
                self.changed.emit()

    def release(self, pos: QPointF | None = None) -> None:
        if pos is not None:
            self.move(pos)
        phase = self.phase
        if phase is EditPhase.SELECTING:
            selection = self.select_tool.release()
            if selection is None:
                self._selection = None
                self._enter(EditPhase.IDLE)
                self.changed.emit()
                self._raise_issue(EngineIssue.INVALID_SELECTION, "Selection below dead zone")
                return
            self._selection = selection
            self.set_rotation(0)
            self._enter(EditPhase.FRAGMENTING)
            self.changed.emit()
            _logger.debug("Selection ready: %s", selection)
            self.selection_ready.emit(selection)
        elif phase is EditPhase.PLACING:
            if self.place_tool.release():
                self.changed.emit()

    # ------------------------------------------------------------------
    # Edit operations
    # ------------------------------------------------------------------
    def apply_rotation(self) -> RotatedFragment | None:
        """Lift the selection into a rotated fragment ready for placement."""

        if not self.has_image():
            self._raise_issue(EngineIssue.MISSING_SURFACE, "No image to rotate")
            return None
        if self._selection is None or self.phase is not EditPhase.FRAGMENTING:
            self._raise_issue(EngineIssue.INVALID_SELECTION, "No selection to rotate")
            return None

        selection = self._selection
        base = self.compositor.image()
        fragment = self.extractor.extract(base, selection, self._rotation)
        if fragment is None:
            self._raise_issue(EngineIssue.INVALID_SELECTION, "Selection could not be extracted")
            return None

        self.history.push(
            HistoryItem(self.compositor.snapshot(), rotation_degrees=self._rotation)
        )
        self.compositor.clear_region(selection.to_rectf())

        self._fragment = fragment
        self._fragment_preview = None
        self._enter(EditPhase.PLACING)
        self.history_changed.emit(len(self.history))

        token = self.generation
        self.decoder.submit(
            fragment.image_data,
            lambda image: self._on_preview_decoded(token, fragment.id, image),
            lambda error: self._on_decode_failed(token, error),
        )
        self.changed.emit()
        _logger.info("Rotation of %d° applied to fragment %d", fragment.rotation_degrees, fragment.id)
        self.rotation_applied.emit(fragment)
        return fragment

    def commit(self) -> bool:
        """Draw the pending fragment into the base raster.

        The draw happens once the fragment's pixels have been decoded; the
        ``placement_committed`` signal marks completion.
        """

        if self.phase is not EditPhase.PLACING or self._fragment is None:
            return False
        if self.commit_pending:
            return False
        token = self._bump_generation()
        self._commit_token = token
        fragment_id = self._fragment.id
        self.decoder.submit(
            self._fragment.image_data,
            lambda image: self._on_commit_decoded(token, fragment_id, image),
            lambda error: self._on_commit_failed(token, error),
        )
        return True

    def rotate_in_place(self) -> bool:
        """Rotate the selection and commit it straight back where it was."""
        if self.apply_rotation() is None:
            return False
        return self.commit()

    def cancel(self) -> None:
        """Drop the selection and any pending fragment without drawing it."""
        if self._selection is None and self._fragment is None and self.phase is EditPhase.IDLE:
            return
        self._reset_session()
        self.changed.emit()

    def undo(self) -> bool:
        item = self.history.undo()
        if item is None:
            self.history_empty.emit()
            self._raise_issue(EngineIssue.EMPTY_HISTORY, "Nothing to undo")
            return False

        self._reset_session()
        token = self.generation
        remaining = len(self.history)
        self.history_changed.emit(remaining)
        self.changed.emit()
        self.decoder.submit(
            item.image_data,
            lambda image: self._on_undo_decoded(token, remaining, image),
            lambda error: self._on_undo_failed(token, remaining, item, error),
        )
        return True

    # ------------------------------------------------------------------
    # Decode completions
    # ------------------------------------------------------------------
    def _is_current(self, token: int, fragment_id: int | None = None) -> bool:
        if token != self.generation:
            _logger.debug("Dropping stale decode (token %d, generation %d)", token, self.generation)
            return False
        if fragment_id is not None and (self._fragment is None or self._fragment.id != fragment_id):
            return False
        return True

    def _on_preview_decoded(self, token: int, fragment_id: int, image: QImage) -> None:
        if not self._is_current(token, fragment_id):
            return
        self._fragment_preview = image
        self.changed.emit()

    def _on_commit_decoded(self, token: int, fragment_id: int, image: QImage) -> None:
        if not self._is_current(token, fragment_id):
            return
        fragment = self._fragment
        self.compositor.draw_fragment(image, fragment.rect())
        self._reset_session()
        self.changed.emit()
        _logger.info("Committed fragment %d at (%.1f, %.1f)", fragment.id, fragment.x, fragment.y)
        self.placement_committed.emit(fragment)

    def _on_commit_failed(self, token: int, error: DecodeFailureError) -> None:
        if token != self.generation:
            return
        self._commit_token = None
        self._raise_issue(EngineIssue.DECODE_FAILURE, str(error))

    def _on_undo_decoded(self, token: int, remaining: int, image: QImage) -> None:
        if not self._is_current(token):
            return
        self.compositor.restore(image)
        _logger.info("Undo restored snapshot, %d left", remaining)
        self.undo_performed.emit(remaining)

    def _on_undo_failed(
        self, token: int, index: int, item: HistoryItem, error: DecodeFailureError
    ) -> None:
        if token != self.generation:
            return
        # The raster was not restored, so the step stays undoable.
        self.history.reinsert(index, item)
        self.history_changed.emit(len(self.history))
        self._raise_issue(EngineIssue.DECODE_FAILURE, str(error))

    def _on_decode_failed(self, token: int, error: DecodeFailureError) -> None:
        if token != self.generation:
            return
        self._raise_issue(EngineIssue.DECODE_FAILURE, str(error))

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _enter(self, phase: EditPhase) -> bool:
        previous_mode = self.tool_mode
        if not self.state.can_transition(phase):
            return False
        self.state.transition(phase)
        if self.tool_mode is not previous_mode:
            self.tool_mode_changed.emit(self.tool_mode)
        return True

    def _bump_generation(self) -> int:
        self.generation += 1
        return self.generation

    def _reset_session(self) -> None:
        self._bump_generation()
        self._selection = None
        self._fragment = None
        self._fragment_preview = None
        self._commit_token = None
        self.select_tool.reset()
        self.place_tool.reset()
        self._enter(EditPhase.IDLE)
        self.set_rotation(0)

    def _raise_issue(self, issue: EngineIssue, message: str) -> None:
        _logger.warning("%s: %s", issue.value, message)
        self.issue_raised.emit(issue)
