from PySide6.QtWidgets import QLabel

from rotatelab.core.errors import EngineIssue

MESSAGE_TIMEOUT_MS = 3000

ISSUE_MESSAGES = {
    EngineIssue.MISSING_SURFACE: "Load an image first",
    EngineIssue.INVALID_SELECTION: "Selection too small, drag a larger area",
    EngineIssue.EMPTY_HISTORY: "Nothing to undo",
    EngineIssue.DECODE_FAILURE: "Could not decode image data",
}


class StatusBarManager:
    def __init__(self, main_window):
        self.main_window = main_window
        self.canvas = main_window.canvas
        self.engine = main_window.engine
        self._setup_status_bar()
        self._connect_signals()

    def _setup_status_bar(self):
        status_bar = self.main_window.statusBar()
        self.main_window.cursor_pos_label = QLabel("Cursor: (0, 0)")
        self.main_window.selection_size_label = QLabel("")
        self.main_window.rotation_angle_label = QLabel("")
        status_bar.addPermanentWidget(self.main_window.cursor_pos_label)
        status_bar.addPermanentWidget(self.main_window.selection_size_label)
        status_bar.addPermanentWidget(self.main_window.rotation_angle_label)

    def _connect_signals(self):
        self.canvas.cursor_pos_changed.connect(self.update_cursor_pos_label)
        self.engine.changed.connect(self.update_selection_size_label)
        self.engine.rotation_changed.connect(self.update_rotation_angle_label)
        self.engine.selection_ready.connect(
            lambda _: self.show_message("Area selected, now rotate it")
        )
        self.engine.rotation_applied.connect(
            lambda _: self.show_message("Rotation applied, drag the fragment and commit")
        )
        self.engine.placement_committed.connect(lambda _: self.show_message("Fragment placed"))
        self.engine.undo_performed.connect(lambda _: self.show_message("Undone"))
        self.engine.issue_raised.connect(self.show_issue)

    def show_message(self, text):
        self.main_window.statusBar().showMessage(text, MESSAGE_TIMEOUT_MS)

    def show_issue(self, issue):
        self.show_message(ISSUE_MESSAGES.get(issue, str(issue)))

    def update_cursor_pos_label(self, pos):
        self.main_window.cursor_pos_label.setText(
            f"Cursor: ({int(pos.x())}, {int(pos.y())})"
        )

    def update_selection_size_label(self):
        selection = self.engine.selection
        if selection is not None and selection.width > 0 and selection.height > 0:
            self.main_window.selection_size_label.setText(
                f"Selection: {round(selection.width)} × {round(selection.height)} px"
            )
        else:
            self.main_window.selection_size_label.setText("")

    def update_rotation_angle_label(self, angle):
        if angle:
            self.main_window.rotation_angle_label.setText(f"Angle: {angle}°")
        else:
            self.main_window.rotation_angle_label.setText("")
