from PySide6.QtCore import Qt, Slot, QSignalBlocker
from PySide6.QtGui import QAction, QKeySequence
from PySide6.QtWidgets import (
    QButtonGroup,
    QGroupBox,
    QHBoxLayout,
    QGridLayout,
    QLabel,
    QMainWindow,
    QPushButton,
    QSlider,
    QSpinBox,
    QVBoxLayout,
    QWidget,
)

from rotatelab.core.geometry import MAX_ROTATION, MIN_ROTATION
from rotatelab.core.services.image_service import ImageService
from rotatelab.core.state import EditPhase, ToolMode
from rotatelab.ui.canvas import ImageCanvas
from rotatelab.ui.status_bar_manager import StatusBarManager

PRESET_ANGLES = (-90, 0, 90)


class MainWindow(QMainWindow):
    def __init__(self, engine, settings_controller=None):
        super().__init__()
        self.engine = engine
        self.settings_controller = settings_controller
        self.setWindowTitle("RotateLab")
        self.resize(1200, 800)

        self.image_service = ImageService(engine, settings_controller, parent=self)

        self.canvas = ImageCanvas(engine)
        self.canvas.file_dropped.connect(self.image_service.open_path)

        central = QWidget(self)
        layout = QHBoxLayout(central)
        layout.addWidget(self.canvas, 1)
        layout.addWidget(self._build_side_panel())
        self.setCentralWidget(central)

        self._setup_actions()
        self._setup_menus()
        self.status_bar_manager = StatusBarManager(self)

        engine.changed.connect(self.refresh_controls)
        engine.tool_mode_changed.connect(self.refresh_controls)
        engine.history_changed.connect(self.refresh_controls)
        engine.rotation_changed.connect(self._on_rotation_changed)
        self.refresh_controls()

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------
    def _build_side_panel(self):
        panel = QWidget(self)
        panel.setFixedWidth(320)
        panel_layout = QVBoxLayout(panel)

        # Tool mode
        mode_box = QGroupBox("Tool", panel)
        mode_layout = QHBoxLayout(mode_box)
        self.select_mode_button = QPushButton("Select")
        self.rotate_mode_button = QPushButton("Rotate")
        self.mode_buttons = QButtonGroup(self)
        self.mode_buttons.setExclusive(True)
        for button, mode in (
            (self.select_mode_button, ToolMode.SELECT),
            (self.rotate_mode_button, ToolMode.ROTATE),
        ):
            button.setCheckable(True)
            button.clicked.connect(lambda _=False, m=mode: self.set_tool_mode(m))
            self.mode_buttons.addButton(button)
            mode_layout.addWidget(button)
        panel_layout.addWidget(mode_box)

        self.selection_info_label = QLabel("Drag over the image to select an area.")
        self.selection_info_label.setWordWrap(True)
        panel_layout.addWidget(self.selection_info_label)

        # Rotation
        rotation_box = QGroupBox("Rotation", panel)
        rotation_layout = QGridLayout(rotation_box)
        self.angle_label = QLabel("Angle: 0°")
        rotation_layout.addWidget(self.angle_label, 0, 0, 1, 3)
        self.angle_slider = QSlider(Qt.Horizontal)
        self.angle_slider.setRange(MIN_ROTATION, MAX_ROTATION)
        self.angle_slider.setSingleStep(1)
        self.angle_slider.valueChanged.connect(self.engine.set_rotation)
        rotation_layout.addWidget(self.angle_slider, 1, 0, 1, 3)
        self.angle_spin = QSpinBox()
        self.angle_spin.setRange(MIN_ROTATION, MAX_ROTATION)
        self.angle_spin.setSuffix("°")
        self.angle_spin.valueChanged.connect(self.engine.set_rotation)
        rotation_layout.addWidget(self.angle_spin, 2, 0, 1, 3)
        self.preset_buttons = []
        for column, angle in enumerate(PRESET_ANGLES):
            button = QPushButton(f"{angle}°")
            button.clicked.connect(lambda _=False, a=angle: self.engine.set_rotation(a))
            rotation_layout.addWidget(button, 3, column)
            self.preset_buttons.append(button)

        self.apply_button = QPushButton("Apply rotation")
        self.apply_button.clicked.connect(self.engine.apply_rotation)
        rotation_layout.addWidget(self.apply_button, 4, 0, 1, 3)
        self.rotate_in_place_button = QPushButton("Rotate in place")
        self.rotate_in_place_button.clicked.connect(self.engine.rotate_in_place)
        rotation_layout.addWidget(self.rotate_in_place_button, 5, 0, 1, 3)
        self.commit_button = QPushButton("Commit placement")
        self.commit_button.clicked.connect(self.engine.commit)
        rotation_layout.addWidget(self.commit_button, 6, 0, 1, 3)
        self.cancel_button = QPushButton("Cancel selection")
        self.cancel_button.clicked.connect(self.engine.cancel)
        rotation_layout.addWidget(self.cancel_button, 7, 0, 1, 3)
        panel_layout.addWidget(rotation_box)

        # History
        history_box = QGroupBox("History", panel)
        history_layout = QVBoxLayout(history_box)
        self.history_label = QLabel("History (0)")
        history_layout.addWidget(self.history_label)
        self.undo_button = QPushButton("Undo last")
        self.undo_button.clicked.connect(self.engine.undo)
        history_layout.addWidget(self.undo_button)
        self.save_button = QPushButton("Save result")
        self.save_button.clicked.connect(self.image_service.save_image)
        history_layout.addWidget(self.save_button)
        self.new_button = QPushButton("New image")
        self.new_button.clicked.connect(self.engine.unload)
        history_layout.addWidget(self.new_button)
        panel_layout.addWidget(history_box)

        panel_layout.addStretch(1)
        return panel

    def _setup_actions(self):
        self.open_action = QAction("&Open...", self)
        self.open_action.setShortcut(QKeySequence.Open)
        self.open_action.triggered.connect(self.image_service.open_image)

        self.save_action = QAction("&Save...", self)
        self.save_action.setShortcut(QKeySequence.Save)
        self.save_action.triggered.connect(self.image_service.save_image)

        self.exit_action = QAction("E&xit", self)
        self.exit_action.triggered.connect(self.close)

        self.undo_action = QAction("&Undo", self)
        self.undo_action.setShortcut(QKeySequence.Undo)
        self.undo_action.triggered.connect(self.engine.undo)

        self.commit_action = QAction("&Commit placement", self)
        self.commit_action.setShortcuts([QKeySequence(Qt.Key_Return), QKeySequence(Qt.Key_Enter)])
        self.commit_action.triggered.connect(self.engine.commit)

        self.cancel_action = QAction("C&ancel selection", self)
        self.cancel_action.setShortcut(QKeySequence(Qt.Key_Escape))
        self.cancel_action.triggered.connect(self.engine.cancel)

        for action in (self.commit_action, self.cancel_action):
            self.addAction(action)

    def _setup_menus(self):
        file_menu = self.menuBar().addMenu("&File")
        file_menu.addAction(self.open_action)
        file_menu.addAction(self.save_action)
        file_menu.addSeparator()
        file_menu.addAction(self.exit_action)

        edit_menu = self.menuBar().addMenu("&Edit")
        edit_menu.addAction(self.undo_action)
        edit_menu.addAction(self.commit_action)
        edit_menu.addAction(self.cancel_action)

    # ------------------------------------------------------------------
    # Slots
    # ------------------------------------------------------------------
    @Slot(object)
    def set_tool_mode(self, mode):
        self.engine.set_tool_mode(mode)
        # A rejected request leaves the buttons showing the engine's mode.
        self.refresh_controls()

    @Slot(int)
    def _on_rotation_changed(self, angle):
        with QSignalBlocker(self.angle_slider), QSignalBlocker(self.angle_spin):
            self.angle_slider.setValue(angle)
            self.angle_spin.setValue(angle)
        self.angle_label.setText(f"Angle: {angle}°")

    @Slot()
    def refresh_controls(self, *_):
        engine = self.engine
        has_image = engine.has_image()
        phase = engine.phase
        selection = engine.selection
        history_size = len(engine.history)

        # Neither button is checked while placing.
        self.mode_buttons.setExclusive(False)
        self.select_mode_button.setChecked(engine.tool_mode is ToolMode.SELECT)
        self.rotate_mode_button.setChecked(engine.tool_mode is ToolMode.ROTATE)
        self.mode_buttons.setExclusive(True)
        self.select_mode_button.setEnabled(phase is not EditPhase.PLACING)
        self.rotate_mode_button.setEnabled(selection is not None and phase is not EditPhase.PLACING)

        rotating = phase is EditPhase.FRAGMENTING
        placing = phase is EditPhase.PLACING
        self.angle_slider.setEnabled(rotating)
        self.angle_spin.setEnabled(rotating)
        for button in self.preset_buttons:
            button.setEnabled(rotating)
        self.apply_button.setEnabled(rotating)
        self.rotate_in_place_button.setEnabled(rotating)
        self.commit_button.setEnabled(placing and not engine.commit_pending)
        self.commit_action.setEnabled(placing and not engine.commit_pending)
        self.cancel_button.setEnabled(selection is not None or placing)

        if placing:
            self.selection_info_label.setText("Drag the fragment, then commit it.")
        elif selection is not None:
            self.selection_info_label.setText(
                f"Area selected: {round(selection.width)} × {round(selection.height)} px"
            )
        else:
            self.selection_info_label.setText("Drag over the image to select an area.")

        self.history_label.setText(f"History ({history_size})")
        self.undo_button.setEnabled(history_size > 0)
        self.undo_action.setEnabled(history_size > 0)
        self.save_button.setEnabled(has_image)
        self.save_action.setEnabled(has_image)
        self.new_button.setEnabled(has_image)

    def closeEvent(self, event):
        if self.settings_controller is not None:
            self.settings_controller.save_settings()
        super().closeEvent(event)
