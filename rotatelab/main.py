import argparse
import logging
import sys

from PySide6.QtWidgets import QApplication

from rotatelab.core.engine import RotationEngine
from rotatelab.core.logger import setup_logger
from rotatelab.core.settings_controller import DEFAULT_SETTINGS_PATH, SettingsController
from rotatelab.ui.ui import MainWindow


def parse_args(argv=None):
    parser = argparse.ArgumentParser(prog="rotatelab", description="Select, rotate and place image regions.")
    parser.add_argument("image", nargs="?", help="image to open on start-up")
    parser.add_argument("--settings", default=DEFAULT_SETTINGS_PATH, help="path of the settings file")
    parser.add_argument("--debug", action="store_true", help="enable debug logging")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(sys.argv[1:] if argv is None else argv)
    setup_logger(logging.DEBUG if args.debug else logging.INFO)

    q_app = QApplication(sys.argv[:1])
    settings_controller = SettingsController(args.settings)
    engine = RotationEngine(**settings_controller.get_engine_settings())
    window = MainWindow(engine, settings_controller)
    if args.image:
        window.image_service.open_path(args.image)
    window.show()
    return q_app.exec()


if __name__ == "__main__":
    sys.exit(main())
