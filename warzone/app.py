"""Application entry point and setup for the Warzone shooter."""

import logging
import sys

from PySide6.QtGui import QGuiApplication
from PySide6.QtWidgets import QApplication

from warzone.core.accounts import AccountStore
from warzone.core.missions import MissionCatalog
from warzone.ui.main_window import MainWindow


def configure_logging() -> None:
    """Configure application-wide logging with a standard format."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def run() -> None:
    """Load missions and accounts, then start the main window."""
    configure_logging()
    app = QApplication(sys.argv)
    app.setApplicationName("Warzone")
    app.setApplicationDisplayName("Warzone")

    catalog = MissionCatalog()
    store = AccountStore()
    logging.info(f"Loaded {len(catalog)} missions; accounts at {store.file_path}")

    window = MainWindow(catalog=catalog, store=store)
    screen = QGuiApplication.primaryScreen()
    if screen is not None:
        geometry = screen.availableGeometry()
        window.resize(int(geometry.width() * 0.8), int(geometry.height() * 0.8))
    window.show()

    sys.exit(app.exec())


if __name__ == "__main__":
    run()
