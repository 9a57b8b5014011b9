"""Entry point: logging setup + QApplication startup."""

from __future__ import annotations

import logging
import sys

from PyQt6.QtWidgets import QApplication, QMessageBox


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )

    app = QApplication(sys.argv)
    app.setApplicationName("Chord Keys")
    app.setOrganizationName("ChordKeys")

    from .gui.main_window import MainWindow

    window = MainWindow()
    window.show()

    # Global exception handler
    def exception_hook(exctype, value, tb):
        import traceback
        traceback_str = "".join(traceback.format_exception(exctype, value, tb))
        logging.error("Unhandled exception:\n%s", traceback_str)

        msg = QMessageBox()
        msg.setIcon(QMessageBox.Icon.Critical)
        msg.setWindowTitle("Application Error")
        msg.setText("An unexpected error occurred. The application will now close.")
        msg.setInformativeText(str(value))
        msg.setDetailedText(traceback_str)
        msg.exec()

        sys.__excepthook__(exctype, value, tb)
        sys.exit(1)

    sys.excepthook = exception_hook

    sys.exit(app.exec())


if __name__ == "__main__":
    main()
