import faulthandler
import logging
import os
import signal
import sys

from PyQt6 import QtCore, QtWidgets

from markgrid.windows.main_window import MainWindow

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    level_name = os.environ.get("MARKGRID_LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, None)
    if not isinstance(level, int):
        level = logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main() -> None:
    configure_logging()

    def _log_unhandled(exc_type, exc_value, exc_traceback) -> None:
        logger.critical("Unhandled exception", exc_info=(exc_type, exc_value, exc_traceback))

    sys.excepthook = _log_unhandled
    faulthandler.enable()

    def _log_sigterm(signum, frame) -> None:
        logger.warning("Received signal %s, dumping stack.", signum)
        faulthandler.dump_traceback(file=sys.stderr, all_threads=True)

    signal.signal(signal.SIGTERM, _log_sigterm)
    app = QtWidgets.QApplication(sys.argv)
    app.setApplicationName("MarkGrid")
    window = MainWindow()
    window.show()
    window.raise_()
    window.activateWindow()
    QtCore.QTimer.singleShot(0, window.activateWindow)
    for path in sys.argv[1:]:
        window.open_file(path)
    app.exec()


if __name__ == "__main__":
    main()
