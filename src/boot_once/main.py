import logging
import sys

from boot_once.cli import build_parser, run_cli
from boot_once.config import Settings
from boot_once.log import setup_logger
from boot_once.platforms.common import elevate_if_needed

logger = logging.getLogger(__name__)


def run_gui(settings: Settings) -> int:
    from PySide6.QtWidgets import QApplication

    from boot_once.gui.app import BootOnceApp

    app = QApplication(sys.argv)
    w = BootOnceApp(settings)
    w.show()
    return app.exec()


def main():
    parser = build_parser()
    args = parser.parse_args()
    settings = Settings.from_args(args)
    setup_logger(settings.verbose, settings.log_file)

    if settings.elevate and elevate_if_needed(want_gui=settings.gui):
        # Elevated instance has been launched; exit current
        logger.info('Relaunched with administrator rights')
        return

    if settings.gui and not args.cmd:
        sys.exit(run_gui(settings))
    sys.exit(run_cli(args))


if __name__ == '__main__':
    main()
