# filename: src/filelink/main.py
#!/usr/bin/env python3
"""
FileLink - Sandboxed Remote File Manager
Copyright (C) 2025 AZHAR ZOUHIR / BYTEDz

This program is free software: you can redistribute it and/or modify
it under the terms of the GNU Affero General Public License as published
by the Free Software Foundation, either version 3 of the License, or
(at your option) any later version.

This program is distributed in the hope that it will be useful,
but WITHOUT ANY WARRANTY; without even the implied warranty of
MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See the
GNU Affero General Public License for more details.

You should have received a copy of the GNU Affero General Public License
along with this program. If not, see <https://www.gnu.org/licenses/>.
"""

import argparse
import logging
import sys
from typing import List, Optional

from .core import constants
from .core.config import ConfigManager
from .core.exceptions import FileLinkError
from .core.logging_config import setup_logging
from .core.server_controller import ServerController
from .core.version import __app_name__, __version__


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="filelink",
        description="Remote file manager confined to a single storage directory.",
    )
    parser.add_argument("--config", help=f"Path to the JSON config file (default: {constants.CONFIG_FILE})")
    parser.add_argument("--root", dest="storage_root", help="Storage directory to manage")
    parser.add_argument("--backup-dir", dest="backup_dir", help="Folder receiving backup archives (default: Desktop)")
    parser.add_argument("--upload-dir", dest="upload_dir", help="Scratch folder for incoming uploads")
    parser.add_argument("--host", dest="server_host", help="Interface to bind")
    parser.add_argument("--port", dest="server_port", type=int, help="TCP port to listen on")
    parser.add_argument("--log-level", dest="log_level", help="Logging level (DEBUG, INFO, WARNING, ...)")
    parser.add_argument("--version", action="version", version=f"{__app_name__} v{__version__}")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for FileLink."""
    args = build_parser().parse_args(argv)

    constants.initialize_app_directories()
    config = ConfigManager(args.config)
    overrides = {k: v for k, v in vars(args).items() if k != "config"}
    config.override(**overrides)

    # Set up logging
    setup_logging(config.log_level())
    log = logging.getLogger(__name__)
    log.info(f"Starting {__app_name__} v{__version__}")

    controller = ServerController(config)
    try:
        controller.run()
    except FileLinkError as e:
        log.critical(f"Failed to start {__app_name__}: {e}")
        print(f"ERROR: Could not start {__app_name__}: {e}")
        return 1
    except KeyboardInterrupt:
        log.info("Interrupted, shutting down.")
        controller.shutdown()
    return 0


if __name__ == "__main__":
    sys.exit(main())
