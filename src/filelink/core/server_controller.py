# src/filelink/core/server_controller.py
import logging

import uvicorn
from fastapi import FastAPI

from ..api_server.api import create_api_app
from ..services.backup_service import BackupService
from .config import ConfigManager
from .sandbox import StorageSandbox

log = logging.getLogger(__name__)


class ServerController:
    """Manages the lifecycle of the FileLink API server."""

    def __init__(self, config: ConfigManager):
        self.config = config
        self.server = None

    def build_app(self) -> FastAPI:
        """Wires the sandbox, services and API from the current settings."""
        sandbox = StorageSandbox(self.config.storage_root())
        backup_service = BackupService(
            sandbox.root,
            destination_dir=self.config.backup_dir(),
            compression_level=self.config.compression_level(),
        )
        return create_api_app(
            sandbox,
            backup_service=backup_service,
            upload_dir=self.config.upload_dir(),
            cors_origins=self.config.cors_origins(),
        )

    def _make_server(self) -> uvicorn.Server:
        config = uvicorn.Config(
            app=self.build_app(),
            host=self.config.server_host(),
            port=self.config.server_port(),
            log_level="warning",
            log_config=None,
        )
        return uvicorn.Server(config)

    def run(self):
        """Runs the server in the calling thread until it is stopped."""
        self.server = self._make_server()
        log.info(f"Server is running on http://{self.config.server_host()}:{self.config.server_port()}")
        try:
            self.server.run()
        finally:
            log.info("Server stopped.")

    def shutdown(self):
        """Asks a running server to exit; safe to call from another thread."""
        log.info("Shutdown requested.")
        if self.server:
            self.server.should_exit = True
