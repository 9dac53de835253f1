"""
System integration for dataroom.

This module ties the configuration, the dataset workspace, the completion
endpoint client and the HTTP server together.
"""

import atexit
import logging
import signal
import threading
from typing import Any, Optional

from dataroom.components.config import Config, ConfigManager
from dataroom.components.server import Server, ServerManager
from dataroom.llm.provider import CompletionProvider
from dataroom.math.dataset import Dataset
from dataroom.workspace import AnalysisParams, Workspace

# Set up logging
logger = logging.getLogger(__name__)


def params_from_config(config: Config) -> AnalysisParams:
    """Default analysis parameters from the analysis.* settings."""
    return AnalysisParams(
        k=config.get('analysis.k', 3),
        seed=config.get('analysis.seed', 42),
        max_iters=config.get('analysis.max-iters', 100),
        empty_cluster=config.get('analysis.empty-cluster', 'keep')
    )


class System:
    """
    Main system for dataroom.
    """

    def __init__(self, config: Optional[Config] = None):
        """
        Initialize the system.

        Args:
            config: Configuration for the system
        """
        # Set up configuration
        self.config = config or ConfigManager.get_config()

        # Set up components
        self.workspace: Optional[Workspace] = None
        self.provider: Optional[CompletionProvider] = None
        self.server: Optional[Server] = None

        # System status
        self._running = False
        self._stop_event = threading.Event()

    def initialize(self) -> None:
        """
        Initialize the system.
        """
        if self._running:
            return

        logger.info("Initializing system")

        dataset = Dataset.blank(
            self.config.get('dataset.rows', 8),
            self.config.get('dataset.cols', 4)
        )
        self.workspace = Workspace(dataset, params_from_config(self.config))
        self.provider = CompletionProvider.from_config(self.config)
        self.server = ServerManager.get_server(self.workspace, self.provider, self.config)

        logger.info("System initialized")

    def start(self) -> None:
        """
        Start the system.
        """
        if self._running:
            return

        # Initialize if needed
        self.initialize()

        logger.info("Starting system")

        # Clear stop event
        self._stop_event.clear()

        # Start server
        self.server.start()

        # Mark as running
        self._running = True

        # Register shutdown handlers
        self._register_shutdown_handlers()

        logger.info("System started")

    def stop(self) -> None:
        """
        Stop the system.
        """
        if not self._running:
            return

        logger.info("Stopping system")

        # Set stop event
        self._stop_event.set()

        if self.server:
            self.server.stop()

        # Mark as not running
        self._running = False

        logger.info("System stopped")

    def _register_shutdown_handlers(self) -> None:
        """
        Register shutdown handlers.
        """
        # Signal handlers can only be installed from the main thread
        if threading.current_thread() is threading.main_thread():
            for sig in (signal.SIGINT, signal.SIGTERM):
                signal.signal(sig, self._signal_handler)

        # Register atexit handler
        atexit.register(self.stop)

    def _signal_handler(self, signum: int, frame: Any) -> None:
        """
        Handle signals.

        Args:
            signum: Signal number
            frame: Current stack frame
        """
        logger.info(f"Received signal {signum}")
        self.stop()

    def wait_for_shutdown(self) -> None:
        """
        Wait for system shutdown.
        """
        self._stop_event.wait()


class SystemManager:
    """
    Singleton manager for the system.
    """

    _instance = None
    _lock = threading.RLock()

    @classmethod
    def get_system(cls, config: Optional[Config] = None) -> System:
        """
        Get the system instance.

        Args:
            config: Configuration for the system

        Returns:
            System instance
        """
        with cls._lock:
            if cls._instance is None:
                cls._instance = System(config)

            return cls._instance

    @classmethod
    def start(cls, config: Optional[Config] = None) -> System:
        """
        Start the system.

        Args:
            config: Configuration for the system

        Returns:
            System instance
        """
        system = cls.get_system(config)
        system.start()
        return system

    @classmethod
    def stop(cls) -> None:
        """
        Stop the system.
        """
        with cls._lock:
            if cls._instance is not None:
                cls._instance.stop()
                cls._instance = None
            ServerManager.shutdown()
