"""
System components for dataroom.

This module provides the configuration and HTTP server components.
"""

from dataroom.components.config import Config, ConfigManager
from dataroom.components.server import Server, ServerManager
