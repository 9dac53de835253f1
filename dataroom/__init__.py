"""
Dataroom: build small tabular datasets, analyze them and ask questions
about them.

The numeric core (summary statistics, correlation, linear regression and
seeded K-means) lives in ``dataroom.math``; the language-model proxy in
``dataroom.llm``.
"""

__version__ = '0.1.0'

from dataroom.system import System, SystemManager
from dataroom.components.config import Config, ConfigManager
