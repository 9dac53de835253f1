"""
Workspace: ownership of the current dataset and its cached analysis.
"""

from dataroom.workspace.analysis import Analysis, AnalysisParams, analyze
from dataroom.workspace.manager import Workspace
