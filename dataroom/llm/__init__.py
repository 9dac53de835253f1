"""
Language-model proxy for dataroom: prompt construction, the completion
endpoint client and the offline CSV synthesizer.
"""

from dataroom.llm.provider import CompletionProvider, UpstreamError
from dataroom.llm.synth import generate_csv_fallback
