"""Text generation backend."""

from .client import AnalysisResponse, ClaudeClient, TokenUsage

__all__ = ["AnalysisResponse", "ClaudeClient", "TokenUsage"]
