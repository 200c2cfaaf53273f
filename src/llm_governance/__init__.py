"""Policy-enforcement interception layer for LLM requests and responses."""

__version__ = "0.3.0"
