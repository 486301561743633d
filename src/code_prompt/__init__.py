"""Concatenate a source tree into a single Markdown document for LLM prompts."""

__version__ = "0.1.0"
