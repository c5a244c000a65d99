"""Long-form narrated script generation over repeated LLM calls."""

__version__ = "0.1.0"
