"""Project Insight Assistant: onboarding and advice generation over an LLM."""

__version__ = "0.1.0"
