# Fx AI Trader Backend

"""
Fx AI Trader - AI-assisted forex chart analysis.

This package provides:
- FastAPI REST API for chart analysis and AI configuration
- Multi-provider AI gateway (OpenAI, Gemini, Claude, DeepSeek, OpenRouter, Llama)
- Response normalization into Buy/Sell/Wait recommendations
"""

__version__ = "0.1.0"
