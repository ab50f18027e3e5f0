"""
AI Assistant Module

Local-model help for datasets, backed by Ollama:
- Chat with recent history and optional context
- Structured data analysis via LangChain
- Website content summaries
"""

__version__ = "0.0.1"
