"""
infrastructure - Concrete implementations of domain ports.

Contains all vendor-specific code: LangChain chat models for Google,
OpenAI, Groq and Ollama, plus environment-driven settings.
Depends on domain/ only (implements ports). Never imported by agent/.
"""
