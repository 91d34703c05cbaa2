"""
Kalry nutrition extraction.

Turns a spoken, photographed or typed meal description into a validated
nutrition record using a generative model, and estimates activity energy
expenditure from MET tables.

Structure:
- domain/: Models, sanitization, validation, error taxonomy, MET engine
- application/: Timed invocation, model fallback, pipeline facade
- infrastructure/: Model transports (Gemini, OpenAI), cache, persistence
- scripts/: Command line entry points
"""

__version__ = "1.0.0"
