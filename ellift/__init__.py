"""ELLIFT: ELL material adaptation service.

Resilience and orchestration layer between educator-supplied content and
remote model backends:
- Fingerprint cache for adaptation results
- Sliding-window rate limiting per client
- Primary/secondary LLM dispatch with response normalization
- Page-oriented PDF text extraction
- Operation timing and metrics
"""

__version__ = "1.0.0"
