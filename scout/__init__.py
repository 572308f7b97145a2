"""
Scout market research service.

Combines competitor web data with LLM reasoning into structured research
results for founders.
"""

__version__ = "0.1.0"
