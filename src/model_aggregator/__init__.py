"""AI Model Aggregator.

Run one prompt, optionally with an image or audio reference, against a single
AI model or a set of models picked from a backend catalog.
"""

__version__ = "0.1.0"
