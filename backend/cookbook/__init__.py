"""
CookBook backend: recipes, favorites and images behind a FastAPI service.
"""

__version__ = "1.0.0"
