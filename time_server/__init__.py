"""
Time Tool Server - resolve natural-language time descriptions into filter boundaries
"""

__version__ = "1.0.0"
