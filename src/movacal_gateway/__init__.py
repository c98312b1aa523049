"""
Movacal Gateway - Passerelle MCP en lecture seule vers l'API Movacal.
"""

__version__ = "0.1.0"
