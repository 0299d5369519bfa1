"""
Salon Concierge - WhatsApp booking assistant for salon back offices.
"""

__version__ = "0.1.0"
