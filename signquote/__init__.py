"""
Sign quotation engine.

Turns sign specifications and a configurable price book into itemized costs,
rolls line items + services + discount into a grand total, and exports the
result as a PDF quote.
"""

__version__ = "1.0.0"
