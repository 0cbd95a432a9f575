"""
Deterministic costing engine.

Pure Python math. Given a sign specification and the price book in effect,
produce an itemized cost breakdown. No I/O, no hidden state.
"""
