"""
ORION Kernel

Domain values, the WBS tree model and the read side of the mirrored
P6/SAP snapshot database:
- Immutable EVM input snapshots (PV, EV, AC, BAC)
- Arena-backed WBS tree with integrity checks
- Immutable tree UI state
- Structured JSON logging and typed exceptions
"""

__version__ = "0.1.0"
