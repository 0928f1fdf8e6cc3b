"""
Award Kernel

Pure domain layer for the award compliance and pay resolution engine:
- Immutable timesheet, compliance, approval and allowance value objects
- Typed exception hierarchy
- Structured JSON logging
- Injectable clocks for SLA deadline computation
"""

__version__ = "0.1.0"
