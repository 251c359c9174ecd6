# =======================================================================================
# gatepass/__init__.py - Package Initialization
# =======================================================================================
"""
GatePass - Visitor Management

Visitors register for a facility visit and verify their email with a one-time
code; administrators approve or reject the request. Approved visitors receive
a QR credential that is scanned at the gate to log entry and exit events.
"""

__version__ = "1.0.0"
__author__ = "GatePass Team"
