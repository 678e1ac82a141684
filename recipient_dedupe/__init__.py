"""
Recipient Duplicate Detection
-----------------------------
Finds duplicate mail recipients in an address book and imports recipients
from vCard and spreadsheet exports.
"""

__version__ = "1.0.0"
