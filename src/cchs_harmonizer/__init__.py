"""
CCHS Harmonizer Package

Recodes raw Canadian Community Health Survey extracts from any cycle into a
canonical set of harmonized variables.

ARCHITECTURAL GUARANTEE:
------------------------
Every value flowing through this package is a TaggedValue:
    - Present(x) for an ordinary response
    - Missing(reason) for a response that is absent, with the reason kept

No function in the recoding path raises for bad data.
Only a broken rule document fails, and it fails at load time.
"""

__version__ = "0.1.0"
