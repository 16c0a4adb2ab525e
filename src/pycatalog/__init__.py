"""
PyCatalog - derived-attribute computation for a product catalog.

Administrators define named arithmetic formulas over record attributes.
Formulas are evaluated for each new record at creation time and for every
existing record whenever a formula definition changes.
"""

__version__ = "0.1.0"
__license__ = "MIT"

__all__ = ["__version__"]
