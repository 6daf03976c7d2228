"""
philoflow - layered philological text export

philoflow composes annotated text records (a base text plus independent
annotation layers) into linear markup documents, accumulating the output
of a sequence of items into named flows.
"""

__version__ = "1.0.0"
__all__ = ["__version__"]
