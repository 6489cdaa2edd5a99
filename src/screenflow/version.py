"""
Central version constant for screenflow.
"""

__version__ = "0.4.0"

# Wire format version of the element tree / change documents.
SCHEMA_VERSION = "1"
