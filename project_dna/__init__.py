"""
Project DNA Package.

Generation and decoding of project DNA documents.
"""

from .generator import (
    DNAGenerator,
    ProjectSetupForm,
    build_fallback_dna,
    parse_dna_document,
    serialize_dna,
    strip_code_fences,
)

__all__ = [
    "DNAGenerator",
    "ProjectSetupForm",
    "build_fallback_dna",
    "parse_dna_document",
    "serialize_dna",
    "strip_code_fences",
]
