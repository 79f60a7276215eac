"""
deckforge - structured slide deck generation pipeline.

Turns unstructured input text into a constraint-compliant slide deck by
orchestrating language-model and image-model calls around deterministic
composition, validation, repair and layout stages.
"""

__version__ = "1.0.0"
