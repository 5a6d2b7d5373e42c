"""
Tabfold - Repeat and Volta Inference for Score-to-Text Notation

This package provides utilities for:
- Fold-plan inference (simple repeats, voltas, verification, replay)
- Repeat/volta markers for printed measures
- Score adapters (tab-score JSON, music21 parts)
"""

__version__ = "0.1.0"
