"""I/O utilities for dephaze fields."""

from .field_json import dump_model, load_model, model_from_json, model_to_json

__all__ = ['dump_model', 'load_model', 'model_from_json', 'model_to_json']
