"""Recover JSON from vision-model replies to W-2 images."""

from .json_extractor import ExtractionError, extract_json_object, extract_json_string

__all__ = ["ExtractionError", "extract_json_object", "extract_json_string"]
