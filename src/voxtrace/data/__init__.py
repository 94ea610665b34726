"""Loaders for external scene data."""

from .ct_loader import CtMaskData, CtMaskError, load_ct_mask, parse_ct_header

__all__ = ["CtMaskData", "CtMaskError", "load_ct_mask", "parse_ct_header"]
