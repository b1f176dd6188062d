"""Decoding, assembly and validation of conversation logs."""
