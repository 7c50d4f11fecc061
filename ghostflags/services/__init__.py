"""
Services Module - DNS resolution, envelope crypto, payload parsing
"""
