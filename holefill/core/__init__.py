"""Internal implementation package for holefill.

Import public symbols from ``holefill`` rather than from these modules.
"""
