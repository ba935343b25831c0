"""Calculators, the fetch cache and the active metrics monitor."""
