"""Test doubles for tile-regen tests."""
