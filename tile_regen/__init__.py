"""
tile-regen - regeneration scheduling for an LLM-edited tile world.
"""

__version__ = "0.1.0"
