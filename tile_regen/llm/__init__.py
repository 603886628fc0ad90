"""LLM integration components.

- `client.py`: LiteLLM client wrapper and JSON reply parsing
- `prompt_loader.py`: Prompt template loading utility
- `oracle.py`: LLMTileOracle and tile matrix parsing
"""

from tile_regen.llm.client import get_completion, get_model_string, parse_json_response
from tile_regen.llm.oracle import LLMTileOracle, parse_tile_matrix
from tile_regen.llm.prompt_loader import get_loader

__all__ = [
    "get_completion",
    "get_model_string",
    "parse_json_response",
    "get_loader",
    "LLMTileOracle",
    "parse_tile_matrix",
]
