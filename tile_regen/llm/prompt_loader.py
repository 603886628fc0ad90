"""
Prompt Loader - Loads prompt templates bundled with the package.

Prompts are organized in subdirectories of ``tile_regen/llm/prompts/``:
- oracle/ - Tile oracle system and user prompts

Prompts are cached after the first read and can be reloaded on demand.
"""

import logging
from pathlib import Path
from typing import Dict, Optional

logger = logging.getLogger(__name__)


class PromptLoader:
    """Loads and caches prompts from text files."""

    def __init__(self, prompts_dir: Optional[Path] = None):
        """
        Initialize the prompt loader.

        Args:
            prompts_dir: Directory containing prompt files. If None, uses the
                        prompts/ directory next to this module.
        """
        if prompts_dir is None:
            prompts_dir = Path(__file__).parent / "prompts"

        self.prompts_dir = Path(prompts_dir)
        self._cache: Dict[str, str] = {}

    def _get_prompt_path(self, category: str, filename: str) -> Path:
        """Get the full path to a prompt file."""
        return self.prompts_dir / category / filename

    def get_prompt(self, category: str, filename: str, reload: bool = False) -> str:
        """
        Get a prompt from cache or file.

        Args:
            category: Subdirectory name (e.g., 'oracle')
            filename: Prompt filename (e.g., 'system_prompt.txt')
            reload: If True, force reload from file even if cached

        Returns:
            Prompt content as string

        Raises:
            FileNotFoundError: If the prompt file does not exist
        """
        cache_key = f"{category}/{filename}"

        if reload or cache_key not in self._cache:
            path = self._get_prompt_path(category, filename)
            if not path.exists():
                raise FileNotFoundError(
                    f"Prompt file not found: {path}\n"
                    f"Expected location: {self.prompts_dir}/{category}/{filename}"
                )
            logger.debug(f"Loading prompt: {cache_key}")
            self._cache[cache_key] = path.read_text(encoding="utf-8")

        return self._cache[cache_key]

    def reload_all(self):
        """Drop every cached prompt so the next read hits the files."""
        logger.info(f"Reloading prompts from: {self.prompts_dir}")
        self._cache.clear()


# Global instance - created on first use
_loader: Optional[PromptLoader] = None


def get_loader() -> PromptLoader:
    """Get the global prompt loader instance."""
    global _loader
    if _loader is None:
        _loader = PromptLoader()
    return _loader
