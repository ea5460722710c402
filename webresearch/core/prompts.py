"""Load prompt templates from webresearch/prompts/."""

import re
from pathlib import Path

from webresearch.core.config import config


def _prompts_dir() -> Path:
    return config.prompts_dir


def load_prompt(name: str) -> str:
    path = _prompts_dir() / f"{name}.md"
    if not path.exists():
        raise FileNotFoundError(f"Prompt not found: {path}")
    return path.read_text(encoding="utf-8").rstrip()


def render_prompt(template: str, **values: str) -> str:
    """Substitute {name} placeholders in one pass. Every value passed must have a placeholder."""
    for key in values:
        if "{" + key + "}" not in template:
            raise ValueError(
                f"Prompt has no placeholder {{{key}}}. Check the template in prompts/."
            )
    if not values:
        return template
    pattern = re.compile(r"\{(" + "|".join(re.escape(k) for k in values) + r")\}")
    # Substituted text is never rescanned, so braces in values stay literal.
    return pattern.sub(lambda m: values[m.group(1)], template)
