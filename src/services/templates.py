"""
Packaged template loading.

The audit prompt, fallback report and email bodies live in the prompts/
directory shipped with the function. Each file is read once per container
and kept in memory for warm invocations.
"""

import logging
from functools import lru_cache
from pathlib import Path

logger = logging.getLogger(__name__)

# In Lambda: /var/task/prompts/
PROMPTS_DIR = Path(__file__).parent.parent / 'prompts'


@lru_cache(maxsize=None)
def load_template(template_name: str) -> str:
    """
    Read a packaged template.

    Raises:
        ValueError: If the template file does not exist
    """
    template_path = PROMPTS_DIR / template_name
    try:
        content = template_path.read_text(encoding='utf-8')
    except FileNotFoundError:
        logger.error(f"Template not found: {template_path}")
        raise ValueError(f"Template '{template_name}' not found")

    logger.info(f"Loaded template {template_name}: {len(content)} characters")
    return content


def format_template(template: str, **variables) -> str:
    """
    Fill str.format() placeholders.

    Literal braces (CSS in the HTML template) are written doubled. Values are
    inserted as given and never re-parsed.

    Raises:
        ValueError: If a placeholder has no matching variable

    Example:
        >>> format_template("Audit for {business_url}", business_url="acme.com")
        'Audit for acme.com'
    """
    try:
        return template.format(**variables)
    except KeyError as e:
        missing_var = str(e).strip("'")
        logger.error(f"Missing variable in template: {missing_var}")
        raise ValueError(f"Missing required variable in template: {missing_var}")


def clear_cache() -> None:
    load_template.cache_clear()
