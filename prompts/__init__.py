"""Loading and filling prompt templates stored as text files."""
from pathlib import Path
from functools import lru_cache
import typing as t


PROMPTS_DIR = Path(__file__).resolve().parent


@lru_cache(maxsize=None)
def _read_prompt(prompt_file: Path) -> str:
    try:
        with open(prompt_file, 'r', encoding='utf-8') as f:
            return f.read()
    except IOError as e:
        raise IOError(f"Error reading prompt file {prompt_file}: {e}")


def load_prompt(prompt_name: str, prompts_dir: t.Optional[str] = None) -> str:
    """
    Load a prompt from a text file.

    Args:
        prompt_name: Name of the prompt file (without .txt extension)
        prompts_dir: Optional custom path to prompts directory.
                    Defaults to this package's directory.

    Returns:
        The content of the prompt file as a string.

    Raises:
        FileNotFoundError: If the prompt file doesn't exist.
    """
    prompt_file = Path(prompts_dir or PROMPTS_DIR) / f"{prompt_name}.txt"

    if not prompt_file.exists():
        raise FileNotFoundError(f"Prompt file not found: {prompt_file}")

    return _read_prompt(prompt_file)


def fill_template(template: str, values: t.Mapping[str, str]) -> str:
    """
    Replace ``{{name}}`` placeholders in a template.

    Plain replacement rather than str.format, since templates contain
    literal JSON braces.
    """
    for name, value in values.items():
        template = template.replace("{{" + name + "}}", value)
    return template
