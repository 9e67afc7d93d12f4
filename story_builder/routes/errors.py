"""Translation of generation failures into HTTP errors."""

from collections.abc import Iterator
from contextlib import contextmanager

from fastapi import HTTPException

from story_builder.generation import GenerationError
from story_builder.llm import LLMError
from story_builder.prompts import PromptError


@contextmanager
def generation_errors() -> Iterator[None]:
    """Broken prompt overrides are the caller's fault (400); provider and reply failures are 502."""
    try:
        yield
    except PromptError as e:
        raise HTTPException(400, str(e))
    except (LLMError, GenerationError) as e:
        raise HTTPException(502, str(e))
