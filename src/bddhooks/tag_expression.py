"""Glue between hook declarations and cucumber tag expressions."""

from typing import Iterable

from cucumber_tag_expressions import TagExpressionError, TagExpressionParser

from .exceptions import DeclarationError

__all__ = ["TagExpression", "compile_tag_expression"]


class TagExpression:
    """A compiled boolean expression over scenario tags (e.g. ``"@foo and not @bar"``)."""

    def __init__(self, text: str, expression):
        self.text = text
        self.expression = expression

    def evaluate(self, tags: Iterable[str]) -> bool:
        """Checks whether the expression matches the given tag set.

        Args:
            tags (Iterable[str]): Tags of the running scenario, including the '@' prefix.

        Returns:
            bool: True if the expression matches.
        """
        return bool(self.expression.evaluate(list(tags)))

    def __repr__(self) -> str:
        return f"TagExpression({self.text!r})"


def compile_tag_expression(text: str) -> TagExpression:
    """Compiles a tag expression string once, at declaration time.

    Args:
        text (str): The tag expression (e.g. ``"@smoke and not @slow"``).

    Raises:
        DeclarationError: If the expression is not a string or cannot be parsed.

    Returns:
        TagExpression: The compiled expression.
    """
    if not isinstance(text, str):
        raise DeclarationError(f"Tag expression must be a string, got {type(text).__name__}: {text!r}")

    try:
        expression = TagExpressionParser().parse(text)
    except TagExpressionError as e:
        raise DeclarationError(f"Invalid tag expression {text!r}: {e}") from e

    return TagExpression(text, expression)
