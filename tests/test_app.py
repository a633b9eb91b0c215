"""Checks on the Streamlit page source that need no running app."""

import ast
from pathlib import Path

APP = Path(__file__).resolve().parent.parent / "app.py"


def user_strings():
    tree = ast.parse(APP.read_text(encoding="utf-8"))
    docstring = tree.body[0].value if isinstance(tree.body[0], ast.Expr) else None
    for node in ast.walk(tree):
        if node is docstring:
            continue
        if isinstance(node, ast.Constant) and isinstance(node.value, str):
            yield node.lineno, node.value


class TestUserStrings:
    """Verify text shown in the UI."""

    def test_strings_are_ascii(self) -> None:
        """Labels and messages render the same in every terminal font."""
        offenders = [(line, text) for line, text in user_strings() if not text.isascii()]
        assert offenders == []
