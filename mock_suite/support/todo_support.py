# This file provides reusable utility classes or functions.

from typing import List

from bddhooks.steps import step, then, when

calls: List[str] = []
"""Hooks and fixtures append here, in the order they ran."""


def track(message: str) -> None:
    calls.append(message)


class TodoPage:
    def __init__(self):
        self.object_id = id(self)
        self.todos: List[str] = []

    @step("the todo list is empty")
    def check_empty(self):
        assert not self.todos, f"Expected an empty todo list, got: {self.todos!r}"

    @when('I add todo "{text}"')
    def add_todo(self, text: str):
        self.todos.append(text)

    @then('the todo list contains "{text}"')
    def check_contains(self, text: str):
        assert text in self.todos, f"Todo {text!r} not found in {self.todos!r}"

    @property
    def count(self) -> int:
        return len(self.todos)
