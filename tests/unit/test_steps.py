import os

import pytest

from bddhooks.exceptions import DeclarationError, ResolutionError
from bddhooks.steps import (
    StepRegistry,
    get_first_non_auto_inject_fixture,
    given,
    link_steps_with_fixture,
    step,
    step_decorator_factory,
    step_fixture,
    then,
    when,
)


class TodoPage:
    def __init__(self):
        self.todos = []

    @given("an empty todo list")
    def clear(self):
        self.todos.clear()

    @when('I add todo "{text}"')
    def add_todo(self, text):
        self.todos.append(text)
        return self

    @then("the todo list has {count:d} items")
    def check_count(self, count):
        assert len(self.todos) == count

    @step("I take a note")
    def note(self):
        return "note"

    def helper(self):
        return "not a step"

    @property
    def size(self):
        return len(self.todos)


@pytest.fixture
def registry() -> StepRegistry:
    return StepRegistry()


class TestGetFirstNonAutoInjectFixture:
    def test_single_candidate(self):
        page = object()

        assert get_first_non_auto_inject_fixture({"test_info": 1, "tags": [], "page": page}, "p") is page

    def test_no_candidate(self):
        with pytest.raises(ResolutionError, match='No suitable fixtures found for decorator step "I add todo"'):
            get_first_non_auto_inject_fixture({"test_info": 1, "test": 2, "tags": []}, "I add todo")

    def test_several_candidates(self):
        match = 'Several suitable fixtures found for decorator step "I add todo": page, db'
        with pytest.raises(ResolutionError, match=match):
            get_first_non_auto_inject_fixture({"page": 1, "tags": [], "db": 2}, "I add todo")


class TestLinkStepsWithFixture:
    def test_only_decorated_methods_are_linked(self, registry: StepRegistry):  # pylint: disable=redefined-outer-name
        definitions = link_steps_with_fixture(TodoPage, "todo_page", registry)

        assert [(d.keyword, d.pattern) for d in definitions] == [
            ("given", "an empty todo list"),
            ("when", 'I add todo "{text}"'),
            ("then", "the todo list has {count:d} items"),
            ("step", "I take a note"),
        ], "Unexpected linked steps."
        assert all(d.fixture_name == "todo_page" for d in definitions), "Fixture name was not recorded."
        assert list(registry) == definitions, "Registry should hold the linked definitions in order."

    def test_dispatch_to_fixture(self, registry: StepRegistry):  # pylint: disable=redefined-outer-name
        """Test that the single non auto-injected fixture becomes the method's self."""
        definitions = {d.pattern: d for d in link_steps_with_fixture(TodoPage, "todo_page", registry)}
        page = TodoPage()
        fixtures_arg = {"test_info": "scenario", "tags": ["@ui"], "todo_page": page}

        result = definitions['I add todo "{text}"'].fn(fixtures_arg, "buy milk")

        assert result is page, "The step should have run against the fixture."
        assert page.todos == ["buy milk"], "Step arguments were not passed through."

        definitions["the todo list has {count:d} items"].fn(fixtures_arg, count=1)

    def test_dispatch_without_candidate(self, registry: StepRegistry):  # pylint: disable=redefined-outer-name
        (definition, *_) = link_steps_with_fixture(TodoPage, "todo_page", registry)

        with pytest.raises(ResolutionError, match="an empty todo list"):
            definition.fn({"test_info": "scenario"})

    def test_step_fixture_decorator(self, registry: StepRegistry):  # pylint: disable=redefined-outer-name
        @step_fixture("search_page", registry)
        class SearchPage:
            @when('I search for "{query}"')
            def search(self, query):
                pass

        (definition,) = registry
        assert definition.pattern == 'I search for "{query}"'
        assert definition.fixture_name == "search_page"
        assert definition.location.file == os.path.abspath(__file__), "Location should point at the declaring file."
        assert SearchPage.search is not None, "The class should be returned unchanged."

    @pytest.mark.parametrize("fixture_name", ["test", "tags", "test_info"])
    def test_auto_inject_fixture_name_is_rejected(  # pylint: disable=redefined-outer-name
        self, registry: StepRegistry, fixture_name: str
    ):
        """Test that an auto-injected name cannot provide decorator steps, as dispatch would never find it."""
        with pytest.raises(DeclarationError, match="is auto-injected"):
            link_steps_with_fixture(TodoPage, fixture_name, registry)

        assert len(registry) == 0, "No step should be registered for a rejected fixture name."

    @pytest.mark.parametrize("fixture_name", ["", None])
    def test_empty_fixture_name_is_rejected(  # pylint: disable=redefined-outer-name
        self, registry: StepRegistry, fixture_name
    ):
        with pytest.raises(DeclarationError, match="non-empty string"):
            step_fixture(fixture_name, registry)(TodoPage)

    def test_inherited_methods_are_not_linked(self, registry: StepRegistry):  # pylint: disable=redefined-outer-name
        class SpecialTodoPage(TodoPage):
            pass

        assert not link_steps_with_fixture(SpecialTodoPage, "special", registry), "Only own methods are linked."


class TestStepDecorators:
    def test_decorator_returns_method(self):
        def method(self):
            pass

        assert given("x")(method) is method, "The method must stay callable as is."

    @pytest.mark.parametrize("pattern", ["", None, 3])
    def test_invalid_pattern(self, pattern):
        with pytest.raises(DeclarationError, match="non-empty string"):
            when(pattern)

    def test_unknown_keyword(self):
        with pytest.raises(DeclarationError, match="Unknown step keyword"):
            step_decorator_factory("but")

    def test_decorators_are_named(self):
        assert [fn.__name__ for fn in (given, when, then, step)] == ["given", "when", "then", "step"]
