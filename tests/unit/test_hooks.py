import os
from typing import List

import pytest

from bddhooks.exceptions import DeclarationError
from bddhooks.fixtures import SCENARIO, WORKER
from bddhooks.hooks import Hook, HookOptions, HookPhase, HookRegistry, create_hooks, parse_hook_args


def names(hooks: List[Hook]) -> List[str]:
    return [hook.name or hook.fn.__name__ for hook in hooks]


@pytest.fixture
def registry() -> HookRegistry:
    return HookRegistry()


class TestHookRegistry:
    """Ordering and selection of registered hooks."""

    def test_before_hooks_keep_declaration_order(self, registry: HookRegistry):  # pylint: disable=redefined-outer-name
        hooks = create_hooks(registry)
        for name in ("A", "B", "C"):
            hooks.before(name=name)(lambda context: None)

        assert names(registry.query(HookPhase.BEFORE)) == ["A", "B", "C"], "Before hooks are not in declaration order."

    def test_after_hooks_run_in_reverse_order(self, registry: HookRegistry):  # pylint: disable=redefined-outer-name
        hooks = create_hooks(registry)
        for name in ("A", "B", "C"):
            hooks.after(name=name)(lambda context: None)

        assert names(registry.query(HookPhase.AFTER)) == ["C", "B", "A"], "After hooks are not in reverse order."

    def test_tag_filtering(self, registry: HookRegistry):  # pylint: disable=redefined-outer-name
        """Test that only hooks whose tag expression matches are selected."""
        hooks = create_hooks(registry)
        hooks.before(name="untagged")(lambda context: None)
        hooks.before("@bar", lambda context: None)
        hooks.before({"name": "foo only", "tags": "@foo and not @bar"}, lambda context: None)

        selected = registry.query(HookPhase.BEFORE, ["@foo", "@bar"])
        assert [hook.name for hook in selected] == ["untagged", None], "Wrong hooks selected for @foo @bar."

        selected = registry.query(HookPhase.BEFORE, ["@foo"])
        assert [hook.name for hook in selected] == ["untagged", "foo only"], "Wrong hooks selected for @foo."

    def test_query_is_idempotent(self, registry: HookRegistry):  # pylint: disable=redefined-outer-name
        hooks = create_hooks(registry)
        hooks.after(lambda context: None)
        hooks.after("@x", lambda context: None)

        first = registry.query(HookPhase.AFTER, ["@x"])
        second = registry.query(HookPhase.AFTER, ["@x"])

        assert first == second, "Repeated queries returned different hooks."
        assert len(registry) == 2, "Querying modified the registry."

    def test_phases_and_scopes_are_separate(self, registry: HookRegistry):  # pylint: disable=redefined-outer-name
        hooks = create_hooks(registry)
        hooks.before(name="before")(lambda context: None)
        hooks.after(name="after")(lambda context: None)
        hooks.before_all(name="before_all")(lambda context: None)
        hooks.after_all(name="after_all")(lambda context: None)

        assert names(registry.query(HookPhase.BEFORE)) == ["before"]
        assert names(registry.query(HookPhase.AFTER)) == ["after"]
        assert names(registry.query(HookPhase.BEFORE, scope=WORKER)) == ["before_all"]
        assert names(registry.query(HookPhase.AFTER, scope=WORKER)) == ["after_all"]
        assert len(registry.hooks(SCENARIO)) == 2, "Unexpected number of scenario hooks."

    def test_phase_given_as_string(self, registry: HookRegistry):  # pylint: disable=redefined-outer-name
        create_hooks(registry).before(lambda context: None)

        assert len(registry.query("before")) == 1, "Phase strings should be accepted."


class TestHookDeclaration:
    """The accepted declaration shapes and their validation."""

    def test_plain_decorator(self, registry: HookRegistry):  # pylint: disable=redefined-outer-name
        hooks = create_hooks(registry)

        @hooks.before
        def setup(context):
            pass

        (hook,) = registry
        assert hook.fn is setup, "The decorator did not register the function."
        assert hook.options == HookOptions(), "A plain hook should have default options."
        assert callable(setup), "The decorator must return the function."

    def test_tags_string(self, registry: HookRegistry):  # pylint: disable=redefined-outer-name
        create_hooks(registry).before("@ui")(lambda context: None)

        (hook,) = registry
        assert hook.options.tags == "@ui", "Tag expression string was not stored."
        assert hook.tags_expression is not None, "Tag expression was not compiled."

    def test_keyword_options(self, registry: HookRegistry):  # pylint: disable=redefined-outer-name
        create_hooks(registry).after(name="close db", tags="@db", timeout=5000)(lambda context: None)

        (hook,) = registry
        assert hook.options == HookOptions(name="close db", tags="@db", timeout=5000)
        assert hook.title == "after hook 'close db'", "Unexpected hook title."

    def test_options_and_function(self, registry: HookRegistry):  # pylint: disable=redefined-outer-name
        def teardown(context):
            pass

        returned = create_hooks(registry).after({"timeout": 100}, teardown)

        (hook,) = registry
        assert returned is teardown, "The direct form must return the function."
        assert hook.timeout == 100, "Timeout from the options dict was not stored."

    def test_worker_hook_kind(self, registry: HookRegistry):  # pylint: disable=redefined-outer-name
        create_hooks(registry).before_all(lambda context: None)

        (hook,) = registry
        assert hook.kind == "before_all", "Worker hooks should report the '_all' kind."
        assert hook.title == "before_all hook", "Unnamed hooks should have a plain title."

    def test_declaration_location(self, registry: HookRegistry):  # pylint: disable=redefined-outer-name
        create_hooks(registry).before(lambda context: None)

        (hook,) = registry
        assert hook.location.file == os.path.abspath(__file__), "Location should point at the declaring file."
        assert hook.location.line > 0, "Location line was not recorded."

    @pytest.mark.parametrize(
        "args, kwargs, match",
        [
            (({"tag": "@foo"},), {}, "Unknown hook option"),
            (("@foo",), {"timeout": 10}, "either positionally or as keywords"),
            ((), {"timeout": -1}, "positive number"),
            ((), {"timeout": True}, "positive number"),
            ((), {"name": 1}, "name must be a string"),
            ((1,), {}, "options must be"),
            (("@foo", "not callable"), {}, "must be callable"),
            (("@foo", None, None), {}, "at most 2 positional"),
        ],
    )
    def test_invalid_declarations(self, args: tuple, kwargs: dict, match: str):
        """Test that malformed declarations raise DeclarationError at declaration time."""
        with pytest.raises(DeclarationError, match=match):
            parse_hook_args(args, kwargs)

    def test_invalid_declaration_registers_nothing(self, registry: HookRegistry):  # pylint: disable=redefined-outer-name
        with pytest.raises(DeclarationError):
            create_hooks(registry).before("not (")(lambda context: None)

        assert len(registry) == 0, "A malformed hook was registered."

    def test_decorating_non_callable(self, registry: HookRegistry):  # pylint: disable=redefined-outer-name
        with pytest.raises(DeclarationError, match="must be callable"):
            create_hooks(registry).before("@foo")("nope")
