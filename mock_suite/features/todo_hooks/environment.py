"""
Hooks of the todo feature area.

The behave environment file functions are provided by BehaveHookEnvironment,
which runs the hooks declared below around every scenario.

Official Behave documentation: https://behave.readthedocs.io/en/latest/api/#environment-file-functions
"""

import asyncio

from behave import fixture
from behave.runner import Context
from support.todo_support import TodoPage, track

from bddhooks.bddhooks_behave import BehaveHookEnvironment
from bddhooks.hooks import HookRegistry, create_hooks
from bddhooks.steps import StepRegistry, link_steps_with_fixture

registry = HookRegistry()
step_registry = StepRegistry()
hooks = create_hooks(registry)

link_steps_with_fixture(TodoPage, "todo_page", step_registry)


@fixture
def todo_page(context: Context):
    page = TodoPage()
    track("setup todo_page")
    yield page
    track("teardown todo_page")


@hooks.before_all
def start(context: Context, worker_info):
    track("BeforeAll")


@hooks.after(name="untagged")
def after_untagged(context: Context, test_info):
    track(f"After untagged {test_info.name}")


@hooks.before("@bar")
def before_bar(context: Context, tags, test_info, todo_page):
    assert tags == ["@foo", "@bar"], f"Unexpected tags: {tags!r}"
    track(f"Before @bar {test_info.name}")


@hooks.before({"tags": "@foo and not @bar"})
def before_foo_not_bar(context: Context, test_info):
    track(f"Before @foo and not @bar {test_info.name}")


@hooks.after("@bar")
async def after_bar(context: Context, tags, test_info):
    await asyncio.sleep(0)
    track(f"After @bar {test_info.name}")


@hooks.after(tags="@foo and not @bar", timeout=5000)
def after_foo_not_bar(context: Context, test_info):
    track(f"After @foo and not @bar {test_info.name}")


@hooks.after_all
def finish(context: Context):
    track("AfterAll")


environment = BehaveHookEnvironment(registry, step_registry, fixtures={"todo_page": todo_page})

before_all = environment.before_all
after_all = environment.after_all
before_scenario = environment.before_scenario
after_scenario = environment.after_scenario
