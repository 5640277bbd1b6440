from behave import then
from behave.runner import Context


@then('the scenario tags are "{tags}"')
def step_then(context: Context, tags: str):
    """
    Then step verifying the tags seen by the hooks of the running scenario.
    """
    actual_tags = " ".join(context.bdd_context.tags)

    assert actual_tags == tags, f"Scenario tags mismatch. Expected: {tags!r}, Actual: {actual_tags!r}"
