"""Local rule subset checked before any call to the validation service.

A hand-picked mirror of the authoritative rules that are cheap enough to
check instantly. It is NOT the full rule set and is not meant to be complete:
the service stays the authority for everything else.

Each local rule reuses the id and field of the authoritative rule it mirrors.
Its predicate must only fire when the authoritative one fires too, otherwise
the client would reject configurations the service accepts.
"""

from configurator.rules.models import Rule

CLIENT_CHECK_SUFFIX = "(client check)"

LOCAL_RULES: tuple[Rule, ...] = (
    Rule(
        id="no-red-model-c",
        field="color",
        message=f"Red is not allowed for model C {CLIENT_CHECK_SUFFIX}",
        logic={
            "and": [
                {"==": [{"var": "model"}, "C"]},
                {"==": [{"var": "color"}, "red"]},
            ]
        },
    ),
    Rule(
        id="size-required-a-b",
        field="size",
        message=f"Size is required for models A and B {CLIENT_CHECK_SUFFIX}",
        logic={
            "and": [
                {"in": [{"var": "model"}, ["A", "B"]]},
                {"missing": ["size"]},
            ]
        },
    ),
)
