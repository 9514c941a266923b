"""Prompt construction for the agentic-judge evaluator."""

ASSERTIONS_PLACEHOLDER = "{{ASSERTIONS}}"
CHANGES_PLACEHOLDER = "{{CHANGES}}"

NO_CHANGE_TEXT = (
    "No before/after patch is available. Inspect the working tree directly "
    "(for example with `git status` and `git diff`)."
)

DEFAULT_INSTRUCTIONS = """\
You are reviewing a code change made by an AI coding agent. The repository in \
your current working directory contains the agent's changes. Read the files you \
need, search for patterns, and judge the change the way a careful human reviewer \
would.

Score every assertion below from 0.0 (not satisfied at all) to 1.0 (fully \
satisfied). Use intermediate values only for partial satisfaction.

## Change Under Review

{{CHANGES}}

## Assertions

{{ASSERTIONS}}

## Output Format

Finish with a single JSON object in a ```json fenced block:

```json
{
  "status": "passed" or "failed",
  "assertions": {
    "<assertion name>": {"score": <0.0-1.0>, "reasoning": "<one sentence>"}
  },
  "message": "<one sentence overall summary>"
}
```

Use exactly the assertion names listed above as keys.
"""


def format_assertions(assertions: dict[str, str]) -> str:
    return "\n".join(f"- **{name}**: {text}" for name, text in assertions.items())


def format_change(change: str) -> str:
    if not change:
        return NO_CHANGE_TEXT
    return f"```diff\n{change.rstrip()}\n```"


def build_judge_prompt(
    assertions: dict[str, str], instructions: str | None = None, change: str = ""
) -> str:
    """Render instructions with the assertion list substituted for {{ASSERTIONS}}
    and the agent's patch for {{CHANGES}}.

    Custom instructions missing a placeholder get that section appended; an
    empty change is only mentioned where {{CHANGES}} asks for it.
    """
    template = instructions or DEFAULT_INSTRUCTIONS
    listing = format_assertions(assertions=assertions)
    if ASSERTIONS_PLACEHOLDER in template:
        template = template.replace(ASSERTIONS_PLACEHOLDER, listing)
    else:
        template = f"{template.rstrip()}\n\nEvaluation Assertions:\n{listing}\n"

    # Patch text is substituted last and never rescanned for placeholders.
    if CHANGES_PLACEHOLDER in template:
        return template.replace(CHANGES_PLACEHOLDER, format_change(change=change))
    if change:
        return f"{template.rstrip()}\n\nChange Under Review:\n{format_change(change=change)}\n"
    return template
