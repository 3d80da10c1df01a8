"""Follow-up engine constants shared across the SDK.

These values are referenced by the interview controller, the urgency
evaluator, and the code capture engine.

The minimum-answer threshold and the urgency trigger flags are
product-tuned heuristics.  They can be overridden via environment
variables so that deployments can adjust them without code changes.
"""

import os

# An interview is only complete once at least this many questions carry a
# non-empty answer, even if the branching tree has run out of questions.
# Overridable via FOLLOWUP_MIN_ANSWERED env var.
MIN_ANSWERED_QUESTIONS = int(os.getenv("FOLLOWUP_MIN_ANSWERED", "3"))

# Number of cells in the one-time-passcode input.
# Overridable via FOLLOWUP_CODE_LENGTH env var.
DEFAULT_CODE_LENGTH = int(os.getenv("FOLLOWUP_CODE_LENGTH", "4"))

# Option flags that turn a selected answer into an urgency rule.
# Overridable via FOLLOWUP_URGENCY_FLAGS (comma-separated).
URGENCY_FLAGS: tuple[str, ...] = tuple(
    f.strip()
    for f in os.getenv("FOLLOWUP_URGENCY_FLAGS", "urgent,serious").split(",")
    if f.strip()
)

# Marker used in summaries when the patient left no additional notes.
NONE_PROVIDED = os.getenv("FOLLOWUP_NONE_PROVIDED", "None provided")

# Names of the catalogs shipped under rulesets/v1/.
BUILTIN_CATALOGS: tuple[str, ...] = ("treatment_followup", "adverse_event")
