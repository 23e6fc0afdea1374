# fitwork/lifecycle.py
"""Status machines for profiles, postings and applications.

Each machine is an exhaustive table of ``(state, event) -> new_state``. Any
pair missing from the table is a disallowed transition and raises
``InvalidTransition``. Services never assign ``status`` directly; they ask the
matching machine for the next state.
"""
from __future__ import annotations

from .services.errors import InvalidTransition


class StateMachine:
    def __init__(self, name: str, transitions: dict[tuple[str, str], str], terminal=()):
        self.name = name
        self.transitions = dict(transitions)
        self.terminal = frozenset(terminal)

    def can(self, state: str, event: str) -> bool:
        return (state, event) in self.transitions

    def next_state(self, state: str, event: str) -> str:
        try:
            return self.transitions[(state, event)]
        except KeyError:
            raise InvalidTransition(self.name, state, event) from None

    def fire(self, obj, event: str) -> str:
        """Move ``obj.status`` along ``event`` and return the new state."""
        obj.status = self.next_state(obj.status, event)
        return obj.status

    def allowed_events(self, state: str) -> list[str]:
        return sorted(e for (s, e) in self.transitions if s == state)

    def is_terminal(self, state: str) -> bool:
        return state in self.terminal


# ---- Profiles ----

PROFILE_STATUSES = ("draft", "submitted", "verified", "rejected", "archived")

PROFILE = StateMachine("profile", {
    ("draft", "save_draft"): "draft",
    ("draft", "submit"): "submitted",
    ("draft", "archive"): "archived",

    ("submitted", "save_draft"): "draft",
    ("submitted", "submit"): "submitted",      # re-submission overwrites
    ("submitted", "verify"): "verified",
    ("submitted", "reject"): "rejected",
    ("submitted", "archive"): "archived",

    ("verified", "save_draft"): "draft",       # leaves the public directory until re-verified
    ("verified", "submit"): "submitted",       # material edits go back to review
    ("verified", "archive"): "archived",

    ("rejected", "save_draft"): "draft",
    ("rejected", "submit"): "submitted",
    ("rejected", "archive"): "archived",

    ("archived", "restore"): "draft",
})


# ---- Postings ----

JOB_STATUSES = ("open", "closed")

JOB = StateMachine("job", {
    ("open", "close"): "closed",
    ("closed", "close"): "closed",             # closing twice is a no-op
}, terminal={"closed"})

GUEST_SPOT_STATUSES = ("open", "filled", "cancelled")

GUEST_SPOT = StateMachine("guest spot", {
    ("open", "fill"): "filled",
    ("open", "cancel"): "cancelled",
    ("filled", "fill"): "filled",
    ("cancelled", "cancel"): "cancelled",
}, terminal={"filled", "cancelled"})


def posting_machine(posting) -> StateMachine:
    return JOB if posting.kind == "job" else GUEST_SPOT


# ---- Applications ----

APPLICATION_STATUSES = (
    "pending", "invited", "shortlisted", "offered", "accepted", "rejected", "withdrawn",
)
APPLICATION_TERMINAL = frozenset({"accepted", "rejected", "withdrawn"})

# Entry state by who initiated the application
INITIAL_APPLICATION_STATUS = {
    "apply": "pending",
    "invite": "invited",
}

APPLICATION = StateMachine("application", {
    ("pending", "shortlist"): "shortlisted",
    ("pending", "offer"): "offered",
    ("pending", "accept"): "accepted",
    ("pending", "reject"): "rejected",
    ("pending", "withdraw"): "withdrawn",

    ("invited", "accept"): "accepted",
    ("invited", "reject"): "rejected",
    ("invited", "withdraw"): "withdrawn",

    ("shortlisted", "offer"): "offered",
    ("shortlisted", "accept"): "accepted",
    ("shortlisted", "reject"): "rejected",
    ("shortlisted", "withdraw"): "withdrawn",

    ("offered", "accept"): "accepted",
    ("offered", "reject"): "rejected",
    ("offered", "withdraw"): "withdrawn",
}, terminal=APPLICATION_TERMINAL)

# Target status -> event, for callers that name the status they want
APPLICATION_EVENT_FOR_STATUS = {
    "shortlisted": "shortlist",
    "offered": "offer",
    "accepted": "accept",
    "rejected": "reject",
    "withdrawn": "withdraw",
}

# Which side of the application may fire each event. "accept" is shared:
# the studio accepts an applicant's request, the applicant accepts an
# invite or offer.
STUDIO_EVENTS = frozenset({"shortlist", "offer", "reject", "accept"})
APPLICANT_EVENTS = frozenset({"withdraw", "accept"})
STUDIO_ACCEPTS_FROM = frozenset({"pending", "shortlisted"})
APPLICANT_ACCEPTS_FROM = frozenset({"invited", "offered"})


def application_event_allowed_for(side: str, state: str, event: str) -> bool:
    if side == "studio":
        if event == "accept":
            return state in STUDIO_ACCEPTS_FROM
        return event in STUDIO_EVENTS
    if side == "applicant":
        if event == "accept":
            return state in APPLICANT_ACCEPTS_FROM
        return event in APPLICANT_EVENTS
    return False
