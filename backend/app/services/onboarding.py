"""Onboarding phases and per-phase action item checklist.

The catalog below is the single source of truth for checklist keys; stored
AgentActionProgress rows reference items by `key`.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from app.models.agent import Phase

PHASE_ORDER: List[Phase] = [
    Phase.initial_call,
    Phase.pre_licensing,
    Phase.taking_exam,
    Phase.licensing,
    Phase.contracting,
    Phase.onboarding_complete,
]

PHASE_INFO: Dict[Phase, Dict[str, str]] = {
    Phase.initial_call: {
        "label": "Initial Call",
        "title": "Initial Call",
        "description": "Welcome! We're excited to begin your journey with us.",
    },
    Phase.pre_licensing: {
        "label": "Pre-Licensing",
        "title": "Pre-Licensing",
        "description": "Prepare for your licensing journey. Complete the required training and coursework.",
    },
    Phase.taking_exam: {
        "label": "Taking Exam",
        "title": "Taking Exam",
        "description": "Time to demonstrate your knowledge and skills.",
    },
    Phase.licensing: {
        "label": "Licensing",
        "title": "Licensing",
        "description": "Get your official license to operate.",
    },
    Phase.contracting: {
        "label": "Contracting",
        "title": "Contracting",
        "description": "Finalize your contract and prepare to go active.",
    },
    Phase.onboarding_complete: {
        "label": "Complete",
        "title": "Onboarding Complete!",
        "description": "Congratulations! You're now fully onboarded and ready to work.",
    },
}


@dataclass(frozen=True)
class ActionItem:
    key: str
    order: int
    title: str
    description: str = ""
    link_url: Optional[str] = None
    required: bool = True


ACTION_ITEMS_BY_PHASE: Dict[Phase, List[ActionItem]] = {
    Phase.initial_call: [
        ActionItem(
            "initial_call.create_work_email", 10, "Create your work email",
            "Create a work email in this format: FirstLast.pinnacle@gmail.com.",
        ),
        ActionItem(
            "initial_call.connect_onboarding_manager", 20, "Connect with your onboarding manager",
            "Send a quick intro message and confirm your next checkpoint.",
        ),
        ActionItem(
            "initial_call.join_discord", 30, "Join the Pinnacle Discord",
            "Join Discord and confirm you can see announcements and training rooms.",
            link_url="https://discord.gg/pinnaclelifegroup",
        ),
    ],
    Phase.pre_licensing: [
        ActionItem(
            "pre_licensing.sign_up_xcel", 10, "Sign up for Xcel Solutions",
            "Start your pre-licensing course to prepare for the state exam.",
            link_url="https://www.xcelsolutions.com/",
        ),
        ActionItem(
            "pre_licensing.finish_course_fast", 20, "Complete the pre-licensing course quickly",
            "Goal: complete in 2 weeks or less. Treat it like a sprint.",
        ),
        ActionItem(
            "pre_licensing.schedule_exam", 30, "Schedule your state exam",
            "Schedule your exam no more than 2 weeks out.",
            link_url="http://prepare2pass.com/requirements",
        ),
        ActionItem(
            "pre_licensing.complete_certificate", 40, "Earn your course completion certificate",
        ),
    ],
    Phase.taking_exam: [
        ActionItem(
            "taking_exam.confirm_exam_details", 10, "Confirm exam requirements",
            "Verify location, time, ID requirements, and arrival window.",
            link_url="http://prepare2pass.com/requirements",
        ),
        ActionItem(
            "taking_exam.take_exam", 20, "Take your state exam",
            "After you finish, record your result immediately.",
        ),
        ActionItem(
            "taking_exam.disclosures_ready", 30, "Prepare disclosures (if applicable)",
            "If you have a felony/misdemeanor or other disclosures, gather documents early.",
            required=False,
        ),
    ],
    Phase.licensing: [
        ActionItem(
            "licensing.apply_for_license", 10, "Apply for your license",
            "Apply after you pass (complete fingerprints if your state requires it).",
            link_url="http://prepare2pass.com/requirements",
        ),
        ActionItem(
            "licensing.print_license", 20, "Print/save your active license",
            "Once active, print/save a copy of your license for contracting.",
            link_url="https://nipr.com/help/print-your-license",
        ),
        ActionItem(
            "licensing.lookup_npn", 30, "Look up and save your NPN",
            "Find your NPN and keep it handy for contracting.",
            link_url="https://nipr.com/help/look-up-your-npn",
        ),
        ActionItem(
            "licensing.connect_training_access", 40,
            "Confirm training access with your onboarding manager",
            required=False,
        ),
    ],
    Phase.contracting: [
        ActionItem(
            "contracting.banking_info", 10, "Prepare banking information",
            "Voided check OR direct deposit slip (name, address, bank, routing, account).",
        ),
        ActionItem("contracting.beneficiary_info", 20, "Gather beneficiary information"),
        ActionItem(
            "contracting.purchase_eo", 30, "Purchase E&O insurance",
            "E&O is required before submitting contracting.",
        ),
        ActionItem("contracting.drivers_license_pdf", 40, "Save a PDF copy of your driver's license"),
        ActionItem(
            "contracting.supporting_docs", 50, "Collect supporting documents (if applicable)",
            required=False,
        ),
        ActionItem(
            "contracting.contracting_course", 60, "Complete the Contracting Walkthrough Course",
            "Complete the course, then notify admin to submit your contracting ticket.",
        ),
        ActionItem("contracting.agent_academy_login", 70, "Agent Academy Login", required=False),
        ActionItem("contracting.watch_email", 80, "Watch email for carrier contracting steps"),
    ],
    Phase.onboarding_complete: [
        ActionItem(
            "complete.enroll_new_agent_academy", 10, "Enroll in New Agent Academy",
            "Complete pre-recorded modules and attend next live training.",
            link_url="https://register.pinnacleagentsuccess.com",
        ),
        ActionItem("complete.attend_live_training", 20, "Attend live New Agent Training"),
        ActionItem(
            "complete.book_of_business_tracker", 30, "Start your Book of Business tracker",
            "Track every client, policy details, beneficiary info, notes, and paid status.",
        ),
        ActionItem(
            "complete.agent_portal_link", 40, "Bookmark the Agent Portal",
            "Use this for day-to-day access.",
            link_url="https://pinnacleagentportal.com",
            required=False,
        ),
    ],
}


def parse_phase(value: str) -> Phase:
    """Parse a phase id, raising ValueError for unknown values."""
    try:
        return Phase(value)
    except ValueError:
        raise ValueError(f"Unknown phase '{value}'")


def next_phase(phase: str) -> Optional[Phase]:
    """Return the phase after `phase`, or None at onboarding_complete."""
    index = PHASE_ORDER.index(parse_phase(phase))
    if index + 1 >= len(PHASE_ORDER):
        return None
    return PHASE_ORDER[index + 1]


def action_items(phase: str) -> List[ActionItem]:
    """Catalog items for a phase, in display order."""
    items = ACTION_ITEMS_BY_PHASE.get(parse_phase(phase), [])
    return sorted(items, key=lambda item: item.order)


def find_action_item(phase: str, key: str) -> Optional[ActionItem]:
    for item in action_items(phase):
        if item.key == key:
            return item
    return None


def required_items(phase: str) -> List[ActionItem]:
    return [item for item in action_items(phase) if item.required]


def completed_keys(progress_rows: Iterable) -> set:
    """Keys of the progress rows marked completed."""
    return {row.action_key for row in progress_rows if row.completed}


def calc_progress_percent(phase: str, progress_rows: Iterable) -> int:
    """
    Percent of the phase's required items that are completed, rounded.

    Optional items never count. A phase with no required items is 0%.
    """
    required = required_items(phase)
    if not required:
        return 0
    done_keys = completed_keys(progress_rows)
    done = sum(1 for item in required if item.key in done_keys)
    # Round half up
    return int(done * 100 / len(required) + 0.5)


def next_action_items(phase: str, limit: int = 3) -> List[ActionItem]:
    """The first `limit` required items (or any items if none are required)."""
    items = required_items(phase) or action_items(phase)
    return items[:limit]
