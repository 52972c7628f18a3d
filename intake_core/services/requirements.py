# intake_core/services/requirements.py

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import List, Optional

from intake_core.conf import now as _now
from intake_core.services.cases import CaseState
from intake_core.services.errors import InvalidRequirementStatus, RequirementNotFound
from intake_core.workflows.steps import (
    PERSONAL_DETAILS_UPLOADS,
    REQUIREMENT_STATUSES,
    is_at_or_after,
)


@dataclass(frozen=True)
class Requirement:
    key: str
    title: str
    instructions: str = ""
    required: bool = True
    type: str = "document"
    status: str = "missing"
    uploads: tuple = ()


# Personal documents every case must supply once payment is done.
DEFAULT_PERSONAL_REQUIREMENTS = (
    Requirement(
        key="id_document",
        title="ID document",
        instructions="Upload a photo of your ID document",
        required=True,
    ),
    Requirement(
        key="license",
        title="Driving license (if relevant)",
        instructions="Upload a photo of your driving license",
        required=False,
    ),
)


def needs_personal_documents(step: str) -> bool:
    return is_at_or_after(step, PERSONAL_DETAILS_UPLOADS)


def ensure_default_requirements(case: CaseState) -> CaseState:
    """
    Seed the personal document list the first time a paid case asks for it.
    """
    if case.requirements or not needs_personal_documents(case.workflow_step):
        return case
    return replace(case, requirements=DEFAULT_PERSONAL_REQUIREMENTS)


def _find(case: CaseState, key: str) -> int:
    for i, req in enumerate(case.requirements):
        if req.key == key:
            return i
    raise RequirementNotFound(requirement=key)


def mark_requirement_uploaded(
    case: CaseState,
    key: str,
    *,
    file_path: Optional[str] = None,
    now=None,
) -> CaseState:
    """
    Record that a file was stored for the requirement. Storage itself is
    the caller's job; only the path reference is kept.
    """
    idx = _find(case, key)
    when = now or _now()
    requirements = list(case.requirements)
    current = requirements[idx]
    upload = {"file_path": file_path, "uploaded_at": when.isoformat()}
    requirements[idx] = replace(current, status="uploaded", uploads=(*current.uploads, upload))
    return replace(case, requirements=tuple(requirements), updated_at=when)


def set_requirement_status(case: CaseState, key: str, status: str, *, now=None) -> CaseState:
    status = (status or "").strip().lower()
    if status not in REQUIREMENT_STATUSES:
        raise InvalidRequirementStatus(status=status, allowed=list(REQUIREMENT_STATUSES))
    idx = _find(case, key)
    requirements = list(case.requirements)
    requirements[idx] = replace(requirements[idx], status=status)
    return replace(case, requirements=tuple(requirements), updated_at=now or _now())


def outstanding_requirements(case: CaseState) -> List[str]:
    """
    Keys of required documents that still need a (new) upload.
    """
    return [
        req.key
        for req in case.requirements
        if req.required and req.status in {"missing", "rejected"}
    ]
