from __future__ import annotations

import json
from pathlib import Path

from pdf_models import Reference

_LABEL_LENGTH = 50

DEFAULT_REFERENCES: list[Reference] = [
    Reference(
        "EXCLUSIONS AND LIMITATIONS: WHAT IS NOT COVERED BY THIS POLICY"
        "........................................ 11"
    ),
    Reference(
        "Cigna Dental Preventive Plan If You Wish To Cancel Or If You Have Questions "
        "If You are not satisfied, for any reason, with the terms of this Policy You may "
        "return it to Us within 10 days of receipt. We will then cancel Your coverage as "
        "of the original Effective Date and promptly refund any premium You have paid. "
        "This Policy will then be null and void. If You wish to correspond with Us for "
        "this or any other reason, write: Cigna Cigna Individual Services P. O. Box 30365 "
        "Tampa, FL 33630 1-877-484-5967"
    ),
    Reference(
        "Notice Regarding Provider Directories and Provider Networks If Your Plan utilizes "
        "a network of Providers, you will automatically and without charge, receive a "
        "separate listing of Participating Providers. You may also have access to a list "
        "of Providers who participate in the network by visiting www.cigna.com; "
        "mycigna.com. Your Participating Provider network consists of a group of local "
        "dental practitioners, of varied specialties as well as general practice, who are "
        "employed by or contracted with Cigna HealthCare or Cigna Dental Health. Notice "
        "Regarding Standard of Care Under state law, Cigna is required to adhere to the "
        "accepted standards of care in the administration of health benefits. Failure to "
        "adhere to the accepted standards of care may subject Cigna to liability for "
        "damages. PLEASE READ THE FOLLOWING IMPORTANT NOTICE"
    ),
]


def load_references(path: str | Path) -> list[Reference]:
    """Read references from a JSON list or a text file with one per line.

    JSON entries may be plain strings or objects with a ``content`` key.
    Blank entries are dropped.
    """
    path = Path(path)
    raw = path.read_text(encoding="utf-8")

    if path.suffix.lower() == ".json":
        entries = json.loads(raw)
        if not isinstance(entries, list):
            raise ValueError(f"{path}: expected a JSON list of references")
        contents = []
        for entry in entries:
            if isinstance(entry, dict):
                if "content" not in entry:
                    raise ValueError(f"{path}: reference object missing 'content'")
                entry = entry["content"]
            contents.append(entry)
    else:
        contents = [line.strip() for line in raw.splitlines()]

    refs: list[Reference] = []
    for content in contents:
        if not isinstance(content, str):
            raise ValueError(f"{path}: reference content must be a string, got {content!r}")
        if content.strip():
            refs.append(Reference(content))
    return refs


def label(reference: Reference) -> str:
    return f"{reference.content[:_LABEL_LENGTH]}..."
