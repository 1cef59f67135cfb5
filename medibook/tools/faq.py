"""Rule-based answers to common clinic questions (hours, location, contact, services)."""

import logging
import re
from typing import Optional, Sequence

from medibook.config import ClinicConfig
from medibook.schemas.directory_schema import Clinic, Department

logger = logging.getLogger(__name__)

# Checked in order; the first topic with a keyword in the question wins.
FAQ_TOPICS: list[tuple[str, tuple[str, ...]]] = [
    ("hours", ("hours", "open", "close", "closed", "time")),
    ("location", ("location", "address", "where", "directions", "parking")),
    ("contact", ("phone", "contact", "call", "number")),
    ("services", ("services", "service", "treatment", "treatments", "department", "departments")),
]


def classify_question(utterance: str) -> Optional[str]:
    text = (utterance or "").lower()
    for topic, keywords in FAQ_TOPICS:
        if any(re.search(rf"\b{re.escape(k)}\b", text) for k in keywords):
            return topic
    return None


def answer_question(
    utterance: str,
    clinic: Clinic,
    clinic_config: ClinicConfig,
    departments: Sequence[Department] = (),
) -> str:
    """Answer a clinic question from the directory, falling back to configured text."""
    topic = classify_question(utterance)
    phone = clinic.phone or clinic_config.fallback_phone
    logger.debug("FAQ topic: %s", topic)

    if topic == "hours":
        return (
            f"{clinic.name} is typically open {clinic_config.hours_weekday}, "
            f"and {clinic_config.hours_weekend}. "
            f"For specific hours, please call us at {phone}."
        )
    if topic == "location":
        if clinic.address:
            return (
                f"{clinic.name} is located at {clinic.address}. "
                f"You can also call us at {phone} for directions."
            )
        return f"For our location and directions, please call us at {phone}."
    if topic == "contact":
        if clinic.phone:
            return f"You can reach {clinic.name} at {clinic.phone}. Our staff will be happy to assist you."
        return "Please visit our website or ask our staff for contact information."
    if topic == "services":
        if departments:
            names = ", ".join(d.name for d in departments)
            return (
                f"{clinic.name} offers appointments in {names}. "
                "For specific treatments, please speak with our staff."
            )
        return f"For details about our services, please call us at {phone}."
    return (
        f"For specific information about {clinic.name}, I recommend speaking with our staff "
        f"who can provide detailed answers. You can call us at {phone}."
    )
