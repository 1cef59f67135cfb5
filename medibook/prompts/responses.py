"""Everything the booking agent says, built from session values.

Kept short and sentence-per-idea so a text-to-speech voice reads them
naturally.
"""

from datetime import date
from typing import Sequence

from medibook.schemas.directory_schema import Department, Doctor
from medibook.utils import format_spoken_date, format_spoken_time

ANYTHING_ELSE = "Is there anything else I can help you with today?"


def _spoken_list(items: Sequence[str]) -> str:
    items = list(items)
    if len(items) <= 1:
        return "".join(items)
    if len(items) == 2:
        return f"{items[0]} or {items[1]}"
    return ", ".join(items[:-1]) + f", or {items[-1]}"


def _times(slots: Sequence[str]) -> str:
    return _spoken_list([format_spoken_time(s) for s in slots])


def _doctors(doctors: Sequence[Doctor]) -> str:
    return _spoken_list([f"Dr. {d.name}" for d in doctors])


# --------------------------------------------------------------------- #
# Greeting and routing
# --------------------------------------------------------------------- #

def greeting(clinic_name: str, assistant_name: str) -> str:
    return (
        f"Welcome to {clinic_name}! I'm {assistant_name}. I can help you book an appointment, "
        "register as a walk-in patient, or answer questions about our services. "
        "How can I assist you today?"
    )


INTENT_REPROMPT = (
    "I can help you book an appointment, register as a walk-in patient, "
    "or answer questions about our services. Which would you like to do?"
)


def faq_answer(answer: str) -> str:
    return f"{answer} Would you like to book an appointment or register as a walk-in?"


# --------------------------------------------------------------------- #
# Identity
# --------------------------------------------------------------------- #

ASK_NAME_APPOINTMENT = "I'd be happy to help you book an appointment. May I have your full name, please?"
ASK_NAME_WALKIN = "I can register you as a walk-in patient. May I have your full name, please?"
NAME_RETRY = "Sorry, I didn't catch your name. Could you please tell me your first and last name?"


def ask_phone(name: str) -> str:
    return f"Thank you, {name}. What's the best phone number to reach you?"


PHONE_RETRY = (
    "I didn't get a valid phone number. "
    "Please say the full number including the area code, one digit at a time if that's easier."
)


def ask_email(phone: str) -> str:
    return (
        f"Got it, your phone number is {phone}. Could you please provide your email address? "
        "You can spell it out, or say skip if you'd rather not."
    )


EMAIL_RETRY = (
    "I couldn't make out that email address. Please say it like john at example dot com, "
    "or say skip."
)
EMAIL_SKIPPED = "No problem, we'll skip the email."
ASK_DATE_OF_BIRTH = "What is your date of birth? For example, March 5, 1985."
DATE_OF_BIRTH_RETRY = "Sorry, I didn't get that date. Please say your date of birth with the month, day and year."

DATE_OF_BIRTH_INVALID = {
    "future": "That date is in the future. Could you repeat your date of birth?",
    "implausible": "That date doesn't look right. Could you repeat your date of birth?",
}


def patient_registered(name: str) -> str:
    return f"Thank you, {name}. You're now registered as a patient with us."


# --------------------------------------------------------------------- #
# Department and doctor
# --------------------------------------------------------------------- #

def ask_department(departments: Sequence[Department], lead_in: str = "") -> str:
    names = _spoken_list([d.name for d in departments])
    text = f"Which department would you like to visit? We have {names}."
    return f"{lead_in} {text}".strip()


def department_retry(departments: Sequence[Department]) -> str:
    names = _spoken_list([d.name for d in departments])
    return f"Sorry, I didn't find that department. Please choose one of: {names}."


NO_DEPARTMENTS = (
    "I'm sorry, there are no departments taking appointments right now. "
    "Let me connect you with our staff."
)


def no_doctors(department_name: str, departments: Sequence[Department]) -> str:
    names = _spoken_list([d.name for d in departments])
    return (
        f"I'm sorry, there are no doctors available in {department_name} right now. "
        f"Would you like a different department? We have {names}."
    )


def ask_doctor(department_name: str, doctors: Sequence[Doctor]) -> str:
    return (
        f"In {department_name} we have {_doctors(doctors)}. "
        "Which doctor would you like to see?"
    )


def doctor_retry(doctors: Sequence[Doctor]) -> str:
    return f"Sorry, I didn't catch which doctor. You can choose {_doctors(doctors)}."


def single_doctor(department_name: str, doctor: Doctor) -> str:
    return (
        f"Dr. {doctor.name} is available in {department_name}. "
        "What date would you like to come in?"
    )


# --------------------------------------------------------------------- #
# Date and time
# --------------------------------------------------------------------- #

def ask_date(doctor_name: str) -> str:
    return f"Great, Dr. {doctor_name}. What date would you like to come in?"


DATE_RETRY = (
    "Sorry, I didn't understand the date. "
    "You can say something like tomorrow, next Tuesday, or October 20."
)

DATE_INVALID = {
    "past": "That date has already passed. Please choose today or a later date.",
    "too_far": "We can only book up to three months ahead. Please choose an earlier date.",
    "weekend": "We don't book appointments on weekends. Please choose a weekday.",
}


def no_slots(doctor_name: str, day: date) -> str:
    return (
        f"I'm sorry, Dr. {doctor_name} has no open times on {format_spoken_date(day)}. "
        "Would you like to try another date?"
    )


def ask_time(doctor_name: str, day: date, slots: Sequence[str]) -> str:
    return (
        f"Dr. {doctor_name} has openings on {format_spoken_date(day)} at {_times(slots)}. "
        "Which time works best for you?"
    )


def time_retry(slots: Sequence[str]) -> str:
    return f"Sorry, that time isn't available. Please choose from {_times(slots)}."


# --------------------------------------------------------------------- #
# Confirmation and booking
# --------------------------------------------------------------------- #

def confirm(
    patient_name: str,
    doctor_name: str,
    department_name: str,
    day: date,
    time: str,
) -> str:
    return (
        f"Let me confirm: an appointment for {patient_name} with Dr. {doctor_name} "
        f"in {department_name} on {format_spoken_date(day)} at {format_spoken_time(time)}. "
        "Shall I book it?"
    )


CONFIRMATION_RETRY = "Please say yes to book this appointment, or no to choose a different date."
BOOKING_DECLINED = "No problem. What date would you prefer instead?"


def booked(doctor_name: str, day: date, time: str, phone: str) -> str:
    return (
        f"Your appointment with Dr. {doctor_name} on {format_spoken_date(day)} "
        f"at {format_spoken_time(time)} is booked. We'll contact you at {phone} if anything changes. "
        f"{ANYTHING_ELSE}"
    )


def slot_taken(time: str, alternatives: Sequence[str]) -> str:
    return (
        f"I'm sorry, {format_spoken_time(time)} was just taken. "
        f"I still have {_times(alternatives)}. Which would you like?"
    )


def slot_taken_no_alternatives(time: str) -> str:
    return (
        f"I'm sorry, {format_spoken_time(time)} was just taken and there are no other openings that day. "
        "What other date would work for you?"
    )


# --------------------------------------------------------------------- #
# Walk-in
# --------------------------------------------------------------------- #

ASK_VISIT_REASON = "What is the reason for your visit today?"
VISIT_REASON_RETRY = "Could you briefly tell me why you're coming in today?"


def walk_in_registered(name: str, reference_number: int) -> str:
    return (
        f"Thank you, {name}. You're registered as a walk-in patient. "
        f"Your reference number is {reference_number}. Please give it to the front desk when you arrive. "
        f"{ANYTHING_ELSE}"
    )


# --------------------------------------------------------------------- #
# Closing and hand-off
# --------------------------------------------------------------------- #

GOODBYE = "Thank you for calling. Have a great day!"

TRANSFER_CALLER_REQUEST = "Of course. Let me connect you with a member of our staff. Please hold."
TRANSFER_URGENT = (
    "If this is a medical emergency, please hang up and call your local emergency number. "
    "I'm connecting you with our staff right away."
)
TRANSFER_RETRIES = "I'm having trouble understanding. Let me connect you with our staff who can help."
TRANSFER_SYSTEM = (
    "I'm sorry, I'm having trouble accessing our system right now. "
    "Let me connect you with our staff."
)
ALREADY_TRANSFERRED = "Please hold while I connect you with our staff."
