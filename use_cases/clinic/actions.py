"""
Action Token Grammar.

A language model asks for work by embedding tokens in its reply:

    [ACTION: OPERATION_NAME(JSON_ARGS)]

OPERATION_NAME is an identifier and JSON_ARGS is a single JSON object
(empty parentheses mean no arguments). ActionParser scans the text left to
right and yields one typed variant per token:

- ActionCall: known operation, arguments validated into its pydantic model
- UnknownAction: the name is not in the operation table
- MalformedAction: the payload is not a JSON object or fails the model

A malformed token never stops the scan; parsing resumes after it.
"""

import json
import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple, Type, Union

import pydantic
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


# =============================================================================
# ARGUMENT MODELS
# =============================================================================

class ActionArguments(BaseModel):
    """Base for operation arguments: camelCase on the wire, snake_case in Python."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
        extra="ignore",
    )


class SearchPatientArgs(ActionArguments):
    phone: Optional[str] = None
    name: Optional[str] = None


class GetAvailableSlotsArgs(ActionArguments):
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    preferred_times: List[str] = Field(default_factory=list)
    subjective_date: Optional[str] = None


class BookAppointmentArgs(ActionArguments):
    patient_id: str
    patient_name: str
    date: str
    time: str
    type: str


class FamilyMemberArgs(ActionArguments):
    name: str
    relationship: str
    appointment_type: str


class BookFamilyAppointmentsArgs(ActionArguments):
    primary_patient_id: str
    family_members: List[FamilyMemberArgs]
    preferred_date: str
    timing: str = "back-to-back"
    primary_patient_appointment_type: str = "Cleaning"


class RegisterNewPatientArgs(ActionArguments):
    full_name: str
    phone: str
    date_of_birth: str
    insurance: str


class CancelAppointmentArgs(ActionArguments):
    appointment_id: str


class CancelAllAppointmentsArgs(ActionArguments):
    patient_id: str


class RescheduleAppointmentArgs(ActionArguments):
    appointment_id: str
    new_date: str
    new_time: str


class NotifyStaffEmergencyArgs(ActionArguments):
    patient_name: str
    emergency_details: str
    contact_phone: str


# =============================================================================
# PARSED VARIANTS
# =============================================================================

@dataclass
class ActionCall:
    name: str
    arguments: BaseModel
    raw: str


@dataclass
class UnknownAction:
    name: str
    raw: str


@dataclass
class MalformedAction:
    name: str
    raw: str
    reason: str


ParsedAction = Union[ActionCall, UnknownAction, MalformedAction]


@dataclass
class ParsedTurn:
    actions: List[ParsedAction]
    text: str


# =============================================================================
# PARSER
# =============================================================================

TOKEN_START = re.compile(r"\[ACTION:\s*([A-Za-z_][A-Za-z0-9_]*)\s*\(")
EXCESS_NEWLINES = re.compile(r"\n{3,}")


def _skip_whitespace(text: str, pos: int) -> int:
    while pos < len(text) and text[pos].isspace():
        pos += 1
    return pos


def _describe(error: pydantic.ValidationError) -> str:
    parts = []
    for detail in error.errors():
        location = ".".join(str(p) for p in detail.get("loc", ())) or "arguments"
        parts.append(f"{location}: {detail.get('msg', 'invalid')}")
    return "; ".join(parts)


class ActionParser:
    """
    Extracts action tokens from model output.

    Args:
        schemas: Operation name -> argument model
    """

    def __init__(self, schemas: Dict[str, Type[BaseModel]]):
        self._schemas = dict(schemas)
        self._decoder = json.JSONDecoder()

    def parse(self, text: str) -> ParsedTurn:
        actions: List[ParsedAction] = []
        spans: List[Tuple[int, int]] = []
        pos = 0
        text = text or ""

        while True:
            match = TOKEN_START.search(text, pos)
            if match is None:
                break
            name = match.group(1)
            payload, end, reason = self._read_payload(text, match.end())
            raw = text[match.start():end]
            spans.append((match.start(), end))
            pos = end

            if name not in self._schemas:
                actions.append(UnknownAction(name=name, raw=raw))
            elif reason is not None:
                actions.append(MalformedAction(name=name, raw=raw, reason=reason))
            else:
                try:
                    arguments = self._schemas[name].model_validate(payload)
                except pydantic.ValidationError as e:
                    actions.append(MalformedAction(name=name, raw=raw, reason=_describe(e)))
                else:
                    actions.append(ActionCall(name=name, arguments=arguments, raw=raw))

        return ParsedTurn(actions=actions, text=self.strip_tokens(text, spans))

    def _read_payload(self, text: str, start: int) -> Tuple[Optional[dict], int, Optional[str]]:
        """
        Read ``JSON_ARGS)]`` starting just after the opening parenthesis.

        Returns (payload, end of token, failure reason).
        """
        pos = _skip_whitespace(text, start)
        if text.startswith(")", pos):
            closing = _skip_whitespace(text, pos + 1)
            if text.startswith("]", closing):
                return {}, closing + 1, None

        try:
            payload, after = self._decoder.raw_decode(text, pos)
        except json.JSONDecodeError as e:
            return None, self._recover(text, start), f"arguments are not valid JSON: {e.msg}"

        closing = _skip_whitespace(text, after)
        if not text.startswith(")", closing):
            return None, self._recover(text, start), "expected ')' after arguments"
        closing = _skip_whitespace(text, closing + 1)
        if not text.startswith("]", closing):
            return None, self._recover(text, start), "expected ']' to close the action"
        if not isinstance(payload, dict):
            return None, closing + 1, "arguments must be a JSON object"
        return payload, closing + 1, None

    @staticmethod
    def _recover(text: str, start: int) -> int:
        """
        End of a malformed token: just past the next ')]', else the next ']'.

        The search never crosses into the following token; with no closer
        before it the malformed token ends where the next one begins.
        """
        following = TOKEN_START.search(text, start)
        limit = following.start() if following else len(text)
        close = text.find(")]", start, limit)
        if close != -1:
            return close + 2
        bracket = text.find("]", start, limit)
        return bracket + 1 if bracket != -1 else limit

    @staticmethod
    def strip_tokens(text: str, spans: List[Tuple[int, int]]) -> str:
        pieces = []
        last = 0
        for start, end in spans:
            pieces.append(text[last:start])
            last = end
        pieces.append(text[last:])
        return EXCESS_NEWLINES.sub("\n\n", "".join(pieces)).strip()
