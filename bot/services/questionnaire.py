"""Branching questionnaire walked by a ticket creator before the channel opens.

Levels: reason -> reward type -> gift card type -> detail capture. Reward
subtypes only exist for the two reward reasons; every non-root selection
offers ``go_back`` to its parent, which truncates the draft back to the state
before the undone step.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from core.errors import InvalidSelectionError
from database.models import TicketDraft
from utils.constants import (
    DETAIL_GIFT_CARD_TYPE,
    DETAIL_OTHER,
    DETAIL_OTHER_GIFT_CARD,
    DETAIL_OTHER_REWARD,
    DETAIL_PAYPAL,
    DETAIL_REWARD_TYPE,
    DETAIL_STEAM,
    DETAIL_SUPPORT,
    GO_BACK,
    GiftCardType,
    Reason,
    RewardType,
)


class Node(str, Enum):
    REASON = "reason"
    REWARD_TYPE = "reward_type"
    GIFT_CARD_TYPE = "gift_card_type"
    SUPPORT_DETAILS = "support_details"
    OTHER_DETAILS = "other_details"
    PAYPAL_DETAILS = "paypal_details"
    STEAM_DETAILS = "steam_details"
    OTHER_REWARD_DETAILS = "other_reward_details"
    OTHER_GIFT_CARD_DETAILS = "other_gift_card_details"

    @property
    def is_selection(self) -> bool:
        return self in SELECTION_NODES


SELECTION_NODES = frozenset({Node.REASON, Node.REWARD_TYPE, Node.GIFT_CARD_TYPE})


@dataclass(frozen=True, slots=True)
class PromptOption:
    label: str
    emoji: str
    value: str


@dataclass(frozen=True, slots=True)
class OptionsPrompt:
    node: Node
    title: str
    description: str
    placeholder: str
    options: tuple[PromptOption, ...]


@dataclass(frozen=True, slots=True)
class FormField:
    key: str
    label: str
    min_length: int
    max_length: int
    multiline: bool
    placeholder: str = ""


@dataclass(frozen=True, slots=True)
class FormPrompt:
    node: Node
    title: str
    fields: tuple[FormField, ...] = field(default_factory=tuple)


@dataclass(frozen=True, slots=True)
class ReadyToFinalize:
    pass


@dataclass(frozen=True, slots=True)
class DraftExpired:
    pass


Step = OptionsPrompt | FormPrompt | ReadyToFinalize | DraftExpired

PROOF_HINT = "**Please attach proof of your participation in this channel.**"

_BACK_OPTION = PromptOption(label="Go Back", emoji="↩️", value=GO_BACK)

REASON_PROMPT = OptionsPrompt(
    node=Node.REASON,
    title="Ticket Reason",
    description="Please select the most appropriate reason for creating this ticket.",
    placeholder="Select a reason for your ticket",
    options=(
        PromptOption("Giveaway Reward", "🎁", Reason.GIVEAWAY_REWARD.value),
        PromptOption("Event Reward", "🎉", Reason.EVENT_REWARD.value),
        PromptOption("Technical Support", "🛠️", Reason.SUPPORT.value),
        PromptOption("Other Inquiry", "❓", Reason.OTHER.value),
    ),
)

GIFT_CARD_PROMPT = OptionsPrompt(
    node=Node.GIFT_CARD_TYPE,
    title="Gift Card Type",
    description=f"Please select the type of gift card you would like to receive.\n\n{PROOF_HINT}",
    placeholder="Select gift card type",
    options=(
        PromptOption("Steam Gift Card", "🎮", GiftCardType.STEAM.value),
        PromptOption("Amazon Gift Card", "📦", GiftCardType.AMAZON.value),
        PromptOption("Other Gift Card", "💳", GiftCardType.OTHER_GIFT_CARD.value),
        _BACK_OPTION,
    ),
)

FORMS: dict[Node, FormPrompt] = {
    Node.SUPPORT_DETAILS: FormPrompt(
        node=Node.SUPPORT_DETAILS,
        title="Support Request Details",
        fields=(
            FormField(
                key=DETAIL_SUPPORT,
                label="Please describe your issue",
                min_length=20,
                max_length=1000,
                multiline=True,
                placeholder="Be as detailed as possible about your technical issue...",
            ),
        ),
    ),
    Node.OTHER_DETAILS: FormPrompt(
        node=Node.OTHER_DETAILS,
        title="Please specify your request",
        fields=(
            FormField(
                key=DETAIL_OTHER,
                label="Details of your inquiry",
                min_length=20,
                max_length=1000,
                multiline=True,
                placeholder="Please explain your request in detail...",
            ),
        ),
    ),
    Node.PAYPAL_DETAILS: FormPrompt(
        node=Node.PAYPAL_DETAILS,
        title="PayPal Information",
        fields=(
            FormField(
                key=DETAIL_PAYPAL,
                label="Your PayPal email address",
                min_length=5,
                max_length=100,
                multiline=False,
                placeholder="example@paypal.com",
            ),
        ),
    ),
    Node.STEAM_DETAILS: FormPrompt(
        node=Node.STEAM_DETAILS,
        title="Steam Information",
        fields=(
            FormField(
                key=DETAIL_STEAM,
                label="Your Steam Profile URL or ID",
                min_length=5,
                max_length=100,
                multiline=False,
                placeholder="https://steamcommunity.com/id/yourprofile",
            ),
        ),
    ),
    Node.OTHER_REWARD_DETAILS: FormPrompt(
        node=Node.OTHER_REWARD_DETAILS,
        title="Reward Details",
        fields=(
            FormField(
                key=DETAIL_OTHER_REWARD,
                label="Describe your reward request",
                min_length=20,
                max_length=1000,
                multiline=True,
                placeholder="Please describe the reward you are expecting...",
            ),
        ),
    ),
    Node.OTHER_GIFT_CARD_DETAILS: FormPrompt(
        node=Node.OTHER_GIFT_CARD_DETAILS,
        title="Gift Card Details",
        fields=(
            FormField(
                key=DETAIL_OTHER_GIFT_CARD,
                label="Specify the gift card you need",
                min_length=10,
                max_length=1000,
                multiline=True,
                placeholder="Example: $50 PlayStation Store gift card for US region",
            ),
        ),
    ),
}


def reward_type_prompt(reason: Reason) -> OptionsPrompt:
    occasion = "your giveaway prize" if reason is Reason.GIVEAWAY_REWARD else "the event"
    return OptionsPrompt(
        node=Node.REWARD_TYPE,
        title="Reward Selection",
        description=f"What type of reward would you like to receive for {occasion}?\n\n{PROOF_HINT}",
        placeholder="Select your reward type",
        options=(
            PromptOption("Gift Card", "💳", RewardType.GIFT_CARD.value),
            PromptOption("PayPal", "💰", RewardType.PAYPAL.value),
            PromptOption("Other Reward", "🎁", RewardType.OTHER_REWARD.value),
            _BACK_OPTION,
        ),
    )


def _parse(enum_cls: type[Enum], value: str) -> Enum:
    try:
        return enum_cls(value)
    except ValueError as exc:
        raise InvalidSelectionError() from exc


def _truncate(draft: TicketDraft, keep: tuple[str, ...] = ()) -> None:
    draft.details = {key: value for key, value in draft.details.items() if key in keep}


def _reward_type(draft: TicketDraft) -> RewardType | None:
    raw = draft.details.get(DETAIL_REWARD_TYPE)
    return RewardType(raw) if raw else None


def _gift_card_type(draft: TicketDraft) -> GiftCardType | None:
    raw = draft.details.get(DETAIL_GIFT_CARD_TYPE)
    return GiftCardType(raw) if raw else None


def expected_capture(draft: TicketDraft) -> Node | None:
    """The detail-capture node the draft's current path leads to, if any."""
    if draft.reason is Reason.SUPPORT:
        return Node.SUPPORT_DETAILS
    if draft.reason is Reason.OTHER:
        return Node.OTHER_DETAILS
    if draft.reason is None or not draft.reason.is_reward:
        return None
    reward_type = _reward_type(draft)
    if reward_type is RewardType.PAYPAL:
        return Node.PAYPAL_DETAILS
    if reward_type is RewardType.OTHER_REWARD:
        return Node.OTHER_REWARD_DETAILS
    if reward_type is RewardType.GIFT_CARD:
        gift_card = _gift_card_type(draft)
        if gift_card is GiftCardType.STEAM:
            return Node.STEAM_DETAILS
        if gift_card is GiftCardType.OTHER_GIFT_CARD:
            return Node.OTHER_GIFT_CARD_DETAILS
    return None


def enter(draft: TicketDraft | None) -> Step:
    """First prompt for a freshly created ticket, honouring a preset reason."""
    if draft is None or draft.reason is None:
        return REASON_PROMPT
    if draft.reason.is_reward:
        return reward_type_prompt(draft.reason)
    return FORMS[Node.SUPPORT_DETAILS if draft.reason is Reason.SUPPORT else Node.OTHER_DETAILS]


def _go_back(draft: TicketDraft, node: Node) -> Step:
    if node is Node.GIFT_CARD_TYPE and draft.reason is not None and draft.reason.is_reward:
        _truncate(draft)
        return reward_type_prompt(draft.reason)
    draft.reason = None
    _truncate(draft)
    return REASON_PROMPT


def advance(draft: TicketDraft | None, node: Node, value: str) -> Step:
    """Apply one menu selection to ``draft`` and return what to show next."""
    if draft is None:
        return DraftExpired()

    if value == GO_BACK:
        return _go_back(draft, node)

    if node is Node.REASON:
        reason = _parse(Reason, value)
        if draft.reason is not None:
            # Only "go back" may clear a chosen reason; re-picking it re-opens its first prompt.
            if reason is not draft.reason:
                raise InvalidSelectionError("Your ticket reason is already set. Use Go Back to change it.")
            return enter(draft)
        draft.reason = reason  # type: ignore[assignment]
        _truncate(draft)
        return enter(draft)

    if node is Node.REWARD_TYPE:
        if draft.reason is None or not draft.reason.is_reward:
            return DraftExpired()
        reward_type = _parse(RewardType, value)
        _truncate(draft)
        draft.details[DETAIL_REWARD_TYPE] = reward_type.value
        if reward_type is RewardType.GIFT_CARD:
            return GIFT_CARD_PROMPT
        if reward_type is RewardType.PAYPAL:
            return FORMS[Node.PAYPAL_DETAILS]
        return FORMS[Node.OTHER_REWARD_DETAILS]

    if node is Node.GIFT_CARD_TYPE:
        if _reward_type(draft) is not RewardType.GIFT_CARD:
            return DraftExpired()
        gift_card = _parse(GiftCardType, value)
        _truncate(draft, keep=(DETAIL_REWARD_TYPE,))
        draft.details[DETAIL_GIFT_CARD_TYPE] = gift_card.value
        if gift_card is GiftCardType.AMAZON:
            return ReadyToFinalize()
        if gift_card is GiftCardType.STEAM:
            return FORMS[Node.STEAM_DETAILS]
        return FORMS[Node.OTHER_GIFT_CARD_DETAILS]

    raise InvalidSelectionError()


def submit_form(draft: TicketDraft | None, node: Node, values: dict[str, str]) -> Step:
    """Record a detail-capture submission; the path must still lead to ``node``."""
    if draft is None or expected_capture(draft) is not node:
        return DraftExpired()
    form = FORMS[node]
    for form_field in form.fields:
        value = (values.get(form_field.key) or "").strip()
        if not value:
            raise InvalidSelectionError(f"`{form_field.label}` is required.")
        draft.details[form_field.key] = value[: form_field.max_length]
    return ReadyToFinalize()
