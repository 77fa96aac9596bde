from __future__ import annotations

from database.models import PendingTicket, TicketDraft, TicketSummary
from utils.constants import (
    DETAIL_GIFT_CARD_TYPE,
    DETAIL_OTHER,
    DETAIL_OTHER_GIFT_CARD,
    DETAIL_OTHER_REWARD,
    DETAIL_PAYPAL,
    DETAIL_REWARD_TYPE,
    DETAIL_STEAM,
    DETAIL_SUPPORT,
    GIFT_CARD_TYPE_LABELS,
    REASON_LABELS,
    REWARD_TYPE_LABELS,
    GiftCardType,
    Reason,
    RewardType,
)


def _label(labels: dict, raw: str | None) -> str:
    if raw is None:
        return "Unknown"
    for key, label in labels.items():
        if key.value == raw:
            return label
    return raw


def detail_fields(draft: TicketDraft) -> list[tuple[str, str]]:
    """Render the draft's answers in the fixed order used for its reason."""
    details = draft.details
    fields: list[tuple[str, str]] = []
    if draft.reason is not None and draft.reason.is_reward:
        reward_type = details.get(DETAIL_REWARD_TYPE)
        fields.append(("Reward Type", _label(REWARD_TYPE_LABELS, reward_type)))
        if reward_type == RewardType.GIFT_CARD.value:
            gift_card = details.get(DETAIL_GIFT_CARD_TYPE)
            fields.append(("Gift Card Type", _label(GIFT_CARD_TYPE_LABELS, gift_card)))
            if gift_card == GiftCardType.STEAM.value and details.get(DETAIL_STEAM):
                fields.append(("Steam ID", details[DETAIL_STEAM]))
            elif gift_card == GiftCardType.OTHER_GIFT_CARD.value and details.get(DETAIL_OTHER_GIFT_CARD):
                fields.append(("Gift Card Details", details[DETAIL_OTHER_GIFT_CARD]))
        elif reward_type == RewardType.PAYPAL.value and details.get(DETAIL_PAYPAL):
            fields.append(("PayPal Email", details[DETAIL_PAYPAL]))
        elif reward_type == RewardType.OTHER_REWARD.value and details.get(DETAIL_OTHER_REWARD):
            fields.append(("Reward Details", details[DETAIL_OTHER_REWARD]))
    elif draft.reason is Reason.SUPPORT and details.get(DETAIL_SUPPORT):
        fields.append(("Issue Description", details[DETAIL_SUPPORT]))
    elif draft.reason is Reason.OTHER and details.get(DETAIL_OTHER):
        fields.append(("Request Details", details[DETAIL_OTHER]))
    return fields


def build_summary(pending: PendingTicket, draft: TicketDraft) -> TicketSummary:
    if draft.reason is None:
        raise ValueError("Cannot summarize a draft without a reason")
    return TicketSummary(
        ticket_number=pending.ticket_number,
        guild_id=pending.guild_id,
        channel_id=pending.channel_id,
        owner_id=pending.user_id,
        reason=draft.reason,
        reason_label=REASON_LABELS[draft.reason],
        fields=detail_fields(draft),
        proof_required=draft.reason.is_reward,
    )
