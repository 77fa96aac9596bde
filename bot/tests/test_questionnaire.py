from __future__ import annotations

import pytest

from core.errors import InvalidSelectionError
from database.models import TicketDraft
from services.questionnaire import (
    REASON_PROMPT,
    DraftExpired,
    FormPrompt,
    Node,
    OptionsPrompt,
    ReadyToFinalize,
    advance,
    enter,
    expected_capture,
    submit_form,
)
from utils.constants import GO_BACK, Reason


def _draft(reason: Reason | None = None) -> TicketDraft:
    return TicketDraft(channel_id=10, user_id=20, guild_id=30, reason=reason)


def test_steam_path_collects_exactly_its_answers() -> None:
    draft = _draft()

    step = advance(draft, Node.REASON, "giveaway_reward")
    assert isinstance(step, OptionsPrompt) and step.node is Node.REWARD_TYPE
    assert "your giveaway prize" in step.description

    step = advance(draft, Node.REWARD_TYPE, "gift_card")
    assert isinstance(step, OptionsPrompt) and step.node is Node.GIFT_CARD_TYPE

    step = advance(draft, Node.GIFT_CARD_TYPE, "steam")
    assert isinstance(step, FormPrompt) and step.node is Node.STEAM_DETAILS

    step = submit_form(draft, Node.STEAM_DETAILS, {"steam_id": "  https://steamcommunity.com/id/me  "})
    assert isinstance(step, ReadyToFinalize)
    assert draft.answers() == {
        "reason": "giveaway_reward",
        "reward_type": "gift_card",
        "gift_card_type": "steam",
        "steam_id": "https://steamcommunity.com/id/me",
    }


def test_amazon_finalizes_without_form() -> None:
    draft = _draft(Reason.EVENT_REWARD)
    advance(draft, Node.REWARD_TYPE, "gift_card")
    assert isinstance(advance(draft, Node.GIFT_CARD_TYPE, "amazon"), ReadyToFinalize)
    assert draft.details == {"reward_type": "gift_card", "gift_card_type": "amazon"}


def test_go_back_from_gift_card_returns_to_reward_type() -> None:
    draft = _draft(Reason.GIVEAWAY_REWARD)
    advance(draft, Node.REWARD_TYPE, "gift_card")

    step = advance(draft, Node.GIFT_CARD_TYPE, GO_BACK)

    assert isinstance(step, OptionsPrompt) and step.node is Node.REWARD_TYPE
    assert draft.reason is Reason.GIVEAWAY_REWARD
    assert draft.details == {}


def test_go_back_from_reward_type_clears_reason() -> None:
    draft = _draft(Reason.GIVEAWAY_REWARD)
    step = advance(draft, Node.REWARD_TYPE, GO_BACK)
    assert step == REASON_PROMPT
    assert draft.reason is None
    assert draft.answers() == {}


def test_changing_path_discards_stale_answers() -> None:
    draft = _draft(Reason.GIVEAWAY_REWARD)
    advance(draft, Node.REWARD_TYPE, "gift_card")
    advance(draft, Node.GIFT_CARD_TYPE, "steam")
    advance(draft, Node.REWARD_TYPE, "paypal")
    assert draft.details == {"reward_type": "paypal"}
    assert expected_capture(draft) is Node.PAYPAL_DETAILS


def test_stale_reason_menu_cannot_switch_reason() -> None:
    draft = _draft(Reason.GIVEAWAY_REWARD)
    advance(draft, Node.REWARD_TYPE, "paypal")

    with pytest.raises(InvalidSelectionError):
        advance(draft, Node.REASON, "support")

    assert draft.reason is Reason.GIVEAWAY_REWARD
    assert draft.details == {"reward_type": "paypal"}


def test_repicking_same_reason_reopens_its_first_prompt() -> None:
    draft = _draft(Reason.SUPPORT)
    step = advance(draft, Node.REASON, "support")
    assert isinstance(step, FormPrompt) and step.node is Node.SUPPORT_DETAILS
    assert draft.reason is Reason.SUPPORT


def test_go_back_then_new_reason_is_accepted() -> None:
    draft = _draft(Reason.GIVEAWAY_REWARD)
    advance(draft, Node.REWARD_TYPE, GO_BACK)
    step = advance(draft, Node.REASON, "other")
    assert isinstance(step, FormPrompt) and step.node is Node.OTHER_DETAILS
    assert draft.reason is Reason.OTHER


def test_stale_form_submission_expires() -> None:
    draft = _draft(Reason.GIVEAWAY_REWARD)
    advance(draft, Node.REWARD_TYPE, "paypal")
    step = submit_form(draft, Node.STEAM_DETAILS, {"steam_id": "someone"})
    assert isinstance(step, DraftExpired)
    assert "steam_id" not in draft.details


def test_reward_type_without_reward_reason_expires() -> None:
    assert isinstance(advance(_draft(Reason.SUPPORT), Node.REWARD_TYPE, "paypal"), DraftExpired)
    assert isinstance(advance(None, Node.REASON, "support"), DraftExpired)


def test_unknown_value_is_rejected() -> None:
    with pytest.raises(InvalidSelectionError):
        advance(_draft(), Node.REASON, "refund")


def test_blank_form_value_is_rejected() -> None:
    draft = _draft(Reason.SUPPORT)
    with pytest.raises(InvalidSelectionError):
        submit_form(draft, Node.SUPPORT_DETAILS, {"support_details": "   "})


def test_long_values_are_truncated() -> None:
    draft = _draft(Reason.OTHER)
    submit_form(draft, Node.OTHER_DETAILS, {"other_details": "x" * 1500})
    assert len(draft.details["other_details"]) == 1000


@pytest.mark.parametrize(
    ("reason", "expected"),
    [
        (None, Node.REASON),
        (Reason.GIVEAWAY_REWARD, Node.REWARD_TYPE),
        (Reason.SUPPORT, Node.SUPPORT_DETAILS),
        (Reason.OTHER, Node.OTHER_DETAILS),
    ],
)
def test_enter_honours_preset(reason: Reason | None, expected: Node) -> None:
    assert enter(_draft(reason)).node is expected
