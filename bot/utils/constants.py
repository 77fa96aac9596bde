from __future__ import annotations

from enum import Enum


class Reason(str, Enum):
    GIVEAWAY_REWARD = "giveaway_reward"
    EVENT_REWARD = "event_reward"
    SUPPORT = "support"
    OTHER = "other"

    @property
    def is_reward(self) -> bool:
        return self in REWARD_REASONS


class RewardType(str, Enum):
    GIFT_CARD = "gift_card"
    PAYPAL = "paypal"
    OTHER_REWARD = "other_reward"


class GiftCardType(str, Enum):
    STEAM = "steam"
    AMAZON = "amazon"
    OTHER_GIFT_CARD = "other_gift_card"


REWARD_REASONS = frozenset({Reason.GIVEAWAY_REWARD, Reason.EVENT_REWARD})

GO_BACK = "go_back"

REASON_LABELS = {
    Reason.GIVEAWAY_REWARD: "🎁 Giveaway Reward",
    Reason.EVENT_REWARD: "🎉 Event Reward",
    Reason.SUPPORT: "🛠️ Technical Support",
    Reason.OTHER: "❓ Other Inquiry",
}

REWARD_TYPE_LABELS = {
    RewardType.GIFT_CARD: "💳 Gift Card",
    RewardType.PAYPAL: "💰 PayPal",
    RewardType.OTHER_REWARD: "🎁 Other Reward",
}

GIFT_CARD_TYPE_LABELS = {
    GiftCardType.STEAM: "🎮 Steam",
    GiftCardType.AMAZON: "📦 Amazon",
    GiftCardType.OTHER_GIFT_CARD: "💳 Other Gift Card",
}

# Draft detail keys, in the order they are collected.
DETAIL_REWARD_TYPE = "reward_type"
DETAIL_GIFT_CARD_TYPE = "gift_card_type"
DETAIL_SUPPORT = "support_details"
DETAIL_OTHER = "other_details"
DETAIL_PAYPAL = "paypal_id"
DETAIL_STEAM = "steam_id"
DETAIL_OTHER_REWARD = "other_reward_details"
DETAIL_OTHER_GIFT_CARD = "other_gift_card_details"

# Discord JSON error code for "Unknown Channel".
UNKNOWN_CHANNEL_CODE = 10003
