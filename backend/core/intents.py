"""
Voice intent handling.

One table maps intent names to handlers; every voice entry point goes
through `handle_envelope`. Spoken replies are Japanese, item names are
stored in English with the Japanese label as displayName.
"""

from dataclasses import dataclass, field
from datetime import datetime
from functools import partial
from typing import Any, Awaitable, Callable, Dict, Optional

from loguru import logger
from pydantic import ValidationError

from core.config import settings
from core.identity import owner_from_envelope
from core.inventory import apply_add, apply_query, apply_remove, parse_quantity
from core.vocabulary import to_english, to_japanese
from db.storage import InventoryStorage
from schemas.intent import IntentEnvelope, SpeechEnvelope

WELCOME = "在庫管理へようこそ。食材を追加したり、在庫を確認することができます。"
HELP = (
    "「にんじんを4個冷蔵庫に追加した」で食材を追加、「冷蔵庫のにんじんはいくつある」で残量確認ができます。"
    "「冷蔵庫からにんじんを2個使った」で消費記録もできます。"
)
GOODBYE = "ありがとうございました。"
FALLBACK = "すみません、そのコマンドは理解できませんでした。もう一度試してください。"
BAD_REQUEST = "リクエストの処理に問題が発生しました。"
SYSTEM_ERROR = "システムエラーが発生しました。しばらく待ってからもう一度お試しください。"
ASK_ITEM = "どの食材ですか？もう一度お願いします。"


@dataclass
class IntentContext:
    storage: InventoryStorage
    owner_id: str
    slots: Dict[str, Any] = field(default_factory=dict)

    @property
    def location(self) -> str:
        return settings.voice_location


IntentHandler = Callable[[IntentContext], Awaitable[SpeechEnvelope]]


# ----------------------------------------------------------------------
# Item operations
# ----------------------------------------------------------------------


async def add_item(ctx: IntentContext, english: str, spoken: str) -> SpeechEnvelope:
    quantity = parse_quantity(ctx.slots.get("Quantity"))
    record = await ctx.storage.load(ctx.owner_id)
    record, outcome = apply_add(record, english, quantity, ctx.location, display_name=spoken)
    await ctx.storage.save(ctx.owner_id, record)
    logger.info(f"Voice add: {english} +{quantity} for {ctx.owner_id!r} (now {outcome.remaining})")
    return SpeechEnvelope.say(
        f"{spoken}を{quantity}個{ctx.location}に追加しました。現在{outcome.remaining}個あります。"
    )


async def check_item(ctx: IntentContext, english: str, spoken: str) -> SpeechEnvelope:
    record = await ctx.storage.load(ctx.owner_id)
    quantity = apply_query(record, english, ctx.location)
    return SpeechEnvelope.say(f"{spoken}は{quantity}個あります。")


async def remove_item(ctx: IntentContext, english: str, spoken: str) -> SpeechEnvelope:
    quantity = parse_quantity(ctx.slots.get("Quantity"))
    record = await ctx.storage.load(ctx.owner_id)
    record, outcome = apply_remove(record, english, quantity, ctx.location)

    if outcome.status == "empty":
        return SpeechEnvelope.say(f"{spoken}はもうありません。")

    await ctx.storage.save(ctx.owner_id, record)
    logger.info(f"Voice remove: {english} -{quantity} for {ctx.owner_id!r} ({outcome.status})")
    if outcome.status == "exhausted":
        return SpeechEnvelope.say(f"{spoken}をすべて使い切りました。")
    return SpeechEnvelope.say(f"{spoken}を{quantity}個使いました。残り{outcome.remaining}個です。")


def _fixed(operation, english: str) -> IntentHandler:
    return partial(operation, english=english, spoken=to_japanese(english))


def _from_item_slot(operation) -> IntentHandler:
    async def handler(ctx: IntentContext) -> SpeechEnvelope:
        spoken = ctx.slots.get("Item")
        if not isinstance(spoken, str) or not spoken.strip():
            return SpeechEnvelope.say(ASK_ITEM)
        spoken = spoken.strip()
        return await operation(ctx, english=to_english(spoken), spoken=spoken)

    return handler


# ----------------------------------------------------------------------
# Conversation intents
# ----------------------------------------------------------------------


async def self_test_intent(ctx: IntentContext) -> SpeechEnvelope:
    now = datetime.now().strftime("%H:%M:%S")
    return SpeechEnvelope.say(
        f"テストが正常に動作しています。在庫管理システムに接続されています。現在の時刻は{now}です。"
    )


async def help_intent(ctx: IntentContext) -> SpeechEnvelope:
    return SpeechEnvelope.say(HELP)


async def stop_intent(ctx: IntentContext) -> SpeechEnvelope:
    return SpeechEnvelope.say(GOODBYE, end_session=True)


INTENT_HANDLERS: Dict[str, IntentHandler] = {
    "AddCarrotsIntent": _fixed(add_item, "carrots"),
    "AddEggsIntent": _fixed(add_item, "eggs"),
    "CheckCarrotsIntent": _fixed(check_item, "carrots"),
    "CheckEggsIntent": _fixed(check_item, "eggs"),
    "RemoveCarrotsIntent": _fixed(remove_item, "carrots"),
    "RemoveEggsIntent": _fixed(remove_item, "eggs"),
    "AddItemIntent": _from_item_slot(add_item),
    "CheckItemIntent": _from_item_slot(check_item),
    "RemoveItemIntent": _from_item_slot(remove_item),
    "TestIntent": self_test_intent,
    "AMAZON.HelpIntent": help_intent,
    "AMAZON.StopIntent": stop_intent,
    "AMAZON.CancelIntent": stop_intent,
}

LAUNCH_TYPES = {"LaunchRequest", "Launch"}
INTENT_TYPES = {"IntentRequest", "Intent"}
SESSION_END_TYPES = {"SessionEndedRequest"}


async def dispatch(envelope: IntentEnvelope, ctx: IntentContext) -> SpeechEnvelope:
    request_type = envelope.request.type

    if request_type in LAUNCH_TYPES:
        return SpeechEnvelope.say(WELCOME)

    if request_type in SESSION_END_TYPES:
        return SpeechEnvelope.say(GOODBYE, end_session=True)

    if request_type not in INTENT_TYPES or envelope.request.intent is None:
        logger.warning(f"Unhandled request type: {request_type}")
        return SpeechEnvelope.say(BAD_REQUEST, end_session=True)

    intent = envelope.request.intent
    handler = INTENT_HANDLERS.get(intent.name)
    if handler is None:
        logger.warning(f"Unhandled intent: {intent.name}")
        return SpeechEnvelope.say(FALLBACK)

    return await handler(ctx)


async def handle_envelope(
    body: Any,
    storage: InventoryStorage,
    fallback_owner: Optional[str] = None,
) -> SpeechEnvelope:
    """
    Always produces a speakable reply; internal errors become an apology.

    `fallback_owner` is used when the envelope carries no user id.
    """
    try:
        envelope = IntentEnvelope.model_validate(body)
    except ValidationError as exc:
        logger.warning(f"Malformed intent envelope: {exc.error_count()} error(s)")
        return SpeechEnvelope.say(BAD_REQUEST, end_session=True)

    intent = envelope.request.intent
    slots: Dict[str, Optional[Any]] = intent.slot_values() if intent else {}
    owner_id = owner_from_envelope(body, fallback_owner)
    ctx = IntentContext(storage=storage, owner_id=owner_id, slots=slots)
    logger.debug(
        f"Intent request type={envelope.request.type} intent={intent.name if intent else None} owner={ctx.owner_id!r}"
    )

    try:
        return await dispatch(envelope, ctx)
    except Exception:
        logger.exception("Error processing intent request")
        return SpeechEnvelope.say(SYSTEM_ERROR, end_session=True)
