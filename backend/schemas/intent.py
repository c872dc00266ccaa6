from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Slot(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: Optional[str] = None
    value: Optional[Any] = None
    resolutions: Optional[Any] = None

    def resolved_value(self) -> Optional[Any]:
        """
        The spoken value, or the first entity-resolution match when the
        assistant only sent resolutions:

            resolutions.resolutionsPerAuthority[0].values[0].value.name
        """
        if self.value not in (None, ""):
            return self.value
        try:
            return self.resolutions["resolutionsPerAuthority"][0]["values"][0]["value"]["name"]
        except (KeyError, IndexError, TypeError):
            return None


class Intent(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str
    slots: Dict[str, Slot] = Field(default_factory=dict)

    def slot_value(self, name: str) -> Optional[Any]:
        slot = self.slots.get(name)
        return slot.resolved_value() if slot is not None else None

    def slot_values(self) -> Dict[str, Optional[Any]]:
        return {name: self.slot_value(name) for name in self.slots}


class IntentRequestBody(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: str
    intent: Optional[Intent] = None


class IntentEnvelope(BaseModel):
    """Incoming voice-assistant request. Session/context are read separately for the owner id."""

    model_config = ConfigDict(extra="allow")

    version: Optional[str] = None
    request: IntentRequestBody


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class OutputSpeech(_CamelModel):
    type: Literal["PlainText"] = "PlainText"
    text: str


class SpeechResponse(_CamelModel):
    output_speech: OutputSpeech
    should_end_session: bool = False


class SpeechEnvelope(_CamelModel):
    version: str = "1.0"
    response: SpeechResponse

    @classmethod
    def say(cls, text: str, end_session: bool = False) -> "SpeechEnvelope":
        return cls(
            response=SpeechResponse(
                output_speech=OutputSpeech(text=text),
                should_end_session=end_session,
            )
        )

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)

    @property
    def text(self) -> str:
        return self.response.output_speech.text
