from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo

from hostline.synthesis import VoiceParams

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


@dataclass(frozen=True)
class OpeningHours:
    day: str
    is_open: bool = True
    open_time: str = "09:00"
    close_time: str = "22:00"

    def contains(self, hhmm: str) -> bool:
        if not self.is_open:
            return False
        # Overnight hours (e.g. 18:00-02:00) wrap past midnight
        if self.close_time <= self.open_time:
            return hhmm >= self.open_time or hhmm < self.close_time
        return self.open_time <= hhmm < self.close_time


@dataclass(frozen=True)
class MenuItem:
    name: str
    price: float


@dataclass(frozen=True)
class FAQ:
    question: str
    answer: str


@dataclass(frozen=True)
class Personality:
    bot_name: str = "the assistant"
    tone: str = "friendly"
    greeting_message: str = ""
    goodbye_message: str = ""
    custom_instructions: str = ""
    voice: VoiceParams = field(default_factory=VoiceParams)


@dataclass(frozen=True)
class ReservationSettings:
    enabled: bool = True
    # Slot capacity: maximum total party count per (date, time bucket).
    max_party_size: int = 50
    advance_booking_days: int = 30
    slot_minutes: int = 30


@dataclass(frozen=True)
class AISettings:
    enable_auto_faq: bool = False
    max_response_tokens: int = 150
    temperature: float = 0.7


@dataclass(frozen=True)
class BusinessProfile:
    id: str
    name: str
    phone_number: str = ""
    business_type: str = "restaurant"
    address: str = ""
    website: str = ""
    timezone: str = "UTC"
    language: str = "en-US"
    hours: tuple[OpeningHours, ...] = ()
    menu: tuple[MenuItem, ...] = ()
    faqs: tuple[FAQ, ...] = ()
    personality: Personality = field(default_factory=Personality)
    reservations: ReservationSettings = field(default_factory=ReservationSettings)
    ai: AISettings = field(default_factory=AISettings)

    def local_now(self, now: float) -> datetime:
        return datetime.fromtimestamp(now, tz=ZoneInfo(self.timezone))

    def hours_for(self, day: str) -> Optional[OpeningHours]:
        for h in self.hours:
            if h.day == day:
                return h
        return None

    def is_open(self, now: float) -> bool:
        local = self.local_now(now)
        today = self.hours_for(WEEKDAYS[local.weekday()])
        if today is None:
            return False
        return today.contains(local.strftime("%H:%M"))

    def time_based_greeting(self, now: float) -> str:
        hour = self.local_now(now).hour
        if hour < 12:
            return "Good morning"
        if hour < 17:
            return "Good afternoon"
        return "Good evening"

    @classmethod
    def from_dict(cls, data: dict) -> "BusinessProfile":
        """Build a profile from the store's JSON representation."""
        personality = data.get("personality") or {}
        voice = personality.get("voice") or {}
        reservations = data.get("reservations") or {}
        ai = data.get("ai") or {}
        return cls(
            id=str(data["id"]),
            name=data.get("name", ""),
            phone_number=data.get("phone_number", ""),
            business_type=data.get("business_type", "restaurant"),
            address=data.get("address", ""),
            website=data.get("website", ""),
            timezone=data.get("timezone", "UTC"),
            language=data.get("language", "en-US"),
            hours=tuple(
                OpeningHours(
                    day=h["day"],
                    is_open=h.get("is_open", True),
                    open_time=h.get("open_time", "09:00"),
                    close_time=h.get("close_time", "22:00"),
                )
                for h in data.get("hours", [])
            ),
            menu=tuple(MenuItem(name=m["name"], price=float(m.get("price", 0))) for m in data.get("menu", [])),
            faqs=tuple(FAQ(question=f["question"], answer=f["answer"]) for f in data.get("faqs", [])),
            personality=Personality(
                bot_name=personality.get("bot_name", "the assistant"),
                tone=personality.get("tone", "friendly"),
                greeting_message=personality.get("greeting_message", ""),
                goodbye_message=personality.get("goodbye_message", ""),
                custom_instructions=personality.get("custom_instructions", ""),
                voice=VoiceParams(
                    gender=voice.get("gender", "female"),
                    language=voice.get("language", data.get("language", "en-US")),
                    speaking_rate=float(voice.get("speaking_rate", 1.0)),
                    pitch=float(voice.get("pitch", 0.0)),
                ),
            ),
            reservations=ReservationSettings(
                enabled=reservations.get("enabled", True),
                max_party_size=int(reservations.get("max_party_size", 50)),
                advance_booking_days=int(reservations.get("advance_booking_days", 30)),
                slot_minutes=int(reservations.get("slot_minutes", 30)),
            ),
            ai=AISettings(
                enable_auto_faq=ai.get("enable_auto_faq", False),
                max_response_tokens=int(ai.get("max_response_tokens", 150)),
                temperature=float(ai.get("temperature", 0.7)),
            ),
        )
