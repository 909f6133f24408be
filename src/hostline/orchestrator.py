"""Call session orchestrator.

Turns the carrier's independent webhook events into one coherent
conversation per call:

    IncomingCall    -> INITIATED -> GREETING_SENT
    SpeechResult    -> PROCESSING_TURN -> AWAITING_SPEECH | ERROR_RECOVERY | ENDING
    SilenceTimeout  -> AWAITING_SPEECH (re-prompt) | ENDING
    StatusCallback  -> ENDING (carrier hung up)
    ENDING          -> ENDED (summary, persistence, call:ended)

Every handler holds the session's lock for its whole run, so events for one
call are applied in arrival order.  Each handler returns the ordered list of
directives for the telephony layer; the caller always gets a spoken reply or
a hangup, whatever fails underneath.

Each live call also has a wall-clock watchdog that ends it at
``max_call_seconds`` even when no further webhook arrives.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from hostline.business import BusinessProfile
from hostline.config import Messages, OrchestratorConfig
from hostline.costs import CAPABLE_TIER, CostRates, recompute
from hostline.directives import Directive
from hostline.error_log import (
    DATABASE,
    GENERATION,
    HIGH,
    LOW,
    MEDIUM,
    RECOGNITION,
    SYSTEM,
    report_error,
)
from hostline.errors import (
    CarrierTimeout,
    InvalidTransition,
    LockTimeout,
    RecognitionError,
    ResponseGenerationError,
)
from hostline.events import CALL_ENDED, CALL_STARTED, CALL_TURN, RESERVATION_CREATED, EventPublisher
from hostline.pipeline import PipelineResult, ResponsePipeline
from hostline.post_call import RECORD_ABANDONED, call_duration, finalize
from hostline.recognition import Recognizer, transcribe_or_raise
from hostline.reservations import ReservationArbitrator, ReservationResult
from hostline.responder import Responder
from hostline.session import CallSession
from hostline.session_store import SessionStore
from hostline.states import CARRIER_TERMINAL_STATUSES, CallStatus, can_transition
from hostline.store import Store
from hostline.synthesis import CachingSynthesizer, SpokenText

logger = logging.getLogger(__name__)

END_COMPLETED = "completed"
END_RESERVATION_CONFIRMED = "reservation_confirmed"
END_SLOT_UNAVAILABLE = "slot_unavailable"
END_TIMEOUT = "timeout"
END_MAX_TURNS = "max_turns"
END_MAX_DURATION = "max_duration"
END_ERROR = "error"

REPROMPT_SPEECH_TIMEOUT = 3


@dataclass(frozen=True)
class IncomingCall:
    call_id: str
    from_number: str
    to_number: str


@dataclass(frozen=True)
class SpeechResult:
    call_id: str
    text: str = ""
    confidence: Optional[float] = None
    audio: Optional[bytes] = None


@dataclass(frozen=True)
class SilenceTimeout:
    call_id: str


@dataclass(frozen=True)
class StatusCallback:
    call_id: str
    status: str
    duration_seconds: Optional[int] = None


class Orchestrator:
    def __init__(
        self,
        sessions: SessionStore,
        store: Store,
        pipeline: ResponsePipeline,
        synthesizer: CachingSynthesizer,
        arbitrator: ReservationArbitrator,
        publisher: EventPublisher,
        responder: Responder,
        recognizer: Optional[Recognizer] = None,
        config: OrchestratorConfig = OrchestratorConfig(),
        rates: CostRates = CostRates(),
        messages: Messages = Messages(),
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.sessions = sessions
        self.store = store
        self.pipeline = pipeline
        self.synthesizer = synthesizer
        self.arbitrator = arbitrator
        self.publisher = publisher
        self.responder = responder
        self.recognizer = recognizer
        self.config = config
        self.rates = rates
        self.messages = messages
        self._clock = clock
        self._sleep = sleep
        self._businesses: dict[str, BusinessProfile] = {}
        self._inflight: dict[str, asyncio.Task] = {}
        self._deadlines: dict[str, asyncio.TimerHandle] = {}
        self._background: set[asyncio.Task] = set()

    # -- webhook entry points --------------------------------------------

    async def handle_incoming_call(self, event: IncomingCall) -> list[Directive]:
        try:
            async with self.sessions.lock(event.call_id, self.config.lock_timeout):
                return await self._start_call(event)
        except LockTimeout as e:
            logger.warning("IncomingCall %s: %s", event.call_id, e)
            return [Directive.speak(self.messages.unavailable), Directive.hangup()]

    async def handle_speech(self, event: SpeechResult) -> list[Directive]:
        try:
            async with self.sessions.lock(event.call_id, self.config.lock_timeout):
                return await self._handle_speech(event)
        except LockTimeout as e:
            logger.warning("SpeechResult %s: %s", event.call_id, e)
            return self._busy_reply(event.call_id)

    async def handle_silence_timeout(self, event: SilenceTimeout) -> list[Directive]:
        try:
            async with self.sessions.lock(event.call_id, self.config.lock_timeout):
                return await self._handle_silence(event)
        except LockTimeout as e:
            logger.warning("SilenceTimeout %s: %s", event.call_id, e)
            return self._busy_reply(event.call_id)

    async def handle_status_callback(self, event: StatusCallback) -> list[Directive]:
        status = (event.status or "").lower()
        terminal = status in CARRIER_TERMINAL_STATUSES
        if terminal:
            task = self._inflight.get(event.call_id)
            if task is not None and not task.done():
                logger.info("Carrier reported %s for %s mid-turn, cancelling turn", status, event.call_id)
                task.cancel()

        try:
            async with self.sessions.lock(event.call_id, self.config.lock_timeout):
                session = await self.sessions.get(event.call_id)
                if session is None or session.status.is_terminal:
                    logger.debug("StatusCallback %s for unknown or ended call %s", status, event.call_id)
                    return []
                if event.duration_seconds is not None:
                    session.duration_seconds = int(event.duration_seconds)
                now = self._clock()
                if not terminal:
                    self._recompute(session, now)
                    await self.sessions.set(session)
                    return []
                self.transition(session, CallStatus.ENDING)
                session.end_reason = f"carrier_{status}"
                await self._finalize(session, self._businesses.get(session.id), now)
                return []
        except LockTimeout as e:
            if not terminal:
                logger.warning("StatusCallback %s: %s", event.call_id, e)
                return []
            logger.warning("StatusCallback %s: %s, ending once the call is free", event.call_id, e)
            self._spawn(self._force_end(event.call_id, f"carrier_{status}", event.duration_seconds))
            return []

    # -- queries ---------------------------------------------------------

    def active_calls(self) -> list[dict]:
        now = self._clock()
        return [
            {
                "callId": s.id,
                "businessId": s.business_id,
                "status": s.status.value,
                "turnCount": s.turn_count,
                "duration": round(s.elapsed(now)),
                "currentIntent": s.current_intent,
            }
            for s in self.sessions.values()
            if s.status.is_live
        ]

    def active_call_count(self) -> int:
        return len(self.active_calls())

    async def drain(self) -> None:
        """Wait for deferred call endings to finish."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    # -- state machine ---------------------------------------------------

    def transition(self, session: CallSession, new: CallStatus) -> None:
        """Move a session along the call graph. Every transition bumps the generation."""
        if not can_transition(session.status, new):
            raise InvalidTransition(f"call {session.id}: {session.status.value} -> {new.value}")
        logger.debug("Call %s: %s -> %s", session.id, session.status.value, new.value)
        session.status = new
        session.generation += 1

    async def _start_call(self, event: IncomingCall) -> list[Directive]:
        existing = await self.sessions.get(event.call_id)
        if existing is not None:
            business = self._businesses.get(existing.id)
            if existing.status.is_terminal or business is None:
                return [Directive.hangup()]
            logger.info("Duplicate IncomingCall for %s, re-issuing gather", event.call_id)
            return self._listen(business)

        try:
            business = await asyncio.wait_for(
                self.store.get_business(event.to_number), self.config.store_timeout
            )
        except Exception as e:
            logger.error("Business lookup for %s failed: %r", event.to_number, e)
            return [Directive.speak(self.messages.unavailable), Directive.hangup()]
        if business is None:
            logger.warning("No business for number %s, rejecting call %s", event.to_number, event.call_id)
            return [Directive.speak(self.messages.unavailable), Directive.hangup()]

        now = self._clock()
        session = CallSession(
            id=event.call_id,
            business_id=business.id,
            caller_number=event.from_number,
            called_number=event.to_number,
            start_time=now,
        )
        self._businesses[session.id] = business
        self.transition(session, CallStatus.GREETING_SENT)

        greeting = self._greeting(business, now)
        spoken = await self._speak(session, business, greeting)
        session.add_agent_turn(greeting, now, source="system")
        self._recompute(session, now)
        await self.sessions.set(session)
        self._arm_deadline(session.id, self.config.max_call_seconds)

        logger.info("Call %s started: business=%s caller=%s", session.id, business.id, event.from_number)
        self.publisher.publish(CALL_STARTED, {
            "callId": session.id,
            "businessId": business.id,
            "callerNumber": event.from_number,
            "calledNumber": event.to_number,
            "timestamp": now,
        })
        return self._continue(spoken, business)

    async def _handle_speech(self, event: SpeechResult) -> list[Directive]:
        session = await self.sessions.get(event.call_id)
        if session is None or session.status.is_terminal:
            logger.info("Discarding speech for unknown or ended call %s", event.call_id)
            return [Directive.hangup()]
        business = await self._business_for(session)
        now = self._clock()

        try:
            self._check_deadline(session, now)
        except CarrierTimeout as e:
            logger.warning("%s", e)
            return await self._end_call(session, business, END_MAX_DURATION)
        if business is None:
            return await self._end_call(session, business, END_ERROR)
        if not session.status.accepts_speech:
            logger.warning("Speech for call %s while %s, re-listening", session.id, session.status.value)
            return self._listen(business)

        text, confidence = (event.text or "").strip(), event.confidence
        if not text and event.audio is not None and self.recognizer is not None:
            try:
                text, confidence = await transcribe_or_raise(
                    self.recognizer, event.audio, self.config.recognizer_timeout
                )
            except RecognitionError as e:
                logger.warning("Call %s: %s", session.id, e)
                await report_error(self.store, session, RECOGNITION, LOW, e, now, self.config.store_timeout)
                return await self._clarify(session, business)
        if not text:
            return await self._clarify(session, business)

        history = session.recent_history(self.config.history_turns)
        self.transition(session, CallStatus.PROCESSING_TURN)
        session.add_caller_turn(text, now, confidence)
        await self.sessions.set(session)
        logger.info("Call %s turn %d caller: %s", session.id, session.turn_count, text)

        generation = session.generation
        remaining = self.config.max_call_seconds - session.elapsed(now)
        budget = max(0.0, min(self.config.pipeline_timeout, remaining))

        task = asyncio.create_task(self.pipeline.run(
            text, confidence, business, history, session.reservation_draft, session.current_intent,
        ))
        self._inflight[session.id] = task
        try:
            done, _ = await asyncio.wait({task}, timeout=budget)
        finally:
            self._inflight.pop(session.id, None)
            if not task.done():
                task.cancel()

        current = await self.sessions.get(session.id)
        if task.cancelled() and done:
            logger.info("Turn for call %s cancelled by carrier hangup", session.id)
            return [Directive.hangup()]
        if current is None or current.generation != generation:
            logger.warning("Discarding stale turn result for call %s", session.id)
            return [Directive.hangup()]

        if not done:
            try:
                self._check_deadline(session, self._clock())
            except CarrierTimeout as e:
                logger.warning("%s mid-turn", e)
                return await self._end_call(session, business, END_MAX_DURATION)
            return await self._recover(
                session, business, ResponseGenerationError(f"pipeline exceeded {budget:.1f}s")
            )
        error = task.exception()
        if error is not None:
            if not isinstance(error, ResponseGenerationError):
                logger.error("Unexpected pipeline failure for call %s", session.id, exc_info=error)
            return await self._recover(session, business, error)
        return await self._complete_turn(session, business, task.result())

    async def _complete_turn(
        self, session: CallSession, business: BusinessProfile, result: PipelineResult
    ) -> list[Directive]:
        now = self._clock()
        session.consecutive_failures = 0
        if result.intent != "clarify":
            session.current_intent = result.intent
        if result.extracted_fields:
            changed = session.reservation_draft.merge(result.extracted_fields)
            if changed:
                logger.info("Call %s reservation draft updated: %s", session.id, ", ".join(changed))
        session.tokens_input += result.tokens_input
        session.tokens_output += result.tokens_output
        session.extraction_tokens += result.extraction_tokens
        if result.tier == CAPABLE_TIER:
            session.model_tier = CAPABLE_TIER

        reply = result.text
        end_reason = None
        if self._should_book(session, business):
            booking = await self._book(session, business)
            if booking is None:
                reply, end_reason = self.messages.unavailable, END_ERROR
            elif booking.confirmed:
                reply = self.messages.booking_confirmed.format(
                    party_size=booking.party_size, date=booking.date, time=session.reservation_draft.time,
                )
                end_reason = END_RESERVATION_CONFIRMED
            else:
                reply, end_reason = self.messages.alternate_time, END_SLOT_UNAVAILABLE
        elif result.intent == "farewell":
            end_reason = END_COMPLETED
        elif session.turn_count >= self.config.max_turns:
            end_reason = END_MAX_TURNS

        # farewell and turn cap close with the goodbye alone
        closing = end_reason in (END_COMPLETED, END_MAX_TURNS)
        if closing:
            reply = self._goodbye(business)

        session.add_agent_turn(
            reply,
            now,
            tokens_used=result.tokens_used,
            intent=result.intent,
            response_time_ms=result.response_time_ms,
            source=result.source,
        )
        self.publisher.publish(CALL_TURN, {
            "callId": session.id,
            "businessId": session.business_id,
            "userMessage": session.caller_turns[-1].text,
            "botResponse": reply,
            "intent": result.intent,
            "model": result.model,
            "source": result.source,
            "turnCount": session.turn_count,
        })

        if closing:
            return await self._end_call(session, business, end_reason, goodbye=reply, record_goodbye=False)
        if end_reason is not None:
            return await self._end_call(session, business, end_reason, lead=reply)

        self.transition(session, CallStatus.AWAITING_SPEECH)
        spoken = await self._speak(session, business, reply)
        self._recompute(session, now)
        await self.sessions.set(session)
        return self._continue(spoken, business)

    async def _recover(self, session: CallSession, business: BusinessProfile, error: Exception) -> list[Directive]:
        session.consecutive_failures += 1
        self.transition(session, CallStatus.ERROR_RECOVERY)
        logger.error(
            "Call %s turn failed (%d consecutive): %s",
            session.id, session.consecutive_failures, error,
        )
        exhausted = session.consecutive_failures >= self.config.max_consecutive_failures
        await report_error(
            self.store, session,
            GENERATION if isinstance(error, ResponseGenerationError) else SYSTEM,
            HIGH if exhausted else MEDIUM,
            error, self._clock(), self.config.store_timeout,
            turn=session.turn_count,
        )
        if exhausted:
            return await self._end_call(session, business, END_ERROR)
        if session.turn_count >= self.config.max_turns:
            return await self._end_call(session, business, END_MAX_TURNS)

        now = self._clock()
        self.transition(session, CallStatus.AWAITING_SPEECH)
        spoken = await self._speak(session, business, self.messages.apology)
        session.add_agent_turn(self.messages.apology, now, intent="recovery", source="recovery")
        self._recompute(session, now)
        await self.sessions.set(session)
        return self._continue(spoken, business)

    async def _clarify(self, session: CallSession, business: BusinessProfile) -> list[Directive]:
        now = self._clock()
        self.transition(session, CallStatus.AWAITING_SPEECH)
        spoken = await self._speak(session, business, self.messages.clarification)
        session.add_agent_turn(self.messages.clarification, now, intent="clarify", source="clarification")
        self._recompute(session, now)
        await self.sessions.set(session)
        return self._continue(spoken, business)

    async def _handle_silence(self, event: SilenceTimeout) -> list[Directive]:
        session = await self.sessions.get(event.call_id)
        if session is None or session.status.is_terminal:
            return [Directive.hangup()]
        business = await self._business_for(session)
        now = self._clock()

        try:
            self._check_deadline(session, now)
        except CarrierTimeout as e:
            logger.warning("%s", e)
            return await self._end_call(session, business, END_MAX_DURATION)
        if business is None:
            return await self._end_call(session, business, END_ERROR)
        if not session.status.accepts_speech:
            return self._listen(business)

        session.timeout_count += 1
        if session.timeout_count >= self.config.max_timeouts:
            logger.info("Call %s silent %d times, ending", session.id, session.timeout_count)
            return await self._end_call(session, business, END_TIMEOUT, goodbye=self.messages.no_input)

        self.transition(session, CallStatus.AWAITING_SPEECH)
        spoken = await self._speak(session, business, self.messages.reprompt)
        session.add_agent_turn(self.messages.reprompt, now, source="system")
        self._recompute(session, now)
        await self.sessions.set(session)
        return [
            Directive.speak(spoken.text, spoken.audio_ref),
            Directive.gather(business.language, speech_timeout=REPROMPT_SPEECH_TIMEOUT),
            Directive.redirect(),
        ]

    async def _end_call(
        self,
        session: CallSession,
        business: Optional[BusinessProfile],
        reason: str,
        lead: Optional[str] = None,
        goodbye: Optional[str] = None,
        record_goodbye: bool = True,
    ) -> list[Directive]:
        self.transition(session, CallStatus.ENDING)
        session.end_reason = reason
        now = self._clock()

        if goodbye is None:
            goodbye = self._goodbye(business)
        directives = []
        for text in (lead, goodbye):
            if not text:
                continue
            if business is not None:
                spoken = await self._speak(session, business, text)
                directives.append(Directive.speak(spoken.text, spoken.audio_ref))
            else:
                directives.append(Directive.speak(text))
        if record_goodbye:
            session.add_agent_turn(goodbye, now, source="system")
        directives.append(Directive.hangup())

        await self._finalize(session, business, now)
        return directives

    async def _finalize(self, session: CallSession, business: Optional[BusinessProfile], now: float) -> None:
        self._recompute(session, now)
        try:
            record = await finalize(
                session, business, self.store, self.responder, now, self.config, self._sleep,
            )
        finally:
            self._disarm_deadline(session.id)
            self.transition(session, CallStatus.ENDED)
            await self.sessions.delete(session.id)
            self._businesses.pop(session.id, None)

        payload = {
            "callId": session.id,
            "businessId": session.business_id,
            "reason": session.end_reason,
            "duration": call_duration(session, now),
            "turnCount": session.turn_count,
            "cost": session.cost_ledger.total,
            "reservationId": session.reservation_id,
        }
        if record["status"] == RECORD_ABANDONED:
            payload["abandoned"] = True
        self.publisher.publish(CALL_ENDED, payload)
        logger.info(
            "Call %s ended: reason=%s turns=%d duration=%ss cost=%.4f %s",
            session.id, session.end_reason, session.turn_count, payload["duration"],
            session.cost_ledger.total, session.cost_ledger.currency,
        )

    # -- reservations ----------------------------------------------------

    def _should_book(self, session: CallSession, business: BusinessProfile) -> bool:
        return (
            business.reservations.enabled
            and not session.booking_attempted
            and session.reservation_draft.is_complete
        )

    async def _book(self, session: CallSession, business: BusinessProfile) -> Optional[ReservationResult]:
        session.booking_attempted = True
        draft = session.reservation_draft
        try:
            result = await asyncio.wait_for(
                self.arbitrator.check_and_reserve(
                    business,
                    draft.date,
                    draft.time,
                    draft.party_size,
                    customer_name=draft.customer_name,
                    customer_phone=draft.customer_phone or session.caller_number,
                    special_requests=draft.special_requests,
                    call_id=session.id,
                ),
                self.config.store_timeout,
            )
        except Exception as e:
            logger.error("Booking for call %s failed: %r", session.id, e)
            await report_error(
                self.store, session, DATABASE, HIGH, e, self._clock(), self.config.store_timeout,
                operation="create_reservation",
            )
            return None

        if result.confirmed:
            session.reservation_id = result.reservation_id
            self.publisher.publish(RESERVATION_CREATED, {
                "callId": session.id,
                "businessId": business.id,
                "reservationId": result.reservation_id,
                "date": result.date,
                "time": draft.time,
                "partySize": result.party_size,
                "customerName": draft.customer_name,
            })
        return result

    # -- watchdog --------------------------------------------------------

    def _arm_deadline(self, call_id: str, delay: float) -> None:
        self._disarm_deadline(call_id)
        loop = asyncio.get_running_loop()
        self._deadlines[call_id] = loop.call_later(max(0.0, delay), self._on_deadline, call_id)

    def _disarm_deadline(self, call_id: str) -> None:
        handle = self._deadlines.pop(call_id, None)
        if handle is not None:
            handle.cancel()

    def _on_deadline(self, call_id: str) -> None:
        self._deadlines.pop(call_id, None)
        logger.warning("Call %s reached the %.0fs wall-clock cap", call_id, self.config.max_call_seconds)
        self._spawn(self._force_end(call_id, END_MAX_DURATION))

    def _spawn(self, coro) -> None:
        task = asyncio.create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._reap)

    def _reap(self, task: asyncio.Task) -> None:
        self._background.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Deferred call ending failed", exc_info=task.exception())

    def _is_known(self, call_id: str) -> bool:
        return call_id in self._businesses or call_id in self._deadlines

    async def _force_end(self, call_id: str, reason: str, duration_seconds: Optional[int] = None) -> None:
        """End a call without speaking, waiting for any handler that holds its lock.

        Gives up only once the call is gone, so a hangup that lost the race for
        the lock is still finalized after the in-progress handler returns.
        """
        while True:
            try:
                async with self.sessions.lock(call_id, self.config.lock_timeout):
                    session = await self.sessions.get(call_id)
                    if session is None or session.status.is_terminal:
                        return
                    if duration_seconds is not None:
                        session.duration_seconds = int(duration_seconds)
                    self.transition(session, CallStatus.ENDING)
                    session.end_reason = reason
                    await self._finalize(session, self._businesses.get(call_id), self._clock())
                    return
            except LockTimeout:
                if not self._is_known(call_id) and await self.sessions.get(call_id) is None:
                    logger.info("Call %s already gone, dropping %s", call_id, reason)
                    return
                logger.info("Call %s still busy, retrying %s", call_id, reason)

    # -- helpers ---------------------------------------------------------

    async def _business_for(self, session: CallSession) -> Optional[BusinessProfile]:
        business = self._businesses.get(session.id)
        if business is not None:
            return business
        try:
            business = await asyncio.wait_for(
                self.store.get_business(session.called_number), self.config.store_timeout
            )
        except Exception as e:
            logger.error("Business lookup for call %s failed: %r", session.id, e)
            return None
        if business is not None:
            self._businesses[session.id] = business
        return business

    async def _speak(self, session: CallSession, business: BusinessProfile, text: str) -> SpokenText:
        spoken = await self.synthesizer.speak(business.id, text, business.personality.voice)
        session.characters_synthesized += spoken.billed_characters
        return spoken

    def _greeting(self, business: BusinessProfile, now: float) -> str:
        template = business.personality.greeting_message or self.messages.greeting
        return f"{business.time_based_greeting(now)}! {template.replace('{business_name}', business.name)}"

    def _goodbye(self, business: Optional[BusinessProfile]) -> str:
        return (business.personality.goodbye_message if business else "") or self.messages.goodbye

    def _check_deadline(self, session: CallSession, now: float) -> None:
        if session.elapsed(now) >= self.config.max_call_seconds:
            raise CarrierTimeout(
                f"call {session.id} reached the {self.config.max_call_seconds:.0f}s wall-clock cap"
            )

    def _recompute(self, session: CallSession, now: float) -> None:
        duration = session.duration_seconds
        if duration is None:
            duration = session.elapsed(now)
        session.cost_ledger = recompute(
            duration,
            session.tokens_input,
            session.tokens_output,
            session.model_tier,
            session.characters_synthesized,
            self.rates,
            extraction_tokens=session.extraction_tokens,
        )

    def _continue(self, spoken: SpokenText, business: BusinessProfile) -> list[Directive]:
        return [Directive.speak(spoken.text, spoken.audio_ref), *self._listen(business)]

    def _listen(self, business: BusinessProfile) -> list[Directive]:
        return [Directive.gather(business.language), Directive.redirect()]

    def _busy_reply(self, call_id: str) -> list[Directive]:
        business = self._businesses.get(call_id)
        if business is None:
            return [Directive.hangup()]
        return [Directive.speak(self.messages.apology), *self._listen(business)]
