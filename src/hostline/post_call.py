import asyncio
import logging
from collections import Counter
from datetime import datetime, timezone
from typing import Awaitable, Callable

from hostline.business import BusinessProfile
from hostline.config import OrchestratorConfig
from hostline.error_log import CRITICAL, DATABASE, report_error
from hostline.responder import SUMMARY_FALLBACK, Responder
from hostline.session import CallSession
from hostline.store import Store
from hostline.transcript import to_json_array, to_relative_timeline

logger = logging.getLogger(__name__)

RECORD_COMPLETED = "completed"
RECORD_ABANDONED = "abandoned"

# End reasons that count toward a business's success rate
SUCCESSFUL_END_REASONS = frozenset({"completed", "reservation_confirmed", "carrier_completed"})

_NON_INTENTS = {None, "clarify", "recovery", "system"}


def call_duration(session: CallSession, end_time: float) -> int:
    """Carrier-reported duration when known, else wall clock since start."""
    if session.duration_seconds is not None:
        return int(session.duration_seconds)
    if session.start_time > 0:
        return max(0, int(end_time - session.start_time))
    return 0


def primary_intent(session: CallSession) -> str:
    """The last intent the caller expressed, else the most frequent one."""
    if session.current_intent not in _NON_INTENTS:
        return session.current_intent
    counts = Counter(
        t.intent for t in session.conversation
        if t.role == "agent" and t.intent not in _NON_INTENTS
    )
    if not counts:
        return "general"
    return counts.most_common(1)[0][0]


def call_metrics(session: CallSession) -> dict:
    response_times = [
        t.response_time_ms for t in session.conversation
        if t.role == "agent" and t.response_time_ms is not None
    ]
    confidences = [
        t.confidence for t in session.conversation
        if t.role == "caller" and t.confidence is not None
    ]
    return {
        "avg_response_time_ms": round(sum(response_times) / len(response_times)) if response_times else 0,
        "max_response_time_ms": max(response_times) if response_times else 0,
        "stt_accuracy": round(sum(confidences) / len(confidences) * 100, 1) if confidences else None,
        "turns": session.turn_count,
        "timeouts": session.timeout_count,
    }


def _iso(ts: float) -> str | None:
    if ts <= 0:
        return None
    return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat()


def build_call_record(
    session: CallSession,
    end_time: float,
    summary: str,
    missing_info: list[dict],
    status: str = RECORD_COMPLETED,
) -> dict:
    return {
        "call_id": session.id,
        "business_id": session.business_id,
        "caller_number": session.caller_number,
        "called_number": session.called_number,
        "status": status,
        "end_reason": session.end_reason,
        "started_at": _iso(session.start_time),
        "ended_at": _iso(end_time),
        "duration_seconds": call_duration(session, end_time),
        "turn_count": session.turn_count,
        "conversation": to_json_array(session.conversation),
        "timeline": to_relative_timeline(session.conversation, session.start_time),
        "summary": summary,
        "primary_intent": primary_intent(session),
        "missing_info": missing_info,
        "metrics": call_metrics(session),
        "tokens_input": session.tokens_input,
        "tokens_output": session.tokens_output,
        "extraction_tokens": session.extraction_tokens,
        "model_tier": session.model_tier,
        "characters_synthesized": session.characters_synthesized,
        "cost": session.cost_ledger.to_dict(),
        "reservation_draft": session.reservation_draft.to_dict(),
        "reservation_id": session.reservation_id,
        "errors": list(session.errors),
        "had_errors": bool(session.errors),
    }


def build_stats_delta(session: CallSession, end_time: float, missing_info: list[dict]) -> dict:
    return {
        "calls": 1,
        "completed_calls": 1 if session.end_reason in SUCCESSFUL_END_REASONS else 0,
        "duration_seconds": call_duration(session, end_time),
        "cost": session.cost_ledger.total,
        "reservations": 1 if session.reservation_id else 0,
        "missing_info": missing_info,
        "last_call_at": _iso(end_time),
    }


async def _bounded(coro, timeout: float, fallback, label: str):
    try:
        return await asyncio.wait_for(coro, timeout)
    except Exception as e:
        logger.warning("%s failed during finalization: %r", label, e)
        return fallback


async def finalize(
    session: CallSession,
    business: BusinessProfile | None,
    store: Store,
    responder: Responder,
    end_time: float,
    config: OrchestratorConfig = OrchestratorConfig(),
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> dict:
    """Summarize and persist a finished call.

    Persistence is retried once after ``persistence_retry_delay``; if the
    retry also fails the returned record is marked abandoned.
    """
    summary = ""
    missing_info: list[dict] = []
    if business is not None and session.conversation:
        summary = await _bounded(
            responder.summarize(session.conversation, business),
            config.pipeline_timeout, SUMMARY_FALLBACK, "summary",
        )
        if business.ai.enable_auto_faq:
            missing_info = await _bounded(
                responder.detect_missing_info(session.conversation, business),
                config.pipeline_timeout, [], "missing-info detection",
            )

    record = build_call_record(session, end_time, summary, missing_info)
    delta = build_stats_delta(session, end_time, missing_info)

    saved = False
    for attempt in range(2):
        try:
            if not saved:
                await asyncio.wait_for(store.save_call(record), config.store_timeout)
                saved = True
            await asyncio.wait_for(
                store.upsert_business_stats(session.business_id, delta), config.store_timeout
            )
            logger.info(
                "Call %s persisted: reason=%s turns=%d cost=%.4f %s",
                session.id, session.end_reason, session.turn_count,
                session.cost_ledger.total, session.cost_ledger.currency,
            )
            return record
        except Exception as e:
            if attempt == 0:
                logger.warning(
                    "Persisting call %s failed, retrying in %.1fs: %s",
                    session.id, config.persistence_retry_delay, e,
                )
                await sleep(config.persistence_retry_delay)
            else:
                logger.error("Persisting call %s failed after retry, abandoning: %s", session.id, e)
                await report_error(
                    store, session, DATABASE, CRITICAL, e, end_time, config.store_timeout,
                    operation="finalize",
                )

    return {
        **record,
        "status": RECORD_ABANDONED,
        "errors": list(session.errors),
        "had_errors": True,
    }
