from dataclasses import dataclass

from fastapi import Request

from db.repo import SqlAbuseEventLog, SqlBlockList, SqlClickHistory, SqlLinkStore
from db.repo.base import AbuseEventLog, BlockList, LinkStore
from services.click_recorder import ClickRecorder
from services.escalation import EscalationEngine
from services.link_service import LinkService
from services.spam_classifier import SpamClassifier
from settings import Settings
from utils.timewindow import Clock, utcnow


@dataclass
class Services:
    settings: Settings
    link_store: LinkStore
    abuse_log: AbuseEventLog
    block_list: BlockList
    escalation: EscalationEngine
    classifier: SpamClassifier
    click_recorder: ClickRecorder
    link_service: LinkService


def build_services(settings: Settings, session_factory, clock: Clock = utcnow) -> Services:
    """Wire the stores and core components; the caller owns the engine lifecycle."""
    link_store = SqlLinkStore(session_factory)
    abuse_log = SqlAbuseEventLog(session_factory)
    block_list = SqlBlockList(session_factory)
    click_history = SqlClickHistory(session_factory)

    escalation = EscalationEngine(settings, abuse_log, block_list, clock)
    classifier = SpamClassifier(settings, link_store, escalation, clock)
    click_recorder = ClickRecorder(
        link_store,
        click_history,
        clock,
        history_days=settings.click_history_days,
        samples_per_day=settings.click_samples_per_day,
    )
    link_service = LinkService(settings, link_store, block_list, classifier, escalation, clock)
    return Services(
        settings=settings,
        link_store=link_store,
        abuse_log=abuse_log,
        block_list=block_list,
        escalation=escalation,
        classifier=classifier,
        click_recorder=click_recorder,
        link_service=link_service,
    )


def get_services(request: Request) -> Services:
    return request.app.state.services
