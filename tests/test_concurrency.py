"""
Tests for atomic status transitions under concurrent requests.
"""
import threading

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from credentialing.accounts.models import VerificationStatus
from credentialing.accounts.service import AccountLifecycleEngine
from credentialing.core.audit_models import AuditAction
from credentialing.core.audit_service import AuditLogEngine
from credentialing.core.locks import KeyedLock
from credentialing.database import Base
from credentialing.exceptions import InvalidTransitionError, NotFoundError
from credentialing.storage import AccountStore, EventStore

from .conftest import RecordingNotifier


@pytest.fixture
def file_sessions(tmp_path):
    """Session factory over a file database so each thread gets its own connection."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'race.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(bind=engine, autoflush=False, autocommit=False)
    engine.dispose()


def engine_for(session, locks):
    accounts = AccountStore(session)
    return AccountLifecycleEngine(accounts, AuditLogEngine(EventStore(session)), notifier=RecordingNotifier(), locks=locks)


def run_concurrently(sessions, locks, account_id, decisions):
    barrier = threading.Barrier(len(decisions))
    outcomes = []
    outcomes_lock = threading.Lock()

    def worker(decision):
        session = sessions()
        try:
            engine = engine_for(session, locks)
            barrier.wait()
            try:
                engine.decide(account_id, "ADM-RACE", decision)
                result = "ok"
            except InvalidTransitionError:
                result = "conflict"
            with outcomes_lock:
                outcomes.append(result)
        finally:
            session.close()

    threads = [threading.Thread(target=worker, args=(d,)) for d in decisions]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)
    return outcomes


@pytest.mark.parametrize(
    "decisions",
    [
        [VerificationStatus.VERIFIED, VerificationStatus.VERIFIED],
        [VerificationStatus.VERIFIED, VerificationStatus.REJECTED],
    ],
)
def test_concurrent_decisions_have_one_winner(file_sessions, practitioner_draft, decisions):
    setup = file_sessions()
    account = engine_for(setup, KeyedLock()).submit_application(practitioner_draft)
    account_id = account.id
    setup.close()

    outcomes = run_concurrently(file_sessions, KeyedLock(), account_id, decisions)

    assert sorted(outcomes) == ["conflict", "ok"]
    check = file_sessions()
    try:
        final = AccountStore(check).get_account(account_id)
        assert final.status in decisions
        changes = [e for e in EventStore(check).load_all_events() if e.action == AuditAction.STATUS_CHANGE]
        assert len(changes) == 1
    finally:
        check.close()


def test_conditional_update_refuses_stale_expectation(account_store, lifecycle, practitioner_draft):
    account = lifecycle.submit_application(practitioner_draft)

    assert account_store.compare_and_set_status(account.id, VerificationStatus.PENDING, VerificationStatus.VERIFIED)
    assert not account_store.compare_and_set_status(account.id, VerificationStatus.PENDING, VerificationStatus.REJECTED)
    assert account_store.get_account(account.id).status == VerificationStatus.VERIFIED


def test_lock_registry_only_keeps_keys_in_use():
    locks = KeyedLock()
    for i in range(50):
        with locks.hold(f"DOC-{i}"):
            assert len(locks) == 1
    assert len(locks) == 0

    with pytest.raises(RuntimeError):
        with locks.hold("DOC-1"):
            raise RuntimeError("boom")
    assert len(locks) == 0


def test_unknown_accounts_leave_no_lock_behind(account_store, audit):
    locks = KeyedLock()
    engine = AccountLifecycleEngine(account_store, audit, notifier=RecordingNotifier(), locks=locks)
    for i in range(20):
        with pytest.raises(NotFoundError):
            engine.promote_directory_lead(f"DIR-UNKNOWN-{i}", {"email": "x@x.com", "password": "Password123!"})
    assert len(locks) == 0


def test_waiters_share_one_lock_until_released():
    locks = KeyedLock()
    entered = threading.Event()
    release = threading.Event()
    order = []

    def first():
        with locks.hold("DOC-1"):
            entered.set()
            release.wait(timeout=5)
            order.append("first")

    def second():
        entered.wait(timeout=5)
        with locks.hold("DOC-1"):
            order.append("second")

    threads = [threading.Thread(target=first), threading.Thread(target=second)]
    for thread in threads:
        thread.start()
    entered.wait(timeout=5)
    release.set()
    for thread in threads:
        thread.join(timeout=5)

    assert order == ["first", "second"]
    assert len(locks) == 0
