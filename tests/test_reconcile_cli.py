from datetime import time

import pytest

from barbershop import reconcile
from barbershop.models.slot import Slot


@pytest.fixture
def cli_session(db, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(reconcile, 'SessionLocal', lambda: db)
    return db


def test_reconcile_reports_clean_database(cli_session, booked_slot_factory, capsys) -> None:
    booked_slot_factory(time(9, 0), time(9, 45))

    assert reconcile.main([]) == 0
    assert 'No consistency issues found.' in capsys.readouterr().out


def test_reconcile_lists_issues_without_fixing(cli_session, slot_factory, capsys) -> None:
    slot_factory(time(9, 0), time(9, 45), is_booked=True)

    assert reconcile.main([]) == 1
    assert '[booked_without_appointment]' in capsys.readouterr().out
    assert cli_session.query(Slot).one().is_booked is True


def test_reconcile_fix_repairs_orphans_first(cli_session, slot_factory, capsys) -> None:
    slot_factory(time(9, 0), time(9, 45), is_booked=True)

    assert reconcile.main(['--fix']) == 0
    output = capsys.readouterr().out
    assert 'Repaired 1 orphaned slot(s).' in output
    assert 'No consistency issues found.' in output
