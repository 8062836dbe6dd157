# backend/tests/test_cli.py
from __future__ import annotations

import sys

from rentflow.cli.__main__ import main
from rentflow.services.payments import PaymentEvent, verify_signature


def test_sign_event_prints_a_signature_the_webhook_accepts(monkeypatch, capsys):
    monkeypatch.setattr(
        sys, "argv", ["rentflow", "sign-event", "--event-id", "evt_cli", "--request-id", "12", "--amount", "3796"]
    )
    main()
    sig = capsys.readouterr().out.strip()
    assert len(sig) == 64

    verify_signature(PaymentEvent(event_id="evt_cli", signature=sig, amount=3796.0, request_id=12))
