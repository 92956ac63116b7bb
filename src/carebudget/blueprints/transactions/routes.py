"""Transaction routes: ledger listing, purchase/refund recording, refundables."""

from __future__ import annotations

from typing import Any

from flask import jsonify

from ...models.transaction import PURCHASE, Transaction
from ...services.refunds import RefundableLine
from ..common import client_id_arg, json_body, require_viewer, services, year_arg
from . import bp
from .forms import TransactionForm


def _transaction_payload(transaction: Transaction) -> dict[str, Any]:
    return {
        "id": transaction.id,
        "clientId": transaction.client_id,
        "type": transaction.type,
        "date": transaction.date.strftime("%Y-%m-%d"),
        "madeBy": transaction.made_by_user_id,
        "items": [line.label or line.care_item_slug for line in transaction.lines],
        "receipt": transaction.receipt_url or "",
    }


def _refundable_payload(line: RefundableLine) -> dict[str, Any]:
    return {
        "purchaseTransId": line.purchase_trans_id,
        "purchaseDate": line.purchase_date.strftime("%Y-%m-%d"),
        "lineId": line.line_id,
        "categoryId": line.category_id,
        "careItemSlug": line.care_item_slug,
        "label": line.label,
        "originalAmount": line.original_amount,
        "refundedSoFar": line.refunded_so_far,
        "remainingRefundable": line.remaining_refundable,
    }


@bp.get("/<client_id>/transaction")
def list_transactions(client_id: str):
    client = client_id_arg(client_id)
    year = year_arg()
    transactions = services().ledger.list_transactions(client, year)
    return jsonify([_transaction_payload(txn) for txn in transactions])


@bp.post("/<client_id>/transaction")
def create_transaction(client_id: str):
    """Record a multi-line Purchase or Refund."""

    viewer = require_viewer(services().config.TRANSACTION_ROLES)
    client = client_id_arg(client_id)
    form = TransactionForm.from_mapping(json_body(), default_user_id=viewer.user_id)
    if not form.validate():
        form.raise_first_error()

    ledger = services().ledger
    if form.type == PURCHASE:
        transaction = ledger.record_purchase(
            client,
            date=form.date,
            made_by_user_id=form.made_by_user_id,
            lines=form.purchase_lines,
            receipt_url=form.receipt_url,
            note=form.note,
        )
    else:
        transaction = ledger.record_refund(
            client,
            date=form.date,
            made_by_user_id=form.made_by_user_id,
            lines=form.refund_lines,
            receipt_url=form.receipt_url,
            note=form.note,
        )
    return jsonify({"ok": True, "id": transaction.id}), 201


@bp.get("/<client_id>/transaction/refundables")
def refundables(client_id: str):
    client = client_id_arg(client_id)
    year = year_arg()
    lines = services().ledger.refundable_lines(client, year)
    return jsonify([_refundable_payload(line) for line in lines])
