"""
Shared Expense Splitter - Flask HTML UI

Server-rendered pages for one ledger (SPLITTER_DEFAULT_LEDGER). Every POST
loads the ledger from the store, applies one change, saves it and redirects
back to the index page, which recomputes balances and settlements.

Usage:
    flask --app expense_splitter.app run
"""

import io
import logging
from datetime import date

from flask import (
    Flask,
    current_app,
    flash,
    make_response,
    redirect,
    render_template,
    request,
    url_for,
)
from xhtml2pdf import pisa

from expense_splitter.analytics import generate_analytics
from expense_splitter.config import configure_logging, settings
from expense_splitter.expenses import add_expense, delete_expense
from expense_splitter.import_export import LedgerImportError, export_ledger, import_ledger
from expense_splitter.ledger import (
    SUPPORTED_CURRENCIES,
    calculate_results,
    empty_ledger,
    example_ledger,
    set_currency,
)
from expense_splitter.participants import add_participant, remove_participant
from expense_splitter.store import get_store, load_or_create
from expense_splitter.utils import explain_all_participants, format_currency, validate_amount


logger = logging.getLogger(__name__)

configure_logging()

app = Flask(__name__)
app.config.update(
    SECRET_KEY=settings.SECRET_KEY,
    LEDGER_ID=settings.DEFAULT_LEDGER_ID,
    LEDGER_STORE=None,
    MAX_CONTENT_LENGTH=2 * 1024 * 1024,
)


# ------------------ HELPERS ------------------

def _store():
    store = current_app.config.get("LEDGER_STORE")
    if store is None:
        store = get_store()
        current_app.config["LEDGER_STORE"] = store
    return store


def _load_ledger():
    # An unreadable stored ledger is shown as empty; it is replaced on the next save
    store = _store()
    try:
        return load_or_create(store, current_app.config["LEDGER_ID"])
    except RuntimeError as e:
        logger.error("Starting from an empty ledger: %s", e)
        flash("Stored data could not be read; starting fresh", "error")
        return empty_ledger()


def _save_ledger(ledger):
    _store().save(current_app.config["LEDGER_ID"], ledger)


def build_report(ledger) -> dict:
    """
    Collect everything the index page and the PDF report show.

    Args:
        ledger: The current Ledger.

    Returns:
        dict: names, summary rows, named settlements, analytics, warnings
        and explanations. Amounts are pre-formatted with the ledger currency.
    """
    currency = ledger.currency_code
    id_to_name = ledger.names()
    participants = ledger.participant_dicts()
    expenses = ledger.expense_dicts()

    balances, settlements = calculate_results(ledger)

    summary = [
        {
            "participant_id": pid,
            "name": id_to_name.get(pid, pid),
            "net": balance,
            "net_display": format_currency(balance, currency)
        }
        for pid, balance in balances.items()
    ]

    settlements_named = [
        {
            "from_name": id_to_name.get(s["from_participant"], s["from_participant"]),
            "to_name": id_to_name.get(s["to_participant"], s["to_participant"]),
            "amount": format_currency(s["amount"], currency)
        }
        for s in settlements
    ]

    analytics_result = generate_analytics(participants, expenses)
    analytics = analytics_result["analytics"]

    return {
        "names": id_to_name,
        "summary": summary,
        "settlements": settlements_named,
        "total_spent": format_currency(analytics["total_spent"], currency),
        "analytics": analytics,
        "warnings": analytics_result["warnings"],
        "explanations": explain_all_participants(participants, expenses, balances)
    }


# ------------------ ROUTES ------------------

@app.route("/")
def index():
    ledger = _load_ledger()
    report = build_report(ledger)

    return render_template(
        "index.html",
        ledger=ledger,
        currencies=SUPPORTED_CURRENCIES,
        today=date.today().isoformat(),
        format_currency=format_currency,
        **report
    )


# ------------------ PARTICIPANTS ------------------

@app.route("/add-participant", methods=["POST"])
def add_person():
    try:
        ledger, _ = add_participant(_load_ledger(), request.form.get("name", ""))
        _save_ledger(ledger)
    except ValueError as e:
        flash(str(e), "error")

    return redirect(url_for("index"))


@app.route("/remove-participant/<participant_id>", methods=["POST"])
def remove_person(participant_id):
    try:
        _save_ledger(remove_participant(_load_ledger(), participant_id))
    except KeyError:
        flash(f"Participant {participant_id} not found", "error")

    return redirect(url_for("index"))


# ------------------ EXPENSES ------------------

@app.route("/add-expense", methods=["POST"])
def add_exp():
    amount = request.form.get("amount", "")
    if not validate_amount(amount):
        flash("Amount must be a positive number", "error")
        return redirect(url_for("index"))

    try:
        ledger, _ = add_expense(
            _load_ledger(),
            description=request.form.get("description", ""),
            amount=float(amount),
            payer_id=request.form.get("payer", ""),
            participant_ids=request.form.getlist("participants"),
            date=request.form.get("expense_date") or None
        )
        _save_ledger(ledger)
    except ValueError as e:
        flash(str(e), "error")

    return redirect(url_for("index"))


@app.route("/delete-expense/<expense_id>", methods=["POST"])
def delete_exp(expense_id):
    try:
        _save_ledger(delete_expense(_load_ledger(), expense_id))
    except KeyError:
        flash(f"Expense {expense_id} not found", "error")

    return redirect(url_for("index"))


# ------------------ LEDGER ------------------

@app.route("/set-currency", methods=["POST"])
def change_currency():
    try:
        _save_ledger(set_currency(_load_ledger(), request.form.get("currency_code", "")))
    except ValueError as e:
        flash(str(e), "error")

    return redirect(url_for("index"))


@app.route("/reset", methods=["POST"])
def reset():
    _save_ledger(empty_ledger())
    logger.info("Reset ledger %s", current_app.config["LEDGER_ID"])
    return redirect(url_for("index"))


@app.route("/load-example", methods=["POST"])
def load_example():
    _save_ledger(example_ledger())
    return redirect(url_for("index"))


# ------------------ JSON EXPORT / IMPORT ------------------

@app.route("/export-json")
def export_json():
    response = make_response(export_ledger(_load_ledger()))
    response.headers["Content-Type"] = "application/json"
    response.headers["Content-Disposition"] = "attachment; filename=expenses.json"
    return response


@app.route("/import-json", methods=["POST"])
def import_json():
    upload = request.files.get("file")
    if upload is None or not upload.filename:
        flash("Choose a file to import", "error")
        return redirect(url_for("index"))

    try:
        ledger = import_ledger(upload.read(), source=upload.filename)
    except LedgerImportError:
        flash("Could not import the file.", "error")
        return redirect(url_for("index"))

    _save_ledger(ledger)
    flash(f"Imported {len(ledger.participants)} participant(s) and {len(ledger.expenses)} expense(s)", "info")
    return redirect(url_for("index"))


# ------------------ PDF EXPORT ------------------
# PDF includes: participants, expenses, balances, settlements, warnings

@app.route("/export-pdf")
def export_pdf():
    ledger = _load_ledger()
    report = build_report(ledger)

    html_content = render_template(
        "report.html",
        ledger=ledger,
        generated=date.today().strftime("%B %d, %Y"),
        format_currency=format_currency,
        **report
    )

    pdf_buffer = io.BytesIO()
    result = pisa.CreatePDF(io.StringIO(html_content), dest=pdf_buffer)
    if result.err:
        logger.error("PDF generation failed with %d error(s)", result.err)
        return "Could not generate the PDF report", 500

    response = make_response(pdf_buffer.getvalue())
    response.headers["Content-Type"] = "application/pdf"
    response.headers["Content-Disposition"] = "attachment; filename=expense_report.pdf"
    return response


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=5000)
